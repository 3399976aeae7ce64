"""Date-ordered envelope listings rebuilt from cached metadata files."""

import json
from datetime import datetime, timezone

from pydantic import ValidationError

from himalaya_cache.cache.store import CacheStore
from himalaya_cache.errors import CacheIoError, CacheNotFoundError, DecodeError
from himalaya_cache.models import Envelope

# Rank for envelopes without a usable date; sorts after every real date
_MISSING_DATE = datetime.min.replace(tzinfo=timezone.utc)


def _date_rank(envelope: Envelope) -> datetime:
    return envelope.parsed_date or _MISSING_DATE


def sort_envelopes(envelopes: list[Envelope]) -> list[Envelope]:
    """Return envelopes newest first; undated ones go last in their given order."""
    return sorted(envelopes, key=_date_rank, reverse=True)


def list_envelopes(store: CacheStore, account: str, folder: str) -> list[Envelope]:
    """Load every cached envelope of a folder, newest first.

    Only regular `*.json` files in the metadata directory are read. A file
    that does not parse as an envelope aborts the listing.

    Raises:
        CacheNotFoundError: If the folder has no metadata directory
        DecodeError: If a metadata file is not a valid envelope record
    """
    meta_dir = store.meta_dir(account, folder)
    try:
        entries = sorted(meta_dir.iterdir())
    except FileNotFoundError as e:
        raise CacheNotFoundError(meta_dir, e, "read") from e
    except OSError as e:
        raise CacheIoError(meta_dir, e, "read") from e

    envelopes = []
    for path in entries:
        if path.suffix != ".json" or not path.is_file():
            continue
        data = store.read_bytes(path)
        try:
            envelopes.append(Envelope.model_validate_json(data))
        except ValidationError as e:
            raise DecodeError(f"parse {path}: {e}", str(path)) from e

    return sort_envelopes(envelopes)


def render_envelopes(envelopes: list[Envelope]) -> str:
    """Serialize envelopes as pretty-printed JSON."""
    return json.dumps(
        [envelope.model_dump(mode="json", by_alias=True) for envelope in envelopes],
        indent=2,
        ensure_ascii=False,
    )
