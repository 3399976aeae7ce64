"""JSON file-based cache of himalaya accounts, folders, envelopes and messages.

Layout under the cache root:

    accounts.json
    folders/<account>.json
    envelopes/<account>/<folder>.json
    meta/<account>/<folder>/<id>.json
    messages/<account>/<folder>/<id>.eml
"""

import json
import os
from collections.abc import Sequence
from contextlib import suppress
from pathlib import Path

from pydantic import BaseModel

from himalaya_cache.errors import CacheIoError, CacheNotFoundError


def _dump(value: BaseModel | Sequence[BaseModel]) -> bytes:
    if isinstance(value, BaseModel):
        data = value.model_dump(mode="json", by_alias=True)
    else:
        data = [item.model_dump(mode="json", by_alias=True) for item in value]
    return json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")


class CacheStore:
    """Maps cache entities to files under a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def ensure_root(self) -> None:
        """Create the cache root directory if needed."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIoError(self.root, e, "create cache dir") from e

    # Paths

    @property
    def accounts_path(self) -> Path:
        return self.root / "accounts.json"

    def folders_path(self, account: str) -> Path:
        return self.root / "folders" / f"{account}.json"

    def envelopes_path(self, account: str, folder: str) -> Path:
        return self.root / "envelopes" / account / f"{folder}.json"

    def meta_dir(self, account: str, folder: str) -> Path:
        return self.root / "meta" / account / folder

    def meta_path(self, account: str, folder: str, message_id: str) -> Path:
        return self.meta_dir(account, folder) / f"{message_id}.json"

    def message_path(self, account: str, folder: str, message_id: str) -> Path:
        return self.root / "messages" / account / folder / f"{message_id}.eml"

    # Writes

    def write_record(self, path: Path, value: BaseModel | Sequence[BaseModel]) -> None:
        """Write a record or list of records as pretty-printed JSON."""
        self.write_bytes(path, _dump(value))

    def write_bytes(self, path: Path, payload: bytes) -> None:
        """Write bytes, creating parent directories and replacing any old file."""
        try:
            # exist_ok makes concurrent creation of a shared parent harmless
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIoError(path.parent, e, "create directory") from e

        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            tmp_path.write_bytes(payload)
            os.replace(tmp_path, path)
        except OSError as e:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise CacheIoError(path, e, "write") from e

    # Reads

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read_bytes(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise CacheNotFoundError(path, e, "read") from e
        except OSError as e:
            raise CacheIoError(path, e, "read") from e

    def read_text(self, path: Path) -> str:
        return self.read_bytes(path).decode("utf-8", errors="replace")
