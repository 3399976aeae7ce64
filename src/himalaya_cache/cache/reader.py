"""Read-only queries answered from the cache without calling himalaya."""

import json

from himalaya_cache.cache.envelopes import list_envelopes, render_envelopes
from himalaya_cache.cache.store import CacheStore


def read_folders(store: CacheStore, account: str) -> str:
    """Return the cached folder list of an account exactly as stored."""
    return store.read_text(store.folders_path(account))


def read_message(store: CacheStore, account: str, folder: str, message_id: str) -> str:
    """Return a cached message body as a JSON string literal.

    The body is decoded as UTF-8 (invalid sequences replaced) and CRLF line
    endings are normalized to LF before encoding.
    """
    payload = store.read_bytes(store.message_path(account, folder, message_id))
    normalized = payload.decode("utf-8", errors="replace").replace("\r\n", "\n")
    return json.dumps(normalized, ensure_ascii=False)


def read_envelopes(store: CacheStore, account: str, folder: str) -> str:
    """Return the cached envelopes of a folder, newest first, as JSON."""
    return render_envelopes(list_envelopes(store, account, folder))
