"""On-disk cache of himalaya data."""

from himalaya_cache.cache.envelopes import list_envelopes, render_envelopes, sort_envelopes
from himalaya_cache.cache.reader import read_envelopes, read_folders, read_message
from himalaya_cache.cache.store import CacheStore

__all__ = [
    "CacheStore",
    "list_envelopes",
    "render_envelopes",
    "sort_envelopes",
    "read_envelopes",
    "read_folders",
    "read_message",
]
