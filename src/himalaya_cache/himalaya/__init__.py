"""Interface to the external himalaya mail client."""

from himalaya_cache.himalaya.client import HimalayaClient, find_himalaya

__all__ = [
    "HimalayaClient",
    "find_himalaya",
]
