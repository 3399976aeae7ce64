"""Sync of himalaya data into the local cache."""

from himalaya_cache.sync.engine import SyncEngine
from himalaya_cache.sync.models import (
    AccountResult,
    EnvelopeResult,
    EnvelopeStatus,
    FolderResult,
    SyncRunResult,
    SyncScope,
    SyncWarning,
    UnitStatus,
)

__all__ = [
    "SyncEngine",
    "SyncScope",
    "SyncRunResult",
    "SyncWarning",
    "AccountResult",
    "FolderResult",
    "EnvelopeResult",
    "EnvelopeStatus",
    "UnitStatus",
]
