"""Data models for sync runs."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from himalaya_cache.errors import InvalidScopeError


class SyncScope(BaseModel):
    """Which part of the mail store a sync covers."""

    account: str | None = Field(default=None, description="Only sync this account")
    folder: str | None = Field(default=None, description="Only sync this folder (needs account)")

    def ensure_valid(self) -> None:
        """Reject a folder without an account."""
        if self.folder is not None and self.account is None:
            raise InvalidScopeError("--folder requires --account")


class UnitStatus(str, Enum):
    """Outcome of syncing an account or a folder."""

    OK = "ok"
    WARNED = "warned"


class EnvelopeStatus(str, Enum):
    """Outcome of syncing a single envelope."""

    FETCHED = "fetched"
    CACHED = "cached"
    WARNED = "warned"


class SyncWarning(BaseModel):
    """A recoverable failure that skipped part of the sync."""

    account: str = Field(description="Account being synced")
    folder: str | None = Field(default=None, description="Folder being synced")
    envelope_id: str | None = Field(default=None, description="Envelope being synced")
    message: str = Field(description="What failed and why")

    def __str__(self) -> str:
        return self.message


class EnvelopeResult(BaseModel):
    """Result of caching one envelope."""

    envelope_id: str
    status: EnvelopeStatus
    warning: SyncWarning | None = None


class FolderResult(BaseModel):
    """Result of syncing one folder of an account."""

    account: str
    folder: str
    status: UnitStatus = UnitStatus.OK
    total: int = Field(default=0, description="Envelopes listed by himalaya")
    processed: int = Field(default=0, description="Envelopes handled, failed or not")
    envelopes: list[EnvelopeResult] = Field(default_factory=list)

    def count(self, status: EnvelopeStatus) -> int:
        return sum(1 for envelope in self.envelopes if envelope.status == status)


class AccountResult(BaseModel):
    """Result of syncing one account."""

    account: str
    status: UnitStatus = UnitStatus.OK
    folders: list[FolderResult] = Field(default_factory=list)


class SyncRunResult(BaseModel):
    """Summary of a sync run."""

    started_at: datetime = Field(description="When run started")
    completed_at: datetime = Field(description="When run completed")
    scope: SyncScope = Field(default_factory=SyncScope)
    accounts: list[AccountResult] = Field(default_factory=list)
    warnings: list[SyncWarning] = Field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        """Get run duration in seconds."""
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def folders(self) -> list[FolderResult]:
        return [folder for account in self.accounts for folder in account.folders]

    @property
    def envelopes_processed(self) -> int:
        return sum(folder.processed for folder in self.folders)

    @property
    def messages_fetched(self) -> int:
        return sum(folder.count(EnvelopeStatus.FETCHED) for folder in self.folders)

    @property
    def messages_cached(self) -> int:
        return sum(folder.count(EnvelopeStatus.CACHED) for folder in self.folders)

    def summary(self) -> str:
        """One-line description for the operator."""
        synced_folders = [f for f in self.folders if f.status == UnitStatus.OK]
        return (
            f"Synced {len(self.accounts)} account(s), {len(synced_folders)} folder(s), "
            f"{self.envelopes_processed} envelope(s): {self.messages_fetched} fetched, "
            f"{self.messages_cached} already cached, {len(self.warnings)} warning(s) "
            f"in {self.duration_seconds:.1f}s"
        )
