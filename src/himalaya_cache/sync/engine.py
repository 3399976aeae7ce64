"""Sync engine that mirrors himalaya accounts, folders and messages to the cache."""

import concurrent.futures
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from himalaya_cache.errors import (
    AgentCommandError,
    CacheIoError,
    DecodeError,
    HimalayaCacheError,
)
from himalaya_cache.logging import get_account_logger
from himalaya_cache.models import Envelope
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

if TYPE_CHECKING:
    from himalaya_cache.cache.store import CacheStore
    from himalaya_cache.config import Settings
    from himalaya_cache.himalaya.client import HimalayaClient

logger = logging.getLogger(__name__)

# Failures of a single listing call that skip one account or folder.
# AgentLaunchError is not listed: a missing binary ends the whole run.
RECOVERABLE_FETCH_ERRORS = (AgentCommandError, DecodeError)


class SyncEngine:
    """Engine for syncing himalaya data into the cache."""

    def __init__(
        self,
        settings: "Settings",
        client: "HimalayaClient",
        store: "CacheStore",
        *,
        console: Console | None = None,
        max_workers: int | None = None,
    ) -> None:
        """
        Initialize the sync engine.

        Args:
            settings: Application settings.
            client: himalaya wrapper used for every remote call.
            store: Cache the results are written to.
            console: Where warnings and progress bars are shown.
            max_workers: Parallel envelope workers (overrides settings).
        """
        self.settings = settings
        self.client = client
        self.store = store
        self.console = console if console is not None else Console(stderr=True)
        self.max_workers = max_workers or settings.worker_count

    def run(self, scope: SyncScope | None = None) -> SyncRunResult:
        """
        Sync the cache with himalaya.

        Args:
            scope: Restrict the run to one account, or one folder of it.

        Returns:
            SyncRunResult with per-account, per-folder and per-envelope outcomes.

        Raises:
            InvalidScopeError: If a folder is given without an account.
            CacheIoError: If the cache root or a listing file cannot be written.
            AgentError: If the account list cannot be fetched or himalaya
                cannot be launched.
            DecodeError: If the account list is not valid JSON.
        """
        scope = scope or SyncScope()
        scope.ensure_valid()

        started_at = datetime.now()
        result = SyncRunResult(started_at=started_at, completed_at=started_at, scope=scope)

        self.store.ensure_root()

        for account in self._resolve_accounts(scope):
            result.accounts.append(self._sync_account(account, scope, result))

        result.completed_at = datetime.now()
        logger.info(result.summary())
        return result

    def _warn(self, result: SyncRunResult, warning: SyncWarning) -> None:
        result.warnings.append(warning)
        get_account_logger(warning.account).warning(warning.message)
        self.console.print(f"[yellow]warning:[/yellow] {escape(warning.message)}")

    def _resolve_accounts(self, scope: SyncScope) -> list[str]:
        if scope.account is not None:
            return [scope.account]

        try:
            accounts = self.client.list_accounts()
        except HimalayaCacheError as e:
            logger.error(f"Failed to fetch account list: {e}")
            raise

        self.store.write_record(self.store.accounts_path, accounts)
        logger.info(f"Fetched {len(accounts)} account(s)")
        return [account.name for account in accounts]

    def _sync_account(
        self, account: str, scope: SyncScope, result: SyncRunResult
    ) -> AccountResult:
        account_logger = get_account_logger(account)
        account_result = AccountResult(account=account)

        if scope.folder is not None:
            folder_names = [scope.folder]
        else:
            try:
                folders = self.client.list_folders(account)
            except RECOVERABLE_FETCH_ERRORS as e:
                self._warn(
                    result,
                    SyncWarning(
                        account=account,
                        message=f"failed to fetch folders for account {account}: {e}",
                    ),
                )
                account_result.status = UnitStatus.WARNED
                return account_result

            self.store.write_record(self.store.folders_path(account), folders)
            account_logger.info(f"Fetched {len(folders)} folder(s)")
            folder_names = [folder.name for folder in folders]

        for folder in folder_names:
            account_result.folders.append(self._sync_folder(account, folder, result))

        return account_result

    def _sync_folder(self, account: str, folder: str, result: SyncRunResult) -> FolderResult:
        folder_result = FolderResult(account=account, folder=folder)

        try:
            envelopes = self.client.list_envelopes(account, folder, self.settings.page_size)
        except RECOVERABLE_FETCH_ERRORS as e:
            self._warn(
                result,
                SyncWarning(
                    account=account,
                    folder=folder,
                    message=f"failed to fetch messages for account {account} folder {folder}: {e}",
                ),
            )
            folder_result.status = UnitStatus.WARNED
            return folder_result

        self.store.write_record(self.store.envelopes_path(account, folder), envelopes)
        folder_result.total = len(envelopes)

        with self._folder_progress(f"{account}/{folder}", len(envelopes)) as advance:
            for envelope_result in self._process_envelopes(account, folder, envelopes):
                folder_result.envelopes.append(envelope_result)
                folder_result.processed += 1
                advance()
                if envelope_result.warning is not None:
                    self._warn(result, envelope_result.warning)

        get_account_logger(account).info(
            f"{folder}: {folder_result.processed}/{folder_result.total} envelope(s), "
            f"{folder_result.count(EnvelopeStatus.FETCHED)} fetched, "
            f"{folder_result.count(EnvelopeStatus.CACHED)} cached"
        )
        return folder_result

    def _process_envelopes(
        self, account: str, folder: str, envelopes: list[Envelope]
    ) -> Iterator[EnvelopeResult]:
        """Run per-envelope work on the worker pool, yielding results as they finish."""
        if not envelopes:
            return

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = [
                executor.submit(self._sync_envelope, account, folder, envelope)
                for envelope in envelopes
            ]
            for future in concurrent.futures.as_completed(futures):
                yield future.result()
        except KeyboardInterrupt:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        finally:
            executor.shutdown(wait=True)

    def _sync_envelope(self, account: str, folder: str, envelope: Envelope) -> EnvelopeResult:
        """Write envelope metadata and fetch the body unless it is already cached.

        Runs on a worker thread; failures are returned, never shared.
        """

        def warned(message: str) -> EnvelopeResult:
            return EnvelopeResult(
                envelope_id=envelope.id,
                status=EnvelopeStatus.WARNED,
                warning=SyncWarning(
                    account=account, folder=folder, envelope_id=envelope.id, message=message
                ),
            )

        meta_path = self.store.meta_path(account, folder, envelope.id)
        try:
            self.store.write_record(meta_path, envelope)
        except CacheIoError as e:
            return warned(f"failed to write meta {meta_path}: {e}")

        message_path = self.store.message_path(account, folder, envelope.id)
        if self.store.exists(message_path):
            return EnvelopeResult(envelope_id=envelope.id, status=EnvelopeStatus.CACHED)

        try:
            body = self.client.read_message(account, folder, envelope.id)
        except RECOVERABLE_FETCH_ERRORS as e:
            return warned(
                f"failed to read message {envelope.id} for account {account} folder {folder}: {e}"
            )

        try:
            self.store.write_bytes(message_path, body)
        except CacheIoError as e:
            return warned(f"failed to write message {message_path}: {e}")

        return EnvelopeResult(envelope_id=envelope.id, status=EnvelopeStatus.FETCHED)

    @contextmanager
    def _folder_progress(self, label: str, total: int) -> Iterator[Callable[[], None]]:
        enabled = self.settings.show_progress and self.console.is_terminal
        with Progress(
            SpinnerColumn(),
            TimeElapsedColumn(),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("{task.description}"),
            console=self.console,
            disable=not enabled,
        ) as progress:
            task = progress.add_task(escape(label), total=total)
            yield lambda: progress.advance(task)
            progress.update(task, description=f"{escape(label)} complete")
