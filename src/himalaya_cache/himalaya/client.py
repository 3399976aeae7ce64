"""himalaya CLI wrapper.

All remote mail access goes through the external `himalaya` binary. This
module runs it with fixed argument vectors, retries failed commands with a
fixed backoff, and decodes its output either as JSON records or as raw bytes
(message bodies).
"""

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from himalaya_cache.errors import AgentCommandError, AgentLaunchError, DecodeError
from himalaya_cache.models import Account, Envelope, Folder

if TYPE_CHECKING:
    from himalaya_cache.config import Settings

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

DEFAULT_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 2.5


def find_himalaya(configured: Path | None = None) -> Path:
    """Locate the himalaya binary.

    Uses the configured path when given, then PATH, then the cargo install
    location. The last candidate is returned even if it does not exist so
    that the launch failure names a concrete path.

    Returns:
        Path to the himalaya executable
    """
    if configured is not None:
        return configured

    path = shutil.which("himalaya")
    if path:
        return Path(path)

    return Path.home() / ".cargo" / "bin" / "himalaya"


class HimalayaClient:
    """Runs himalaya commands on behalf of the cache."""

    def __init__(
        self,
        executable: Path,
        *,
        attempts: int = DEFAULT_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {attempts}")
        if retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {retry_delay}")
        self.executable = executable
        self.attempts = attempts
        self.retry_delay = retry_delay

    @classmethod
    def from_settings(cls, settings: "Settings") -> "HimalayaClient":
        """Build a client with the executable resolved once from settings."""
        return cls(
            find_himalaya(settings.himalaya_path),
            attempts=settings.retry_attempts,
            retry_delay=settings.retry_delay_seconds,
        )

    def _command(self, args: list[str]) -> list[str]:
        return [str(self.executable), *args]

    def invoke(self, args: list[str]) -> subprocess.CompletedProcess[bytes]:
        """Run himalaya once and capture its output.

        Args:
            args: Command arguments (e.g., ["account", "list", "-o", "json"])

        Returns:
            Completed process with stdout/stderr as bytes

        Raises:
            AgentLaunchError: If the binary is missing or cannot be executed
        """
        full_cmd = self._command(args)
        logger.debug(f"Running himalaya command: {' '.join(full_cmd)}")

        try:
            return subprocess.run(full_cmd, capture_output=True, check=False)
        except OSError as e:
            raise AgentLaunchError(
                f"failed to run {' '.join(full_cmd)}: {e.strerror or e}", full_cmd
            ) from e

    def invoke_with_retry(self, args: list[str]) -> subprocess.CompletedProcess[bytes]:
        """Run himalaya, retrying non-zero exits with a fixed pause.

        Launch failures are raised immediately and never retried.

        Raises:
            AgentLaunchError: If the binary cannot be started
            AgentCommandError: If every attempt exits non-zero
        """
        last_stderr = ""
        for attempt in range(1, self.attempts + 1):
            result = self.invoke(args)
            if result.returncode == 0:
                return result

            last_stderr = result.stderr.decode("utf-8", errors="replace")
            logger.debug(
                f"himalaya {' '.join(args)} exited with {result.returncode} "
                f"(attempt {attempt}/{self.attempts}): {last_stderr.strip()}"
            )

            if attempt < self.attempts:
                time.sleep(self.retry_delay)

        raise AgentCommandError(last_stderr, self._command(args))

    def run_json(self, args: list[str], model: type[RecordT]) -> list[RecordT]:
        """Run himalaya and decode stdout as a JSON array of records.

        Raises:
            DecodeError: If stdout is not a JSON array of `model` records
        """
        result = self.invoke_with_retry(args)
        try:
            return TypeAdapter(list[model]).validate_json(result.stdout)
        except ValidationError as e:
            raise DecodeError(
                f"parse himalaya json from `{' '.join(args)}`: {e}", " ".join(args)
            ) from e

    def run_raw(self, args: list[str]) -> bytes:
        """Run himalaya and return stdout untouched."""
        return self.invoke_with_retry(args).stdout

    def list_accounts(self) -> list[Account]:
        return self.run_json(["account", "list", "-o", "json"], Account)

    def list_folders(self, account: str) -> list[Folder]:
        return self.run_json(["folder", "list", "--account", account, "-o", "json"], Folder)

    def list_envelopes(self, account: str, folder: str, page_size: int) -> list[Envelope]:
        return self.run_json(
            [
                "envelope",
                "list",
                "--folder",
                folder,
                "--account",
                account,
                "--page-size",
                str(page_size),
                "-o",
                "json",
            ],
            Envelope,
        )

    def read_message(self, account: str, folder: str, message_id: str) -> bytes:
        """Fetch the body of one message as raw bytes."""
        return self.run_raw(
            ["message", "read", message_id, "--folder", folder, "--account", account]
        )

    def passthrough(self, args: list[str]) -> int:
        """Run himalaya with the caller's stdio attached.

        Returns:
            himalaya's exit status

        Raises:
            AgentLaunchError: If the binary cannot be started
        """
        full_cmd = self._command(args)
        logger.debug(f"Passing through to himalaya: {' '.join(full_cmd)}")
        try:
            return subprocess.run(full_cmd, check=False).returncode
        except OSError as e:
            raise AgentLaunchError(
                f"failed to run {' '.join(full_cmd)}: {e.strerror or e}", full_cmd
            ) from e
