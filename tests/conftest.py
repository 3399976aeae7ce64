"""Pytest fixtures for himalaya-cache tests."""

import io
import json
import subprocess
import threading
from pathlib import Path

import pytest
from rich.console import Console

from himalaya_cache.cache import CacheStore
from himalaya_cache.config import Settings
from himalaya_cache.himalaya import HimalayaClient
from himalaya_cache.logging import reset_logging, setup_logging
from himalaya_cache.sync import SyncEngine


class FakeHimalaya(HimalayaClient):
    """In-memory stand-in for the himalaya binary.

    Responds to the same argument vectors the real client sends and records
    every invocation. Keys in `failing` exit non-zero; keys in `raw_output`
    return the given stdout verbatim.
    """

    def __init__(
        self,
        accounts: list[dict] | None = None,
        folders: dict[str, list[dict]] | None = None,
        envelopes: dict[tuple[str, str], list[dict]] | None = None,
        bodies: dict[tuple[str, str, str], bytes] | None = None,
    ) -> None:
        super().__init__(Path("/usr/local/bin/himalaya"), attempts=3, retry_delay=0)
        self.accounts = accounts or []
        self.folders = folders or {}
        self.envelopes = envelopes or {}
        self.bodies = bodies or {}
        self.failing: set[tuple[str, ...]] = set()
        self.raw_output: dict[tuple[str, ...], bytes] = {}
        self.calls: list[list[str]] = []
        self._lock = threading.Lock()

    @staticmethod
    def _option(args: list[str], name: str) -> str:
        return args[args.index(name) + 1]

    def _route(self, args: list[str]) -> tuple[tuple[str, ...], bytes | None]:
        command = tuple(args[:2])
        if command == ("account", "list"):
            return ("accounts",), json.dumps(self.accounts).encode()
        if command == ("folder", "list"):
            account = self._option(args, "--account")
            data = self.folders.get(account)
            return ("folders", account), None if data is None else json.dumps(data).encode()
        if command == ("envelope", "list"):
            account = self._option(args, "--account")
            folder = self._option(args, "--folder")
            data = self.envelopes.get((account, folder))
            key = ("envelopes", account, folder)
            return key, None if data is None else json.dumps(data).encode()
        if command == ("message", "read"):
            account = self._option(args, "--account")
            folder = self._option(args, "--folder")
            key = ("message", account, folder, args[2])
            return key, self.bodies.get((account, folder, args[2]))
        raise AssertionError(f"unexpected himalaya call: {args}")

    def invoke(self, args: list[str]) -> subprocess.CompletedProcess[bytes]:
        with self._lock:
            self.calls.append(list(args))

        key, stdout = self._route(args)
        if key in self.raw_output:
            stdout = self.raw_output[key]
        if key in self.failing or stdout is None:
            return subprocess.CompletedProcess(args, 1, b"", f"cannot serve {key}\n".encode())
        return subprocess.CompletedProcess(args, 0, stdout, b"")

    def calls_to(self, *command: str) -> list[list[str]]:
        return [call for call in self.calls if tuple(call[: len(command)]) == command]


def envelope(message_id: str, date: str | None = None, subject: str = "") -> dict:
    """Build an envelope record the way himalaya prints it."""
    return {
        "id": message_id,
        "flags": ["Seen"],
        "subject": subject or f"Message {message_id}",
        "from": {"name": "Alice", "addr": "alice@example.com"},
        "to": {"name": None, "addr": "bob@example.com"},
        "date": date,
        "has_attachment": False,
    }


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path: Path):
    """Keep log files inside the test's temporary directory."""
    setup_logging(log_dir=tmp_path / "logs")
    yield
    reset_logging()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        cache_dir=tmp_path / "cache",
        log_dir=tmp_path / "logs",
        max_workers=4,
        retry_delay_seconds=0,
        show_progress=False,
    )


@pytest.fixture
def store(settings: Settings) -> CacheStore:
    return CacheStore(settings.cache_dir)


@pytest.fixture
def fake_himalaya() -> FakeHimalaya:
    """Two accounts: `home` with INBOX and Archive, `work` with INBOX."""
    return FakeHimalaya(
        accounts=[
            {"name": "home", "backend": "IMAP", "default": True},
            {"name": "work", "backend": "Maildir", "default": False},
        ],
        folders={
            "home": [{"name": "INBOX", "desc": None}, {"name": "Archive", "desc": "old mail"}],
            "work": [{"name": "INBOX", "desc": None}],
        },
        envelopes={
            ("home", "INBOX"): [
                envelope("1", "2024-01-01 10:00+00:00"),
                envelope("2", "2024-03-05 09:00+00:00"),
                envelope("3"),
            ],
            ("home", "Archive"): [envelope("10", "2023-06-01 08:30+02:00")],
            ("work", "INBOX"): [
                envelope("7", "2024-02-02 12:00-05:00"),
                envelope("8", "2024-02-03 12:00-05:00"),
            ],
        },
        bodies={
            ("home", "INBOX", "1"): b"Subject: one\r\n\r\nfirst body\r\n",
            ("home", "INBOX", "2"): b"Subject: two\r\n\r\nsecond body\r\n",
            ("home", "INBOX", "3"): b"Subject: three\r\n\r\nthird body\r\n",
            ("home", "Archive", "10"): b"Subject: ten\r\n\r\narchived\r\n",
            ("work", "INBOX", "7"): b"Subject: seven\r\n\r\nwork seven\r\n",
            ("work", "INBOX", "8"): b"Subject: eight\r\n\r\nwork eight\r\n",
        },
    )


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def engine(settings: Settings, fake_himalaya: FakeHimalaya, store: CacheStore, output) -> SyncEngine:
    return SyncEngine(settings, fake_himalaya, store, console=Console(file=output, width=200))
