"""Tests for the himalaya record models."""

import pytest

from himalaya_cache.errors import InvalidScopeError
from himalaya_cache.models import Account, Contact, Envelope, Folder
from himalaya_cache.sync import SyncScope


class TestRecords:
    """Parsing records as himalaya prints them."""

    def test_envelope_from_json(self):
        envelope = Envelope.model_validate_json(
            '{"id": "5", "flags": ["Seen", "Flagged"], "subject": "Hi",'
            ' "from": {"name": "Alice", "addr": "alice@example.com"},'
            ' "to": {"addr": "bob@example.com"}, "date": "2024-01-01 10:00+00:00",'
            ' "has_attachment": true}'
        )

        assert envelope.from_ == Contact(name="Alice", addr="alice@example.com")
        assert envelope.to == Contact(addr="bob@example.com")
        assert envelope.flags == ["Seen", "Flagged"]
        assert envelope.has_attachment is True

    def test_absent_fields_tolerated(self):
        envelope = Envelope.model_validate({"id": "5"})

        assert envelope.subject is None
        assert envelope.from_ is None
        assert envelope.flags is None

    def test_unknown_fields_ignored(self):
        folder = Folder.model_validate({"name": "INBOX", "desc": "", "kind": "inbox"})

        assert folder.model_dump() == {"name": "INBOX", "desc": ""}

    def test_envelope_dump_uses_from_key(self):
        envelope = Envelope(id="5", from_=Contact(addr="a@example.com"))

        dumped = envelope.model_dump(mode="json", by_alias=True)

        assert dumped["from"] == {"name": None, "addr": "a@example.com"}
        assert Envelope.model_validate(dumped) == envelope

    def test_account_defaults(self):
        assert Account(name="work").model_dump() == {
            "name": "work",
            "backend": None,
            "default": None,
        }


class TestSyncScope:
    """Tests for scope validation."""

    @pytest.mark.parametrize(
        "account,folder",
        [(None, None), ("work", None), ("work", "INBOX")],
    )
    def test_valid(self, account, folder):
        SyncScope(account=account, folder=folder).ensure_valid()

    def test_folder_needs_account(self):
        with pytest.raises(InvalidScopeError, match="--folder requires --account"):
            SyncScope(folder="INBOX").ensure_valid()
