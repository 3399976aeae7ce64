"""Records exchanged with himalaya and persisted in the cache."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# himalaya prints envelope dates like "2024-03-05 09:00+00:00"
ENVELOPE_DATE_FORMAT = "%Y-%m-%d %H:%M%z"
# strptime alone also takes "Z" and "+0000"; the offset must be "+HH:MM"
ENVELOPE_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}[+-]\d{2}:\d{2}")


class Account(BaseModel):
    """Account entry from `himalaya account list -o json`."""

    name: str = Field(description="Account name, unique across the config")
    backend: str | None = Field(default=None, description="Backend descriptor")
    default: bool | None = Field(default=None, description="Whether this is the default account")


class Folder(BaseModel):
    """Folder entry from `himalaya folder list -o json`."""

    name: str = Field(description="Folder name, unique within an account")
    desc: str | None = Field(default=None, description="Folder description")


class Contact(BaseModel):
    """Sender or recipient attached to an envelope."""

    name: str | None = None
    addr: str | None = None


class Envelope(BaseModel):
    """Envelope entry from `himalaya envelope list -o json`."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Message id within the account folder")
    flags: list[str] | None = Field(default=None, description="Status flags")
    subject: str | None = Field(default=None, description="Subject line")
    from_: Contact | None = Field(default=None, alias="from", description="Sender")
    to: Contact | None = Field(default=None, description="Recipient")
    date: str | None = Field(default=None, description="Date as printed by himalaya")
    has_attachment: bool | None = Field(default=None, description="Attachment marker")

    @property
    def parsed_date(self) -> datetime | None:
        """Envelope date as an aware datetime, or None if absent or unparsable."""
        return parse_envelope_date(self.date)


def parse_envelope_date(value: str | None) -> datetime | None:
    """Parse a himalaya envelope date.

    Args:
        value: Date string such as "2024-01-01 10:00+00:00"

    Returns:
        Timezone-aware datetime, or None when the value is empty or
        does not match the expected pattern
    """
    if not value or not ENVELOPE_DATE_PATTERN.fullmatch(value):
        return None

    try:
        return datetime.strptime(value, ENVELOPE_DATE_FORMAT)
    except ValueError:
        return None
