"""Data models for sheet-contacts."""

import re
from typing import Any, TypeVar

from pydantic import BaseModel, Field, field_validator

from sheetcontacts.exceptions import ContactSheetError, ErrorKind

HEADER = ["ID", "Name", "Email", "Division"]

# Column positions inside a sheet row (0-based)
ID_COLUMN = 0
NAME_COLUMN = 1
EMAIL_COLUMN = 2
DIVISION_COLUMN = 3

NO_DIVISION = "No division"

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    """Check email against the local@domain.tld grammar."""
    return bool(EMAIL_PATTERN.match(email))


def coerce_id(value: Any) -> int | None:
    """Read a contact id from a cell or user input.

    Accepts ints, integral floats and numeric strings ("7", " 7 ", "7.0").
    Anything else yields None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


class Contact(BaseModel):
    """One contact row.

    Numeric id cells become ints; any other non-empty id cell is kept as
    text so it is listed, exported and searched unchanged.
    """

    id: int | str | None = None
    name: str = ""
    email: str = ""
    division: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def parse_id(cls, value: Any) -> int | str | None:
        number = coerce_id(value)
        if number is not None:
            return number
        text = "" if value is None else str(value).strip()
        return text or None

    @field_validator("name", "email", "division", mode="before")
    @classmethod
    def stringify_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @classmethod
    def from_row(cls, row: list[Any]) -> "Contact":
        """Parse a sheet row.

        Sheets omits trailing empty cells, so short rows are padded.
        """
        cells = list(row) + [""] * (len(HEADER) - len(row))
        return cls(
            id=cells[ID_COLUMN],
            name=cells[NAME_COLUMN],
            email=cells[EMAIL_COLUMN],
            division=cells[DIVISION_COLUMN],
        )

    @property
    def number(self) -> int | None:
        """Numeric id used for lookups and id assignment."""
        return coerce_id(self.id)

    def to_row(self) -> list[Any]:
        """Convert to a sheet row in header order."""
        return [
            self.id if self.id is not None else "",
            self.name,
            self.email,
            self.division,
        ]

    def field_texts(self) -> list[str]:
        """String form of every non-empty field, used for searching."""
        return [str(cell) for cell in self.to_row() if cell != ""]


class ContactTable(BaseModel):
    """Header plus contacts in sheet order."""

    header: list[str] = Field(default_factory=lambda: list(HEADER))
    contacts: list[Contact] = Field(default_factory=list)

    @property
    def rows(self) -> list[list[Any]]:
        """Header row followed by one row per contact."""
        return [list(self.header)] + [contact.to_row() for contact in self.contacts]


ResultT = TypeVar("ResultT", bound="OperationResult")


class OperationResult(BaseModel):
    """Outcome of a mutating operation."""

    success: bool
    message: str
    error: ErrorKind | None = None
    contact_id: int | None = None

    @classmethod
    def failure(cls: type[ResultT], error: ContactSheetError, **extra: Any) -> ResultT:
        """Build a failed result from an error value."""
        return cls(success=False, message=str(error), error=error.kind, **extra)


class ImportResult(OperationResult):
    """Statistics from a CSV import."""

    imported: int = 0
    failed: int = 0
    error_details: list[str] = Field(default_factory=list)


class ExportResult(OperationResult):
    """CSV export payload."""

    data: str = ""
    filename: str = ""


class BackupResult(OperationResult):
    """Snapshot created by a backup."""

    snapshot: str | None = None


class ClearResult(OperationResult):
    """Outcome of clearing all data rows."""

    backup: str | None = None


class ContactStats(BaseModel):
    """Contact counts per division."""

    total_contacts: int = 0
    divisions: dict[str, int] = Field(default_factory=dict)
    top_division: str | None = None
