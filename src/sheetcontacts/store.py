"""Contact store: CRUD, search, stats and CSV transfer over a row table."""

import logging
from datetime import datetime, timezone
from typing import Any

from sheetcontacts import csv_codec
from sheetcontacts.exceptions import (
    ConfigurationError,
    ConflictError,
    ContactSheetError,
    ErrorKind,
    NotFoundError,
    StorageError,
    ValidationError,
)
from sheetcontacts.models import (
    HEADER,
    ID_COLUMN,
    NAME_COLUMN,
    NO_DIVISION,
    BackupResult,
    ClearResult,
    Contact,
    ContactStats,
    ContactTable,
    ExportResult,
    ImportResult,
    OperationResult,
    ResultT,
    coerce_id,
    is_valid_email,
)
from sheetcontacts.table import RowTable

logger = logging.getLogger(__name__)

CLEAR_CONFIRMATION = "HAPUS_SEMUA_DATA"

# Sheet row number paired with the contact stored there
Entry = tuple[int, Contact]


def backup_name(now: datetime | None = None) -> str:
    """Snapshot name from a UTC ISO timestamp with ':' and '.' replaced by '-'.

    Example: Backup_2026-10-19T08-30-00-123Z
    """
    now = now or datetime.now(timezone.utc)
    return f"Backup_{now.strftime('%Y-%m-%dT%H-%M-%S')}-{now.microsecond // 1000:03d}Z"


def _check_fields(name: str, email: str, division: str) -> ValidationError | None:
    """Return the first validation problem, if any."""
    if not (name and email and division):
        return ValidationError("All fields are required")
    if not is_valid_email(email):
        return ValidationError("Invalid email format")
    return None


def _find_by_id(entries: list[Entry], contact_id: Any) -> Entry | None:
    """First row whose id equals `contact_id`, comparing numerically when possible."""
    wanted = coerce_id(contact_id)
    if wanted is None:
        text = str(contact_id).strip()
        return next((e for e in entries if e[1].number is None and e[1].id == text), None)
    return next((e for e in entries if e[1].number == wanted), None)


def _email_taken(entries: list[Entry], email: str, exclude_row: int | None = None) -> bool:
    """Case-insensitive email lookup, optionally ignoring one row."""
    wanted = email.lower()
    return any(
        contact.email and contact.email.lower() == wanted and row_number != exclude_row
        for row_number, contact in entries
    )


def _next_id(entries: list[Entry]) -> int:
    return max((contact.number or 0 for _, contact in entries), default=0) + 1


class ContactStore:
    """CRUD facade over a `RowTable` whose first row is the header."""

    def __init__(self, table: RowTable):
        self.table = table

    def _load(self) -> list[Entry]:
        """Read data rows as (sheet row number, contact) pairs."""
        rows = self.table.read_rows()
        return [
            (row_number, Contact.from_row(row))
            for row_number, row in enumerate(rows[1:], start=2)
        ]

    def _load_for_read(self, action: str) -> list[Entry]:
        """Load rows for a read operation, re-raising storage faults with context."""
        try:
            return self._load()
        except ConfigurationError as e:
            logger.error(f"Error {action}: {e}")
            raise
        except StorageError as e:
            logger.error(f"Error {action}: {e}")
            raise StorageError(f"Failed {action}: {e}") from e

    def _fail(
        self,
        action: str,
        error: ContactSheetError,
        result_cls: type[ResultT],
        **extra: Any,
    ) -> ResultT:
        logger.error(f"Error {action}: {error}")
        return result_cls.failure(error, **extra)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_contacts(self) -> ContactTable:
        """Return the whole table. An empty table holds only the header."""
        entries = self._load_for_read("listing contacts")
        return ContactTable(contacts=[contact for _, contact in entries])

    def search_contacts(self, query: str) -> ContactTable:
        """Case-insensitive substring search over every field.

        The header is always part of the result and an empty query matches
        every contact.
        """
        entries = self._load_for_read("searching contacts")
        needle = query.lower()
        matches = [
            contact
            for _, contact in entries
            if any(needle in text.lower() for text in contact.field_texts())
        ]
        return ContactTable(contacts=matches)

    def get_stats(self) -> ContactStats:
        """Count contacts per division.

        On ties the division seen first keeps the top spot.
        """
        entries = self._load_for_read("computing stats")
        if not entries:
            return ContactStats()

        divisions: dict[str, int] = {}
        for _, contact in entries:
            label = contact.division or NO_DIVISION
            divisions[label] = divisions.get(label, 0) + 1

        top_division = None
        top_count = 0
        for label, count in divisions.items():
            if count > top_count:
                top_division, top_count = label, count

        return ContactStats(
            total_contacts=len(entries),
            divisions=divisions,
            top_division=top_division,
        )

    # ------------------------------------------------------------------
    # Mutations (never raise; failures come back as results)
    # ------------------------------------------------------------------

    def add_contact(self, name: str, email: str, division: str) -> OperationResult:
        """Append a contact with the next id (max existing id + 1)."""
        error = _check_fields(name, email, division)
        if error:
            return self._fail("adding contact", error, OperationResult)

        try:
            entries = self._load()
            if _email_taken(entries, email):
                return self._fail(
                    "adding contact",
                    ConflictError("Email is already registered"),
                    OperationResult,
                )

            new_id = _next_id(entries)
            contact = Contact(id=new_id, name=name, email=email, division=division)
            self.table.append_row(contact.to_row())
        except ContactSheetError as e:
            return self._fail("adding contact", e, OperationResult)

        logger.info(f"Added contact {new_id}: {name} <{email}>")
        return OperationResult(success=True, message="Contact added", contact_id=new_id)

    def update_contact(
        self, contact_id: Any, name: str, email: str, division: str
    ) -> OperationResult:
        """Replace name, email and division of an existing contact in place."""
        if not contact_id:
            return self._fail(
                "updating contact",
                ValidationError("All fields are required"),
                OperationResult,
            )
        error = _check_fields(name, email, division)
        if error:
            return self._fail("updating contact", error, OperationResult)

        try:
            entries = self._load()
            found = _find_by_id(entries, contact_id)
            if found is None:
                return self._fail(
                    "updating contact",
                    NotFoundError("Contact not found"),
                    OperationResult,
                )

            row_number, contact = found
            if _email_taken(entries, email, exclude_row=row_number):
                return self._fail(
                    "updating contact",
                    ConflictError("Email is already used by another contact"),
                    OperationResult,
                )

            self.table.replace_range(row_number, NAME_COLUMN + 1, [name, email, division])
        except ContactSheetError as e:
            return self._fail("updating contact", e, OperationResult)

        logger.info(f"Updated contact {contact.id}")
        return OperationResult(success=True, message="Contact updated", contact_id=contact.number)

    def delete_contact(self, contact_id: Any) -> OperationResult:
        """Remove a contact's row entirely."""
        if not contact_id:
            return self._fail(
                "deleting contact",
                ValidationError("Invalid contact ID"),
                OperationResult,
            )

        try:
            found = _find_by_id(self._load(), contact_id)
            if found is None:
                return self._fail(
                    "deleting contact",
                    NotFoundError("Contact not found"),
                    OperationResult,
                )

            row_number, contact = found
            self.table.delete_rows(row_number)
        except ContactSheetError as e:
            return self._fail("deleting contact", e, OperationResult)

        logger.info(f"Deleted contact {contact.id}")
        return OperationResult(success=True, message="Contact deleted", contact_id=contact.number)

    # ------------------------------------------------------------------
    # CSV transfer
    # ------------------------------------------------------------------

    def export_csv(self) -> ExportResult:
        """Serialize the whole table, header included."""
        try:
            entries = self._load()
        except ContactSheetError as e:
            return self._fail("exporting contacts", e, ExportResult)

        table = ContactTable(contacts=[contact for _, contact in entries])
        logger.info(f"Exported {len(entries)} contacts")
        return ExportResult(
            success=True,
            message=f"{len(entries)} contacts exported",
            data=csv_codec.encode_rows(table.rows),
            filename=csv_codec.export_filename(),
        )

    def import_csv(self, text: str) -> ImportResult:
        """Add every complete row of a CSV document.

        The first line is a header. When it starts with an ID column (the
        export layout) that column is ignored; otherwise the first three
        cells are name, email and division. Rows that fail to add are
        reported and do not stop the import.
        """
        rows = csv_codec.decode_rows(text)
        header, body = rows[0], rows[1:]
        offset = 1 if header[0].upper() == HEADER[ID_COLUMN] else 0

        candidates = [row for row in body if len(row) >= offset + 3 and row[0]]
        if not candidates:
            return self._fail(
                "importing contacts",
                ValidationError("No valid rows to import"),
                ImportResult,
            )

        imported = 0
        errors: list[str] = []
        for index, row in enumerate(candidates):
            name, email, division = row[offset:offset + 3]
            if not (name and email and division):
                continue
            result = self.add_contact(name, email, division)
            if result.success:
                imported += 1
            else:
                errors.append(f"Row {index + 2}: {result.message}")

        logger.info(f"Import complete: {imported} imported, {len(errors)} errors")
        return ImportResult(
            success=True,
            message=f"{imported} contacts imported, {len(errors)} errors",
            imported=imported,
            failed=len(errors),
            error_details=errors,
        )

    # ------------------------------------------------------------------
    # Backup and bulk delete
    # ------------------------------------------------------------------

    def backup(self) -> BackupResult:
        """Copy the whole table into a new timestamp-named snapshot."""
        try:
            rows = self.table.read_rows() or [list(HEADER)]
            snapshot = self.table.insert_table(backup_name(), rows)
        except ContactSheetError as e:
            return self._fail("creating backup", e, BackupResult)

        logger.info(f"Backup created: {snapshot}")
        return BackupResult(
            success=True, message=f"Backup created: {snapshot}", snapshot=snapshot
        )

    def clear_all_data(self, confirmation: str) -> ClearResult:
        """Delete every data row after backing the table up.

        Requires the exact confirmation token; nothing is deleted when the
        backup fails.
        """
        if confirmation != CLEAR_CONFIRMATION:
            logger.warning("Clear all data declined: invalid confirmation")
            return ClearResult(
                success=False, message="Invalid confirmation", error=ErrorKind.VALIDATION
            )

        backup = self.backup()
        if not backup.success:
            logger.error("Clear all data aborted: backup failed")
            return ClearResult(
                success=False,
                message=f"Backup failed, nothing was deleted: {backup.message}",
                error=backup.error,
            )

        try:
            rows = self.table.read_rows()
            if len(rows) > 1:
                self.table.delete_rows(2, len(rows) - 1)
        except ContactSheetError as e:
            return self._fail("clearing data", e, ClearResult, backup=backup.snapshot)

        logger.info(f"All data cleared, previous rows kept in {backup.snapshot}")
        return ClearResult(
            success=True, message="All data cleared", backup=backup.snapshot
        )
