"""Row-table storage interface used by the contact store."""

from typing import Any, Protocol


class RowTable(Protocol):
    """Persistent grid of rows; row 1 holds the header.

    Row and column numbers are 1-based, as in a spreadsheet.
    """

    def read_rows(self) -> list[list[Any]]:
        """Return every row, header first."""
        ...

    def append_row(self, row: list[Any]) -> None:
        """Add a row after the last one."""
        ...

    def replace_range(self, row_number: int, column: int, values: list[Any]) -> None:
        """Overwrite cells of one row starting at `column`."""
        ...

    def delete_rows(self, start: int, count: int = 1) -> None:
        """Remove `count` rows starting at row `start`."""
        ...

    def insert_table(self, name: str, rows: list[list[Any]]) -> str:
        """Create a new table holding `rows` and return its identifier."""
        ...
