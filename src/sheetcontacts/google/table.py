"""Row table stored in one worksheet of a Google spreadsheet."""

import logging
import re
from typing import Any

from sheetcontacts.config import Settings
from sheetcontacts.exceptions import ConfigurationError, StorageError
from sheetcontacts.google.client import GoogleSheetsClient
from sheetcontacts.models import HEADER

logger = logging.getLogger(__name__)

HEADER_BACKGROUND = {"red": 240 / 255, "green": 240 / 255, "blue": 240 / 255}
ROW_BORDER = {"style": "SOLID"}

UPDATED_ROW = re.compile(r"!\$?[A-Z]+\$?(\d+)")


def column_letter(column: int) -> str:
    """Convert a 1-based column number to A1 letters (1 -> A, 27 -> AA)."""
    letters = ""
    while column > 0:
        column, remainder = divmod(column - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def sheet_range(sheet_name: str, cells: str | None = None) -> str:
    """Build an A1 range, quoting the worksheet name."""
    quoted = "'" + sheet_name.replace("'", "''") + "'"
    return f"{quoted}!{cells}" if cells else quoted


class GoogleSheetTable:
    """`RowTable` over the worksheet named by `Settings.sheet_name`.

    On first use the worksheet is created when missing, and the bold header
    row is written when row 1 is empty.
    """

    def __init__(self, client: GoogleSheetsClient, settings: Settings):
        self.client = client
        self.sheet_name = settings.sheet_name
        self._spreadsheet_id = settings.spreadsheet_id
        self._sheet_ids: dict[str, int] = {}
        self._ready = False

    @property
    def spreadsheet_id(self) -> str:
        if not self._spreadsheet_id:
            raise ConfigurationError(
                "SHEET_ID is not set. Run 'sheet-contacts setup <spreadsheet-id>' first."
            )
        return self._spreadsheet_id

    def _load_sheet_ids(self) -> None:
        """Index worksheet titles to their numeric sheetId."""
        data = self.client.get_spreadsheet(self.spreadsheet_id)
        self._sheet_ids = {
            sheet["properties"]["title"]: sheet["properties"]["sheetId"]
            for sheet in data.get("sheets", [])
        }

    def _sheet_id(self, title: str) -> int:
        if title not in self._sheet_ids:
            self._load_sheet_ids()
        if title not in self._sheet_ids:
            raise StorageError(f"Worksheet '{title}' not found")
        return self._sheet_ids[title]

    def _add_sheet(self, title: str) -> int:
        """Create a worksheet and remember its sheetId."""
        result = self.client.batch_update(
            self.spreadsheet_id,
            [{"addSheet": {"properties": {"title": title}}}],
        )
        sheet_id = result["replies"][0]["addSheet"]["properties"]["sheetId"]
        self._sheet_ids[title] = sheet_id
        return sheet_id

    def _format_header(self, sheet_id: int, width: int) -> None:
        """Bold header row on a light grey background."""
        self.client.batch_update(
            self.spreadsheet_id,
            [
                {
                    "repeatCell": {
                        "range": {
                            "sheetId": sheet_id,
                            "startRowIndex": 0,
                            "endRowIndex": 1,
                            "startColumnIndex": 0,
                            "endColumnIndex": width,
                        },
                        "cell": {
                            "userEnteredFormat": {
                                "textFormat": {"bold": True},
                                "backgroundColor": HEADER_BACKGROUND,
                            }
                        },
                        "fields": "userEnteredFormat(textFormat,backgroundColor)",
                    }
                }
            ],
        )

    def _border_row(self, row_number: int, width: int) -> None:
        """Outline one row, as done for every appended contact."""
        self.client.batch_update(
            self.spreadsheet_id,
            [
                {
                    "updateBorders": {
                        "range": {
                            "sheetId": self._sheet_id(self.sheet_name),
                            "startRowIndex": row_number - 1,
                            "endRowIndex": row_number,
                            "startColumnIndex": 0,
                            "endColumnIndex": width,
                        },
                        "top": ROW_BORDER,
                        "bottom": ROW_BORDER,
                        "left": ROW_BORDER,
                        "right": ROW_BORDER,
                    }
                }
            ],
        )

    def _write_table(self, title: str, rows: list[list[Any]]) -> None:
        sheet_id = self._add_sheet(title)
        self.client.update_values(self.spreadsheet_id, sheet_range(title, "A1"), rows)
        self._format_header(sheet_id, max(len(row) for row in rows))

    def ensure_sheet(self) -> None:
        """Make sure the contacts worksheet exists and row 1 holds the header."""
        if self._ready:
            return
        self._load_sheet_ids()
        if self.sheet_name not in self._sheet_ids:
            logger.info(f"Creating worksheet '{self.sheet_name}'")
            self._write_table(self.sheet_name, [list(HEADER)])
        elif not self.client.get_values(self.spreadsheet_id, sheet_range(self.sheet_name, "1:1")):
            logger.info(f"Writing header to empty worksheet '{self.sheet_name}'")
            self.client.update_values(
                self.spreadsheet_id, sheet_range(self.sheet_name, "A1"), [list(HEADER)]
            )
            self._format_header(self._sheet_ids[self.sheet_name], len(HEADER))
        self._ready = True

    def read_rows(self) -> list[list[Any]]:
        self.ensure_sheet()
        return self.client.get_values(self.spreadsheet_id, sheet_range(self.sheet_name))

    def append_row(self, row: list[Any]) -> None:
        self.ensure_sheet()
        result = self.client.append_values(
            self.spreadsheet_id, sheet_range(self.sheet_name, "A1"), [row]
        )
        match = UPDATED_ROW.search(result.get("updates", {}).get("updatedRange", ""))
        if match:
            self._border_row(int(match.group(1)), len(row))

    def replace_range(self, row_number: int, column: int, values: list[Any]) -> None:
        self.ensure_sheet()
        start = f"{column_letter(column)}{row_number}"
        end = f"{column_letter(column + len(values) - 1)}{row_number}"
        self.client.update_values(
            self.spreadsheet_id, sheet_range(self.sheet_name, f"{start}:{end}"), [values]
        )

    def delete_rows(self, start: int, count: int = 1) -> None:
        self.ensure_sheet()
        self.client.batch_update(
            self.spreadsheet_id,
            [
                {
                    "deleteDimension": {
                        "range": {
                            "sheetId": self._sheet_id(self.sheet_name),
                            "dimension": "ROWS",
                            "startIndex": start - 1,
                            "endIndex": start - 1 + count,
                        }
                    }
                }
            ],
        )

    def insert_table(self, name: str, rows: list[list[Any]]) -> str:
        self._write_table(name, rows)
        return name
