"""Quote-everything CSV format used for export and import.

The format is deliberately naive: cells are wrapped in double quotes with no
escaping, and parsing splits on newlines and commas. Values containing
quotes, commas or newlines do not survive a round trip.
"""

from datetime import datetime, timezone
from typing import Any, Iterable


def encode_rows(rows: Iterable[list[Any]]) -> str:
    """Serialize rows, quoting every cell unconditionally."""
    return "\n".join(
        ",".join(f'"{"" if cell is None else cell}"' for cell in row) for row in rows
    )


def decode_rows(text: str) -> list[list[str]]:
    """Split CSV text into rows of cells.

    Every double quote is removed and cells are stripped of surrounding
    whitespace (which also drops a trailing carriage return).
    """
    return [
        [cell.replace('"', "").strip() for cell in line.split(",")]
        for line in text.split("\n")
    ]


def export_filename(now: datetime | None = None) -> str:
    """File name carrying the current UTC date."""
    now = now or datetime.now(timezone.utc)
    return f"contacts_{now.strftime('%Y-%m-%d')}.csv"
