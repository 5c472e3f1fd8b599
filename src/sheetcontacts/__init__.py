"""Contact directory backed by a Google Sheets worksheet."""

__version__ = "0.1.0"
