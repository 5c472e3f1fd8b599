"""Google Sheets storage backend."""
