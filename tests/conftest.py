"""Shared fixtures: an in-memory row table and a store on top of it."""

from typing import Any

import pytest

from sheetcontacts.exceptions import StorageError
from sheetcontacts.models import HEADER
from sheetcontacts.store import ContactStore


class MemoryTable:
    """In-memory `RowTable` with optional failure injection."""

    def __init__(self, rows: list[list[Any]] | None = None):
        self.rows: list[list[Any]] = [list(HEADER)] + [list(r) for r in rows or []]
        self.snapshots: dict[str, list[list[Any]]] = {}
        self.fail_on: set[str] = set()

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StorageError(f"{operation} unavailable")

    def read_rows(self) -> list[list[Any]]:
        self._check("read_rows")
        return [list(row) for row in self.rows]

    def append_row(self, row: list[Any]) -> None:
        self._check("append_row")
        self.rows.append(list(row))

    def replace_range(self, row_number: int, column: int, values: list[Any]) -> None:
        self._check("replace_range")
        row = self.rows[row_number - 1]
        row[column - 1:column - 1 + len(values)] = values

    def delete_rows(self, start: int, count: int = 1) -> None:
        self._check("delete_rows")
        del self.rows[start - 1:start - 1 + count]

    def insert_table(self, name: str, rows: list[list[Any]]) -> str:
        self._check("insert_table")
        self.snapshots[name] = [list(row) for row in rows]
        return name


@pytest.fixture
def table():
    return MemoryTable()


@pytest.fixture
def store(table):
    return ContactStore(table)


@pytest.fixture
def populated(table, store):
    """Store holding three contacts with ids 1-3."""
    store.add_contact("Ann", "ann@x.com", "HR")
    store.add_contact("Bo", "bo@x.com", "IT")
    store.add_contact("Cy", "cy@x.com", "HR")
    return store
