"""Tests for GoogleSheetTable."""

from unittest.mock import MagicMock

import pytest

from sheetcontacts.config import Settings
from sheetcontacts.exceptions import ConfigurationError
from sheetcontacts.google.client import GoogleSheetsClient
from sheetcontacts.google.table import GoogleSheetTable, column_letter, sheet_range
from sheetcontacts.store import ContactStore


@pytest.fixture
def settings():
    return Settings(
        spreadsheet_id="sheet123",
        google_client_id="client",
        google_client_secret="secret",
        _env_file=None,
    )


@pytest.fixture
def mock_client():
    client = MagicMock(spec=GoogleSheetsClient)
    client.get_spreadsheet.return_value = {
        "sheets": [{"properties": {"title": "Contacts", "sheetId": 11}}]
    }
    client.batch_update.return_value = {
        "replies": [{"addSheet": {"properties": {"sheetId": 99}}}]
    }
    client.get_values.return_value = [["ID", "Name", "Email", "Division"]]
    client.append_values.return_value = {"updates": {"updatedRange": "Contacts!A5:D5"}}
    return client


@pytest.fixture
def table(mock_client, settings):
    return GoogleSheetTable(mock_client, settings)


def test_column_letter():
    assert [column_letter(n) for n in (1, 2, 26, 27, 52)] == ["A", "B", "Z", "AA", "AZ"]


def test_sheet_range_quotes_name():
    assert sheet_range("Contacts") == "'Contacts'"
    assert sheet_range("Bob's list", "A1") == "'Bob''s list'!A1"


class TestReadRows:
    def test_reads_whole_worksheet(self, table, mock_client):
        mock_client.get_values.return_value = [["ID", "Name", "Email", "Division"]]

        rows = table.read_rows()

        assert rows == [["ID", "Name", "Email", "Division"]]
        mock_client.get_values.assert_called_with("sheet123", "'Contacts'")
        mock_client.batch_update.assert_not_called()

    def test_creates_missing_worksheet_with_header(self, table, mock_client):
        mock_client.get_spreadsheet.return_value = {"sheets": []}
        mock_client.get_values.return_value = []

        table.read_rows()

        add_sheet = mock_client.batch_update.call_args_list[0][0][1][0]
        assert add_sheet == {"addSheet": {"properties": {"title": "Contacts"}}}
        mock_client.update_values.assert_called_once_with(
            "sheet123", "'Contacts'!A1", [["ID", "Name", "Email", "Division"]]
        )
        header_format = mock_client.batch_update.call_args_list[1][0][1][0]["repeatCell"]
        assert header_format["range"]["sheetId"] == 99
        assert header_format["cell"]["userEnteredFormat"]["textFormat"] == {"bold": True}

    def test_writes_header_into_empty_existing_worksheet(self, table, mock_client):
        mock_client.get_values.return_value = []

        table.append_row([1, "Ann", "ann@x.com", "HR"])

        mock_client.get_values.assert_called_once_with("sheet123", "'Contacts'!1:1")
        mock_client.update_values.assert_called_once_with(
            "sheet123", "'Contacts'!A1", [["ID", "Name", "Email", "Division"]]
        )
        header_format = mock_client.batch_update.call_args_list[0][0][1][0]["repeatCell"]
        assert header_format["range"]["sheetId"] == 11
        requests = [c[0][1][0] for c in mock_client.batch_update.call_args_list]
        assert not any("addSheet" in request for request in requests)

    def test_existing_header_is_left_alone(self, table, mock_client):
        table.read_rows()

        mock_client.update_values.assert_not_called()

    def test_worksheet_lookup_happens_once(self, table, mock_client):
        mock_client.get_values.return_value = []

        table.read_rows()
        table.read_rows()

        mock_client.get_spreadsheet.assert_called_once()

    def test_missing_spreadsheet_id(self, mock_client):
        settings = Settings(
            google_client_id="client", google_client_secret="secret", _env_file=None
        )
        settings.spreadsheet_id = None
        table = GoogleSheetTable(mock_client, settings)

        with pytest.raises(ConfigurationError, match="SHEET_ID"):
            table.read_rows()


class TestWrites:
    def test_append_row(self, table, mock_client):
        table.append_row([3, "Cy", "cy@x.com", "HR"])

        mock_client.append_values.assert_called_once_with(
            "sheet123", "'Contacts'!A1", [[3, "Cy", "cy@x.com", "HR"]]
        )

    def test_append_row_outlines_the_new_row(self, table, mock_client):
        table.append_row([3, "Cy", "cy@x.com", "HR"])

        borders = mock_client.batch_update.call_args[0][1][0]["updateBorders"]
        assert borders["range"] == {
            "sheetId": 11,
            "startRowIndex": 4,
            "endRowIndex": 5,
            "startColumnIndex": 0,
            "endColumnIndex": 4,
        }
        assert borders["top"] == borders["bottom"] == {"style": "SOLID"}
        assert "innerVertical" not in borders

    def test_append_row_without_updated_range(self, table, mock_client):
        mock_client.append_values.return_value = {}

        table.append_row([3, "Cy", "cy@x.com", "HR"])

        mock_client.batch_update.assert_not_called()

    def test_replace_range(self, table, mock_client):
        table.replace_range(4, 2, ["Bo", "bo@x.com", "IT"])

        mock_client.update_values.assert_called_once_with(
            "sheet123", "'Contacts'!B4:D4", [["Bo", "bo@x.com", "IT"]]
        )

    def test_delete_rows_uses_zero_based_indexes(self, table, mock_client):
        table.delete_rows(2, 3)

        request = mock_client.batch_update.call_args[0][1][0]["deleteDimension"]
        assert request["range"] == {
            "sheetId": 11,
            "dimension": "ROWS",
            "startIndex": 1,
            "endIndex": 4,
        }

    def test_insert_table_writes_rows_and_header_format(self, table, mock_client):
        rows = [["ID", "Name", "Email", "Division"], [1, "Ann", "ann@x.com", "HR"]]

        name = table.insert_table("Backup_2026-10-19T08-30-00-000Z", rows)

        assert name == "Backup_2026-10-19T08-30-00-000Z"
        mock_client.update_values.assert_called_once_with(
            "sheet123", "'Backup_2026-10-19T08-30-00-000Z'!A1", rows
        )
        header_format = mock_client.batch_update.call_args_list[-1][0][1][0]["repeatCell"]
        assert header_format["range"]["endColumnIndex"] == 4


def test_first_contact_in_empty_worksheet_lands_below_header(table, mock_client):
    mock_client.get_values.return_value = []

    result = ContactStore(table).add_contact("Ann", "ann@x.com", "HR")

    assert result.success
    header_call, = mock_client.update_values.call_args_list
    assert header_call[0][2] == [["ID", "Name", "Email", "Division"]]
    mock_client.append_values.assert_called_once_with(
        "sheet123", "'Contacts'!A1", [[1, "Ann", "ann@x.com", "HR"]]
    )
