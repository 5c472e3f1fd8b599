"""CLI for sheet-contacts."""

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import click
from dotenv import set_key

from sheetcontacts import __version__
from sheetcontacts.config import Settings, get_settings
from sheetcontacts.exceptions import ContactSheetError
from sheetcontacts.google.client import GoogleSheetsClient
from sheetcontacts.google.table import GoogleSheetTable
from sheetcontacts.models import ContactTable, OperationResult
from sheetcontacts.store import CLEAR_CONFIRMATION, ContactStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)


@contextmanager
def open_store(settings: Settings) -> Iterator[ContactStore]:
    """Contact store backed by the configured spreadsheet."""
    client = GoogleSheetsClient(settings)
    try:
        yield ContactStore(GoogleSheetTable(client, settings))
    finally:
        client.close()


def _require_settings(ctx: click.Context) -> Settings:
    settings: Settings | None = ctx.obj.get("settings")
    if settings is None:
        click.echo(f"Error loading settings: {ctx.obj.get('settings_error')}", err=True)
        ctx.exit(1)
    return settings


def _echo_table(table: ContactTable) -> None:
    rows = [[str(cell) for cell in row] for row in table.rows]
    widths = [max(len(row[i]) for row in rows) for i in range(len(table.header))]
    for index, row in enumerate(rows):
        click.echo("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())
        if index == 0:
            click.echo("  ".join("-" * width for width in widths))
    click.echo(f"\n{len(table.contacts)} contact(s)")


def _report(ctx: click.Context, result: OperationResult) -> None:
    """Print an operation result, exiting with status 1 on failure."""
    if result.success:
        click.echo(result.message)
    else:
        click.echo(f"Error: {result.message}", err=True)
        ctx.exit(1)


def _run_read(ctx: click.Context, action: Any) -> Any:
    """Run a read against the store, turning storage errors into exit 1."""
    settings = _require_settings(ctx)
    try:
        with open_store(settings) as store:
            return action(store)
    except ContactSheetError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context) -> None:
    """Manage a contact directory stored in Google Sheets."""
    ctx.ensure_object(dict)

    # Load settings
    try:
        settings = get_settings()
        ctx.obj["settings"] = settings
    except Exception as e:
        ctx.obj["settings_error"] = str(e)


@main.command()
@click.pass_context
def auth(ctx: click.Context) -> None:
    """Authorize with Google to get refresh token.

    Opens a browser for Google OAuth authorization, then displays
    the refresh token to add to your .env file.
    """
    settings = _require_settings(ctx)

    click.echo("Opening browser for Google authorization...")
    click.echo("(Make sure 'http://localhost:36133' is set as a redirect URI)")
    click.echo()

    client = GoogleSheetsClient(settings)
    try:
        tokens = client.authorize(port=36133)
        click.echo()
        click.echo("Authorization successful!")
        click.echo()
        click.echo("Add this to your .env file:")
        click.echo(f'GOOGLE_REFRESH_TOKEN={tokens["refresh_token"]}')
    except Exception as e:
        click.echo(f"Authorization failed: {e}", err=True)
        ctx.exit(1)
    finally:
        client.close()


@main.command()
@click.argument("sheet_id")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(".env"),
    show_default=True,
    help="File the spreadsheet id is stored in",
)
def setup(sheet_id: str, env_file: Path) -> None:
    """Store the spreadsheet id used as the contact datastore."""
    env_file.touch(exist_ok=True)
    set_key(str(env_file), "SHEET_ID", sheet_id)
    get_settings.cache_clear()
    click.echo(f"Sheet ID saved to {env_file}: {sheet_id}")


@main.command("list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """Show every contact."""
    table = _run_read(ctx, lambda store: store.list_contacts())
    _echo_table(table)


@main.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str) -> None:
    """Show contacts with any field containing QUERY (case-insensitive)."""
    table = _run_read(ctx, lambda store: store.search_contacts(query))
    _echo_table(table)


@main.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show contact counts per division."""
    result = _run_read(ctx, lambda store: store.get_stats())
    click.echo(f"Total contacts: {result.total_contacts}")
    click.echo(f"Top division: {result.top_division or '-'}")
    for division, count in result.divisions.items():
        click.echo(f"  {division}: {count}")


@main.command()
@click.argument("name")
@click.argument("email")
@click.argument("division")
@click.pass_context
def add(ctx: click.Context, name: str, email: str, division: str) -> None:
    """Add a contact."""
    with open_store(_require_settings(ctx)) as store:
        result = store.add_contact(name, email, division)
    _report(ctx, result)
    click.echo(f"ID: {result.contact_id}")


@main.command()
@click.argument("contact_id")
@click.argument("name")
@click.argument("email")
@click.argument("division")
@click.pass_context
def update(ctx: click.Context, contact_id: str, name: str, email: str, division: str) -> None:
    """Replace name, email and division of contact CONTACT_ID."""
    with open_store(_require_settings(ctx)) as store:
        result = store.update_contact(contact_id, name, email, division)
    _report(ctx, result)


@main.command()
@click.argument("contact_id")
@click.pass_context
def delete(ctx: click.Context, contact_id: str) -> None:
    """Delete contact CONTACT_ID."""
    with open_store(_require_settings(ctx)) as store:
        result = store.delete_contact(contact_id)
    _report(ctx, result)


@main.command("export")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Destination file (default: contacts_<date>.csv)",
)
@click.pass_context
def export_command(ctx: click.Context, output: Path | None) -> None:
    """Export all contacts to CSV."""
    with open_store(_require_settings(ctx)) as store:
        result = store.export_csv()
    if not result.success:
        _report(ctx, result)
        return

    path = output or Path(result.filename)
    path.write_text(result.data, encoding="utf-8")
    click.echo(f"{result.message} to {path}")


@main.command("import")
@click.argument("csv_file", type=click.File("r", encoding="utf-8"))
@click.pass_context
def import_command(ctx: click.Context, csv_file: Any) -> None:
    """Import contacts from a CSV file (header line first)."""
    text = csv_file.read()
    with open_store(_require_settings(ctx)) as store:
        result = store.import_csv(text)
    if result.success and result.error_details:
        click.echo("Error details:")
        for detail in result.error_details[:5]:  # Show first 5
            click.echo(f"  - {detail}")
        if len(result.error_details) > 5:
            click.echo(f"  ... and {len(result.error_details) - 5} more")
    _report(ctx, result)


@main.command()
@click.pass_context
def backup(ctx: click.Context) -> None:
    """Copy all rows into a new timestamped worksheet."""
    with open_store(_require_settings(ctx)) as store:
        result = store.backup()
    _report(ctx, result)


@main.command()
@click.option(
    "--confirm",
    "confirmation",
    prompt=f"Type {CLEAR_CONFIRMATION} to delete every contact",
    help="Confirmation token",
)
@click.pass_context
def clear(ctx: click.Context, confirmation: str) -> None:
    """Delete every contact after backing the sheet up."""
    with open_store(_require_settings(ctx)) as store:
        result = store.clear_all_data(confirmation)
    _report(ctx, result)
    click.echo(f"Backup kept in: {result.backup}")


if __name__ == "__main__":
    main()
