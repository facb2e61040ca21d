# catalog_explorer/cli/main.py
import asyncio
import json
import logging

import click

from catalog_explorer.core.enums import CanonicalField
from catalog_explorer.core.exceptions import QueryError
from catalog_explorer.core.logging_config import configure_logging
from catalog_explorer.dependencies import get_config_store, get_schema_resolver, get_search_service
from catalog_explorer.services.catalog.reconciliation import field_sources, group_by_identity

logger = logging.getLogger(__name__)

SUMMARY_FIELDS = ("reference", "barcode", "name", "brand", "price", "stock")


def _fail(result):
    if result.error:
        raise click.ClickException(result.error)


def _row_summary(row) -> str:
    parts = [f"{field}={row.text(field)}" for field in SUMMARY_FIELDS if row.text(field)]
    return f"[{row.source_table}] " + (", ".join(parts) or "(no mapped value)")


@click.group()
@click.option('--log-level', default=None, help='Override LOG_LEVEL for this run')
def cli(log_level):
    """Read-only search across the product catalog tables"""
    if log_level:
        configure_logging(log_level)


@cli.command()
@click.argument('term')
@click.option('--grouped', is_flag=True, help='Reconcile rows sharing a barcode or supplier code')
@click.option('--json', 'as_json', is_flag=True, help='Print the raw result as JSON')
def search(term, grouped, as_json):
    """Search every catalog table for a barcode, reference or text"""
    result = asyncio.run(get_search_service().search(term))
    _fail(result)

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    mode = result.mode.value if result.mode else "none"
    click.echo(f"{result.count} result(s) for '{result.term}' ({mode} match)")
    if result.truncated:
        click.echo(f"Not searched (table limit reached): {', '.join(result.truncated_tables)}")
    if result.tables_skipped:
        click.echo(f"Skipped: {', '.join(result.tables_skipped)}")

    if not grouped:
        for row in result.data or []:
            click.echo(_row_summary(row))
        return

    for group in group_by_identity(result.data or []):
        click.echo(f"\n{group.group_key_kind.value} {group.group_key}: {len(group.members)} row(s) "
                   f"from {', '.join(group.source_tables)}")
        click.echo(f"  primary: {_row_summary(group.primary)}")
        for field in group.conflicts:
            sources = field_sources(group, field)
            listed = "; ".join(f"{value} ({', '.join(tables)})" for value, tables in sources.items())
            click.echo(f"  conflict on {field}: {listed}")


@cli.command()
@click.option('--limit', type=int, default=None, help='Number of rows (defaults to BROWSE_LIMIT)')
def browse(limit):
    """List the first products of the first catalog table"""
    result = asyncio.run(get_search_service().browse(limit))
    _fail(result)
    click.echo(f"{result.count} product(s)")
    for row in result.data or []:
        click.echo(_row_summary(row))


@cli.command()
def tables():
    """Discover the catalog tables and show which are enabled"""
    try:
        names = asyncio.run(get_schema_resolver().list_candidate_tables())
    except QueryError as e:
        raise click.ClickException(e.message)

    store = get_config_store()
    click.echo(f"{len(names)} table(s)")
    for name in names:
        config = store.get(name)
        status = "enabled" if config and config.enabled else "disabled"
        click.echo(f"  {name} [{status}]")


@cli.command()
@click.argument('table')
def columns(table):
    """Show a table's columns and how they map to the canonical fields"""
    try:
        view = asyncio.run(get_search_service().table_mapping(table))
    except QueryError as e:
        raise click.ClickException(e.message)

    click.echo(f"{table}: {', '.join(view.columns)}")
    for field in CanonicalField:
        column = view.effective.get(field.value)
        if not column:
            continue
        origin = "explicit" if field.value in view.explicit else "auto"
        click.echo(f"  {field.label:<14} <- {column} ({origin})")
    for field, candidates in view.ambiguities.items():
        click.echo(f"  ambiguous {field}: {', '.join(candidates)}")


@cli.command()
@click.argument('table')
def automap(table):
    """Store the automatic column mapping for a table, keeping explicit entries"""
    try:
        table_columns = asyncio.run(get_schema_resolver().list_columns(table))
    except QueryError as e:
        raise click.ClickException(e.message)

    mapping = get_config_store().auto_map_table(table, table_columns)
    click.echo(f"{len(mapping)} field(s) mapped for {table}")
    for field, column in mapping.items():
        click.echo(f"  {field} <- {column}")


@cli.command()
@click.argument('table')
@click.option('--page', type=int, default=1, help='Page number, starting at 1')
@click.option('--page-size', type=int, default=None, help='Rows per page (defaults to PREVIEW_PAGE_SIZE)')
def preview(table, page, page_size):
    """Show raw rows of a catalog table"""
    result = asyncio.run(get_search_service().preview_table(table, page, page_size))
    _fail(result)

    table_page = result.data
    click.echo(f"{table}: page {table_page.page}, {len(table_page.rows)} of {table_page.total_count} row(s)")
    for row in table_page.rows:
        click.echo(json.dumps(row, default=str))


@cli.command('test-connection')
def test_connection():
    """Check that the gateway can reach the database"""
    result = asyncio.run(get_search_service().test_connection())
    _fail(result)
    click.echo("Connection OK")


if __name__ == '__main__':
    cli()
