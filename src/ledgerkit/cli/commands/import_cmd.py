"""Statement import command."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import ColumnMapping
from ledgerkit.domain.statement_import import StatementImportService


@click.command("import")
@click.argument("statement_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--account", required=True, help="Account ID the statement belongs to")
@click.option("--date-column", required=True, help="Header of the posted date column")
@click.option("--amount-column", required=True, help="Header of the amount column")
@click.option("--memo-column", help="Header of the memo column")
@click.option("--id-column", help="Header of the external ID column")
@click.pass_context
def import_statement(
    ctx,
    statement_file: str,
    account: str,
    date_column: str,
    amount_column: str,
    memo_column: str | None,
    id_column: str | None,
):
    """Import statement lines from a delimited file."""
    service = StatementImportService(ctx.obj["db"])
    mapping = ColumnMapping(
        posted_at=date_column,
        amount=amount_column,
        memo=memo_column,
        external_id=id_column,
    )

    with open(statement_file, "r", encoding="utf-8-sig") as f:
        raw_text = f.read()

    try:
        result = service.from_delimited(account, raw_text, mapping)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    click.echo(f"  Inserted: {result.inserted} statement lines")
    click.echo(f"  Duplicates: {result.duplicates}")
    if result.failed:
        click.echo(f"  Failed: {len(result.failed)}")
        for failure in result.failed:
            click.echo(f"    Row {failure.row}: {failure.reason}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_statement)
