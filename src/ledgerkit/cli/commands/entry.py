"""Entry commands."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import EntryAggregate, LineSpec
from ledgerkit.domain.entry import EntryService
from ledgerkit.domain.money import format_amount
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import isoformat_utc


def parse_line_option(value: str) -> LineSpec:
    """Parse ACCOUNT:AMOUNT:CURRENCY:DIRECTION[:RATE] into a line spec."""
    parts = [part.strip() for part in value.split(":")]
    if len(parts) not in (4, 5):
        raise ValueError(
            f"Invalid line '{value}'. Expected ACCOUNT:AMOUNT:CURRENCY:DIRECTION[:RATE]"
        )
    return LineSpec(
        account_id=parts[0],
        native_amount=parse_amount(parts[1]),
        native_currency=parts[2],
        direction=parts[3].lower(),
        fx_rate=parts[4] if len(parts) == 5 else None,
    )


def echo_aggregate(aggregate: EntryAggregate) -> None:
    entry = aggregate.entry
    click.echo(f"Entry {entry.id} [{entry.status.value}]")
    click.echo(f"  Ledger: {entry.ledger_id}")
    click.echo(f"  Booked: {isoformat_utc(entry.booked_at)}")
    if entry.description:
        click.echo(f"  Description: {entry.description}")
    if entry.external_id:
        click.echo(f"  External ID: {entry.external_id}")
    if aggregate.category is not None:
        click.echo(
            f"  Category: {aggregate.category.category_id} "
            f"({aggregate.category.source}, {aggregate.category.confidence})"
        )
    for line in aggregate.lines:
        click.echo(
            f"  {line.direction.value:6s} {line.account_id:16s} "
            f"{format_amount(line.native_amount):>14s} {line.native_currency:6s} "
            f"@ {line.fx_rate} = {format_amount(line.booked_amount):>14s} {line.booked_currency}"
        )


@click.group()
def entry_group():
    """Record and inspect entries."""
    pass


@entry_group.command("add")
@click.option("--ledger", required=True, help="Ledger ID")
@click.option("--date", "booked_at", required=True, help="Booking instant (YYYY-MM-DD or ISO 8601)")
@click.option("--base", "base_currency", required=True, help="Base currency of the entry")
@click.option(
    "--line",
    "lines",
    multiple=True,
    required=True,
    help="ACCOUNT:AMOUNT:CURRENCY:debit|credit[:RATE], repeat for each line",
)
@click.option("--description", help="Entry description")
@click.option("--external-id", help="Idempotency key, unique per ledger")
@click.option("--category", help="Category ID to link")
@click.option("--draft", is_flag=True, help="Create the entry as a draft")
@click.pass_context
def add_entry(
    ctx,
    ledger: str,
    booked_at: str,
    base_currency: str,
    lines: tuple[str, ...],
    description: str | None,
    external_id: str | None,
    category: str | None,
    draft: bool,
):
    """Add a balanced entry.

    Examples:
        ledgerkit entry add --ledger u1 --date 2024-01-10 --base MXN \\
            --line food:250:MXN:debit --line checking:250:MXN:credit
    """
    service = EntryService(ctx.obj["db"])

    try:
        specs = [parse_line_option(line) for line in lines]
        aggregate = service.create_entry(
            ledger_id=ledger,
            booked_at=booked_at,
            base_currency=base_currency,
            lines=specs,
            description=description,
            external_id=external_id,
            category_id=category,
            status="draft" if draft else "posted",
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    echo_aggregate(aggregate)


@entry_group.command("show")
@click.argument("entry_id")
@click.pass_context
def show_entry(ctx, entry_id: str):
    """Show an entry with its lines."""
    service = EntryService(ctx.obj["db"])

    try:
        aggregate = service.get_entry(entry_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    echo_aggregate(aggregate)


@entry_group.command("list")
@click.option("--ledger", required=True, help="Ledger ID")
@click.pass_context
def list_entries(ctx, ledger: str):
    """List a ledger's entries."""
    service = EntryService(ctx.obj["db"])

    aggregates = service.list_entries(ledger)
    if not aggregates:
        click.echo("No entries found.")
        return

    for aggregate in aggregates:
        entry = aggregate.entry
        click.echo(
            f"{entry.id} | {isoformat_utc(entry.booked_at)} | {entry.status.value:10s} | "
            f"{format_amount(aggregate.total_debit):>14s} {entry.base_currency} | "
            f"{entry.description or ''}"
        )


def register_commands(cli):
    """Register entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
