"""FX rate commands."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.fx import FxService
from ledgerkit.utils.date_parser import isoformat_utc


@click.group()
def fx_group():
    """Manage FX rate snapshots."""
    pass


@fx_group.command("set")
@click.argument("base")
@click.argument("quote")
@click.argument("rate")
@click.option("--as-of", required=True, help="Snapshot instant (YYYY-MM-DD or ISO 8601)")
@click.pass_context
def set_rate(ctx, base: str, quote: str, rate: str, as_of: str):
    """Store the rate at which one QUOTE is worth RATE BASE.

    Examples:
        ledgerkit fx set MXN USD 18.5 --as-of 2024-01-10
    """
    service = FxService(ctx.obj["db"])

    try:
        snapshot = service.ensure(base, quote, as_of, rate)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"1 {snapshot.quote} = {snapshot.rate} {snapshot.base} at {isoformat_utc(snapshot.as_of)}"
    )


@fx_group.command("get")
@click.argument("base")
@click.argument("quote")
@click.option("--as-of", required=True, help="Snapshot instant (YYYY-MM-DD or ISO 8601)")
@click.pass_context
def get_rate(ctx, base: str, quote: str, as_of: str):
    """Show the rate for a pair at an exact instant."""
    service = FxService(ctx.obj["db"])

    try:
        rate = service.get_rate(base, quote, as_of)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(str(rate))


def register_commands(cli):
    """Register FX commands with main CLI."""
    cli.add_command(fx_group, name="fx")
