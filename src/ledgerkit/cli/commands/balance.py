"""Balance report command."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.money import format_amount
from ledgerkit.utils.date_parser import isoformat_utc


@click.command("balance")
@click.option("--ledger", required=True, help="Ledger ID")
@click.option("--base", "base_currency", required=True, help="Base currency of the report")
@click.option("--as-of", help="Report instant (YYYY-MM-DD or ISO 8601, defaults to now)")
@click.option("--account", "account_id", help="Show a single account")
@click.option("--include-drafts", is_flag=True, help="Count draft entries too")
@click.pass_context
def balance(
    ctx,
    ledger: str,
    base_currency: str,
    as_of: str | None,
    account_id: str | None,
    include_drafts: bool,
):
    """Show account balances and the trial balance of a ledger.

    Examples:
        ledgerkit balance --ledger u1 --base MXN
        ledgerkit balance --ledger u1 --base MXN --account checking --as-of 2024-01-31
    """
    service = BalanceService(ctx.obj["db"])

    if account_id is not None:
        try:
            result = service.account_balance(ledger, account_id, base_currency, as_of, include_drafts)
        except ValueError as e:
            handle_domain_error(ctx, e)
        click.echo(
            f"{result.account_id}: {format_amount(result.native_balance)} {result.native_currency} "
            f"(booked {format_amount(result.booked_balance)} {result.booked_currency})"
        )
        return

    try:
        report = service.trial_balance(ledger, base_currency, as_of, include_drafts)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not report.balances:
        click.echo("No balances found.")
        return

    click.echo(
        f"\nTrial balance for {report.ledger_id} at {isoformat_utc(report.as_of)} "
        f"({report.base_currency}):"
    )
    click.echo("-" * 80)
    for row in report.balances:
        debit = format_amount(row.debit_balance) if row.debit_balance else ""
        credit = format_amount(row.credit_balance) if row.credit_balance else ""
        click.echo(
            f"{row.account_id:16s} | {row.nature.value:9s} | "
            f"{format_amount(row.native_balance):>14s} {row.native_currency:4s} | "
            f"{debit:>14s} | {credit:>14s}"
        )
    click.echo("-" * 80)
    click.echo(
        f"Totals: debits {format_amount(report.total_debits)}, "
        f"credits {format_amount(report.total_credits)}"
    )
    click.echo("Balanced." if report.is_balanced else "NOT balanced.")


def register_commands(cli):
    """Register balance command with main CLI."""
    cli.add_command(balance)
