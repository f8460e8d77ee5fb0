"""Account management commands."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import AccountNature


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("account_id", metavar="ACCOUNT_ID")
@click.option("--owner", required=True, help="Owner ID")
@click.option("--name", help="Display name (defaults to the account ID)")
@click.option(
    "--nature",
    required=True,
    type=click.Choice([n.value for n in AccountNature]),
    help="Account nature",
)
@click.option("--currency", required=True, help="Currency code, e.g. MXN")
@click.pass_context
def create_account(ctx, account_id: str, owner: str, name: str | None, nature: str, currency: str):
    """Create a new account.

    Examples:
        ledgerkit account create checking --owner u1 --nature asset --currency MXN
        ledgerkit account create food --owner u1 --name "Food" --nature expense --currency MXN
    """
    service = AccountService(ctx.obj["db"])

    try:
        account = service.create_account(
            account_id=account_id,
            owner_id=owner,
            name=name if name is not None else account_id,
            nature=nature,
            currency=currency,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{account.name}' (ID: {account.id}, {account.currency})")


@account_group.command("list")
@click.option("--owner", help="Only list this owner's accounts")
@click.pass_context
def list_accounts(ctx, owner: str | None):
    """List accounts."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(owner_id=owner)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        status = "" if acc.active else " (inactive)"
        click.echo(
            f"{acc.id:16s} | {acc.name:20s} | {acc.nature.value:9s} | {acc.currency:6s} | "
            f"Owner: {acc.owner_id}{status}"
        )


@account_group.command("deactivate")
@click.argument("account_id", metavar="ACCOUNT_ID")
@click.pass_context
def deactivate_account(ctx, account_id: str) -> None:
    """Stop an account from accepting new entry lines."""
    service = AccountService(ctx.obj["db"])

    try:
        service.deactivate_account(account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated account '{account_id}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
