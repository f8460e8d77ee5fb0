"""Reconciliation commands."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.reconcile import ReconciliationService


def _service(ctx) -> ReconciliationService:
    settings = ctx.obj["settings"]
    return ReconciliationService(
        ctx.obj["db"],
        window_days=settings.reconcile_window_days,
        epsilon=settings.amount_epsilon,
    )


@click.group()
def reconcile_group():
    """Reconcile entries against statement lines."""
    pass


@reconcile_group.command("auto")
@click.argument("account_id")
@click.option("--window-days", type=click.IntRange(min=0), help="Days between booking and posting")
@click.pass_context
def auto_reconcile(ctx, account_id: str, window_days: int | None):
    """Link every statement line that has exactly one matching entry."""
    service = _service(ctx)

    try:
        result = service.auto(account_id, window_days=window_days)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Linked: {result.linked}")
    click.echo(f"Skipped (ambiguous): {result.skipped}")
    click.echo(f"Unlinked statement lines: {len(result.remaining_statement_ids)}")
    for statement_id in result.remaining_statement_ids:
        click.echo(f"  {statement_id}")


@reconcile_group.command("link")
@click.argument("entry_id")
@click.argument("statement_line_id")
@click.pass_context
def link(ctx, entry_id: str, statement_line_id: str):
    """Manually link an entry to a statement line."""
    service = _service(ctx)

    try:
        service.link(entry_id, statement_line_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Linked entry {entry_id} to statement line {statement_line_id}")


def register_commands(cli):
    """Register reconciliation commands with main CLI."""
    cli.add_command(reconcile_group, name="reconcile")
