"""Main CLI entry point."""

import click
from ledgerkit.config import Settings
from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.logging_setup import configure_logging

from ledgerkit.cli.commands import (
    account,
    balance,
    categorize,
    entry,
    fx,
    import_cmd,
    reconcile,
    rule,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERKIT_DB_PATH environment variable)",
    envvar="LEDGERKIT_DB_PATH",
)
@click.option(
    "--log-level",
    help="Log level such as DEBUG or INFO (overrides LEDGERKIT_LOG_LEVEL)",
    envvar="LEDGERKIT_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Ledgerkit - Double-entry ledger.

    Record balanced multi-currency entries, import bank statements,
    reconcile them and categorize entries with rules.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # --help needs no store
    if ctx.invoked_subcommand is not None:
        ctx.obj["settings"] = Settings.from_env()
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


account.register_commands(cli)
fx.register_commands(cli)
entry.register_commands(cli)
import_cmd.register_commands(cli)
reconcile.register_commands(cli)
rule.register_commands(cli)
categorize.register_commands(cli)
balance.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
