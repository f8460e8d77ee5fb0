"""Categorize command."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.categorize import CategorizationService, KeywordAgent
from ledgerkit.domain.entry import EntryService
from ledgerkit.domain.money import to_decimal


def parse_keyword_option(value: str) -> tuple[str, tuple[str, str]]:
    """Parse KEYWORD=CATEGORY[:CONFIDENCE]; confidence defaults to 1."""
    keyword, sep, target = value.partition("=")
    if not sep or not keyword.strip() or not target.strip():
        raise ValueError(f"Invalid keyword '{value}'. Expected KEYWORD=CATEGORY[:CONFIDENCE]")
    category_id, _, confidence = target.partition(":")
    return keyword.strip(), (category_id.strip(), confidence.strip() or "1")


@click.command("categorize")
@click.argument("entry_id")
@click.option("--owner", required=True, help="Owner whose rules apply")
@click.option(
    "--keyword",
    "keywords",
    multiple=True,
    help="KEYWORD=CATEGORY[:CONFIDENCE] for the keyword agent, repeat in priority order",
)
@click.option("--threshold", help="Agent acceptance threshold (defaults to LEDGERKIT_AGENT_THRESHOLD)")
@click.option("--dry-run", is_flag=True, help="Show the decision without storing it")
@click.pass_context
def categorize(
    ctx,
    entry_id: str,
    owner: str,
    keywords: tuple[str, ...],
    threshold: str | None,
    dry_run: bool,
):
    """Categorize an entry with rules, falling back to keywords."""
    db = ctx.obj["db"]
    entry_service = EntryService(db)

    try:
        keyword_map = dict(parse_keyword_option(keyword) for keyword in keywords)
        service = CategorizationService(
            db,
            agent=KeywordAgent(keyword_map),
            threshold=to_decimal(threshold) if threshold is not None else ctx.obj["settings"].agent_threshold,
        )
        aggregate = entry_service.get_entry(entry_id)
        result = service.categorize(owner, aggregate, persist=not dry_run)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if result.category_id is None:
        click.echo("No category found.")
        return

    click.echo(
        f"Category: {result.category_id} (source: {result.source}, confidence: {result.confidence})"
    )
    if result.needs_review:
        click.echo("Suggestion needs review; not applied.")
    elif result.applied and not dry_run:
        click.echo("Applied.")


def register_commands(cli):
    """Register categorize command with main CLI."""
    cli.add_command(categorize)
