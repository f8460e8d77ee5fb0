"""Categorization rule commands."""

import json

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.matchers import matcher_to_dict
from ledgerkit.domain.rule import RuleService


@click.group()
def rule_group():
    """Manage categorization rules."""
    pass


@rule_group.command("add")
@click.argument("rule_id")
@click.option("--owner", required=True, help="Owner ID")
@click.option("--priority", type=int, default=0, show_default=True, help="Higher runs first")
@click.option("--category", required=True, help="Category ID to assign")
@click.option("--confidence", default="1", show_default=True, help="Confidence between 0 and 1")
@click.option("--contains", help="Match descriptions containing this text")
@click.option(
    "--matcher",
    "matcher_json",
    help='Matcher as JSON, e.g. {"any": [{"field": "description", "op": "contains", "value": "oxxo"}]}',
)
@click.pass_context
def add_rule(
    ctx,
    rule_id: str,
    owner: str,
    priority: int,
    category: str,
    confidence: str,
    contains: str | None,
    matcher_json: str | None,
):
    """Add a rule. Give either --contains or --matcher.

    Examples:
        ledgerkit rule add coffee --owner u1 --priority 10 --category cafe --contains starbucks
    """
    if (contains is None) == (matcher_json is None):
        click.echo("Error: Give exactly one of --contains or --matcher", err=True)
        ctx.exit(1)

    if contains is not None:
        matcher = {"field": "description", "op": "contains", "value": contains}
    else:
        try:
            matcher = json.loads(matcher_json)
        except json.JSONDecodeError as e:
            click.echo(f"Error: Invalid matcher JSON: {e}", err=True)
            ctx.exit(1)

    service = RuleService(ctx.obj["db"])
    try:
        rule = service.create_rule(
            rule_id=rule_id,
            owner_id=owner,
            priority=priority,
            matcher=matcher,
            category_id=category,
            confidence=confidence,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created rule '{rule.id}' (priority {rule.priority}) -> {rule.action.category_id}")


@rule_group.command("list")
@click.option("--owner", required=True, help="Owner ID")
@click.pass_context
def list_rules(ctx, owner: str):
    """List an owner's rules in evaluation order."""
    service = RuleService(ctx.obj["db"])

    rules = service.list_rules(owner)
    if not rules:
        click.echo("No rules found.")
        return

    for rule in rules:
        status = "" if rule.active else " (inactive)"
        click.echo(
            f"{rule.priority:5d} | {rule.id:16s} | {rule.action.category_id} "
            f"({rule.action.confidence}){status} | {json.dumps(matcher_to_dict(rule.matcher))}"
        )


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
