"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic so the domain entities stay free of
ORM concerns.
"""

from ledgerkit.domain import entities as domain
from ledgerkit.domain.matchers import matcher_to_dict, parse_matcher
from ledgerkit.database.models import (
    Account as ORMAccount,
    Entry as ORMEntry,
    EntryCategoryLink as ORMEntryCategoryLink,
    EntryLine as ORMEntryLine,
    FxRate as ORMFxRate,
    Reconciliation as ORMReconciliation,
    Rule as ORMRule,
    StatementLine as ORMStatementLine,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        owner_id=orm_account.owner_id,
        name=orm_account.name,
        nature=domain.AccountNature(orm_account.nature),
        currency=orm_account.currency,
        active=orm_account.active,
    )


def entry_to_domain(orm_entry: ORMEntry) -> domain.Entry:
    """Convert SQLAlchemy Entry model to domain Entry entity."""
    return domain.Entry(
        id=orm_entry.id,
        ledger_id=orm_entry.ledger_id,
        booked_at=orm_entry.booked_at,
        status=domain.EntryStatus(orm_entry.status),
        base_currency=orm_entry.base_currency,
        description=orm_entry.description,
        external_id=orm_entry.external_id,
    )


def entry_line_to_domain(orm_line: ORMEntryLine) -> domain.EntryLine:
    """Convert SQLAlchemy EntryLine model to domain EntryLine entity."""
    return domain.EntryLine(
        id=orm_line.id,
        entry_id=orm_line.entry_id,
        account_id=orm_line.account_id,
        native_amount=orm_line.native_amount,
        native_currency=orm_line.native_currency,
        booked_amount=orm_line.booked_amount,
        booked_currency=orm_line.booked_currency,
        fx_rate=orm_line.fx_rate,
        direction=domain.LineDirection(orm_line.direction),
    )


def entry_category_to_domain(orm_link: ORMEntryCategoryLink) -> domain.EntryCategory:
    """Convert SQLAlchemy EntryCategoryLink model to domain EntryCategory entity."""
    return domain.EntryCategory(
        entry_id=orm_link.entry_id,
        category_id=orm_link.category_id,
        confidence=orm_link.confidence,
        source=orm_link.source,
    )


def statement_line_to_domain(orm_line: ORMStatementLine) -> domain.StatementLine:
    """Convert SQLAlchemy StatementLine model to domain StatementLine entity."""
    return domain.StatementLine(
        id=orm_line.id,
        account_id=orm_line.account_id,
        posted_at=orm_line.posted_at,
        amount=orm_line.amount,
        currency=orm_line.currency,
        external_id=orm_line.external_id,
        memo=orm_line.memo,
    )


def rule_to_domain(orm_rule: ORMRule) -> domain.Rule:
    """Convert SQLAlchemy Rule model to domain Rule entity."""
    return domain.Rule(
        id=orm_rule.id,
        owner_id=orm_rule.owner_id,
        priority=orm_rule.priority,
        matcher=parse_matcher(orm_rule.matcher),
        action=domain.RuleAction(
            category_id=orm_rule.category_id, confidence=orm_rule.confidence
        ),
        active=orm_rule.active,
    )


def rule_to_orm(rule: domain.Rule) -> ORMRule:
    """Convert domain Rule entity to a new SQLAlchemy Rule model."""
    return ORMRule(
        id=rule.id,
        owner_id=rule.owner_id,
        priority=rule.priority,
        active=rule.active,
        matcher=matcher_to_dict(rule.matcher),
        category_id=rule.action.category_id,
        confidence=rule.action.confidence,
    )


def fx_rate_to_domain(orm_rate: ORMFxRate) -> domain.FxRate:
    """Convert SQLAlchemy FxRate model to domain FxRate entity."""
    return domain.FxRate(
        base=orm_rate.base,
        quote=orm_rate.quote,
        as_of=orm_rate.as_of,
        rate=orm_rate.rate,
    )


def reconciliation_to_domain(orm_link: ORMReconciliation) -> domain.Reconciliation:
    """Convert SQLAlchemy Reconciliation model to domain Reconciliation entity."""
    return domain.Reconciliation(
        entry_id=orm_link.entry_id,
        statement_line_id=orm_link.statement_line_id,
        manual=orm_link.manual,
        linked_at=orm_link.linked_at,
    )
