"""Entity shape validation.

Each ``*_violations`` function returns every problem it finds; ``check``
turns a non-empty list into a single ValidationError. Stores call these
before any write so malformed input never lands.
"""

from datetime import datetime
from decimal import Decimal

from ledgerkit.domain.entities import (
    Account,
    AccountNature,
    Entry,
    EntryCategory,
    EntryLine,
    EntryStatus,
    FxRate,
    LineDirection,
    Rule,
    StatementLine,
)
from ledgerkit.domain.errors import ValidationError, invalid
from ledgerkit.domain.matchers import matcher_violations
from ledgerkit.domain.money import is_valid_currency


def check(subject: str, violations: list[str]) -> None:
    """Raise ValidationError listing all violations, if any."""
    if violations:
        raise ValidationError(invalid(subject, violations), violations)


def _require_text(violations: list[str], name: str, value: object) -> None:
    if not isinstance(value, str) or not value.strip():
        violations.append(f"{name} must be a non-empty string")


def _require_currency(violations: list[str], name: str, value: object) -> None:
    if not is_valid_currency(value):
        violations.append(f"{name} must be a 3 to 6 letter currency code")


def _require_instant(violations: list[str], name: str, value: object) -> None:
    if not isinstance(value, datetime) or value.tzinfo is None:
        violations.append(f"{name} must be a timezone-aware datetime")


def _require_decimal(violations: list[str], name: str, value: object) -> bool:
    if not isinstance(value, Decimal) or not value.is_finite():
        violations.append(f"{name} must be a finite Decimal")
        return False
    return True


def account_violations(account: Account) -> list[str]:
    violations: list[str] = []
    _require_text(violations, "id", account.id)
    _require_text(violations, "owner_id", account.owner_id)
    _require_text(violations, "name", account.name)
    if not isinstance(account.nature, AccountNature):
        violations.append(
            f"nature must be one of {', '.join(n.value for n in AccountNature)}"
        )
    _require_currency(violations, "currency", account.currency)
    if not isinstance(account.active, bool):
        violations.append("active must be a boolean")
    return violations


def entry_violations(entry: Entry) -> list[str]:
    violations: list[str] = []
    _require_text(violations, "id", entry.id)
    _require_text(violations, "ledger_id", entry.ledger_id)
    if entry.external_id is not None:
        _require_text(violations, "external_id", entry.external_id)
    _require_instant(violations, "booked_at", entry.booked_at)
    if not isinstance(entry.status, EntryStatus):
        violations.append(
            f"status must be one of {', '.join(s.value for s in EntryStatus)}"
        )
    _require_currency(violations, "base_currency", entry.base_currency)
    if entry.description is not None and not isinstance(entry.description, str):
        violations.append("description must be a string")
    return violations


def entry_line_violations(line: EntryLine) -> list[str]:
    violations: list[str] = []
    _require_text(violations, "id", line.id)
    _require_text(violations, "entry_id", line.entry_id)
    _require_text(violations, "account_id", line.account_id)
    _require_currency(violations, "native_currency", line.native_currency)
    _require_currency(violations, "booked_currency", line.booked_currency)
    native_ok = _require_decimal(violations, "native_amount", line.native_amount)
    booked_ok = _require_decimal(violations, "booked_amount", line.booked_amount)
    if _require_decimal(violations, "fx_rate", line.fx_rate) and line.fx_rate <= 0:
        violations.append("fx_rate must be positive")
    if not isinstance(line.direction, LineDirection):
        violations.append("direction must be 'debit' or 'credit'")
    elif native_ok and booked_ok:
        sign = line.direction.sign
        if line.native_amount * sign <= 0:
            violations.append(f"native_amount sign disagrees with {line.direction.value}")
        if line.booked_amount * sign <= 0:
            violations.append(f"booked_amount sign disagrees with {line.direction.value}")
    return violations


def entry_category_violations(link: EntryCategory) -> list[str]:
    violations: list[str] = []
    _require_text(violations, "entry_id", link.entry_id)
    _require_text(violations, "category_id", link.category_id)
    if _require_decimal(violations, "confidence", link.confidence):
        if not Decimal("0") <= link.confidence <= Decimal("1"):
            violations.append("confidence must be between 0 and 1")
    _require_text(violations, "source", link.source)
    return violations


def statement_line_violations(line: StatementLine) -> list[str]:
    violations: list[str] = []
    _require_text(violations, "id", line.id)
    _require_text(violations, "account_id", line.account_id)
    _require_instant(violations, "posted_at", line.posted_at)
    _require_decimal(violations, "amount", line.amount)
    _require_currency(violations, "currency", line.currency)
    _require_text(violations, "external_id", line.external_id)
    if line.memo is not None and not isinstance(line.memo, str):
        violations.append("memo must be a string")
    return violations


def rule_violations(rule: Rule) -> list[str]:
    violations: list[str] = []
    _require_text(violations, "id", rule.id)
    _require_text(violations, "owner_id", rule.owner_id)
    if not isinstance(rule.priority, int) or isinstance(rule.priority, bool):
        violations.append("priority must be an integer")
    if not isinstance(rule.active, bool):
        violations.append("active must be a boolean")
    violations.extend(matcher_violations(rule.matcher))
    _require_text(violations, "action.category_id", rule.action.category_id)
    if _require_decimal(violations, "action.confidence", rule.action.confidence):
        if not Decimal("0") <= rule.action.confidence <= Decimal("1"):
            violations.append("action.confidence must be between 0 and 1")
    return violations


def fx_rate_violations(rate: FxRate) -> list[str]:
    violations: list[str] = []
    _require_currency(violations, "base", rate.base)
    _require_currency(violations, "quote", rate.quote)
    _require_instant(violations, "as_of", rate.as_of)
    if _require_decimal(violations, "rate", rate.rate) and rate.rate <= 0:
        violations.append("rate must be positive")
    return violations
