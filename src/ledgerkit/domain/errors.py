"""Shared domain error messages and error types."""

from typing import Iterable, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for callers that only care about bad input.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic.

    Carries every violation found, not just the first one.
    """

    def __init__(self, message: str, violations: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.violations = list(violations) if violations is not None else [message]


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class DuplicateError(DomainError):
    """Identifier collision or uniqueness violation."""


class DirectionError(DomainError):
    """Line amount sign disagrees with its debit/credit direction."""


class BaseCurrencyError(DomainError):
    """Line base currency differs from the entry base currency."""


class CurrencyMismatchError(DomainError):
    """Line native currency differs from the account currency."""


class FxMissingError(DomainError):
    """No FX snapshot registered for the requested pair and instant."""


class UnbalancedEntryError(DomainError):
    """Signed booked amounts of an entry do not sum to zero."""


def invalid(subject: str, violations: list[str]) -> str:
    """Return message for an entity that failed shape validation."""
    return f"Invalid {subject}: {'; '.join(violations)}"


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def entry_not_found(entry_id: str) -> str:
    """Return message for missing entry."""
    return f"Entry {entry_id} not found"


def statement_line_not_found(statement_line_id: str) -> str:
    """Return message for missing statement line."""
    return f"Statement line {statement_line_id} not found"


def rule_not_found(rule_id: str) -> str:
    """Return message for missing rule."""
    return f"Rule {rule_id} not found"


def duplicate_id(kind: str, entity_id: str) -> str:
    """Return message for an id collision."""
    return f"{kind} {entity_id} already exists"


def duplicate_entry_external_id(external_id: str, ledger_id: str) -> str:
    """Return message for duplicate entry external ID."""
    return f"Entry with external_id '{external_id}' already exists in ledger {ledger_id}"


def fx_missing(base: str, quote: str, as_of: str) -> str:
    """Return message for a missing FX snapshot."""
    return f"Missing FX rate for {base}/{quote} @ {as_of}"


def entry_already_reconciled(entry_id: str) -> str:
    """Return message when an entry is already linked."""
    return f"Entry {entry_id} is already reconciled"


def statement_already_linked(statement_line_id: str) -> str:
    """Return message when a statement line is already linked."""
    return f"Statement line {statement_line_id} is already linked"
