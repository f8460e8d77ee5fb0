"""Domain model entities for ledgerkit.

These are pure data classes representing ledger concepts, independent of
the storage backing. Both the in-memory store and the SQLAlchemy store hand
these objects back, so services never see ORM rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class AccountNature(str, Enum):
    """Accounting nature of an account."""

    ASSET = "asset"
    LIABILITY = "liability"
    INCOME = "income"
    EXPENSE = "expense"
    EQUITY = "equity"


class EntryStatus(str, Enum):
    """Entry lifecycle. Only reconciliation moves an entry to RECONCILED."""

    DRAFT = "draft"
    POSTED = "posted"
    RECONCILED = "reconciled"


class LineDirection(str, Enum):
    """Debit lines carry positive amounts, credit lines negative ones."""

    DEBIT = "debit"
    CREDIT = "credit"

    @property
    def sign(self) -> int:
        return 1 if self is LineDirection.DEBIT else -1


@dataclass(frozen=True)
class Account:
    """Ledger account domain entity. Currency is fixed at creation."""

    id: str
    owner_id: str
    name: str
    nature: AccountNature
    currency: str
    active: bool = True


@dataclass(frozen=True)
class Entry:
    """Entry header domain entity."""

    id: str
    ledger_id: str
    booked_at: datetime
    status: EntryStatus
    base_currency: str
    description: Optional[str] = None
    external_id: Optional[str] = None


@dataclass(frozen=True)
class EntryLine:
    """One leg of an entry.

    ``native_amount`` and ``booked_amount`` are signed: positive for debits,
    negative for credits.
    """

    id: str
    entry_id: str
    account_id: str
    native_amount: Decimal
    native_currency: str
    booked_amount: Decimal
    booked_currency: str
    fx_rate: Decimal
    direction: LineDirection

    @property
    def native_debit(self) -> Optional[Decimal]:
        return self.native_amount if self.direction is LineDirection.DEBIT else None

    @property
    def native_credit(self) -> Optional[Decimal]:
        return -self.native_amount if self.direction is LineDirection.CREDIT else None

    @property
    def booked_debit(self) -> Optional[Decimal]:
        return self.booked_amount if self.direction is LineDirection.DEBIT else None

    @property
    def booked_credit(self) -> Optional[Decimal]:
        return -self.booked_amount if self.direction is LineDirection.CREDIT else None


@dataclass(frozen=True)
class EntryCategory:
    """Category assigned to an entry."""

    entry_id: str
    category_id: str
    confidence: Decimal = Decimal("1")
    source: str = "manual"


@dataclass(frozen=True)
class EntryAggregate:
    """An entry together with its lines and optional category link."""

    entry: Entry
    lines: list[EntryLine]
    category: Optional[EntryCategory] = None

    @property
    def total_debit(self) -> Decimal:
        """Sum of booked amounts over debit lines."""
        return sum(
            (line.booked_amount for line in self.lines if line.direction is LineDirection.DEBIT),
            Decimal("0"),
        )


@dataclass(frozen=True)
class StatementLine:
    """Externally sourced bank statement line. Amount is signed as on the statement."""

    id: str
    account_id: str
    posted_at: datetime
    amount: Decimal
    currency: str
    external_id: str
    memo: Optional[str] = None


@dataclass(frozen=True)
class FxRate:
    """FX snapshot: one unit of ``quote`` is worth ``rate`` units of ``base``."""

    base: str
    quote: str
    as_of: datetime
    rate: Decimal


@dataclass(frozen=True)
class Reconciliation:
    """Link between an entry and a statement line."""

    entry_id: str
    statement_line_id: str
    manual: bool
    linked_at: datetime


# Matcher clause tree


@dataclass(frozen=True)
class Clause:
    """Leaf test against the entry description or total debit amount."""

    field: str
    op: str
    value: object


@dataclass(frozen=True)
class AllOf:
    """Matches when every child matches."""

    children: tuple["Matcher", ...]


@dataclass(frozen=True)
class AnyOf:
    """Matches when at least one child matches."""

    children: tuple["Matcher", ...]


Matcher = Union[Clause, AllOf, AnyOf]


@dataclass(frozen=True)
class RuleAction:
    """Category assignment performed by a matching rule."""

    category_id: str
    confidence: Decimal = Decimal("1")


@dataclass(frozen=True)
class Rule:
    """Categorization rule. Higher priority is evaluated first."""

    id: str
    owner_id: str
    priority: int
    matcher: Matcher
    action: RuleAction
    active: bool = True


# Service results


@dataclass(frozen=True)
class LineSpec:
    """Caller-supplied description of one line of a new entry."""

    account_id: str
    native_amount: Union[Decimal, int, float, str]
    native_currency: str
    direction: Union[LineDirection, str]
    base_amount: Optional[Union[Decimal, int, float, str]] = None
    base_currency: Optional[str] = None
    fx_rate: Optional[Union[Decimal, int, float, str]] = None


@dataclass(frozen=True)
class ColumnMapping:
    """Header names of the columns a statement import reads."""

    posted_at: str
    amount: str
    memo: Optional[str] = None
    external_id: Optional[str] = None


@dataclass(frozen=True)
class RowFailure:
    """A statement row that could not be imported."""

    row: int
    reason: str


@dataclass(frozen=True)
class ImportResult:
    """Counts of a statement import batch."""

    inserted: int
    duplicates: int
    failed: list[RowFailure] = field(default_factory=list)


@dataclass(frozen=True)
class AutoReconcileResult:
    """Outcome of an automatic reconciliation pass."""

    linked: int
    skipped: int
    remaining_statement_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CategorizationResult:
    """Outcome of categorizing an entry."""

    applied: bool
    source: str
    confidence: Decimal
    needs_review: bool
    category_id: Optional[str] = None


@dataclass(frozen=True)
class AccountBalance:
    """Running balance of one account.

    ``booked_balance`` is the signed sum of booked amounts in the report's
    base currency, so a positive value is a debit balance.
    """

    account_id: str
    nature: AccountNature
    native_balance: Decimal
    native_currency: str
    booked_balance: Decimal
    booked_currency: str

    @property
    def debit_balance(self) -> Decimal:
        return self.booked_balance if self.booked_balance > 0 else Decimal("0")

    @property
    def credit_balance(self) -> Decimal:
        return -self.booked_balance if self.booked_balance < 0 else Decimal("0")


@dataclass(frozen=True)
class TrialBalance:
    """Debit and credit balances of every account touched by a ledger."""

    ledger_id: str
    as_of: datetime
    base_currency: str
    balances: list[AccountBalance] = field(default_factory=list)

    @property
    def total_debits(self) -> Decimal:
        return sum((b.debit_balance for b in self.balances), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((b.credit_balance for b in self.balances), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits
