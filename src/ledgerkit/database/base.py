"""Abstract database interface.

Any backing must keep the same guarantees: entity shape is validated before
a write, ids never collide, (ledger, external_id) and (account, external_id)
are unique, an entry is stored together with all its lines or not at all,
and a reconciliation link is recorded together with the entry status change.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ledgerkit.domain.entities import (
    Account,
    Entry,
    EntryCategory,
    EntryLine,
    FxRate,
    Reconciliation,
    Rule,
    StatementLine,
)


class Database(ABC):
    """Abstract database interface for ledgerkit."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, account: Account) -> Account:
        """Store a new account. Raises DuplicateError on id collision."""
        pass

    @abstractmethod
    def upsert_account(self, account: Account) -> Account:
        """Insert or replace an account. The currency of an existing account cannot change."""
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Account:
        """Get account by ID. Raises NotFoundError."""
        pass

    @abstractmethod
    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        """List accounts, optionally filtered by owner."""
        pass

    # Entry operations
    @abstractmethod
    def create_entry(
        self,
        entry: Entry,
        lines: list[EntryLine],
        category: Optional[EntryCategory] = None,
    ) -> None:
        """Store an entry, its lines and an optional category link atomically.

        Raises:
            ValidationError: If any entity is malformed
            NotFoundError: If a line references an unknown account
            CurrencyMismatchError: If a line currency differs from its account
            DuplicateError: On id collision or repeated (ledger, external_id)
        """
        pass

    @abstractmethod
    def get_entry(self, entry_id: str) -> Entry:
        """Get entry by ID. Raises NotFoundError."""
        pass

    @abstractmethod
    def find_entry_by_external_id(self, ledger_id: str, external_id: str) -> Optional[Entry]:
        """Get the entry stored under (ledger, external_id), if any."""
        pass

    @abstractmethod
    def list_entries(self, ledger_id: str) -> list[Entry]:
        """List a ledger's entries in insertion order."""
        pass

    @abstractmethod
    def list_lines_by_entry(self, entry_id: str) -> list[EntryLine]:
        """List an entry's lines in insertion order."""
        pass

    @abstractmethod
    def list_lines_by_account(self, account_id: str) -> list[EntryLine]:
        """List all entry lines posted to an account."""
        pass

    # Category link operations
    @abstractmethod
    def upsert_entry_category(self, link: EntryCategory) -> EntryCategory:
        """Insert or replace an entry's category link."""
        pass

    @abstractmethod
    def get_entry_category(self, entry_id: str) -> Optional[EntryCategory]:
        """Get an entry's category link, if any."""
        pass

    # Statement line operations
    @abstractmethod
    def upsert_statement_line(self, line: StatementLine) -> tuple[StatementLine, bool]:
        """Insert a statement line unless (account, external_id) exists.

        Returns:
            Tuple of (stored line, is_duplicate). For a duplicate the stored
            line is the one already present.
        """
        pass

    @abstractmethod
    def get_statement_line(self, statement_line_id: str) -> StatementLine:
        """Get statement line by ID. Raises NotFoundError."""
        pass

    @abstractmethod
    def list_statement_lines(self, account_id: str) -> list[StatementLine]:
        """List an account's statement lines by posted instant, then insertion."""
        pass

    # Rule operations
    @abstractmethod
    def create_rule(self, rule: Rule) -> Rule:
        """Store a new rule. Raises DuplicateError on id collision."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: str) -> Rule:
        """Get rule by ID. Raises NotFoundError."""
        pass

    @abstractmethod
    def list_rules(self, owner_id: str) -> list[Rule]:
        """List an owner's rules, highest priority first, ties in insertion order."""
        pass

    # FX operations
    @abstractmethod
    def ensure_fx_rate(self, rate: FxRate) -> FxRate:
        """Insert or replace the snapshot keyed by (base, quote, as_of)."""
        pass

    @abstractmethod
    def get_fx_rate(self, base: str, quote: str, as_of: datetime) -> Optional[FxRate]:
        """Exact-instant lookup of a snapshot."""
        pass

    # Reconciliation operations
    @abstractmethod
    def link_reconciliation(
        self, entry_id: str, statement_line_id: str, manual: bool
    ) -> Reconciliation:
        """Link an entry to a statement line and mark the entry reconciled.

        Raises:
            NotFoundError: If either side is unknown
            ValidationError: If either side is already linked
        """
        pass

    @abstractmethod
    def get_reconciliation_by_entry(self, entry_id: str) -> Optional[Reconciliation]:
        """Get the link of an entry, if any."""
        pass

    @abstractmethod
    def get_reconciliation_by_statement_line(
        self, statement_line_id: str
    ) -> Optional[Reconciliation]:
        """Get the link of a statement line, if any."""
        pass

    def is_entry_linked(self, entry_id: str) -> bool:
        """Check if an entry has a reconciliation link."""
        return self.get_reconciliation_by_entry(entry_id) is not None

    def is_statement_line_linked(self, statement_line_id: str) -> bool:
        """Check if a statement line has a reconciliation link."""
        return self.get_reconciliation_by_statement_line(statement_line_id) is not None
