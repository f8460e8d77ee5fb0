"""In-memory database implementation.

Plain dicts keyed by id, plus secondary indices by owner, ledger, account
and external id. Every public write validates its input completely before
touching any index.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain import errors
from ledgerkit.domain.entities import (
    Account,
    Entry,
    EntryCategory,
    EntryLine,
    EntryStatus,
    FxRate,
    Reconciliation,
    Rule,
    StatementLine,
)
from ledgerkit.domain.errors import (
    CurrencyMismatchError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from ledgerkit.domain.money import normalize_currency
from ledgerkit.domain.validation import (
    account_violations,
    check,
    entry_category_violations,
    entry_line_violations,
    entry_violations,
    fx_rate_violations,
    rule_violations,
    statement_line_violations,
)


def _index_add(index: dict[str, list[str]], key: str, value: str) -> None:
    index.setdefault(key, []).append(value)


class InMemoryDatabase(Database):
    """Reference implementation of the Database interface backed by dicts."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._accounts_by_owner: dict[str, list[str]] = {}

        self._entries: dict[str, Entry] = {}
        self._entries_by_ledger: dict[str, list[str]] = {}
        self._entries_by_external_id: dict[tuple[str, str], str] = {}

        self._lines: dict[str, EntryLine] = {}
        self._lines_by_entry: dict[str, list[str]] = {}
        self._lines_by_account: dict[str, list[str]] = {}

        self._entry_categories: dict[str, EntryCategory] = {}

        self._statement_lines: dict[str, StatementLine] = {}
        self._statement_lines_by_account: dict[str, list[str]] = {}
        self._statement_lines_by_external_id: dict[tuple[str, str], str] = {}

        self._rules: dict[str, Rule] = {}
        self._rules_by_owner: dict[str, list[str]] = {}

        self._fx_rates: dict[tuple[str, str, datetime], FxRate] = {}

        self._reconciliations_by_entry: dict[str, Reconciliation] = {}
        self._reconciliations_by_statement: dict[str, Reconciliation] = {}

    def connect(self) -> None:
        """Connect to the database."""
        # Nothing to connect to
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    def create_account(self, account: Account) -> Account:
        check("account", account_violations(account))
        if account.id in self._accounts:
            raise DuplicateError(errors.duplicate_id("Account", account.id))
        return self._put_account(account)

    def upsert_account(self, account: Account) -> Account:
        check("account", account_violations(account))
        existing = self._accounts.get(account.id)
        if existing is not None and existing.currency != normalize_currency(account.currency):
            raise ValidationError(
                f"Account {account.id} currency is fixed at {existing.currency}"
            )
        return self._put_account(account)

    def _put_account(self, account: Account) -> Account:
        account = replace(account, currency=normalize_currency(account.currency))
        existing = self._accounts.get(account.id)
        if existing is not None and existing.owner_id != account.owner_id:
            self._accounts_by_owner[existing.owner_id].remove(account.id)
        if existing is None or existing.owner_id != account.owner_id:
            _index_add(self._accounts_by_owner, account.owner_id, account.id)
        self._accounts[account.id] = account
        return account

    def get_account(self, account_id: str) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise NotFoundError(errors.account_not_found(account_id))
        return account

    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        if owner_id is None:
            return list(self._accounts.values())
        return [
            self._accounts[account_id]
            for account_id in self._accounts_by_owner.get(owner_id, [])
        ]

    # Entry operations
    def create_entry(
        self,
        entry: Entry,
        lines: list[EntryLine],
        category: Optional[EntryCategory] = None,
    ) -> None:
        # Validate everything first; nothing below the checks may fail.
        check("entry", entry_violations(entry))
        for line in lines:
            check(f"line {line.id}", entry_line_violations(line))
        if category is not None:
            check("entry category", entry_category_violations(category))

        if entry.id in self._entries:
            raise DuplicateError(errors.duplicate_id("Entry", entry.id))
        if entry.external_id is not None:
            if (entry.ledger_id, entry.external_id) in self._entries_by_external_id:
                raise DuplicateError(
                    errors.duplicate_entry_external_id(entry.external_id, entry.ledger_id)
                )
        seen_line_ids = set()
        for line in lines:
            if line.entry_id != entry.id:
                raise ValidationError(f"Line {line.id} belongs to entry {line.entry_id}, not {entry.id}")
            if line.id in self._lines or line.id in seen_line_ids:
                raise DuplicateError(errors.duplicate_id("Line", line.id))
            seen_line_ids.add(line.id)
            account = self.get_account(line.account_id)
            if account.currency != line.native_currency:
                raise CurrencyMismatchError(
                    f"Line currency {line.native_currency} does not match account "
                    f"{account.id} currency {account.currency}"
                )
        if category is not None and category.entry_id != entry.id:
            raise ValidationError(f"Category link belongs to entry {category.entry_id}, not {entry.id}")

        self._entries[entry.id] = entry
        _index_add(self._entries_by_ledger, entry.ledger_id, entry.id)
        if entry.external_id is not None:
            self._entries_by_external_id[(entry.ledger_id, entry.external_id)] = entry.id
        for line in lines:
            self._lines[line.id] = line
            _index_add(self._lines_by_entry, entry.id, line.id)
            _index_add(self._lines_by_account, line.account_id, line.id)
        if category is not None:
            self._entry_categories[entry.id] = category

    def get_entry(self, entry_id: str) -> Entry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise NotFoundError(errors.entry_not_found(entry_id))
        return entry

    def find_entry_by_external_id(self, ledger_id: str, external_id: str) -> Optional[Entry]:
        entry_id = self._entries_by_external_id.get((ledger_id, external_id))
        if entry_id is None:
            return None
        return self._entries[entry_id]

    def list_entries(self, ledger_id: str) -> list[Entry]:
        return [self._entries[i] for i in self._entries_by_ledger.get(ledger_id, [])]

    def list_lines_by_entry(self, entry_id: str) -> list[EntryLine]:
        return [self._lines[i] for i in self._lines_by_entry.get(entry_id, [])]

    def list_lines_by_account(self, account_id: str) -> list[EntryLine]:
        return [self._lines[i] for i in self._lines_by_account.get(account_id, [])]

    # Category link operations
    def upsert_entry_category(self, link: EntryCategory) -> EntryCategory:
        check("entry category", entry_category_violations(link))
        self.get_entry(link.entry_id)
        self._entry_categories[link.entry_id] = link
        return link

    def get_entry_category(self, entry_id: str) -> Optional[EntryCategory]:
        return self._entry_categories.get(entry_id)

    # Statement line operations
    def upsert_statement_line(self, line: StatementLine) -> tuple[StatementLine, bool]:
        check("statement line", statement_line_violations(line))
        self.get_account(line.account_id)
        key = (line.account_id, line.external_id)
        existing_id = self._statement_lines_by_external_id.get(key)
        if existing_id is not None:
            return self._statement_lines[existing_id], True
        if line.id in self._statement_lines:
            raise DuplicateError(errors.duplicate_id("Statement line", line.id))

        line = replace(line, currency=normalize_currency(line.currency))
        self._statement_lines[line.id] = line
        self._statement_lines_by_external_id[key] = line.id
        _index_add(self._statement_lines_by_account, line.account_id, line.id)
        return line, False

    def get_statement_line(self, statement_line_id: str) -> StatementLine:
        line = self._statement_lines.get(statement_line_id)
        if line is None:
            raise NotFoundError(errors.statement_line_not_found(statement_line_id))
        return line

    def list_statement_lines(self, account_id: str) -> list[StatementLine]:
        lines = [
            self._statement_lines[i]
            for i in self._statement_lines_by_account.get(account_id, [])
        ]
        # sorted() is stable, so equal instants keep insertion order
        return sorted(lines, key=lambda line: line.posted_at)

    # Rule operations
    def create_rule(self, rule: Rule) -> Rule:
        check("rule", rule_violations(rule))
        if rule.id in self._rules:
            raise DuplicateError(errors.duplicate_id("Rule", rule.id))
        self._rules[rule.id] = rule
        _index_add(self._rules_by_owner, rule.owner_id, rule.id)
        return rule

    def get_rule(self, rule_id: str) -> Rule:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise NotFoundError(errors.rule_not_found(rule_id))
        return rule

    def list_rules(self, owner_id: str) -> list[Rule]:
        rules = [self._rules[i] for i in self._rules_by_owner.get(owner_id, [])]
        return sorted(rules, key=lambda rule: -rule.priority)

    # FX operations
    def ensure_fx_rate(self, rate: FxRate) -> FxRate:
        check("fx rate", fx_rate_violations(rate))
        rate = replace(
            rate,
            base=normalize_currency(rate.base),
            quote=normalize_currency(rate.quote),
            as_of=rate.as_of.astimezone(timezone.utc),
        )
        self._fx_rates[(rate.base, rate.quote, rate.as_of)] = rate
        return rate

    def get_fx_rate(self, base: str, quote: str, as_of: datetime) -> Optional[FxRate]:
        key = (normalize_currency(base), normalize_currency(quote), as_of.astimezone(timezone.utc))
        return self._fx_rates.get(key)

    # Reconciliation operations
    def link_reconciliation(
        self, entry_id: str, statement_line_id: str, manual: bool
    ) -> Reconciliation:
        entry = self.get_entry(entry_id)
        self.get_statement_line(statement_line_id)
        if entry_id in self._reconciliations_by_entry or entry.status is EntryStatus.RECONCILED:
            raise ValidationError(errors.entry_already_reconciled(entry_id))
        if statement_line_id in self._reconciliations_by_statement:
            raise ValidationError(errors.statement_already_linked(statement_line_id))

        link = Reconciliation(
            entry_id=entry_id,
            statement_line_id=statement_line_id,
            manual=manual,
            linked_at=datetime.now(timezone.utc),
        )
        self._reconciliations_by_entry[entry_id] = link
        self._reconciliations_by_statement[statement_line_id] = link
        self._entries[entry_id] = replace(entry, status=EntryStatus.RECONCILED)
        return link

    def get_reconciliation_by_entry(self, entry_id: str) -> Optional[Reconciliation]:
        return self._reconciliations_by_entry.get(entry_id)

    def get_reconciliation_by_statement_line(
        self, statement_line_id: str
    ) -> Optional[Reconciliation]:
        return self._reconciliations_by_statement.get(statement_line_id)
