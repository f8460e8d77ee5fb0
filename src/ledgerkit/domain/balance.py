"""Balance validation for built entry lines, and ledger balance reports."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import (
    AccountBalance,
    Entry,
    EntryLine,
    EntryStatus,
    LineDirection,
    TrialBalance,
)
from ledgerkit.domain.errors import (
    BaseCurrencyError,
    DirectionError,
    UnbalancedEntryError,
    ValidationError,
)
from ledgerkit.domain.money import is_valid_currency, normalize_currency
from ledgerkit.logging_setup import get_logger
from ledgerkit.utils.date_parser import InstantLike, isoformat_utc, to_utc_instant

logger = get_logger(__name__)


def signed_total(lines: list[EntryLine]) -> Decimal:
    """Sum of signed booked amounts (debits positive, credits negative)."""
    return sum((line.booked_amount for line in lines), Decimal("0"))


def validate_balanced(entry_id: str, lines: list[EntryLine], base_currency: str) -> None:
    """Check that every line is in the base currency, signed by its direction,
    and that the lines sum to exactly zero.

    Raises:
        BaseCurrencyError: If a line is booked in another currency
        DirectionError: If a line's sign disagrees with its direction
        UnbalancedEntryError: If the signed booked amounts do not sum to zero
    """
    base_currency = normalize_currency(base_currency)
    for line in lines:
        if line.booked_currency != base_currency:
            raise BaseCurrencyError(
                f"Entry {entry_id} has mismatched base currency: "
                f"expected {base_currency}, received {line.booked_currency}"
            )
        if line.direction is LineDirection.DEBIT and line.booked_amount <= 0:
            raise DirectionError(
                f"Entry {entry_id} line {line.id} is debit but booked amount "
                f"{line.booked_amount} is not positive"
            )
        if line.direction is LineDirection.CREDIT and line.booked_amount >= 0:
            raise DirectionError(
                f"Entry {entry_id} line {line.id} is credit but booked amount "
                f"{line.booked_amount} is not negative"
            )

    total = signed_total(lines)
    if total != 0:
        raise UnbalancedEntryError(
            f"Entry {entry_id} does not balance. Sum of booked amounts: {total}"
        )


class BalanceService:
    """Service for account balances and trial balances of a ledger."""

    def __init__(self, db: Database):
        """Initialize balance service.

        Args:
            db: Database instance
        """
        self.db = db

    def account_balances(
        self,
        ledger_id: str,
        base_currency: str,
        as_of: Optional[InstantLike] = None,
        include_drafts: bool = False,
    ) -> list[AccountBalance]:
        """Balance of every account with lines in the ledger, ordered by account ID.

        Only entries booked in ``base_currency`` at or before ``as_of`` (now
        when omitted) count. Drafts are left out unless ``include_drafts``.

        Raises:
            ValidationError: If the base currency is not a currency code
            ValueError: If ``as_of`` cannot be read as an instant
        """
        base, cutoff = self._report_scope(base_currency, as_of)
        totals: dict[str, tuple[Decimal, Decimal]] = {}
        for entry in self._entries_in_scope(ledger_id, base, cutoff, include_drafts):
            for line in self.db.list_lines_by_entry(entry.id):
                native, booked = totals.get(line.account_id, (Decimal("0"), Decimal("0")))
                totals[line.account_id] = (native + line.native_amount, booked + line.booked_amount)

        balances = []
        for account_id in sorted(totals):
            account = self.db.get_account(account_id)
            native, booked = totals[account_id]
            balances.append(
                AccountBalance(
                    account_id=account.id,
                    nature=account.nature,
                    native_balance=native,
                    native_currency=account.currency,
                    booked_balance=booked,
                    booked_currency=base,
                )
            )
        return balances

    def account_balance(
        self,
        ledger_id: str,
        account_id: str,
        base_currency: str,
        as_of: Optional[InstantLike] = None,
        include_drafts: bool = False,
    ) -> AccountBalance:
        """Balance of a single account; zero when the ledger never touched it.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.db.get_account(account_id)
        for balance in self.account_balances(ledger_id, base_currency, as_of, include_drafts):
            if balance.account_id == account.id:
                return balance
        return AccountBalance(
            account_id=account.id,
            nature=account.nature,
            native_balance=Decimal("0"),
            native_currency=account.currency,
            booked_balance=Decimal("0"),
            booked_currency=normalize_currency(base_currency),
        )

    def trial_balance(
        self,
        ledger_id: str,
        base_currency: str,
        as_of: Optional[InstantLike] = None,
        include_drafts: bool = False,
    ) -> TrialBalance:
        """Debit and credit balances per account, with totals."""
        base, cutoff = self._report_scope(base_currency, as_of)
        report = TrialBalance(
            ledger_id=ledger_id,
            as_of=cutoff,
            base_currency=base,
            balances=self.account_balances(ledger_id, base, cutoff, include_drafts),
        )
        if report.is_balanced:
            logger.info(
                "Trial balance for ledger %s at %s: %s debits, %s credits",
                ledger_id, isoformat_utc(cutoff), report.total_debits, report.total_credits,
            )
        else:
            logger.warning(
                "Trial balance for ledger %s at %s is off: %s debits, %s credits",
                ledger_id, isoformat_utc(cutoff), report.total_debits, report.total_credits,
            )
        return report

    @staticmethod
    def _report_scope(base_currency: str, as_of: Optional[InstantLike]) -> tuple[str, datetime]:
        if not is_valid_currency(base_currency):
            raise ValidationError(f"Invalid base currency: {base_currency!r}")
        cutoff = datetime.now(timezone.utc) if as_of is None else to_utc_instant(as_of)
        return normalize_currency(base_currency), cutoff

    def _entries_in_scope(
        self, ledger_id: str, base: str, cutoff: datetime, include_drafts: bool
    ) -> list[Entry]:
        entries = []
        for entry in self.db.list_entries(ledger_id):
            if entry.booked_at > cutoff:
                continue
            if entry.status is EntryStatus.DRAFT and not include_drafts:
                continue
            if entry.base_currency != base:
                logger.debug("Skipping entry %s booked in %s", entry.id, entry.base_currency)
                continue
            entries.append(entry)
        return entries
