"""Reconciliation domain service."""

from datetime import timedelta
from decimal import Decimal
from typing import Optional

from ledgerkit.config import Settings
from ledgerkit.database.base import Database
from ledgerkit.domain import errors
from ledgerkit.domain.entities import (
    AutoReconcileResult,
    EntryLine,
    EntryStatus,
    Reconciliation,
    StatementLine,
)
from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.money import Number, to_decimal
from ledgerkit.logging_setup import get_logger

logger = get_logger(__name__)


def amounts_match(line: EntryLine, statement: StatementLine, epsilon: Decimal) -> bool:
    """Either the native or the booked amount is within epsilon of the statement amount."""
    native_diff = abs(line.native_amount - statement.amount)
    booked_diff = abs(line.booked_amount - statement.amount)
    return native_diff <= epsilon or booked_diff <= epsilon


class ReconciliationService:
    """Links ledger entries to statement lines.

    Linking moves an entry to ``reconciled``, which is terminal: a reconciled
    entry can never be linked again.
    """

    def __init__(
        self,
        db: Database,
        window_days: Optional[int] = None,
        epsilon: Optional[Number] = None,
    ):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            window_days: Default matching window; defaults to settings
            epsilon: Amount tolerance; defaults to settings
        """
        settings = Settings.from_env() if window_days is None or epsilon is None else None
        self.db = db
        self.window_days = window_days if window_days is not None else settings.reconcile_window_days
        self.epsilon = to_decimal(epsilon) if epsilon is not None else settings.amount_epsilon

    def auto(self, account_id: str, window_days: Optional[int] = None) -> AutoReconcileResult:
        """Link every statement line of an account that has exactly one candidate.

        A candidate is an entry with a line on the account whose amount
        matches, booked within ``window_days`` of the statement line and not
        yet reconciled. Lines with several candidates are skipped.

        Raises:
            NotFoundError: If the account does not exist
        """
        self.db.get_account(account_id)
        if window_days is None:
            window_days = self.window_days
        if window_days < 0:
            raise ValidationError("window_days must not be negative")
        window = timedelta(days=window_days)

        statements = self.db.list_statement_lines(account_id)
        entry_lines = self.db.list_lines_by_account(account_id)

        linked = 0
        skipped = 0
        for statement in statements:
            if self.db.is_statement_line_linked(statement.id):
                continue

            candidates = []
            for line in entry_lines:
                if line.entry_id in candidates:
                    continue
                if not amounts_match(line, statement, self.epsilon):
                    continue
                if self.db.is_entry_linked(line.entry_id):
                    continue
                entry = self.db.get_entry(line.entry_id)
                if entry.status is EntryStatus.RECONCILED:
                    continue
                if abs(entry.booked_at - statement.posted_at) > window:
                    continue
                candidates.append(line.entry_id)

            if len(candidates) == 1:
                self.db.link_reconciliation(candidates[0], statement.id, manual=False)
                linked += 1
                logger.debug("Linked statement line %s to entry %s", statement.id, candidates[0])
            elif len(candidates) > 1:
                skipped += 1
                logger.debug(
                    "Skipped statement line %s with %d candidates", statement.id, len(candidates)
                )

        remaining = [
            statement.id
            for statement in statements
            if not self.db.is_statement_line_linked(statement.id)
        ]
        logger.info(
            "Reconciled %s: %d linked, %d skipped, %d remaining",
            account_id, linked, skipped, len(remaining),
        )
        return AutoReconcileResult(linked=linked, skipped=skipped, remaining_statement_ids=remaining)

    def link(self, entry_id: str, statement_line_id: str) -> Reconciliation:
        """Manually link an entry to a statement line.

        Raises:
            NotFoundError: If either side does not exist
            ValidationError: If either side is already linked, or the entry
                has no line on the statement's account with a matching amount
        """
        statement = self.db.get_statement_line(statement_line_id)
        entry = self.db.get_entry(entry_id)

        if self.db.is_entry_linked(entry_id) or entry.status is EntryStatus.RECONCILED:
            raise ValidationError(errors.entry_already_reconciled(entry_id))
        if self.db.is_statement_line_linked(statement_line_id):
            raise ValidationError(errors.statement_already_linked(statement_line_id))

        has_match = any(
            line.account_id == statement.account_id and amounts_match(line, statement, self.epsilon)
            for line in self.db.list_lines_by_entry(entry_id)
        )
        if not has_match:
            raise ValidationError("Entry does not have a matching account line")

        link = self.db.link_reconciliation(entry_id, statement_line_id, manual=True)
        logger.info("Manually linked entry %s to statement line %s", entry_id, statement_line_id)
        return link
