"""Entry builder domain service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence, Union

from ledgerkit.database.base import Database
from ledgerkit.domain import errors
from ledgerkit.domain.balance import validate_balanced
from ledgerkit.domain.entities import (
    Entry,
    EntryAggregate,
    EntryCategory,
    EntryLine,
    EntryStatus,
    LineDirection,
    LineSpec,
)
from ledgerkit.domain.errors import (
    BaseCurrencyError,
    CurrencyMismatchError,
    DirectionError,
    ValidationError,
)
from ledgerkit.domain.fx import FxService
from ledgerkit.domain.money import is_valid_currency, normalize_currency, quantize, to_decimal
from ledgerkit.logging_setup import get_logger
from ledgerkit.utils.date_parser import InstantLike, to_utc_instant

logger = get_logger(__name__)

LineInput = Union[LineSpec, dict]


def _new_id() -> str:
    return str(uuid.uuid4())


class EntryService:
    """Builds balanced, currency-converted entries and stores them atomically."""

    def __init__(self, db: Database, fx: Optional[FxService] = None):
        """Initialize entry service.

        Args:
            db: Database instance
            fx: FX service used for cross-currency lines; defaults to one over ``db``
        """
        self.db = db
        self.fx = fx if fx is not None else FxService(db)

    def create_entry(
        self,
        ledger_id: str,
        booked_at: InstantLike,
        base_currency: str,
        lines: Sequence[LineInput],
        description: Optional[str] = None,
        external_id: Optional[str] = None,
        category_id: Optional[str] = None,
        status: Union[EntryStatus, str] = EntryStatus.POSTED,
    ) -> EntryAggregate:
        """Create an entry from line specs.

        Replaying a call with the same (ledger_id, external_id) returns the
        entry stored the first time, without validating or writing anything.

        Args:
            ledger_id: Ledger the entry belongs to
            booked_at: Booking instant; FX lookups use exactly this instant
            base_currency: Currency every line is booked in
            lines: At least two LineSpec objects (or dicts with the same keys)
            description: Optional description
            external_id: Optional idempotency key, unique per ledger
            category_id: Optional category to link with full confidence
            status: draft or posted

        Returns:
            The stored entry aggregate

        Raises:
            ValidationError: Malformed input, zero amounts or bad rates
            NotFoundError: A line references an unknown account
            CurrencyMismatchError: A line currency differs from its account
            FxMissingError: No FX snapshot for a cross-currency line
            DirectionError: A line sign disagrees with its direction
            BaseCurrencyError: A line base currency differs from the entry
            UnbalancedEntryError: Lines do not sum to zero
        """
        if len(lines) < 2:
            raise ValidationError("Entries require at least two lines")

        if external_id:
            existing = self.db.find_entry_by_external_id(ledger_id, external_id)
            if existing is not None:
                logger.debug("Replay of %s/%s returns entry %s", ledger_id, external_id, existing.id)
                return self.get_entry(existing.id)

        entry = self._build_entry(
            ledger_id, booked_at, base_currency, description, external_id, status
        )
        built = [self._build_line(entry, spec) for spec in lines]
        validate_balanced(entry.id, built, entry.base_currency)

        category = None
        if category_id is not None:
            category = EntryCategory(entry_id=entry.id, category_id=category_id)

        self.db.create_entry(entry, built, category)
        logger.info(
            "Created entry %s in ledger %s with %d lines (%s)",
            entry.id, ledger_id, len(built), entry.base_currency,
        )
        return EntryAggregate(entry=entry, lines=built, category=category)

    def get_entry(self, entry_id: str) -> EntryAggregate:
        """Get an entry with its lines and category link.

        Raises:
            NotFoundError: If the entry does not exist
        """
        return EntryAggregate(
            entry=self.db.get_entry(entry_id),
            lines=self.db.list_lines_by_entry(entry_id),
            category=self.db.get_entry_category(entry_id),
        )

    def list_entries(self, ledger_id: str) -> list[EntryAggregate]:
        """List a ledger's entries with their lines."""
        return [self.get_entry(entry.id) for entry in self.db.list_entries(ledger_id)]

    def _build_entry(
        self,
        ledger_id: str,
        booked_at: InstantLike,
        base_currency: str,
        description: Optional[str],
        external_id: Optional[str],
        status: Union[EntryStatus, str],
    ) -> Entry:
        violations = []
        if not isinstance(ledger_id, str) or not ledger_id.strip():
            violations.append("ledger_id must be a non-empty string")
        if not is_valid_currency(base_currency):
            violations.append("base_currency must be a 3 to 6 letter currency code")
        instant: Optional[datetime] = None
        try:
            instant = to_utc_instant(booked_at)
        except ValueError as e:
            violations.append(f"booked_at: {e}")
        try:
            status = EntryStatus(status)
            if status is EntryStatus.RECONCILED:
                violations.append("status 'reconciled' is set by reconciliation only")
        except ValueError:
            violations.append("status must be 'draft' or 'posted'")
        if violations:
            raise ValidationError(errors.invalid("entry", violations), violations)

        return Entry(
            id=_new_id(),
            ledger_id=ledger_id,
            booked_at=instant,
            status=status,
            base_currency=normalize_currency(base_currency),
            description=description,
            external_id=external_id or None,
        )

    def _build_line(self, entry: Entry, spec: LineInput) -> EntryLine:
        if isinstance(spec, dict):
            try:
                spec = LineSpec(**spec)
            except TypeError as e:
                raise ValidationError(f"Invalid line spec: {e}")

        # 1. Normalize currency codes; reject zero native amounts
        violations = []
        if not isinstance(spec.account_id, str) or not spec.account_id:
            violations.append("account_id must be a non-empty string")
        if not is_valid_currency(spec.native_currency):
            violations.append("native_currency must be a 3 to 6 letter currency code")
        try:
            direction = LineDirection(spec.direction)
        except ValueError:
            violations.append("direction must be 'debit' or 'credit'")
        try:
            native = to_decimal(spec.native_amount)
            if native == 0:
                violations.append("native_amount must be non-zero")
        except ValueError as e:
            violations.append(f"native_amount: {e}")
        if violations:
            raise ValidationError(errors.invalid("line", violations), violations)

        native_currency = normalize_currency(spec.native_currency)
        base_currency = entry.base_currency

        account = self.db.get_account(spec.account_id)
        if account.currency != native_currency:
            raise CurrencyMismatchError(
                f"Line currency {native_currency} does not match account "
                f"{account.id} currency {account.currency}"
            )
        if not account.active:
            raise ValidationError(f"Account {account.id} is inactive")

        magnitude = abs(native)
        explicit_booked = None
        if spec.base_amount is not None:
            explicit_booked = self._decimal(spec.base_amount, "base_amount")

        # 2. Resolve the FX rate
        if native_currency == base_currency:
            rate = Decimal("1")
        elif spec.fx_rate is not None:
            rate = self._decimal(spec.fx_rate, "fx_rate")
            if rate <= 0:
                raise ValidationError("fx_rate must be positive")
        elif explicit_booked is not None:
            # Rate implied by the explicit amount; zero fails the direction check below
            rate = abs(explicit_booked) / magnitude
        else:
            rate = self.fx.get_rate(base_currency, native_currency, entry.booked_at)

        # 3. Signed booked amount
        if explicit_booked is not None:
            booked = explicit_booked
        else:
            booked = quantize(magnitude * rate, base_currency) * direction.sign

        # 4. Sign must agree with direction
        if direction is LineDirection.DEBIT and booked <= 0:
            raise DirectionError(f"Debit line on {account.id} requires a positive booked amount, got {booked}")
        if direction is LineDirection.CREDIT and booked >= 0:
            raise DirectionError(f"Credit line on {account.id} requires a negative booked amount, got {booked}")

        # 5. An explicit line base currency must be the entry's
        if spec.base_currency is not None and normalize_currency(spec.base_currency) != base_currency:
            raise BaseCurrencyError(
                f"Line base currency {spec.base_currency} does not match entry base {base_currency}"
            )

        return EntryLine(
            id=_new_id(),
            entry_id=entry.id,
            account_id=account.id,
            native_amount=magnitude * direction.sign,
            native_currency=native_currency,
            booked_amount=booked,
            booked_currency=base_currency,
            fx_rate=rate,
            direction=direction,
        )

    @staticmethod
    def _decimal(value, name: str) -> Decimal:
        try:
            return to_decimal(value)
        except ValueError as e:
            raise ValidationError(f"{name}: {e}")
