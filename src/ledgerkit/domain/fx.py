"""FX rate table service."""

from decimal import Decimal

from ledgerkit.database.base import Database
from ledgerkit.domain import errors
from ledgerkit.domain.entities import FxRate
from ledgerkit.domain.errors import FxMissingError, ValidationError
from ledgerkit.domain.money import Number, is_valid_currency, normalize_currency, to_decimal
from ledgerkit.logging_setup import get_logger
from ledgerkit.utils.date_parser import InstantLike, isoformat_utc, to_utc_instant

logger = get_logger(__name__)


class FxService:
    """Stores and looks up FX snapshots keyed by (base, quote, exact instant).

    A snapshot (base=B, quote=Q, rate=r) reads "one Q is worth r B". There is
    no nearest-date fallback: a lookup either hits the exact instant or fails.
    """

    def __init__(self, db: Database):
        self.db = db

    def ensure(self, base: str, quote: str, as_of: InstantLike, rate: Number) -> FxRate:
        """Validate and store a snapshot, replacing any at the same key.

        Raises:
            ValidationError: If codes, instant or rate are malformed
        """
        violations = []
        if not is_valid_currency(base):
            violations.append("base must be a 3 to 6 letter currency code")
        if not is_valid_currency(quote):
            violations.append("quote must be a 3 to 6 letter currency code")
        try:
            instant = to_utc_instant(as_of)
        except ValueError as e:
            violations.append(f"as_of: {e}")
        try:
            value = to_decimal(rate)
            if value <= 0:
                violations.append("rate must be positive")
        except ValueError as e:
            violations.append(f"rate: {e}")
        if violations:
            raise ValidationError(errors.invalid("fx rate", violations), violations)

        snapshot = self.db.ensure_fx_rate(
            FxRate(
                base=normalize_currency(base),
                quote=normalize_currency(quote),
                as_of=instant,
                rate=value,
            )
        )
        logger.debug(
            "Stored FX %s/%s @ %s = %s",
            snapshot.base, snapshot.quote, isoformat_utc(snapshot.as_of), snapshot.rate,
        )
        return snapshot

    def get_rate(self, base: str, quote: str, as_of: InstantLike) -> Decimal:
        """Return the rate for the pair at exactly ``as_of``.

        Returns 1 when base and quote are the same currency.

        Raises:
            FxMissingError: If no snapshot exists for that exact key
        """
        base = normalize_currency(base)
        quote = normalize_currency(quote)
        if base == quote:
            return Decimal("1")

        instant = to_utc_instant(as_of)
        snapshot = self.db.get_fx_rate(base, quote, instant)
        if snapshot is None:
            raise FxMissingError(errors.fx_missing(base, quote, isoformat_utc(instant)))
        return snapshot.rate

    def convert(self, amount: Number, base: str, quote: str, as_of: InstantLike) -> Decimal:
        """Express an amount in ``quote`` as ``base``, unrounded."""
        return to_decimal(amount) * self.get_rate(base, quote, as_of)
