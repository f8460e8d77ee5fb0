"""Statement import domain service."""

import csv
import hashlib
import io
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import ColumnMapping, ImportResult, RowFailure, StatementLine
from ledgerkit.domain.errors import ValidationError
from ledgerkit.logging_setup import get_logger
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import isoformat_utc, parse_instant

logger = get_logger(__name__)

SNIFF_DELIMITERS = ",;\t|"
SNIFF_SAMPLE_SIZE = 4096


def derive_external_id(account_id: str, posted_iso: str, amount: Decimal, memo: Optional[str]) -> str:
    """Deterministic external ID for statement rows that do not carry one."""
    normalized = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    key = "|".join([account_id, posted_iso, f"{normalized:f}", memo or ""])
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


class StatementImportService:
    """Service for importing bank statement exports."""

    def __init__(self, db: Database):
        """Initialize statement import service.

        Args:
            db: Database instance
        """
        self.db = db

    def from_delimited(self, account_id: str, raw_text: str, mapping: ColumnMapping) -> ImportResult:
        """Import statement lines from delimited text.

        Args:
            account_id: Account the statement belongs to
            raw_text: Delimited text with a header row
            mapping: Header names for posted date, amount, memo and external ID

        Returns:
            ImportResult with inserted and duplicate counts and per-row failures

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the payload is empty, has no data rows or
                lacks a mapped column
        """
        account = self.db.get_account(account_id)

        text = (raw_text or "").lstrip("\ufeff").strip()
        if not text:
            raise ValidationError("Statement payload is empty")

        # Try to detect delimiter
        try:
            dialect = csv.Sniffer().sniff(text[:SNIFF_SAMPLE_SIZE], delimiters=SNIFF_DELIMITERS)
            delimiter = dialect.delimiter
        except csv.Error:
            delimiter = ","

        reader = csv.reader(io.StringIO(text), delimiter=delimiter)
        records = [row for row in reader if any(cell.strip() for cell in row)]
        if len(records) < 2:
            raise ValidationError("Statement must include a header and at least one row")

        headers = [column.strip().lower() for column in records[0]]

        def index_of(column: Optional[str]) -> int:
            if column is None:
                return -1
            try:
                return headers.index(column.strip().lower())
            except ValueError:
                return -1

        posted_idx = index_of(mapping.posted_at)
        amount_idx = index_of(mapping.amount)
        missing = [
            name for name, idx in ((mapping.posted_at, posted_idx), (mapping.amount, amount_idx))
            if idx == -1
        ]
        if missing:
            raise ValidationError(
                f"Mapping columns missing in statement header: {', '.join(missing)}"
            )
        memo_idx = index_of(mapping.memo)
        external_idx = index_of(mapping.external_id)

        inserted = 0
        duplicates = 0
        failed = []

        # Rows are numbered from 2 (header is row 1)
        for row_num, row in enumerate(records[1:], start=2):
            try:
                line = self._build_line(
                    account.id, account.currency, row, posted_idx, amount_idx, memo_idx, external_idx
                )
                _, is_duplicate = self.db.upsert_statement_line(line)
            except ValueError as e:
                failed.append(RowFailure(row=row_num, reason=str(e)))
                continue

            if is_duplicate:
                duplicates += 1
            else:
                inserted += 1

        logger.info(
            "Imported statement for %s: %d inserted, %d duplicates, %d failed",
            account.id, inserted, duplicates, len(failed),
        )
        return ImportResult(inserted=inserted, duplicates=duplicates, failed=failed)

    @staticmethod
    def _build_line(
        account_id: str,
        currency: str,
        row: list[str],
        posted_idx: int,
        amount_idx: int,
        memo_idx: int,
        external_idx: int,
    ) -> StatementLine:
        def cell(idx: int) -> Optional[str]:
            if idx < 0 or idx >= len(row):
                return None
            value = row[idx].strip()
            return value or None

        posted_raw = cell(posted_idx)
        amount_raw = cell(amount_idx)
        if posted_raw is None or amount_raw is None:
            raise ValidationError("Required column missing")

        try:
            posted_at = parse_instant(posted_raw)
        except ValueError:
            raise ValidationError(f"Invalid date: {posted_raw}")
        amount = parse_amount(amount_raw)

        memo = cell(memo_idx)
        external_id = cell(external_idx) or derive_external_id(
            account_id, isoformat_utc(posted_at), amount, memo
        )

        return StatementLine(
            id=str(uuid.uuid4()),
            account_id=account_id,
            posted_at=posted_at,
            amount=amount,
            currency=currency,
            external_id=external_id,
            memo=memo,
        )
