"""Tests for statement import."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from ledgerkit.domain.entities import ColumnMapping
from ledgerkit.domain.errors import NotFoundError, ValidationError
from ledgerkit.domain.statement_import import derive_external_id

MAPPING = ColumnMapping(posted_at="Date", amount="Amount", memo="Description", external_id="Id")


def test_import_inserts_rows(import_service, sample_accounts, db):
    text = (
        "Id,Date,Amount,Description\n"
        "t1,2024-01-10,-250.00,OXXO store\n"
        't2,2024-01-11,"1,500.00","Payroll, January"\n'
    )

    result = import_service.from_delimited("checking", text, MAPPING)

    assert (result.inserted, result.duplicates, result.failed) == (2, 0, [])
    lines = db.list_statement_lines("checking")
    assert [line.external_id for line in lines] == ["t1", "t2"]
    assert lines[0].amount == Decimal("-250.00")
    assert lines[0].currency == "MXN"
    assert lines[0].posted_at == datetime(2024, 1, 10, tzinfo=timezone.utc)
    assert lines[1].amount == Decimal("1500.00")
    assert lines[1].memo == "Payroll, January"


def test_reimport_counts_duplicates(import_service, sample_accounts, db):
    text = "Id,Date,Amount\nt1,2024-01-10,-250.00\nt2,2024-01-11,100\n"

    import_service.from_delimited("checking", text, MAPPING)
    result = import_service.from_delimited("checking", text, MAPPING)

    assert (result.inserted, result.duplicates) == (0, 2)
    assert len(db.list_statement_lines("checking")) == 2


def test_row_failures_do_not_abort_batch(import_service, sample_accounts):
    text = (
        "Id,Date,Amount\n"
        "t1,2024-01-10,-250.00\n"
        "t2,not-a-date,10\n"
        "t3,2024-01-12,abc\n"
        "t4,,10\n"
        "t5,2024-01-13,(45.10)\n"
    )

    result = import_service.from_delimited("checking", text, MAPPING)

    assert result.inserted == 2
    assert [failure.row for failure in result.failed] == [3, 4, 5]
    assert result.failed[0].reason == "Invalid date: not-a-date"
    assert result.failed[1].reason == "Invalid amount: abc"
    assert result.failed[2].reason == "Required column missing"


def test_missing_external_id_is_derived(import_service, sample_accounts, db):
    mapping = ColumnMapping(posted_at="date", amount="amount", memo="memo")
    text = "date,amount,memo\n2024-01-10,-250,Coffee\n2024-01-10,-250.00,Coffee\n"

    result = import_service.from_delimited("checking", text, mapping)

    # Both rows normalize to the same amount, so the second is a duplicate
    assert (result.inserted, result.duplicates) == (1, 1)
    expected = derive_external_id(
        "checking", "2024-01-10T00:00:00.000Z", Decimal("-250"), "Coffee"
    )
    assert db.list_statement_lines("checking")[0].external_id == expected


def test_derived_external_id_is_deterministic():
    first = derive_external_id("acc", "2024-01-10T00:00:00.000Z", Decimal("10.5"), None)
    second = derive_external_id("acc", "2024-01-10T00:00:00.000Z", Decimal("10.50"), "")
    other = derive_external_id("acc", "2024-01-10T00:00:00.000Z", Decimal("10.51"), None)

    assert first == second
    assert first != other
    assert len(first) == 64


def test_headers_match_case_insensitively_and_semicolons_sniffed(import_service, sample_accounts):
    mapping = ColumnMapping(posted_at="POSTED", amount="value")
    text = "Posted;Value\n2024-01-10;-250.00\n2024-01-11;99.90\n"

    result = import_service.from_delimited("checking", text, mapping)

    assert result.inserted == 2


def test_blank_lines_are_skipped(import_service, sample_accounts):
    text = "Id,Date,Amount\n\nt1,2024-01-10,-250.00\n\n"

    result = import_service.from_delimited("checking", text, MAPPING)

    assert (result.inserted, result.failed) == (1, [])


@pytest.mark.parametrize("text", ["", "   \n  ", "Id,Date,Amount\n"])
def test_payload_without_rows_rejected(import_service, sample_accounts, text):
    with pytest.raises(ValidationError):
        import_service.from_delimited("checking", text, MAPPING)


def test_mapping_column_missing_from_header(import_service, sample_accounts):
    with pytest.raises(ValidationError, match="Amount"):
        import_service.from_delimited("checking", "Id,Date,Total\nt1,2024-01-10,5\n", MAPPING)


def test_unknown_account(import_service):
    with pytest.raises(NotFoundError):
        import_service.from_delimited("missing", "Id,Date,Amount\nt1,2024-01-10,5\n", MAPPING)
