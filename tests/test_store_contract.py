"""Contract tests run against every database backing."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from conftest import BOOKED_AT
from ledgerkit.domain.entities import (
    Account,
    AccountNature,
    Clause,
    Entry,
    EntryCategory,
    EntryLine,
    EntryStatus,
    FxRate,
    LineDirection,
    Rule,
    RuleAction,
    StatementLine,
)
from ledgerkit.domain.errors import (
    CurrencyMismatchError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)


def make_account(account_id: str, owner_id: str = "u1", currency: str = "MXN") -> Account:
    return Account(
        id=account_id,
        owner_id=owner_id,
        name=account_id.title(),
        nature=AccountNature.ASSET,
        currency=currency,
    )


def make_entry(entry_id: str, external_id: str | None = None) -> Entry:
    return Entry(
        id=entry_id,
        ledger_id="u1",
        booked_at=BOOKED_AT,
        status=EntryStatus.POSTED,
        base_currency="MXN",
        external_id=external_id,
    )


def make_lines(entry_id: str, debit_account: str = "a1", credit_account: str = "a2") -> list[EntryLine]:
    common = dict(
        entry_id=entry_id,
        native_currency="MXN",
        booked_currency="MXN",
        fx_rate=Decimal("1"),
    )
    return [
        EntryLine(
            id=f"{entry_id}-d",
            account_id=debit_account,
            native_amount=Decimal("10"),
            booked_amount=Decimal("10"),
            direction=LineDirection.DEBIT,
            **common,
        ),
        EntryLine(
            id=f"{entry_id}-c",
            account_id=credit_account,
            native_amount=Decimal("-10"),
            booked_amount=Decimal("-10"),
            direction=LineDirection.CREDIT,
            **common,
        ),
    ]


def make_statement(line_id: str, external_id: str, posted_at: datetime = BOOKED_AT) -> StatementLine:
    return StatementLine(
        id=line_id,
        account_id="a1",
        posted_at=posted_at,
        amount=Decimal("10"),
        currency="MXN",
        external_id=external_id,
    )


@pytest.fixture
def accounts(db):
    db.create_account(make_account("a1"))
    db.create_account(make_account("a2"))
    db.create_account(make_account("usd", currency="USD"))


class TestAccounts:
    def test_create_and_get(self, db):
        created = db.create_account(make_account("a1", currency="mxn"))

        assert created.currency == "MXN"
        assert db.get_account("a1") == created

    def test_duplicate_id(self, db):
        db.create_account(make_account("a1"))

        with pytest.raises(DuplicateError, match="already exists"):
            db.create_account(make_account("a1"))

    def test_invalid_account_lists_every_violation(self, db):
        bad = Account(id="", owner_id="", name="x", nature=AccountNature.ASSET, currency="1")

        with pytest.raises(ValidationError) as exc_info:
            db.create_account(bad)

        assert len(exc_info.value.violations) == 3

    def test_get_missing(self, db):
        with pytest.raises(NotFoundError):
            db.get_account("missing")

    def test_list_by_owner_in_insertion_order(self, db):
        db.create_account(make_account("b", owner_id="u1"))
        db.create_account(make_account("a", owner_id="u1"))
        db.create_account(make_account("c", owner_id="u2"))

        assert [a.id for a in db.list_accounts(owner_id="u1")] == ["b", "a"]
        assert [a.id for a in db.list_accounts()] == ["b", "a", "c"]

    def test_upsert_updates_but_keeps_currency(self, db):
        account = db.create_account(make_account("a1"))

        updated = db.upsert_account(replace(account, owner_id="u2", active=False))
        assert updated.active is False
        assert [a.id for a in db.list_accounts(owner_id="u2")] == ["a1"]

        with pytest.raises(ValidationError, match="currency"):
            db.upsert_account(replace(account, currency="USD"))


class TestEntries:
    def test_create_and_read_back(self, db, accounts):
        entry = make_entry("e1", external_id="x1")
        lines = make_lines("e1")

        db.create_entry(entry, lines, EntryCategory(entry_id="e1", category_id="food"))

        assert db.get_entry("e1") == entry
        assert db.find_entry_by_external_id("u1", "x1") == entry
        assert db.find_entry_by_external_id("u2", "x1") is None
        assert db.list_lines_by_entry("e1") == lines
        assert db.list_lines_by_account("a2") == [lines[1]]
        assert db.get_entry_category("e1").category_id == "food"
        assert [e.id for e in db.list_entries("u1")] == ["e1"]

    def test_duplicate_external_id(self, db, accounts):
        db.create_entry(make_entry("e1", external_id="x1"), make_lines("e1"))

        with pytest.raises(DuplicateError):
            db.create_entry(make_entry("e2", external_id="x1"), make_lines("e2"))

        assert [e.id for e in db.list_entries("u1")] == ["e1"]

    def test_failed_create_writes_nothing(self, db, accounts):
        """An unknown account on the second line leaves no trace of the first."""
        with pytest.raises(NotFoundError):
            db.create_entry(make_entry("e1"), make_lines("e1", credit_account="missing"))

        assert db.list_entries("u1") == []
        assert db.list_lines_by_account("a1") == []

    def test_currency_mismatch(self, db, accounts):
        with pytest.raises(CurrencyMismatchError):
            db.create_entry(make_entry("e1"), make_lines("e1", credit_account="usd"))

    def test_line_sign_must_match_direction(self, db, accounts):
        lines = make_lines("e1")
        lines[0] = replace(lines[0], booked_amount=Decimal("-10"))

        with pytest.raises(ValidationError, match="sign"):
            db.create_entry(make_entry("e1"), lines)

    def test_get_missing(self, db):
        with pytest.raises(NotFoundError):
            db.get_entry("missing")

    def test_category_upsert_replaces(self, db, accounts):
        db.create_entry(make_entry("e1"), make_lines("e1"))
        assert db.get_entry_category("e1") is None

        db.upsert_entry_category(EntryCategory("e1", "food", Decimal("0.9"), "agent"))
        db.upsert_entry_category(EntryCategory("e1", "fun", Decimal("1"), "rule"))

        link = db.get_entry_category("e1")
        assert (link.category_id, link.confidence, link.source) == ("fun", Decimal("1"), "rule")

    def test_category_confidence_bounds(self, db, accounts):
        db.create_entry(make_entry("e1"), make_lines("e1"))

        with pytest.raises(ValidationError):
            db.upsert_entry_category(EntryCategory("e1", "food", Decimal("1.5"), "agent"))


class TestStatementLines:
    def test_upsert_reports_duplicates(self, db, accounts):
        stored, duplicate = db.upsert_statement_line(make_statement("s1", "ext-1"))
        assert duplicate is False

        again, duplicate = db.upsert_statement_line(make_statement("s2", "ext-1"))
        assert duplicate is True
        assert again.id == stored.id
        assert [s.id for s in db.list_statement_lines("a1")] == ["s1"]

    def test_listed_by_posted_instant_then_insertion(self, db, accounts):
        later = BOOKED_AT + timedelta(days=1)
        db.upsert_statement_line(make_statement("s1", "e1", later))
        db.upsert_statement_line(make_statement("s2", "e2", BOOKED_AT))
        db.upsert_statement_line(make_statement("s3", "e3", later))

        assert [s.id for s in db.list_statement_lines("a1")] == ["s2", "s1", "s3"]

    def test_unknown_account(self, db):
        with pytest.raises(NotFoundError):
            db.upsert_statement_line(make_statement("s1", "ext-1"))


class TestRules:
    def test_ordered_by_priority_then_insertion(self, db):
        for rule_id, priority in [("low", 1), ("high-a", 10), ("high-b", 10), ("mid", 5)]:
            db.create_rule(
                Rule(
                    id=rule_id,
                    owner_id="u1",
                    priority=priority,
                    matcher=Clause("description", "contains", rule_id),
                    action=RuleAction("cat"),
                )
            )

        rules = db.list_rules("u1")
        assert [r.id for r in rules] == ["high-a", "high-b", "mid", "low"]
        assert rules[0].matcher == Clause("description", "contains", "high-a")
        assert rules[0].action.confidence == Decimal("1")
        assert db.list_rules("u2") == []

    def test_duplicate_and_missing(self, db):
        rule = Rule("r1", "u1", 1, Clause("description", "contains", "x"), RuleAction("cat"))
        db.create_rule(rule)

        with pytest.raises(DuplicateError):
            db.create_rule(rule)
        with pytest.raises(NotFoundError):
            db.get_rule("r2")


class TestFxRates:
    def test_exact_lookup(self, db):
        db.ensure_fx_rate(FxRate("MXN", "USD", BOOKED_AT, Decimal("18.5")))

        assert db.get_fx_rate("MXN", "USD", BOOKED_AT).rate == Decimal("18.5")
        assert db.get_fx_rate("MXN", "USD", BOOKED_AT + timedelta(seconds=1)) is None

    def test_lookup_normalizes_offsets(self, db):
        db.ensure_fx_rate(FxRate("MXN", "USD", BOOKED_AT, Decimal("18.5")))
        same_instant = BOOKED_AT.astimezone(timezone(timedelta(hours=-6)))

        assert db.get_fx_rate("MXN", "USD", same_instant).rate == Decimal("18.5")


class TestReconciliations:
    def test_link_marks_entry_reconciled(self, db, accounts):
        db.create_entry(make_entry("e1"), make_lines("e1"))
        db.upsert_statement_line(make_statement("s1", "ext-1"))

        link = db.link_reconciliation("e1", "s1", manual=True)

        assert link.manual is True
        assert db.get_entry("e1").status is EntryStatus.RECONCILED
        assert db.is_entry_linked("e1")
        assert db.is_statement_line_linked("s1")
        assert db.get_reconciliation_by_statement_line("s1").entry_id == "e1"

    def test_second_link_rejected(self, db, accounts):
        db.create_entry(make_entry("e1"), make_lines("e1"))
        db.create_entry(make_entry("e2"), make_lines("e2"))
        db.upsert_statement_line(make_statement("s1", "ext-1"))
        db.upsert_statement_line(make_statement("s2", "ext-2"))
        db.link_reconciliation("e1", "s1", manual=False)

        with pytest.raises(ValidationError, match="already reconciled"):
            db.link_reconciliation("e1", "s2", manual=False)
        with pytest.raises(ValidationError, match="already linked"):
            db.link_reconciliation("e2", "s1", manual=False)
        assert db.get_entry("e2").status is EntryStatus.POSTED


def fail_next_commit(database, monkeypatch):
    """Make the next commit on the database's session fail once."""
    session = database._get_session()
    real_commit = session.commit
    calls = []

    def commit():
        calls.append(1)
        if len(calls) == 1:
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
        return real_commit()

    monkeypatch.setattr(session, "commit", commit)


class TestSQLAlchemyCommitFailures:
    def test_account_upsert_rolls_back(self, temp_db, monkeypatch):
        temp_db.create_account(make_account("a1"))
        fail_next_commit(temp_db, monkeypatch)

        with pytest.raises(OperationalError):
            temp_db.upsert_account(replace(make_account("a1"), name="Renamed"))

        assert temp_db.get_account("a1").name == "A1"
        temp_db.upsert_account(replace(make_account("a1"), name="Again"))
        assert temp_db.get_account("a1").name == "Again"

    def test_category_upsert_rolls_back(self, temp_db, monkeypatch):
        temp_db.create_account(make_account("a1"))
        temp_db.create_account(make_account("a2"))
        temp_db.create_entry(make_entry("e1"), make_lines("e1"))
        fail_next_commit(temp_db, monkeypatch)

        with pytest.raises(OperationalError):
            temp_db.upsert_entry_category(EntryCategory("e1", "food", Decimal("0.9"), "agent"))

        assert temp_db.get_entry_category("e1") is None
        temp_db.upsert_entry_category(EntryCategory("e1", "fun", Decimal("1"), "rule"))
        assert temp_db.get_entry_category("e1").category_id == "fun"

    def test_fx_rate_ensure_rolls_back(self, temp_db, monkeypatch):
        fail_next_commit(temp_db, monkeypatch)

        with pytest.raises(OperationalError):
            temp_db.ensure_fx_rate(FxRate("MXN", "USD", BOOKED_AT, Decimal("18.5")))

        assert temp_db.get_fx_rate("MXN", "USD", BOOKED_AT) is None
        temp_db.ensure_fx_rate(FxRate("MXN", "USD", BOOKED_AT, Decimal("19")))
        assert temp_db.get_fx_rate("MXN", "USD", BOOKED_AT).rate == Decimal("19")
