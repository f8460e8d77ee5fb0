"""Shared pytest fixtures for ledgerkit tests."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from ledgerkit.database.factories import create_memory_database, create_sqlite_database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.categorize import CategorizationService, KeywordAgent
from ledgerkit.domain.entities import LineSpec
from ledgerkit.domain.entry import EntryService
from ledgerkit.domain.fx import FxService
from ledgerkit.domain.reconcile import ReconciliationService
from ledgerkit.domain.rule import RuleService
from ledgerkit.domain.statement_import import StatementImportService

BOOKED_AT = datetime(2024, 1, 10, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "sqlite"])
def db(request, tmp_path):
    """Create an empty database of each backing."""
    if request.param == "memory":
        database = create_memory_database()
    else:
        database = create_sqlite_database(database_path=str(tmp_path / "ledger.db"))
    database.connect()
    database.initialize_schema()

    yield database

    database.disconnect()


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary SQLite database for CLI tests."""
    db_path = tmp_path / "cli.db"
    database = create_sqlite_database(database_path=str(db_path))
    database.database_path = str(db_path)
    database.connect()
    database.initialize_schema()

    yield database

    database.disconnect()


@pytest.fixture
def balance_service(db):
    """Create a BalanceService over the test database."""
    return BalanceService(db)


@pytest.fixture
def account_service(db):
    """Create an AccountService over the test database."""
    return AccountService(db)


@pytest.fixture
def fx_service(db):
    """Create an FxService over the test database."""
    return FxService(db)


@pytest.fixture
def entry_service(db, fx_service):
    """Create an EntryService over the test database."""
    return EntryService(db, fx_service)


@pytest.fixture
def import_service(db):
    """Create a StatementImportService over the test database."""
    return StatementImportService(db)


@pytest.fixture
def reconciliation_service(db):
    """Create a ReconciliationService with the standard window and epsilon."""
    return ReconciliationService(db, window_days=3, epsilon=Decimal("0.01"))


@pytest.fixture
def rule_service(db):
    """Create a RuleService over the test database."""
    return RuleService(db)


@pytest.fixture
def categorization_service(db):
    """Create a CategorizationService with a small keyword agent."""
    agent = KeywordAgent(
        {
            "uber": ("transport", "0.9"),
            "netflix": ("subscriptions", "0.6"),
        }
    )
    return CategorizationService(db, agent=agent, threshold=Decimal("0.85"))


@pytest.fixture
def sample_accounts(account_service):
    """Create checking (MXN), food (MXN) and usd_cash (USD) accounts for owner u1."""
    return {
        "checking": account_service.create_account("checking", "u1", "Checking", "asset", "MXN"),
        "food": account_service.create_account("food", "u1", "Food", "expense", "MXN"),
        "usd_cash": account_service.create_account("usd_cash", "u1", "USD Cash", "asset", "USD"),
    }


def simple_lines(debit_account: str, credit_account: str, amount, currency: str = "MXN"):
    """Two-line spec: debit one account, credit another, same currency."""
    return [
        LineSpec(debit_account, amount, currency, "debit"),
        LineSpec(credit_account, amount, currency, "credit"),
    ]
