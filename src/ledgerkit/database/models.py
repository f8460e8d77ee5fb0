"""SQLAlchemy models for the ledgerkit database."""

from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    TypeDecorator,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class ExactDecimal(TypeDecorator):
    """Decimal stored as text so no backend rounds it through a float."""

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class UTCDateTime(TypeDecorator):
    """Aware UTC datetime, stored naive in UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    """Ledger account model."""

    __tablename__ = "accounts"

    pk = Column(Integer, primary_key=True)
    id = Column(String, unique=True, nullable=False)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    nature = Column(String, nullable=False)
    currency = Column(String(6), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=_now, nullable=False)

    lines = relationship("EntryLine", back_populates="account")
    statement_lines = relationship("StatementLine", back_populates="account")


class Entry(Base):
    """Entry header model."""

    __tablename__ = "entries"

    pk = Column(Integer, primary_key=True)
    id = Column(String, unique=True, nullable=False)
    ledger_id = Column(String, nullable=False, index=True)
    external_id = Column(String, nullable=True)
    booked_at = Column(UTCDateTime, nullable=False)
    description = Column(String, nullable=True)
    status = Column(String, nullable=False)
    base_currency = Column(String(6), nullable=False)
    created_at = Column(UTCDateTime, default=_now, nullable=False)

    # NULL external ids never collide, so only keyed entries are constrained
    __table_args__ = (UniqueConstraint("ledger_id", "external_id", name="uq_ledger_external_id"),)

    lines = relationship(
        "EntryLine", back_populates="entry", cascade="all, delete-orphan", order_by="EntryLine.pk"
    )
    category = relationship(
        "EntryCategoryLink", back_populates="entry", uselist=False, cascade="all, delete-orphan"
    )


class EntryLine(Base):
    """Entry line model. Amounts are signed, debit positive."""

    __tablename__ = "entry_lines"

    pk = Column(Integer, primary_key=True)
    id = Column(String, unique=True, nullable=False)
    entry_id = Column(String, ForeignKey("entries.id"), nullable=False, index=True)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False, index=True)
    native_amount = Column(ExactDecimal, nullable=False)
    native_currency = Column(String(6), nullable=False)
    booked_amount = Column(ExactDecimal, nullable=False)
    booked_currency = Column(String(6), nullable=False)
    fx_rate = Column(ExactDecimal, nullable=False)
    direction = Column(String, nullable=False)

    entry = relationship("Entry", back_populates="lines")
    account = relationship("Account", back_populates="lines")


class EntryCategoryLink(Base):
    """Category assigned to an entry."""

    __tablename__ = "entry_categories"

    entry_id = Column(String, ForeignKey("entries.id"), primary_key=True)
    category_id = Column(String, nullable=False)
    confidence = Column(ExactDecimal, nullable=False)
    source = Column(String, nullable=False)

    entry = relationship("Entry", back_populates="category")


class StatementLine(Base):
    """Imported statement line model."""

    __tablename__ = "statement_lines"

    pk = Column(Integer, primary_key=True)
    id = Column(String, unique=True, nullable=False)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False, index=True)
    posted_at = Column(UTCDateTime, nullable=False)
    amount = Column(ExactDecimal, nullable=False)
    currency = Column(String(6), nullable=False)
    memo = Column(String, nullable=True)
    external_id = Column(String, nullable=False)

    # Unique constraint on account_id + external_id
    __table_args__ = (UniqueConstraint("account_id", "external_id", name="uq_account_external_id"),)

    account = relationship("Account", back_populates="statement_lines")


class Rule(Base):
    """Categorization rule model. The matcher is kept in its dict form."""

    __tablename__ = "rules"

    pk = Column(Integer, primary_key=True)
    id = Column(String, unique=True, nullable=False)
    owner_id = Column(String, nullable=False, index=True)
    priority = Column(Integer, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    matcher = Column(JSON, nullable=False)
    category_id = Column(String, nullable=False)
    confidence = Column(ExactDecimal, nullable=False)


class FxRate(Base):
    """FX snapshot model."""

    __tablename__ = "fx_rates"

    pk = Column(Integer, primary_key=True)
    base = Column(String(6), nullable=False)
    quote = Column(String(6), nullable=False)
    as_of = Column(UTCDateTime, nullable=False)
    rate = Column(ExactDecimal, nullable=False)

    __table_args__ = (UniqueConstraint("base", "quote", "as_of", name="uq_fx_pair_instant"),)


class Reconciliation(Base):
    """Entry to statement line link."""

    __tablename__ = "reconciliations"

    pk = Column(Integer, primary_key=True)
    entry_id = Column(String, ForeignKey("entries.id"), unique=True, nullable=False)
    statement_line_id = Column(
        String, ForeignKey("statement_lines.id"), unique=True, nullable=False
    )
    manual = Column(Boolean, default=False, nullable=False)
    linked_at = Column(UTCDateTime, default=_now, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
