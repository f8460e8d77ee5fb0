"""Domain layer for ledgerkit.

Services live in their own modules (``ledgerkit.domain.entry`` and so on)
and are not re-exported here, since they depend on the database layer.
"""

from ledgerkit.domain.entities import (
    Account,
    AccountNature,
    ColumnMapping,
    Entry,
    EntryAggregate,
    EntryLine,
    EntryStatus,
    LineDirection,
    LineSpec,
)
from ledgerkit.domain.errors import DomainError

__all__ = [
    "Account",
    "AccountNature",
    "ColumnMapping",
    "DomainError",
    "Entry",
    "EntryAggregate",
    "EntryLine",
    "EntryStatus",
    "LineDirection",
    "LineSpec",
]
