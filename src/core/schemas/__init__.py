from src.core.schemas.ledger import (
    Attachment,
    CategoryAggregate,
    DayAggregate,
    EntrySummary,
    LedgerEntryRead,
    LedgerEntryWrite,
    PersonAggregate,
)
from src.core.schemas.query import LedgerFilter, Page, PageRequest, SortOrder

__all__ = [
    "Attachment",
    "CategoryAggregate",
    "DayAggregate",
    "EntrySummary",
    "LedgerEntryRead",
    "LedgerEntryWrite",
    "LedgerFilter",
    "Page",
    "PageRequest",
    "PersonAggregate",
    "SortOrder",
]
