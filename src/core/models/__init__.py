from src.core.models.base import Base
from src.core.models.category import Category
from src.core.models.enums import EntryType
from src.core.models.ledger_entry import LedgerEntry
from src.core.models.person import Person

__all__ = [
    "Base",
    "EntryType",
    "Category",
    "LedgerEntry",
    "Person",
]
