"""Collaborator protocols for the ledger service.

The service layer only talks to these; the SQL store, Supabase storage and
the PDF report generator are concrete implementations, and tests substitute
mocks.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from src.core.models.ledger_entry import LedgerEntry
from src.core.models.person import Person
from src.core.schemas.ledger import (
    CategoryAggregate,
    DayAggregate,
    EntrySummary,
    LedgerEntryRead,
    PersonAggregate,
)
from src.core.schemas.query import LedgerFilter, Page, PageRequest


@runtime_checkable
class EntryStore(Protocol):
    """Persistence for ledger entries."""

    async def find_by_id(self, entry_id: int) -> LedgerEntry | None:
        """Return the entry, or None when no row has that id."""
        ...

    async def save(self, entry: LedgerEntry) -> LedgerEntry:
        """Insert (no id) or update (id set) and return the persisted entry."""
        ...

    async def delete(self, entry_id: int) -> None:
        """Delete by id. Raises NotFoundError when nothing was deleted."""
        ...

    async def find_page(
        self, criteria: LedgerFilter, page: PageRequest
    ) -> Page[LedgerEntryRead]: ...

    async def find_summary_page(
        self, criteria: LedgerFilter, page: PageRequest
    ) -> Page[EntrySummary]: ...

    async def aggregate_by_category(self, month: date) -> list[CategoryAggregate]: ...

    async def aggregate_by_day(self, month: date) -> list[DayAggregate]: ...

    async def aggregate_by_person(self, start: date, end: date) -> list[PersonAggregate]: ...

    async def category_exists(self, category_id: int) -> bool: ...

    async def find_person(self, person_id: int) -> Person | None: ...


@runtime_checkable
class AttachmentStore(Protocol):
    """Object storage for uploaded attachments."""

    async def store(self, content: bytes, original_name: str, content_type: str | None) -> str:
        """Upload *content* and return the generated storage key."""
        ...

    def url_for(self, key: str) -> str:
        """Return the retrieval URL for a storage key."""
        ...

    async def remove(self, key: str) -> None: ...


@runtime_checkable
class ReportGenerator(Protocol):
    async def generate(self, start: date, end: date) -> bytes:
        """Render the report for ``[start, end]`` and return PDF bytes."""
        ...
