"""Ledger service: existence checks before mutation, pass-through otherwise."""

import logging
from datetime import date

from src.core.exceptions import NotFoundError, StorageError, ValidationError
from src.core.interfaces import AttachmentStore, EntryStore, ReportGenerator
from src.core.models.ledger_entry import MUTABLE_FIELDS, LedgerEntry
from src.core.schemas.ledger import (
    CategoryAggregate,
    DayAggregate,
    EntrySummary,
    LedgerEntryRead,
    LedgerEntryWrite,
)
from src.core.schemas.query import LedgerFilter, Page, PageRequest

logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(
        self,
        store: EntryStore,
        reports: ReportGenerator,
        attachments: AttachmentStore,
    ):
        self.store = store
        self.reports = reports
        self.attachments = attachments

    async def find_one(self, entry_id: int) -> LedgerEntry:
        entry = await self.store.find_by_id(entry_id)
        if entry is None:
            raise NotFoundError("LedgerEntry", entry_id)
        return entry

    async def save(self, entry: LedgerEntry) -> LedgerEntry:
        """Insert a new entry, or upsert one whose id already exists.

        A client-supplied id must belong to an existing row; otherwise
        NotFoundError is raised and nothing is written.
        """
        previous_attachment = None
        if entry.id is not None:
            previous_attachment = (await self.find_one(entry.id)).attachment
        await self._check_references(entry.category_id, entry.person_id)
        saved = await self.store.save(entry)
        if previous_attachment and previous_attachment != saved.attachment:
            await self._discard_attachment(previous_attachment)
        return saved

    async def update(self, entry_id: int, data: LedgerEntryWrite) -> LedgerEntry:
        existing = await self.find_one(entry_id)
        await self._check_references(data.category_id, data.person_id)

        previous_attachment = existing.attachment
        for name in MUTABLE_FIELDS:
            setattr(existing, name, getattr(data, name))

        saved = await self.store.save(existing)
        if previous_attachment and previous_attachment != saved.attachment:
            await self._discard_attachment(previous_attachment)
        return saved

    async def delete(self, entry_id: int) -> None:
        existing = await self.store.find_by_id(entry_id)
        await self.store.delete(entry_id)
        if existing is not None and existing.attachment:
            await self._discard_attachment(existing.attachment)

    async def list_entries(
        self, criteria: LedgerFilter, page: PageRequest
    ) -> Page[LedgerEntryRead]:
        return await self.store.find_page(criteria, page)

    async def list_summary(self, criteria: LedgerFilter, page: PageRequest) -> Page[EntrySummary]:
        return await self.store.find_summary_page(criteria, page)

    async def by_category(self, month: date | None = None) -> list[CategoryAggregate]:
        return await self.store.aggregate_by_category(month or date.today())

    async def by_day(self, month: date | None = None) -> list[DayAggregate]:
        return await self.store.aggregate_by_day(month or date.today())

    async def report_by_person(self, start: date, end: date) -> bytes:
        if end < start:
            raise ValidationError("'fim' must not be before 'inicio'")
        return await self.reports.generate(start, end)

    async def _check_references(self, category_id: int | None, person_id: int | None) -> None:
        if category_id is not None and not await self.store.category_exists(category_id):
            raise ValidationError(f"Category {category_id} does not exist")
        if person_id is not None:
            person = await self.store.find_person(person_id)
            if person is None:
                raise ValidationError(f"Person {person_id} does not exist")
            if not person.active:
                raise ValidationError(f"Person {person_id} is inactive")

    async def _discard_attachment(self, key: str) -> None:
        try:
            await self.attachments.remove(key)
        except StorageError as e:
            logger.warning("Could not remove replaced attachment %s: %s", key, e)
