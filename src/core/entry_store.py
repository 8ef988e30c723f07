"""SQLAlchemy implementation of the ledger entry store."""

import logging
from datetime import date

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundError
from src.core.models.category import Category
from src.core.models.enums import EntryType
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

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "id": LedgerEntry.id,
    "description": LedgerEntry.description,
    "dueDate": LedgerEntry.due_date,
    "paymentDate": LedgerEntry.payment_date,
    "value": LedgerEntry.value,
    "type": LedgerEntry.type,
}


def month_bounds(reference: date) -> tuple[date, date]:
    """Return ``(first day, first day of next month)`` for the month of *reference*."""
    start = reference.replace(day=1)
    if start.month == 12:
        end = date(start.year + 1, 1, 1)
    else:
        end = date(start.year, start.month + 1, 1)
    return start, end


def _apply_filter(stmt: Select, criteria: LedgerFilter) -> Select:
    if criteria.description:
        # % and _ in the filter text are literal characters
        stmt = stmt.where(
            LedgerEntry.description.icontains(criteria.description, autoescape=True)
        )
    if criteria.due_date_from:
        stmt = stmt.where(LedgerEntry.due_date >= criteria.due_date_from)
    if criteria.due_date_to:
        stmt = stmt.where(LedgerEntry.due_date <= criteria.due_date_to)
    if criteria.type:
        stmt = stmt.where(LedgerEntry.type == criteria.type)
    return stmt


def _order_by(page: PageRequest) -> list:
    clauses = []
    for order in page.sort:
        column = _SORT_COLUMNS[order.field]
        clauses.append(column.desc() if order.descending else column.asc())
    # id breaks ties so slices are stable between requests
    if not any(order.field == "id" for order in page.sort):
        clauses.append(LedgerEntry.id.asc())
    return clauses


class SqlEntryStore:
    """Entry store backed by a request-scoped ``AsyncSession``."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, entry_id: int) -> LedgerEntry | None:
        return await self.session.get(LedgerEntry, entry_id)

    async def save(self, entry: LedgerEntry) -> LedgerEntry:
        if entry.id is None:
            self.session.add(entry)
        else:
            entry = await self.session.merge(entry)
        await self.session.commit()
        await self.session.refresh(entry)
        logger.info("Saved ledger entry %s", entry.id)
        return entry

    async def delete(self, entry_id: int) -> None:
        result = await self.session.execute(delete(LedgerEntry).where(LedgerEntry.id == entry_id))
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError("LedgerEntry", entry_id)
        await self.session.commit()
        logger.info("Deleted ledger entry %s", entry_id)

    async def _count(self, criteria: LedgerFilter) -> int:
        stmt = _apply_filter(select(func.count(LedgerEntry.id)), criteria)
        return (await self.session.scalar(stmt)) or 0

    async def find_page(
        self, criteria: LedgerFilter, page: PageRequest
    ) -> Page[LedgerEntryRead]:
        total = await self._count(criteria)
        stmt = (
            _apply_filter(select(LedgerEntry), criteria)
            .order_by(*_order_by(page))
            .offset(page.offset)
            .limit(page.size)
        )
        rows = (await self.session.scalars(stmt)).all()
        return Page[LedgerEntryRead].build(
            [LedgerEntryRead.model_validate(entry) for entry in rows], total, page
        )

    async def find_summary_page(
        self, criteria: LedgerFilter, page: PageRequest
    ) -> Page[EntrySummary]:
        total = await self._count(criteria)
        stmt = (
            select(
                LedgerEntry.id,
                LedgerEntry.description,
                LedgerEntry.due_date,
                LedgerEntry.payment_date,
                LedgerEntry.value,
                LedgerEntry.type,
                Category.name.label("category"),
                Person.name.label("person"),
            )
            .outerjoin(Category, LedgerEntry.category_id == Category.id)
            .outerjoin(Person, LedgerEntry.person_id == Person.id)
        )
        stmt = (
            _apply_filter(stmt, criteria)
            .order_by(*_order_by(page))
            .offset(page.offset)
            .limit(page.size)
        )
        rows = (await self.session.execute(stmt)).all()
        return Page[EntrySummary].build(
            [EntrySummary.model_validate(dict(row._mapping)) for row in rows], total, page
        )

    async def aggregate_by_category(self, month: date) -> list[CategoryAggregate]:
        start, end = month_bounds(month)
        total = func.sum(LedgerEntry.value).label("total")
        result = await self.session.execute(
            select(Category.name.label("category"), total)
            .select_from(LedgerEntry)
            .outerjoin(Category, LedgerEntry.category_id == Category.id)
            .where(
                LedgerEntry.type == EntryType.EXPENSE,
                LedgerEntry.due_date >= start,
                LedgerEntry.due_date < end,
            )
            .group_by(Category.id, Category.name)
            .order_by(total.desc())
        )
        return [CategoryAggregate(category=name, total=value) for name, value in result.all()]

    async def aggregate_by_day(self, month: date) -> list[DayAggregate]:
        start, end = month_bounds(month)
        result = await self.session.execute(
            select(LedgerEntry.type, LedgerEntry.due_date, func.sum(LedgerEntry.value))
            .where(LedgerEntry.due_date >= start, LedgerEntry.due_date < end)
            .group_by(LedgerEntry.type, LedgerEntry.due_date)
            .order_by(LedgerEntry.due_date, LedgerEntry.type)
        )
        return [
            DayAggregate(type=entry_type, day=day, total=value)
            for entry_type, day, value in result.all()
        ]

    async def aggregate_by_person(self, start: date, end: date) -> list[PersonAggregate]:
        result = await self.session.execute(
            select(LedgerEntry.type, Person.name, func.sum(LedgerEntry.value))
            .select_from(LedgerEntry)
            .outerjoin(Person, LedgerEntry.person_id == Person.id)
            .where(LedgerEntry.due_date >= start, LedgerEntry.due_date <= end)
            .group_by(LedgerEntry.type, Person.id, Person.name)
            .order_by(Person.name, LedgerEntry.type)
        )
        return [
            PersonAggregate(type=entry_type, person=name, total=value)
            for entry_type, name, value in result.all()
        ]

    async def category_exists(self, category_id: int) -> bool:
        return await self.session.get(Category, category_id) is not None

    async def find_person(self, person_id: int) -> Person | None:
        return await self.session.get(Person, person_id)
