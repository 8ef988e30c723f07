"""Listing criteria: filter, page request and the page envelope."""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Generic, TypeVar

from src.core.exceptions import ValidationError
from src.core.models.enums import EntryType
from src.core.schemas.ledger import CamelModel

T = TypeVar("T")

SORTABLE_FIELDS = ("id", "description", "dueDate", "paymentDate", "value", "type")
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass
class LedgerFilter:
    description: str | None = None
    due_date_from: date | None = None
    due_date_to: date | None = None
    type: EntryType | None = None


@dataclass
class SortOrder:
    field: str
    descending: bool = False


@dataclass
class PageRequest:
    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    sort: list[SortOrder] = field(default_factory=list)

    @property
    def offset(self) -> int:
        return self.page * self.size

    @classmethod
    def from_query(cls, page: int, size: int, sort: list[str] | None = None) -> "PageRequest":
        """Build a page request from ``page``, ``size`` and ``sort=field[,asc|desc]`` values."""
        orders = []
        for raw in sort or []:
            name, _, direction = raw.partition(",")
            name = name.strip()
            direction = direction.strip().lower() or "asc"
            if name not in SORTABLE_FIELDS:
                raise ValidationError(f"Cannot sort by '{name}'")
            if direction not in ("asc", "desc"):
                raise ValidationError(f"Invalid sort direction '{direction}'")
            orders.append(SortOrder(field=name, descending=direction == "desc"))
        return cls(page=page, size=size, sort=orders)


class Page(CamelModel, Generic[T]):
    content: list[T]
    total_elements: int
    total_pages: int
    number: int
    size: int

    @classmethod
    def build(cls, content: list, total: int, request: PageRequest) -> "Page":
        return cls(
            content=content,
            total_elements=total,
            total_pages=math.ceil(total / request.size) if request.size else 0,
            number=request.page,
            size=request.size,
        )
