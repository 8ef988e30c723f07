from datetime import date
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from src.core.models.enums import EntryType

# Decimal in Python, plain JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class LedgerEntryWrite(CamelModel):
    """Body of POST /lancamentos and PUT /lancamentos/{id}."""

    id: int | None = None
    description: str = Field(min_length=1, max_length=50)
    due_date: date
    payment_date: date | None = None
    value: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    type: EntryType
    category_id: int | None = None
    person_id: int | None = None
    observation: str | None = Field(default=None, max_length=100)
    attachment: str | None = Field(default=None, max_length=255)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description must not be blank")
        return v


class LedgerEntryRead(CamelModel):
    id: int
    description: str
    due_date: date
    payment_date: date | None = None
    value: Money
    type: EntryType
    category_id: int | None = None
    person_id: int | None = None
    observation: str | None = None
    attachment: str | None = None
    attachment_url: str | None = None


class EntrySummary(CamelModel):
    """Reduced projection used by list views (GET /lancamentos?resumo)."""

    id: int
    description: str
    due_date: date
    payment_date: date | None = None
    value: Money
    type: EntryType
    category: str | None = None
    person: str | None = None


class CategoryAggregate(CamelModel):
    category: str | None
    total: Money


class DayAggregate(CamelModel):
    type: EntryType
    day: date
    total: Money


class PersonAggregate(CamelModel):
    type: EntryType
    person: str | None
    total: Money


class Attachment(BaseModel):
    name: str
    url: str
