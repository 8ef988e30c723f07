from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.models.base import Base, TimestampMixin
from src.core.models.enums import EntryType

# Fields a client may overwrite on a full-record update.
MUTABLE_FIELDS = (
    "description",
    "due_date",
    "payment_date",
    "value",
    "type",
    "category_id",
    "person_id",
    "observation",
    "attachment",
)


class LedgerEntry(Base, TimestampMixin):
    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(String(50))
    due_date: Mapped[date] = mapped_column(Date, index=True)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    type: Mapped[EntryType] = mapped_column(Enum(EntryType, name="entry_type"))
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=True
    )
    person_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("people.id"), nullable=True)
    observation: Mapped[str | None] = mapped_column(String(100), nullable=True)
    attachment: Mapped[str | None] = mapped_column(String(255), nullable=True)
