import enum


class EntryType(str, enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
