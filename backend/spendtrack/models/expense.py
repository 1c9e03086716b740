import datetime as dt
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class Expense(SQLModel, table=True):
    __tablename__ = "expenses"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    user_id: str = Field(nullable=False, index=True, max_length=128)
    amount: float = Field(nullable=False, ge=0)
    category: str = Field(nullable=False, max_length=80, index=True)
    date: dt.date = Field(nullable=False, index=True)
    title: str = Field(nullable=False, max_length=120)
    created_at: dt.datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
