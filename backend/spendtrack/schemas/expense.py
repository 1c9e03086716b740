import datetime as dt

from pydantic import BaseModel, Field, field_validator

from spendtrack.services.categories import EXPENSE_CATEGORIES


class ExpenseCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    amount: float = Field(ge=0)
    category: str = Field(min_length=1, max_length=80)
    date: dt.date

    @field_validator("title")
    @classmethod
    def _clean_title(cls, value: str) -> str:
        cleaned = " ".join(value.split())
        if not cleaned:
            raise ValueError("title must not be blank")
        return cleaned

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        if value not in EXPENSE_CATEGORIES:
            raise ValueError(f"category must be one of: {', '.join(EXPENSE_CATEGORIES)}")
        return value


class ExpenseItem(BaseModel):
    id: str
    title: str
    amount: float
    category: str
    date: str
    created_at: str


class ExpenseCreateResponse(BaseModel):
    message: str
    expense: ExpenseItem


class ExpenseListResponse(BaseModel):
    expenses: list[ExpenseItem]


class ExpenseDeleteResponse(BaseModel):
    expense_id: str
    message: str
