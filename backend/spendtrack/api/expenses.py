from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from spendtrack.api.deps import get_current_user_id, get_expense_store
from spendtrack.models.expense import Expense
from spendtrack.schemas.expense import (
    ExpenseCreateRequest,
    ExpenseCreateResponse,
    ExpenseDeleteResponse,
    ExpenseItem,
    ExpenseListResponse,
)
from spendtrack.services.expense_store import ExpenseStore, PersistenceError

router = APIRouter(prefix="/expenses", tags=["expenses"])


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _to_expense_item(expense: Expense) -> ExpenseItem:
    return ExpenseItem(
        id=str(expense.id),
        title=expense.title,
        amount=expense.amount,
        category=expense.category,
        date=expense.date.isoformat(),
        created_at=_as_utc(expense.created_at).isoformat(),
    )


def _persistence_failure(exc: PersistenceError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(exc),
    )


@router.post(
    "/manual",
    response_model=ExpenseCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_manual_expense(
    payload: ExpenseCreateRequest,
    user_id: str = Depends(get_current_user_id),
    store: ExpenseStore = Depends(get_expense_store),
) -> ExpenseCreateResponse:
    try:
        expense = await store.insert(
            Expense(
                user_id=user_id,
                title=payload.title,
                amount=payload.amount,
                category=payload.category,
                date=payload.date,
            )
        )
    except PersistenceError as exc:
        raise _persistence_failure(exc)
    return ExpenseCreateResponse(
        message="Expense added successfully!",
        expense=_to_expense_item(expense),
    )


@router.get("/list", response_model=ExpenseListResponse)
async def list_expenses(
    user_id: str = Depends(get_current_user_id),
    store: ExpenseStore = Depends(get_expense_store),
) -> ExpenseListResponse:
    try:
        expenses = await store.list_for_user(user_id)
    except PersistenceError as exc:
        raise _persistence_failure(exc)
    return ExpenseListResponse(expenses=[_to_expense_item(item) for item in expenses])


@router.delete("/{expense_id}", response_model=ExpenseDeleteResponse)
async def delete_expense(
    expense_id: UUID,
    user_id: str = Depends(get_current_user_id),
    store: ExpenseStore = Depends(get_expense_store),
) -> ExpenseDeleteResponse:
    try:
        expense = await store.get(expense_id)
        if expense is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Expense not found",
            )
        if expense.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Unauthorized",
            )
        await store.delete(expense)
    except PersistenceError as exc:
        raise _persistence_failure(exc)
    return ExpenseDeleteResponse(
        expense_id=str(expense_id),
        message="Expense deleted successfully",
    )
