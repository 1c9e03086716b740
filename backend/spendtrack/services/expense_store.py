from datetime import date
import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from spendtrack.models.expense import Expense

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Raised when the expense store cannot complete an operation."""


def round_amount(value: float) -> float:
    return round(float(value), 2)


class ExpenseStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, record: Expense) -> Expense:
        record.amount = round_amount(record.amount)
        try:
            self.session.add(record)
            await self.session.commit()
            await self.session.refresh(record)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Failed to insert expense for user %s: %s", record.user_id, exc)
            raise PersistenceError("Could not save the expense.") from exc
        return record

    async def query(
        self,
        user_id: str,
        date_from: date,
        date_to: date,
        category: str | None = None,
    ) -> list[Expense]:
        statement = select(Expense).where(
            Expense.user_id == user_id,
            Expense.date >= date_from,
            Expense.date <= date_to,
        )
        if category:
            statement = statement.where(Expense.category == category)
        try:
            result = await self.session.execute(statement.order_by(Expense.date))
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not load expenses.") from exc
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str) -> list[Expense]:
        statement = (
            select(Expense)
            .where(Expense.user_id == user_id)
            .order_by(Expense.created_at.desc())
        )
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not load expenses.") from exc
        return list(result.scalars().all())

    async def get(self, expense_id: UUID) -> Expense | None:
        try:
            result = await self.session.execute(
                select(Expense).where(Expense.id == expense_id)
            )
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not load the expense.") from exc
        return result.scalar_one_or_none()

    async def delete(self, expense: Expense) -> None:
        try:
            await self.session.delete(expense)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError("Could not delete the expense.") from exc
