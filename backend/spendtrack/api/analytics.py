from collections.abc import Callable
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from spendtrack.api.deps import get_current_user_id, get_expense_store, get_today_provider
from spendtrack.schemas.analytics import AnalyticsResponse
from spendtrack.services.analytics import get_spending_analytics
from spendtrack.services.expense_store import ExpenseStore, PersistenceError
from spendtrack.services.periods import TIMEFRAMES, InvalidPeriodError

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=AnalyticsResponse)
async def get_analytics(
    timeframe: str = Query(default="month"),
    custom_start: date | None = Query(default=None),
    custom_end: date | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    store: ExpenseStore = Depends(get_expense_store),
    today: Callable[[], date] = Depends(get_today_provider),
) -> AnalyticsResponse:
    normalized = timeframe.strip().lower()
    if normalized not in TIMEFRAMES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"timeframe must be one of: {', '.join(TIMEFRAMES)}",
        )
    try:
        return await get_spending_analytics(
            store,
            user_id,
            timeframe=normalized,
            today=today(),
            custom_start=custom_start,
            custom_end=custom_end,
        )
    except InvalidPeriodError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve analytics data",
        ) from exc
