from pydantic import BaseModel, Field


class CategoryPoint(BaseModel):
    name: str
    value: float


class TrendPoint(BaseModel):
    date: str
    amount: float


class TopExpense(BaseModel):
    title: str
    amount: float
    category: str
    date: str


class PeriodComparison(BaseModel):
    current_period_total: float
    previous_period_total: float
    percent_change: float | None = None


class CategoryComparisonPoint(BaseModel):
    name: str
    current_value: float
    previous_value: float
    percent_change: float | None = None


class AnalyticsResponse(BaseModel):
    timeframe: str
    period_start: str
    period_end: str
    total_spent: float
    avg_daily_spent: float
    category_breakdown: list[CategoryPoint] = Field(default_factory=list)
    spending_trend: list[TrendPoint] = Field(default_factory=list)
    top_expenses: list[TopExpense] = Field(default_factory=list)
    comparison: PeriodComparison
    category_comparison: list[CategoryComparisonPoint] = Field(default_factory=list)
