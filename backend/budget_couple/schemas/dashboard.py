"""Dashboard and analytics response schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field

from budget_couple.schemas.finance import (
    AggregateSnapshot,
    BudgetProgress,
    CategoryBreakdownItem,
    GoalProgress,
    GoalsSummary,
    MonthlyTrendPoint,
    PeriodRange,
    RecentTransaction,
    TrendReport,
    TransactionType,
    UserProfile,
)


class DashboardReport(BaseModel):
    """Everything the dashboard (and the chatbot) knows about one period."""

    has_data: bool
    currency: str = "EUR"
    period: PeriodRange
    previous_period: PeriodRange
    summary: AggregateSnapshot
    previous_summary: AggregateSnapshot
    yearly_summary: AggregateSnapshot = Field(default_factory=AggregateSnapshot)  # calendar year of `now`
    trend: TrendReport
    goals: list[GoalProgress] = []
    closest_goal: GoalProgress | None = None
    goals_summary: GoalsSummary
    budgets: list[BudgetProgress] = []
    monthly_trends: list[MonthlyTrendPoint] = []
    recent_transactions: list[RecentTransaction] = []


class ChatContext(BaseModel):
    profile: UserProfile
    report: DashboardReport


class CategoryBreakdownResponse(BaseModel):
    period: PeriodRange
    type: TransactionType
    total: Decimal
    items: list[CategoryBreakdownItem]


class MonthlyTrendsResponse(BaseModel):
    months: int
    points: list[MonthlyTrendPoint]


class GoalsProgressResponse(BaseModel):
    goals: list[GoalProgress]
    closest_goal: GoalProgress | None = None
    summary: GoalsSummary
