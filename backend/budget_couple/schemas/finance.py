"""Plain-data records consumed and produced by the finance engine.

Input records (transactions, categories, goals, budgets) are validated from
dicts or ORM objects at the boundary. Output records are recomputed on every
call and never persisted. Amounts stay ``Decimal`` end to end; only
percentages are floats.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class PeriodKeyword(str, Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class SpendingTrend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class InsightSeverity(str, Enum):
    POSITIVE = "positive"
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class InsightCategory(str, Enum):
    SAVINGS = "savings"
    SPENDING = "spending"
    BALANCE = "balance"
    GOALS = "goals"
    TREND = "trend"
    GENERAL = "general"


# ── Input records ─────────────────────────────────


class TransactionRecord(BaseModel):
    id: int
    amount: Decimal = Field(gt=0)
    type: TransactionType
    date: datetime
    category_id: int
    description: str = ""
    notes: str | None = None
    location: str | None = None
    receipt: str | None = None
    user_id: int | None = None  # member of the couple who logged it

    model_config = {"from_attributes": True, "frozen": True}


class CategoryRecord(BaseModel):
    id: int
    name: str
    icon: str | None = None
    color: str | None = None
    type: TransactionType | None = None
    is_default: bool = False

    model_config = {"from_attributes": True, "frozen": True}


class SavingsGoalRecord(BaseModel):
    id: int
    name: str
    target_amount: Decimal = Field(gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    target_date: date | None = None
    priority: Priority = Priority.MEDIUM
    description: str | None = None

    model_config = {"from_attributes": True, "frozen": True}

    @property
    def is_completed(self) -> bool:
        return self.current_amount >= self.target_amount


class BudgetRecord(BaseModel):
    id: int
    name: str
    category_id: int
    amount: Decimal = Field(ge=0)
    start_date: date | None = None
    end_date: date | None = None

    model_config = {"from_attributes": True, "frozen": True}


class UserProfile(BaseModel):
    """Who the chatbot is talking to."""

    user_id: int | None = None
    name: str = "User"
    email: str | None = None
    couple_id: int | None = None
    couple_name: str | None = None
    partner_id: int | None = None
    partner_name: str | None = None
    currency: str = "EUR"


# ── Derived records ───────────────────────────────


class PeriodRange(BaseModel):
    period: PeriodKeyword
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_bounds(self) -> "PeriodRange":
        if self.start > self.end:
            raise ValueError("period start must not be after its end")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class CategoryBreakdownItem(BaseModel):
    category_id: int
    name: str
    icon: str
    color: str
    type: TransactionType
    amount: Decimal
    count: int
    percentage: float  # share of the type total, 0-100


class AggregateSnapshot(BaseModel):
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    transaction_count: int = 0
    average_transaction: Decimal = Decimal("0")  # mean amount, to the cent
    savings_rate: float = 0.0
    category_breakdown: list[CategoryBreakdownItem] = []
    income_breakdown: list[CategoryBreakdownItem] = []

    @property
    def top_category(self) -> CategoryBreakdownItem | None:
        return self.category_breakdown[0] if self.category_breakdown else None

    @property
    def is_empty(self) -> bool:
        return self.transaction_count == 0


class MonthlyTrendPoint(BaseModel):
    month: str  # "2026-01"
    income: Decimal
    expenses: Decimal
    net: Decimal
    count: int


class RecentTransaction(BaseModel):
    id: int
    amount: Decimal
    type: TransactionType
    description: str
    date: datetime
    category_name: str
    category_icon: str
    category_color: str


class GoalProgress(BaseModel):
    goal_id: int
    name: str
    priority: Priority
    target_date: date | None = None
    target_amount: Decimal
    current_amount: Decimal
    percent_complete: float
    amount_remaining: Decimal
    months_to_complete: int | None = None  # None = not computable
    is_completed: bool


class GoalsSummary(BaseModel):
    total: int = 0
    completed: int = 0
    active: int = 0
    total_target_amount: Decimal = Decimal("0")
    total_current_amount: Decimal = Decimal("0")
    total_progress: float = 0.0


class BudgetProgress(BaseModel):
    budget_id: int
    name: str
    category_id: int
    amount: Decimal
    spent: Decimal
    remaining: Decimal
    percentage: float
    is_over_budget: bool


class Insight(BaseModel):
    message: str
    severity: InsightSeverity = InsightSeverity.INFO
    category: InsightCategory = InsightCategory.GENERAL


class InsightThresholds(BaseModel):
    high_savings_rate: float = 20.0
    low_savings_rate: float = 10.0
    category_concentration: float = 40.0
    trend_deadband: float = 0.05


class TrendReport(BaseModel):
    spending_trend: SpendingTrend = SpendingTrend.STABLE
    current_expenses: Decimal = Decimal("0")
    previous_expenses: Decimal = Decimal("0")
    expense_change: Decimal = Decimal("0")
    income_change: Decimal = Decimal("0")
    insights: list[Insight] = []
