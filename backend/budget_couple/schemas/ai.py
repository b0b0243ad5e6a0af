"""AI chat schemas."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from budget_couple.schemas.finance import PeriodKeyword, SpendingTrend


class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    content: str = Field(min_length=1)
    conversation_history: list[HistoryMessage] = []
    period: str | None = "month"  # unknown keywords fall back to month


class ChatContextInfo(BaseModel):
    """Figures the answer was grounded on, echoed back for the UI."""

    has_data: bool
    period: PeriodKeyword
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    savings_rate: float
    spending_trend: SpendingTrend
    goals: int
    insights: int
    provider: str


class ChatResponse(BaseModel):
    message: str
    error: str | None = None
    context: ChatContextInfo | None = None


class ProviderStatusResponse(BaseModel):
    provider: str
    model: str
    available: bool


class AIConfigUpdate(BaseModel):
    provider: Literal["ollama", "openai", "anthropic", "gemini"] | None = None
    reset: bool = False  # revert to the environment's provider
