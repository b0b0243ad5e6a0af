"""Analytics API routes: category breakdown and monthly trends."""

from fastapi import APIRouter, Depends, Query

from budget_couple.api.deps import get_current_user, get_finance_store
from budget_couple.models.user import User
from budget_couple.schemas.dashboard import CategoryBreakdownResponse, MonthlyTrendsResponse
from budget_couple.schemas.finance import TransactionType
from budget_couple.services.ports import FinanceStore
from budget_couple.services.report_service import FinanceReportService

router = APIRouter()


@router.get("/by-category", response_model=CategoryBreakdownResponse)
async def by_category(
    period: str = Query("month"),
    type: TransactionType = Query(TransactionType.EXPENSE),
    current_user: User = Depends(get_current_user),
    store: FinanceStore = Depends(get_finance_store),
):
    """Amounts broken down by category, largest first, with percentages."""
    service = FinanceReportService(store)
    return await service.category_breakdown(current_user.id, period, type)


@router.get("/trends", response_model=MonthlyTrendsResponse)
async def trends(
    months: int = Query(6, ge=1, le=24),
    current_user: User = Depends(get_current_user),
    store: FinanceStore = Depends(get_finance_store),
):
    service = FinanceReportService(store)
    return await service.trends(current_user.id, months)
