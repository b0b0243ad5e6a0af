"""Dashboard API routes."""

from fastapi import APIRouter, Depends, Query

from budget_couple.api.deps import get_current_user, get_finance_store
from budget_couple.models.user import User
from budget_couple.schemas.dashboard import DashboardReport
from budget_couple.services.ports import FinanceStore
from budget_couple.services.report_service import FinanceReportService

router = APIRouter()


@router.get("/stats", response_model=DashboardReport)
async def dashboard_stats(
    period: str = Query("month", description="week, month, quarter or year"),
    current_user: User = Depends(get_current_user),
    store: FinanceStore = Depends(get_finance_store),
):
    """Totals, category breakdown, trend, goals, budgets and insights.

    Unknown period keywords fall back to the current month. A user without
    a couple profile gets an empty report (``has_data: false``).
    """
    service = FinanceReportService(store)
    return await service.build_dashboard(current_user.id, period)
