"""Savings goal API routes."""

from fastapi import APIRouter, Depends

from budget_couple.api.deps import get_current_user, get_finance_store
from budget_couple.models.user import User
from budget_couple.schemas.dashboard import GoalsProgressResponse
from budget_couple.services.ports import FinanceStore
from budget_couple.services.report_service import FinanceReportService

router = APIRouter()


@router.get("/progress", response_model=GoalsProgressResponse)
async def goals_progress(
    current_user: User = Depends(get_current_user),
    store: FinanceStore = Depends(get_finance_store),
):
    """Ranked goal progress; time-to-complete uses this month's net savings."""
    service = FinanceReportService(store)
    return await service.goals_progress(current_user.id)
