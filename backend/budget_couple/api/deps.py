"""Shared API dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from budget_couple.core.database import get_db
from budget_couple.core.security import get_current_user
from budget_couple.services.llm_provider import LLMProviderBase, get_llm_provider
from budget_couple.services.ports import FinanceStore
from budget_couple.services.store import SqlFinanceStore


async def get_finance_store(db: AsyncSession = Depends(get_db)) -> FinanceStore:
    return SqlFinanceStore(db)


def get_chat_provider() -> LLMProviderBase:
    return get_llm_provider()


__all__ = ["get_db", "get_current_user", "get_finance_store", "get_chat_provider"]
