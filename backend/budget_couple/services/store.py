"""SQLAlchemy-backed implementation of the finance store."""

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from budget_couple.models.category import Category
from budget_couple.models.savings_goal import Budget, SavingsGoal
from budget_couple.models.transaction import Transaction
from budget_couple.models.user import User
from budget_couple.schemas.finance import UserProfile
from budget_couple.services.ports import FinanceStore


class SqlFinanceStore(FinanceStore):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_transactions(
        self, couple_id: int, start: datetime, end: datetime
    ) -> Sequence[Transaction]:
        result = await self.db.execute(
            select(Transaction)
            .where(
                Transaction.couple_id == couple_id,
                Transaction.date >= start,
                Transaction.date <= end,
            )
            .order_by(Transaction.date.desc(), Transaction.id.desc())
        )
        return result.scalars().all()

    async def get_categories(self, ids: Iterable[int]) -> Sequence[Category]:
        ids = list(set(ids))
        if not ids:
            return []
        result = await self.db.execute(select(Category).where(Category.id.in_(ids)))
        return result.scalars().all()

    async def list_goals(self, couple_id: int) -> Sequence[SavingsGoal]:
        result = await self.db.execute(
            select(SavingsGoal)
            .where(SavingsGoal.couple_id == couple_id)
            .order_by(SavingsGoal.created_at.desc())
        )
        return result.scalars().all()

    async def list_budgets(
        self, couple_id: int, start: datetime, end: datetime
    ) -> Sequence[Budget]:
        result = await self.db.execute(
            select(Budget).where(
                Budget.couple_id == couple_id,
                Budget.is_active.is_(True),
                Budget.start_date <= end.date(),
                or_(Budget.end_date.is_(None), Budget.end_date >= start.date()),
            )
        )
        return result.scalars().all()

    async def get_profile(self, user_id: int) -> UserProfile | None:
        result = await self.db.execute(
            select(User).options(selectinload(User.couple)).where(User.id == user_id)
        )
        user = result.scalar_one_or_none()
        if user is None:
            return None

        profile = UserProfile(
            user_id=user.id,
            name=user.name,
            email=user.email,
            couple_id=user.couple_id,
            currency=user.currency or "EUR",
        )
        if user.couple is not None:
            partner = next((u for u in user.couple.users if u.id != user.id), None)
            profile = profile.model_copy(update={
                "couple_name": user.couple.name,
                "partner_id": partner.id if partner else None,
                "partner_name": partner.name if partner else None,
            })
        return profile
