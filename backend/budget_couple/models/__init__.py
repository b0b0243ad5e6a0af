"""SQLAlchemy models."""

from budget_couple.models.base import Base
from budget_couple.models.category import Category
from budget_couple.models.couple import CoupleProfile
from budget_couple.models.savings_goal import Budget, SavingsGoal
from budget_couple.models.transaction import Transaction
from budget_couple.models.user import User

__all__ = [
    "Base",
    "User",
    "CoupleProfile",
    "Category",
    "Transaction",
    "SavingsGoal",
    "Budget",
]
