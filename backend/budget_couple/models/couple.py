"""Couple profile model: the unit that owns shared finances."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_couple.models.base import Base, TimestampMixin


class CoupleProfile(Base, TimestampMixin):
    __tablename__ = "couple_profiles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    default_currency: Mapped[str] = mapped_column(String(3), default="EUR")

    users = relationship("User", back_populates="couple", lazy="selectin")
    categories = relationship("Category", back_populates="couple", lazy="select")
    savings_goals = relationship("SavingsGoal", back_populates="couple", lazy="select")
