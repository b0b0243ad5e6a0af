"""Category model."""

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_couple.models.base import Base, TimestampMixin


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    couple_id: Mapped[int | None] = mapped_column(ForeignKey("couple_profiles.id"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)  # hex color
    type: Mapped[str] = mapped_column(String(10), nullable=False)  # INCOME, EXPENSE
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

    couple = relationship("CoupleProfile", back_populates="categories")
    transactions = relationship("Transaction", back_populates="category")
