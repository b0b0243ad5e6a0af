"""Collaborator interfaces the finance engine reads from.

The engine never talks to the database directly: request handlers hand it a
``FinanceStore`` and it only ever reads.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from budget_couple.schemas.finance import UserProfile


class FinanceStore(ABC):
    """Read-only access to a couple's financial records."""

    @abstractmethod
    async def list_transactions(
        self, couple_id: int, start: datetime, end: datetime
    ) -> Sequence[Any]:
        """All transactions of the couple dated within [start, end], inclusive."""

    @abstractmethod
    async def get_categories(self, ids: Iterable[int]) -> Sequence[Any]:
        """Categories by id; unknown ids are simply absent from the result."""

    @abstractmethod
    async def list_goals(self, couple_id: int) -> Sequence[Any]:
        """All savings goals of the couple."""

    @abstractmethod
    async def list_budgets(
        self, couple_id: int, start: datetime, end: datetime
    ) -> Sequence[Any]:
        """Active budgets overlapping [start, end]."""

    @abstractmethod
    async def get_profile(self, user_id: int) -> UserProfile | None:
        """Profile of the user and their partner, or None if the user is unknown."""
