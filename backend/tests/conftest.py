"""Shared test fixtures."""

from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from budget_couple.api.deps import get_chat_provider, get_current_user, get_finance_store
from budget_couple.main import app
from budget_couple.schemas.finance import UserProfile
from budget_couple.services.llm_provider import LLMProviderBase, LLMProviderError
from budget_couple.services.ports import FinanceStore


class InMemoryFinanceStore(FinanceStore):
    """FinanceStore over plain dicts, filtered the way the SQL store filters."""

    def __init__(
        self,
        transactions: Iterable[dict] = (),
        categories: Iterable[dict] = (),
        goals: Iterable[dict] = (),
        budgets: Iterable[dict] = (),
        profiles: Iterable[UserProfile] = (),
    ):
        self.transactions = list(transactions)
        self.categories = list(categories)
        self.goals = list(goals)
        self.budgets = list(budgets)
        self.profiles = {p.user_id: p for p in profiles}

    async def list_transactions(self, couple_id, start, end):
        return [
            t for t in self.transactions
            if t.get("couple_id", couple_id) == couple_id and start <= t["date"] <= end
        ]

    async def get_categories(self, ids):
        wanted = set(ids)
        return [c for c in self.categories if c["id"] in wanted]

    async def list_goals(self, couple_id):
        return [g for g in self.goals if g.get("couple_id", couple_id) == couple_id]

    async def list_budgets(self, couple_id, start, end):
        return [b for b in self.budgets if b.get("couple_id", couple_id) == couple_id]

    async def get_profile(self, user_id):
        return self.profiles.get(user_id)


class FakeLLMProvider(LLMProviderBase):
    name = "fake"
    model = "fake-model"

    def __init__(self, answer: str = "Here is my advice.", error: str | None = None):
        self.answer = answer
        self.error = error
        self.calls: list[tuple[str, list[dict]]] = []

    async def is_available(self) -> bool:
        return self.error is None

    async def chat(self, system_prompt, messages, temperature=None):
        self.calls.append((system_prompt, messages))
        if self.error:
            raise LLMProviderError(self.name, self.error)
        return self.answer


def txn(id, amount, type, category_id, date, user_id=1, couple_id=10, description=""):
    return {
        "id": id,
        "amount": Decimal(str(amount)),
        "type": type,
        "category_id": category_id,
        "date": date,
        "user_id": user_id,
        "couple_id": couple_id,
        "description": description or f"txn {id}",
    }


ALICE = UserProfile(
    user_id=1,
    name="Alice",
    email="alice@example.com",
    couple_id=10,
    couple_name="Alice & Bob",
    partner_id=2,
    partner_name="Bob",
)

CATEGORIES = [
    {"id": 1, "name": "Salary", "icon": "briefcase", "color": "#10B981", "type": "INCOME"},
    {"id": 2, "name": "Rent", "icon": "home", "color": "#EF4444", "type": "EXPENSE"},
    {"id": 3, "name": "Groceries", "icon": "shopping-cart", "color": "#F59E0B", "type": "EXPENSE"},
]


@pytest.fixture
def month_start() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


@pytest.fixture
def store(month_start) -> InMemoryFinanceStore:
    return InMemoryFinanceStore(
        transactions=[
            txn(1, "3000", "INCOME", 1, month_start),
            txn(2, "1000", "EXPENSE", 2, month_start),
            txn(3, "400", "EXPENSE", 3, month_start, user_id=2),
        ],
        categories=CATEGORIES,
        goals=[
            {"id": 1, "name": "Holiday", "target_amount": Decimal("2000"), "current_amount": Decimal("500")},
        ],
        profiles=[ALICE],
    )


@pytest.fixture
def fake_provider() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
async def client(store, fake_provider):
    """Async test client with auth, store and LLM provider overridden."""
    app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=1, name="Alice")
    app.dependency_overrides[get_finance_store] = lambda: store
    app.dependency_overrides[get_chat_provider] = lambda: fake_provider
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def anonymous_client():
    """Async test client without any auth override."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
