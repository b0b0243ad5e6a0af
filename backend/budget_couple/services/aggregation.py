"""Transaction aggregation: totals, category breakdowns and monthly series.

All functions here are pure: they receive already-fetched records and return
fresh output. Filtering by couple and period is the store's job.
"""

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from budget_couple.schemas.finance import (
    AggregateSnapshot,
    BudgetRecord,
    CategoryBreakdownItem,
    CategoryRecord,
    MonthlyTrendPoint,
    RecentTransaction,
    SavingsGoalRecord,
    TransactionRecord,
    TransactionType,
)

logger = structlog.get_logger()

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

UNKNOWN_CATEGORY_NAME = "Unknown"
UNKNOWN_CATEGORY_ICON = "help-circle"
UNKNOWN_CATEGORY_COLOR = "#6B7280"

RecordT = TypeVar("RecordT", bound=BaseModel)


# ── Boundary validation ───────────────────────────


def _coerce(raw: Iterable[Any], model: type[RecordT]) -> list[RecordT]:
    """Validate each item into ``model``; skip (and log) the malformed ones."""
    records = []
    for item in raw:
        if isinstance(item, model):
            records.append(item)
            continue
        try:
            if isinstance(item, Mapping):
                records.append(model.model_validate(item))
            else:
                records.append(model.model_validate(item, from_attributes=True))
        except ValidationError as e:
            logger.warning(
                "malformed_record_skipped",
                record_type=model.__name__,
                record_id=_record_id(item),
                errors=[err["loc"] for err in e.errors()],
            )
    return records


def _record_id(item: Any) -> Any:
    if isinstance(item, Mapping):
        return item.get("id")
    return getattr(item, "id", None)


def coerce_transactions(raw: Iterable[Any]) -> list[TransactionRecord]:
    return _coerce(raw, TransactionRecord)


def coerce_categories(raw: Iterable[Any]) -> dict[int, CategoryRecord]:
    return {c.id: c for c in _coerce(raw, CategoryRecord)}


def coerce_goals(raw: Iterable[Any]) -> list[SavingsGoalRecord]:
    return _coerce(raw, SavingsGoalRecord)


def coerce_budgets(raw: Iterable[Any]) -> list[BudgetRecord]:
    return _coerce(raw, BudgetRecord)


# ── Aggregation ───────────────────────────────────


def percentage_of(part: Decimal, total: Decimal) -> float:
    """part / total * 100 as a float; a zero total yields 0."""
    if not total:
        return 0.0
    return float(part / total * HUNDRED)


def _breakdown(
    transactions: list[TransactionRecord],
    txn_type: TransactionType,
    total: Decimal,
    categories: Mapping[int, CategoryRecord],
) -> list[CategoryBreakdownItem]:
    groups: dict[int, list] = {}
    for txn in transactions:
        if txn.type is not txn_type:
            continue
        group = groups.setdefault(txn.category_id, [ZERO, 0])
        group[0] += txn.amount
        group[1] += 1

    items = []
    for category_id, (amount, count) in groups.items():
        category = categories.get(category_id)
        items.append(
            CategoryBreakdownItem(
                category_id=category_id,
                name=category.name if category else UNKNOWN_CATEGORY_NAME,
                icon=(category.icon if category else None) or UNKNOWN_CATEGORY_ICON,
                color=(category.color if category else None) or UNKNOWN_CATEGORY_COLOR,
                type=txn_type,
                amount=amount,
                count=count,
                percentage=percentage_of(amount, total),
            )
        )

    items.sort(key=lambda i: (-i.amount, i.name, i.category_id))
    return items


def aggregate(
    transactions: Iterable[Any],
    categories: Mapping[int, CategoryRecord] | None = None,
) -> AggregateSnapshot:
    """Sum income and expenses and break both down by category.

    Breakdown entries are sorted by amount descending, then category name
    ascending, so equal inputs always give identical snapshots. Malformed
    records are dropped at the boundary rather than counted as zero.
    """
    txns = coerce_transactions(transactions)
    categories = categories or {}

    total_income = sum((t.amount for t in txns if t.type is TransactionType.INCOME), ZERO)
    total_expenses = sum((t.amount for t in txns if t.type is TransactionType.EXPENSE), ZERO)
    balance = total_income - total_expenses
    average = ZERO
    if txns:
        average = ((total_income + total_expenses) / len(txns)).quantize(CENT, ROUND_HALF_UP)

    return AggregateSnapshot(
        total_income=total_income,
        total_expenses=total_expenses,
        balance=balance,
        transaction_count=len(txns),
        average_transaction=average,
        savings_rate=percentage_of(balance, total_income),
        category_breakdown=_breakdown(txns, TransactionType.EXPENSE, total_expenses, categories),
        income_breakdown=_breakdown(txns, TransactionType.INCOME, total_income, categories),
    )


def monthly_trends(transactions: Iterable[TransactionRecord]) -> list[MonthlyTrendPoint]:
    """One row per calendar month with income, expenses, net and count."""
    months: dict[str, list] = {}
    for txn in transactions:
        row = months.setdefault(txn.date.strftime("%Y-%m"), [ZERO, ZERO, 0])
        if txn.type is TransactionType.INCOME:
            row[0] += txn.amount
        else:
            row[1] += txn.amount
        row[2] += 1

    return [
        MonthlyTrendPoint(
            month=month,
            income=income,
            expenses=expenses,
            net=income - expenses,
            count=count,
        )
        for month, (income, expenses, count) in sorted(months.items())
    ]


def member_totals(transactions: Iterable[TransactionRecord]) -> dict[int, Decimal]:
    """Total amount logged per couple member (transactions without a user are ignored)."""
    totals: dict[int, Decimal] = {}
    for txn in transactions:
        if txn.user_id is None:
            continue
        totals[txn.user_id] = totals.get(txn.user_id, ZERO) + txn.amount
    return totals


def recent_transactions(
    transactions: Iterable[TransactionRecord],
    categories: Mapping[int, CategoryRecord] | None = None,
    limit: int = 5,
) -> list[RecentTransaction]:
    categories = categories or {}
    latest = sorted(transactions, key=lambda t: (t.date, t.id), reverse=True)[:limit]
    result = []
    for txn in latest:
        category = categories.get(txn.category_id)
        result.append(
            RecentTransaction(
                id=txn.id,
                amount=txn.amount,
                type=txn.type,
                description=txn.description,
                date=txn.date,
                category_name=category.name if category else UNKNOWN_CATEGORY_NAME,
                category_icon=(category.icon if category else None) or UNKNOWN_CATEGORY_ICON,
                category_color=(category.color if category else None) or UNKNOWN_CATEGORY_COLOR,
            )
        )
    return result
