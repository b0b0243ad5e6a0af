"""Dashboard report orchestration tests, against the in-memory store."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from budget_couple.schemas.finance import InsightCategory, TransactionType, UserProfile
from budget_couple.services.insights import FALLBACK_MESSAGE
from budget_couple.services.report_service import FinanceReportService

from conftest import ALICE, CATEGORIES, InMemoryFinanceStore, txn

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def at(month, day):
    year = 2026 if month <= 3 else 2025
    return datetime(year, month, day, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def report_store():
    return InMemoryFinanceStore(
        transactions=[
            # current month
            txn(1, "3000", "INCOME", 1, at(3, 1)),
            txn(2, "1200", "EXPENSE", 2, at(3, 2)),
            txn(3, "300", "EXPENSE", 3, at(3, 10), user_id=2),
            # previous month
            txn(4, "3000", "INCOME", 1, at(2, 1)),
            txn(5, "1000", "EXPENSE", 2, at(2, 3)),
            # older, inside the six month trend window
            txn(6, "500", "EXPENSE", 3, at(11, 20)),
            # another couple
            txn(7, "999", "EXPENSE", 2, at(3, 5), couple_id=99),
        ],
        categories=CATEGORIES,
        goals=[
            {"id": 1, "name": "Holiday", "target_amount": Decimal("3000"), "current_amount": Decimal("1500")},
            {"id": 2, "name": "Laptop", "target_amount": Decimal("1000"), "current_amount": Decimal("1000")},
            {"id": 3, "name": "Broken", "target_amount": Decimal("-1")},
        ],
        budgets=[
            {"id": 1, "name": "Rent", "category_id": 2, "amount": Decimal("1000")},
        ],
        profiles=[ALICE, UserProfile(user_id=3, name="Solo")],
    )


@pytest.mark.asyncio
async def test_dashboard_report(report_store):
    report = await FinanceReportService(report_store).build_dashboard(1, "month", now=NOW)

    assert report.has_data
    assert report.summary.total_income == Decimal("3000")
    assert report.summary.total_expenses == Decimal("1500")
    assert report.summary.balance == Decimal("1500")
    assert report.previous_summary.total_expenses == Decimal("1000")
    assert report.trend.spending_trend.value == "increasing"

    assert [p.month for p in report.monthly_trends] == ["2025-11", "2026-02", "2026-03"]
    assert [r.id for r in report.recent_transactions] == [3, 2, 1]

    laptop, holiday = report.goals
    assert holiday.name == "Holiday"
    assert holiday.months_to_complete == 1
    assert laptop.is_completed
    assert report.closest_goal.name == "Holiday"
    assert report.goals_summary.completed == 1

    [rent] = report.budgets
    assert rent.spent == Decimal("1200")
    assert rent.is_over_budget


@pytest.mark.asyncio
async def test_dashboard_insights_include_partner_comparison(report_store):
    report = await FinanceReportService(report_store).build_dashboard(1, "month", now=NOW)
    general = [i for i in report.trend.insights if i.category is InsightCategory.GENERAL]
    assert general[0].message.startswith("Alice logged more this period than Bob")


@pytest.mark.asyncio
async def test_user_without_couple_gets_empty_report(report_store):
    report = await FinanceReportService(report_store).build_dashboard(3, "month", now=NOW)
    assert not report.has_data
    assert report.summary.is_empty
    assert [i.message for i in report.trend.insights] == [FALLBACK_MESSAGE]


@pytest.mark.asyncio
async def test_unknown_user_gets_empty_report(report_store):
    report = await FinanceReportService(report_store).build_dashboard(42, "year", now=NOW)
    assert not report.has_data
    assert report.period.period.value == "year"


@pytest.mark.asyncio
async def test_category_breakdown_by_type(report_store):
    service = FinanceReportService(report_store)
    expenses = await service.category_breakdown(1, "month", now=NOW)
    assert [i.name for i in expenses.items] == ["Rent", "Groceries"]
    assert expenses.total == Decimal("1500")

    income = await service.category_breakdown(1, "month", TransactionType.INCOME, now=NOW)
    assert [i.name for i in income.items] == ["Salary"]


@pytest.mark.asyncio
async def test_trends_window(report_store):
    response = await FinanceReportService(report_store).trends(1, months=2, now=NOW)
    assert [p.month for p in response.points] == ["2026-02", "2026-03"]


@pytest.mark.asyncio
async def test_goals_progress(report_store):
    response = await FinanceReportService(report_store).goals_progress(1, now=NOW)
    assert [g.name for g in response.goals] == ["Laptop", "Holiday"]
    assert response.closest_goal.name == "Holiday"
    assert response.summary.total == 2


@pytest.fixture
def late_month_store():
    return InMemoryFinanceStore(
        transactions=[
            txn(1, "3000", "INCOME", 1, at(3, 1)),
            txn(2, "2000", "EXPENSE", 2, at(3, 28)),
        ],
        categories=CATEGORIES,
        goals=[{"id": 1, "name": "House", "target_amount": Decimal("5000"), "current_amount": Decimal("0")}],
        profiles=[ALICE],
    )


@pytest.mark.asyncio
async def test_goal_pace_counts_the_whole_current_month(late_month_store):
    service = FinanceReportService(late_month_store)

    report = await service.build_dashboard(1, "month", now=NOW)
    assert report.summary.balance == Decimal("1000")
    [house] = report.goals
    assert house.months_to_complete == 5
    assert report.monthly_trends[-1].net == Decimal("1000")

    response = await service.goals_progress(1, now=NOW)
    assert response.goals[0].months_to_complete == 5


@pytest.mark.asyncio
async def test_goal_pace_ignores_the_displayed_period(late_month_store):
    report = await FinanceReportService(late_month_store).build_dashboard(1, "week", now=NOW)
    assert report.summary.is_empty
    assert report.goals[0].months_to_complete == 5


@pytest.mark.asyncio
async def test_trends_include_rest_of_current_month(late_month_store):
    response = await FinanceReportService(late_month_store).trends(1, months=1, now=NOW)
    [march] = response.points
    assert (march.month, march.net, march.count) == ("2026-03", Decimal("1000"), 2)


@pytest.mark.asyncio
async def test_yearly_summary_covers_calendar_year(report_store):
    report = await FinanceReportService(report_store).build_dashboard(1, "month", now=NOW)
    yearly = report.yearly_summary
    # November 2025 belongs to the trend window, not to this year
    assert yearly.total_income == Decimal("6000")
    assert yearly.total_expenses == Decimal("2500")
    assert yearly.balance == Decimal("3500")
    assert yearly.transaction_count == 5
    assert yearly.average_transaction == Decimal("1700.00")


@pytest.mark.asyncio
async def test_partner_comparison_when_both_members_share_a_name():
    store = InMemoryFinanceStore(
        transactions=[
            txn(1, "3000", "INCOME", 1, at(3, 1), user_id=5, couple_id=20),
            txn(2, "400", "EXPENSE", 3, at(3, 2), user_id=6, couple_id=20),
        ],
        categories=CATEGORIES,
        profiles=[UserProfile(user_id=5, name="Sam", couple_id=20, partner_id=6, partner_name="Sam")],
    )
    report = await FinanceReportService(store).build_dashboard(5, "month", now=NOW)
    [general] = [i for i in report.trend.insights if i.category is InsightCategory.GENERAL]
    assert general.message == "Sam logged more this period than Sam (3,000.00 EUR vs 400.00 EUR)."
