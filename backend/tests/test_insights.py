"""Trend classification and insight rule tests."""

from datetime import datetime
from decimal import Decimal

import pytest

from budget_couple.schemas.finance import (
    AggregateSnapshot,
    InsightCategory,
    InsightSeverity,
    SavingsGoalRecord,
    SpendingTrend,
)
from budget_couple.services.aggregation import aggregate
from budget_couple.services.goals import goal_progress
from budget_couple.services.insights import (
    FALLBACK_MESSAGE,
    classify_trend,
    format_money,
    generate_insights,
)

from conftest import txn

D = datetime(2026, 3, 5)


def snapshot(income="0", *expenses):
    rows = []
    if Decimal(income):
        rows.append(txn(1, income, "INCOME", 1, D))
    for i, amount in enumerate(expenses, start=2):
        rows.append(txn(i, amount, "EXPENSE", i, D))
    return aggregate(rows)


def by_category(report, category):
    return [i for i in report.insights if i.category is category]


@pytest.mark.parametrize(
    "current,previous,expected",
    [
        ("105", "100", SpendingTrend.STABLE),
        ("106", "100", SpendingTrend.INCREASING),
        ("95", "100", SpendingTrend.STABLE),
        ("94", "100", SpendingTrend.DECREASING),
        ("0", "0", SpendingTrend.STABLE),
        ("10", "0", SpendingTrend.INCREASING),
    ],
)
def test_classify_trend_deadband(current, previous, expected):
    assert classify_trend(Decimal(current), Decimal(previous)) is expected


def test_empty_period_yields_only_fallback():
    report = generate_insights(AggregateSnapshot(), AggregateSnapshot())
    assert [i.message for i in report.insights] == [FALLBACK_MESSAGE]
    assert report.spending_trend is SpendingTrend.STABLE


def test_empty_period_still_reports_goals():
    goals = [goal_progress(
        SavingsGoalRecord(id=1, name="Trip", target_amount=Decimal("100"), current_amount=Decimal("100")),
        Decimal("0"),
    )]
    report = generate_insights(AggregateSnapshot(), snapshot("0", "80"), goals=goals)
    assert report.insights[0].message == FALLBACK_MESSAGE
    assert by_category(report, InsightCategory.TREND) == []
    assert "completed 1 savings goal." in by_category(report, InsightCategory.GOALS)[0].message


def test_high_savings_rate_is_praised():
    report = generate_insights(snapshot("1000", "200", "150", "150"), AggregateSnapshot())
    [insight] = by_category(report, InsightCategory.SAVINGS)
    assert insight.severity is InsightSeverity.POSITIVE
    assert "50.0%" in insight.message


def test_low_savings_rate_warns():
    report = generate_insights(snapshot("1000", "320", "320", "310"), AggregateSnapshot())
    [insight] = by_category(report, InsightCategory.SAVINGS)
    assert insight.severity is InsightSeverity.WARNING


def test_savings_rules_need_income():
    report = generate_insights(snapshot("0", "50"), AggregateSnapshot())
    assert by_category(report, InsightCategory.SAVINGS) == []


def test_overspending_is_critical_and_rules_do_not_suppress_each_other():
    report = generate_insights(snapshot("100", "150"), AggregateSnapshot())
    [balance] = by_category(report, InsightCategory.BALANCE)
    assert balance.severity is InsightSeverity.CRITICAL
    assert format_money(Decimal("50")) in balance.message
    assert by_category(report, InsightCategory.SAVINGS)[0].severity is InsightSeverity.WARNING
    assert by_category(report, InsightCategory.SPENDING)


def test_category_concentration():
    concentrated = generate_insights(snapshot("1000", "500", "100"), AggregateSnapshot())
    [insight] = by_category(concentrated, InsightCategory.SPENDING)
    assert insight.severity is InsightSeverity.WARNING

    spread = generate_insights(snapshot("1000", "34", "33", "33"), AggregateSnapshot())
    assert by_category(spread, InsightCategory.SPENDING) == []


def test_trend_insights():
    up = generate_insights(snapshot("1000", "100", "100"), snapshot("1000", "100"))
    assert up.spending_trend is SpendingTrend.INCREASING
    assert up.expense_change == Decimal("100")
    assert "up 100.00 EUR" in by_category(up, InsightCategory.TREND)[0].message

    down = generate_insights(snapshot("1000", "100"), snapshot("1000", "100", "100"))
    [insight] = by_category(down, InsightCategory.TREND)
    assert insight.severity is InsightSeverity.POSITIVE

    flat = generate_insights(snapshot("1000", "103"), snapshot("1000", "100"))
    assert by_category(flat, InsightCategory.TREND) == []


def test_closest_goal_insight_mentions_months():
    goal = goal_progress(
        SavingsGoalRecord(id=1, name="Sofa", target_amount=Decimal("1000"), current_amount=Decimal("400")),
        Decimal("300"),
    )
    report = generate_insights(snapshot("1000", "700"), AggregateSnapshot(), goals=[goal])
    [insight] = by_category(report, InsightCategory.GOALS)
    assert '"Sofa" at 40.0%' in insight.message
    assert "2 months" in insight.message


def test_partner_comparison():
    names = {1: "Alice", 2: "Bob"}
    totals = {1: Decimal("300"), 2: Decimal("120")}
    report = generate_insights(
        snapshot("1000", "400"), AggregateSnapshot(), member_totals=totals, member_names=names
    )
    [insight] = by_category(report, InsightCategory.GENERAL)
    assert insight.message.startswith("Alice logged more this period than Bob")

    even = {1: Decimal("100"), 2: Decimal("100")}
    report = generate_insights(
        snapshot("1000", "400"), AggregateSnapshot(), member_totals=even, member_names=names
    )
    assert by_category(report, InsightCategory.GENERAL) == []


def test_partner_comparison_with_identical_names():
    names = {1: "Sam", 2: "Sam"}
    totals = {1: Decimal("120"), 2: Decimal("300")}
    report = generate_insights(
        snapshot("1000", "400"), AggregateSnapshot(), member_totals=totals, member_names=names
    )
    [insight] = by_category(report, InsightCategory.GENERAL)
    assert insight.message == "Sam logged more this period than Sam (300.00 EUR vs 120.00 EUR)."


def test_income_change_insights():
    up = generate_insights(snapshot("1200", "100"), snapshot("1000", "100"))
    [insight] = by_category(up, InsightCategory.TREND)
    assert insight.severity is InsightSeverity.POSITIVE
    assert insight.message == "Your income increased by 200.00 EUR compared with the previous period."
    assert up.income_change == Decimal("200")

    down = generate_insights(snapshot("800", "100"), snapshot("1000", "100"))
    [insight] = by_category(down, InsightCategory.TREND)
    assert insight.severity is InsightSeverity.WARNING
    assert "income decreased by 200.00 EUR" in insight.message

    same = generate_insights(snapshot("1000", "100"), snapshot("1000", "100"))
    assert by_category(same, InsightCategory.TREND) == []


def test_income_change_skipped_for_empty_period():
    report = generate_insights(AggregateSnapshot(), snapshot("1000", "100"))
    assert by_category(report, InsightCategory.TREND) == []


def test_format_money():
    assert format_money(Decimal("1234.5"), "EUR") == "1,234.50 EUR"
