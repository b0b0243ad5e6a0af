"""Spending trend classification and natural-language insights.

Every rule is evaluated independently and all matching insights are
emitted; no rule suppresses another. Nothing here raises on data states:
empty periods and zero totals simply produce fewer (or fallback) insights.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal

from budget_couple.schemas.finance import (
    AggregateSnapshot,
    GoalProgress,
    Insight,
    InsightCategory,
    InsightSeverity,
    InsightThresholds,
    SpendingTrend,
    TrendReport,
)
from budget_couple.services.goals import closest_goal

FALLBACK_MESSAGE = (
    "No transactions recorded for this period yet. "
    "Keep logging transactions to unlock personalised insights."
)


def format_money(amount: Decimal, currency: str = "EUR") -> str:
    return f"{amount:,.2f} {currency}"


def plural(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"


def classify_trend(
    current: Decimal,
    previous: Decimal,
    deadband: float = 0.05,
) -> SpendingTrend:
    """Compare two expense totals with a ±deadband tolerance.

    A 5% deadband means 105 vs 100 is still "stable"; only 106 and above
    counts as increasing.
    """
    band = Decimal(str(deadband))
    if current > previous * (1 + band):
        return SpendingTrend.INCREASING
    if current < previous * (1 - band):
        return SpendingTrend.DECREASING
    return SpendingTrend.STABLE


def _savings_insights(snapshot: AggregateSnapshot, thresholds: InsightThresholds) -> list[Insight]:
    if snapshot.total_income <= 0:
        return []
    rate = snapshot.savings_rate
    insights = []
    if rate > thresholds.high_savings_rate:
        insights.append(Insight(
            message=f"Great job: you are saving {rate:.1f}% of your income this period.",
            severity=InsightSeverity.POSITIVE,
            category=InsightCategory.SAVINGS,
        ))
    if rate < thresholds.low_savings_rate:
        insights.append(Insight(
            message=(
                f"Your savings rate is only {rate:.1f}%. "
                f"Try to keep at least {thresholds.low_savings_rate:.0f}% of your income aside."
            ),
            severity=InsightSeverity.WARNING,
            category=InsightCategory.SAVINGS,
        ))
    return insights


def _concentration_insight(snapshot: AggregateSnapshot, thresholds: InsightThresholds) -> Insight | None:
    top = snapshot.top_category
    if top is None or top.percentage <= thresholds.category_concentration:
        return None
    return Insight(
        message=(
            f"{top.name} accounts for {top.percentage:.1f}% of your expenses. "
            "Consider spreading your spending or setting a budget for it."
        ),
        severity=InsightSeverity.WARNING,
        category=InsightCategory.SPENDING,
    )


def _balance_insight(snapshot: AggregateSnapshot, currency: str) -> Insight | None:
    if snapshot.balance >= 0:
        return None
    return Insight(
        message=(
            f"You are spending {format_money(-snapshot.balance, currency)} "
            "more than you earn this period."
        ),
        severity=InsightSeverity.CRITICAL,
        category=InsightCategory.BALANCE,
    )


def _trend_insight(trend: SpendingTrend, change: Decimal, currency: str) -> Insight | None:
    if trend is SpendingTrend.INCREASING:
        return Insight(
            message=f"Spending is up {format_money(change, currency)} compared with the previous period.",
            severity=InsightSeverity.WARNING,
            category=InsightCategory.TREND,
        )
    if trend is SpendingTrend.DECREASING:
        return Insight(
            message=f"You cut spending by {format_money(-change, currency)} compared with the previous period.",
            severity=InsightSeverity.POSITIVE,
            category=InsightCategory.TREND,
        )
    return None


def _goal_insights(goals: list[GoalProgress]) -> list[Insight]:
    insights = []
    completed = sum(1 for g in goals if g.is_completed)
    if completed:
        insights.append(Insight(
            message=f"Congratulations! You have completed {completed} savings {plural(completed, 'goal')}.",
            severity=InsightSeverity.POSITIVE,
            category=InsightCategory.GOALS,
        ))

    goal = closest_goal(goals)
    if goal is not None:
        message = f'Your most advanced goal is "{goal.name}" at {goal.percent_complete:.1f}%.'
        if goal.months_to_complete:
            months = goal.months_to_complete
            message += f" At the current pace you will reach it in {months} {plural(months, 'month')}."
        insights.append(Insight(message=message, category=InsightCategory.GOALS))
    return insights


def _income_insight(change: Decimal, currency: str) -> Insight | None:
    if change > 0:
        return Insight(
            message=f"Your income increased by {format_money(change, currency)} compared with the previous period.",
            severity=InsightSeverity.POSITIVE,
            category=InsightCategory.TREND,
        )
    if change < 0:
        return Insight(
            message=f"Your income decreased by {format_money(-change, currency)} compared with the previous period.",
            severity=InsightSeverity.WARNING,
            category=InsightCategory.TREND,
        )
    return None


def _partner_insight(
    member_totals: Mapping[int, Decimal],
    member_names: Mapping[int, str],
    currency: str,
) -> Insight | None:
    """Compare the two members by user id; names are only used for display."""
    if len(member_totals) != 2:
        return None
    (id_a, total_a), (id_b, total_b) = sorted(
        member_totals.items(), key=lambda kv: (-kv[1], kv[0])
    )
    if total_a == total_b:
        return None
    name_a = member_names.get(id_a, "Partner")
    name_b = member_names.get(id_b, "Partner")
    return Insight(
        message=(
            f"{name_a} logged more this period than {name_b} "
            f"({format_money(total_a, currency)} vs {format_money(total_b, currency)})."
        ),
        category=InsightCategory.GENERAL,
    )


def generate_insights(
    current: AggregateSnapshot,
    previous: AggregateSnapshot,
    goals: Iterable[GoalProgress] = (),
    thresholds: InsightThresholds | None = None,
    member_totals: Mapping[int, Decimal] | None = None,
    member_names: Mapping[int, str] | None = None,
    currency: str = "EUR",
) -> TrendReport:
    """Classify the spending trend and collect every applicable insight.

    An empty current period yields the "keep logging" fallback; the
    comparison-based rules are skipped since there is nothing to compare,
    but goal insights still apply.
    """
    thresholds = thresholds or InsightThresholds()
    goals = list(goals)

    trend = classify_trend(current.total_expenses, previous.total_expenses, thresholds.trend_deadband)
    expense_change = current.total_expenses - previous.total_expenses
    income_change = current.total_income - previous.total_income

    insights: list[Insight] = []
    if current.is_empty:
        insights.append(Insight(message=FALLBACK_MESSAGE))
    else:
        insights.extend(_savings_insights(current, thresholds))
        for insight in (
            _concentration_insight(current, thresholds),
            _balance_insight(current, currency),
            _trend_insight(trend, expense_change, currency),
            _income_insight(income_change, currency),
            _partner_insight(member_totals or {}, member_names or {}, currency),
        ):
            if insight is not None:
                insights.append(insight)
    insights.extend(_goal_insights(goals))

    return TrendReport(
        spending_trend=trend,
        current_expenses=current.total_expenses,
        previous_expenses=previous.total_expenses,
        expense_change=expense_change,
        income_change=income_change,
        insights=insights,
    )
