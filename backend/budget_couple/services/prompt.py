"""System prompt assembly for the finance chatbot.

The prompt is human-readable text, not a machine format. It must be fully
determined by its inputs (no clock reads) so it can be unit tested without
calling a model.
"""

from collections.abc import Iterable

from budget_couple.schemas.finance import (
    AggregateSnapshot,
    GoalProgress,
    Insight,
    PeriodRange,
    RecentTransaction,
    TrendReport,
    UserProfile,
)
from budget_couple.services.insights import format_money, plural

_PREAMBLE = """\
You are FinanceBot, the AI assistant of Budget Couple, an app that helps couples manage their money together.

Personality and style:
- Professional but warm, with financial empathy.
- Give practical, specific advice based on the user's real data.
- Stay positive and motivating, but realistic about their situation.

Capabilities:
- Analyse spending patterns and suggest optimisations.
- Project savings and estimate time to reach goals.
- Compare the current period with the previous one.
- Break expenses down by category with percentages.
- Give couple-specific advice on shared finances."""

_NO_DATA_TEMPLATE = """\
=== CURRENT STATE: NO FINANCIAL DATA YET ===
User: {name}
{couple_line}

Immediate recommendations:
1. Set up a couple profile if there is none yet.
2. Log the first transactions so the analysis can start.
3. Create a first savings goal.

Focus on guiding the user to start using the app."""

_INSTRUCTIONS = """\
=== INSTRUCTIONS ===
1. Always use the real figures above when giving advice.
2. Quote exact amounts and percentages when relevant.
3. Compare periods when asked about trends.
4. Suggest realistic goals based on the current savings capacity.
5. If you lack the data to answer, say so clearly.
6. Consider the couple's situation in every piece of advice."""

TOP_CATEGORIES = 5
RECENT_TRANSACTIONS = 5


def _couple_line(profile: UserProfile) -> str:
    if profile.partner_name:
        couple = f' ("{profile.couple_name}")' if profile.couple_name else ""
        return f"Partner: {profile.partner_name}{couple}"
    return "Partner: not configured"


def _format_period(period: PeriodRange | None) -> str:
    if period is None:
        return ""
    return (
        f"Period analysed: {period.period.value} "
        f"({period.start.date().isoformat()} to {period.end.date().isoformat()})"
    )


def _format_summary(snapshot: AggregateSnapshot, currency: str) -> str:
    status = "positive" if snapshot.balance >= 0 else "negative"
    return "\n".join([
        "=== PERIOD SUMMARY ===",
        f"Income: {format_money(snapshot.total_income, currency)}",
        f"Expenses: {format_money(snapshot.total_expenses, currency)}",
        f"Balance: {format_money(snapshot.balance, currency)} ({status})",
        f"Savings rate: {snapshot.savings_rate:.1f}%",
        f"Transactions: {snapshot.transaction_count}",
    ])


def _format_trend(trend: TrendReport, currency: str) -> str:
    return "\n".join([
        "=== COMPARISON WITH PREVIOUS PERIOD ===",
        f"Expenses: {format_money(trend.previous_expenses, currency)} -> "
        f"{format_money(trend.current_expenses, currency)} "
        f"({'+' if trend.expense_change >= 0 else ''}{format_money(trend.expense_change, currency)})",
        f"Income change: {'+' if trend.income_change >= 0 else ''}{format_money(trend.income_change, currency)}",
        f"Spending trend: {trend.spending_trend.value}",
    ])


def _format_yearly(yearly: AggregateSnapshot, currency: str) -> str:
    return "\n".join([
        "=== ANNUAL OVERVIEW ===",
        f"Income this year: {format_money(yearly.total_income, currency)}",
        f"Expenses this year: {format_money(yearly.total_expenses, currency)}",
        f"Annual balance: {format_money(yearly.balance, currency)}",
        f"Average transaction: {format_money(yearly.average_transaction, currency)}",
    ])


def _format_categories(snapshot: AggregateSnapshot, currency: str) -> str:
    lines = [f"=== EXPENSES BY CATEGORY (top {TOP_CATEGORIES}) ==="]
    if not snapshot.category_breakdown:
        lines.append("No expenses recorded.")
    for index, item in enumerate(snapshot.category_breakdown[:TOP_CATEGORIES], start=1):
        lines.append(
            f"{index}. {item.name}: {format_money(item.amount, currency)} "
            f"({item.percentage:.1f}%) - {item.count} transactions"
        )
    return "\n".join(lines)


def _format_goal(index: int, goal: GoalProgress, currency: str) -> str:
    if goal.months_to_complete is not None:
        months = goal.months_to_complete
        eta = f"estimated {months} {plural(months, 'month')} to complete"
    else:
        eta = "time to complete not computable"
    deadline = f"deadline {goal.target_date.isoformat()}" if goal.target_date else "no deadline"
    state = "COMPLETED" if goal.is_completed else "in progress"
    return (
        f'{index}. "{goal.name}" ({goal.priority.value.lower()} priority): '
        f"{format_money(goal.current_amount, currency)} / {format_money(goal.target_amount, currency)} "
        f"({goal.percent_complete:.1f}%), {format_money(goal.amount_remaining, currency)} remaining, "
        f"{deadline}, {eta}, {state}"
    )


def _format_goals(goals: list[GoalProgress], currency: str) -> str:
    lines = ["=== SAVINGS GOALS ==="]
    if not goals:
        lines.append("No savings goals configured.")
    for index, goal in enumerate(goals, start=1):
        lines.append(_format_goal(index, goal, currency))
    return "\n".join(lines)


def _format_recent(recent: list[RecentTransaction], currency: str) -> str:
    lines = ["=== RECENT TRANSACTIONS ==="]
    if not recent:
        lines.append("No recent transactions.")
    for item in recent[:RECENT_TRANSACTIONS]:
        lines.append(
            f"- {item.date.date().isoformat()} {item.type.value.lower()} "
            f"{format_money(item.amount, currency)} - {item.description or 'no description'} "
            f"({item.category_name})"
        )
    return "\n".join(lines)


def _format_insights(insights: list[Insight]) -> str:
    lines = ["=== KEY INSIGHTS ==="]
    if not insights:
        lines.append("No insights available.")
    for insight in insights:
        lines.append(f"- [{insight.severity.value}] {insight.message}")
    return "\n".join(lines)


def build_system_prompt(
    profile: UserProfile,
    snapshot: AggregateSnapshot,
    goals: Iterable[GoalProgress],
    insights: Iterable[Insight],
    trend: TrendReport | None = None,
    period: PeriodRange | None = None,
    yearly: AggregateSnapshot | None = None,
    recent: Iterable[RecentTransaction] = (),
) -> str:
    """Render the couple's financial snapshot as the chatbot's system prompt.

    The comparison and annual sections are only rendered when `trend` and
    `yearly` are given.
    """
    goals = list(goals)
    recent = list(recent)
    insights = list(insights)
    currency = profile.currency

    if snapshot.is_empty and not goals:
        return "\n\n".join([
            _PREAMBLE,
            _NO_DATA_TEMPLATE.format(name=profile.name, couple_line=_couple_line(profile)),
            _format_insights(insights),
        ])

    profile_lines = [
        "=== USER PROFILE ===",
        f"User: {profile.name}",
        _couple_line(profile),
        f"Currency: {currency}",
    ]
    period_line = _format_period(period)
    if period_line:
        profile_lines.append(period_line)

    sections = [
        _PREAMBLE,
        "\n".join(profile_lines),
        _format_summary(snapshot, currency),
    ]
    if trend is not None:
        sections.append(_format_trend(trend, currency))
    if yearly is not None:
        sections.append(_format_yearly(yearly, currency))
    sections.extend([
        _format_categories(snapshot, currency),
        _format_goals(goals, currency),
        _format_recent(recent, currency),
        _format_insights(insights),
        _INSTRUCTIONS,
    ])
    return "\n\n".join(sections)
