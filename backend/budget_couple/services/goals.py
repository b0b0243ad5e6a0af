"""Savings-goal progress and budget consumption."""

import math
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from budget_couple.schemas.finance import (
    AggregateSnapshot,
    BudgetProgress,
    BudgetRecord,
    GoalProgress,
    GoalsSummary,
    SavingsGoalRecord,
)
from budget_couple.services.aggregation import ZERO, percentage_of


def goal_progress(goal: SavingsGoalRecord, monthly_net_savings: Decimal) -> GoalProgress:
    """Derive progress for one goal.

    ``months_to_complete`` is only computed when the couple is actually
    saving (``monthly_net_savings > 0``); otherwise it stays ``None``.
    """
    remaining = max(ZERO, goal.target_amount - goal.current_amount)
    percent = min(100.0, max(0.0, percentage_of(goal.current_amount, goal.target_amount)))

    months = None
    if monthly_net_savings > 0:
        months = math.ceil(remaining / monthly_net_savings)

    return GoalProgress(
        goal_id=goal.id,
        name=goal.name,
        priority=goal.priority,
        target_date=goal.target_date,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        percent_complete=percent,
        amount_remaining=remaining,
        months_to_complete=months,
        is_completed=goal.is_completed,
    )


def rank_goals(goals: Iterable[GoalProgress]) -> list[GoalProgress]:
    """Most advanced first; earlier deadlines break ties, then name."""
    return sorted(
        goals,
        key=lambda g: (
            -g.percent_complete,
            g.target_date is None,
            g.target_date or date.max,
            g.name,
        ),
    )


def closest_goal(goals: Iterable[GoalProgress]) -> GoalProgress | None:
    """The unfinished goal nearest to completion, if any has started."""
    for goal in rank_goals(goals):
        if not goal.is_completed and goal.percent_complete > 0:
            return goal
    return None


def summarize_goals(goals: Iterable[GoalProgress]) -> GoalsSummary:
    goals = list(goals)
    completed = sum(1 for g in goals if g.is_completed)
    total_target = sum((g.target_amount for g in goals), ZERO)
    total_current = sum((g.current_amount for g in goals), ZERO)
    return GoalsSummary(
        total=len(goals),
        completed=completed,
        active=len(goals) - completed,
        total_target_amount=total_target,
        total_current_amount=total_current,
        total_progress=percentage_of(total_current, total_target),
    )


def budget_progress(
    budgets: Iterable[BudgetRecord],
    snapshot: AggregateSnapshot,
) -> list[BudgetProgress]:
    """How much of each category budget the period's expenses consumed."""
    spent_by_category = {item.category_id: item.amount for item in snapshot.category_breakdown}
    result = []
    for budget in budgets:
        spent = spent_by_category.get(budget.category_id, ZERO)
        percentage = percentage_of(spent, budget.amount)
        result.append(
            BudgetProgress(
                budget_id=budget.id,
                name=budget.name,
                category_id=budget.category_id,
                amount=budget.amount,
                spent=spent,
                remaining=budget.amount - spent,
                percentage=percentage,
                is_over_budget=percentage > 100,
            )
        )
    return result
