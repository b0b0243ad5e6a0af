"""Dashboard report service: wires the store to the finance engine.

The engine modules (periods, aggregation, goals, insights) are pure; this
service is the only place that fetches data, and it only reads.
"""

from datetime import datetime, timezone
from decimal import Decimal

import structlog

from budget_couple.config import settings
from budget_couple.schemas.dashboard import (
    CategoryBreakdownResponse,
    ChatContext,
    DashboardReport,
    GoalsProgressResponse,
    MonthlyTrendsResponse,
)
from budget_couple.schemas.finance import (
    AggregateSnapshot,
    CategoryRecord,
    GoalProgress,
    InsightThresholds,
    PeriodKeyword,
    PeriodRange,
    TransactionRecord,
    TransactionType,
    UserProfile,
)
from budget_couple.services.aggregation import (
    aggregate,
    coerce_budgets,
    coerce_categories,
    coerce_goals,
    coerce_transactions,
    member_totals,
    monthly_trends,
    recent_transactions,
)
from budget_couple.services.goals import (
    budget_progress,
    closest_goal,
    goal_progress,
    rank_goals,
    summarize_goals,
)
from budget_couple.services.insights import generate_insights
from budget_couple.services.periods import months_back, previous_period, resolve_period
from budget_couple.services.ports import FinanceStore

logger = structlog.get_logger()


def month_net(transactions: list[TransactionRecord], now: datetime) -> Decimal:
    """Net savings (income minus expenses) of the whole calendar month of `now`."""
    month = resolve_period(PeriodKeyword.MONTH, now)
    return aggregate(t for t in transactions if month.contains(t.date)).balance


def thresholds_from_settings() -> InsightThresholds:
    return InsightThresholds(
        high_savings_rate=settings.insight_high_savings_rate,
        low_savings_rate=settings.insight_low_savings_rate,
        category_concentration=settings.insight_category_concentration,
        trend_deadband=settings.trend_deadband,
    )


class FinanceReportService:
    def __init__(
        self,
        store: FinanceStore,
        thresholds: InsightThresholds | None = None,
        trend_months: int | None = None,
        recent_limit: int | None = None,
    ):
        self.store = store
        self.thresholds = thresholds or thresholds_from_settings()
        self.trend_months = trend_months or settings.dashboard_trend_months
        self.recent_limit = recent_limit or settings.dashboard_recent_transactions

    # ── Profile ───────────────────────────────────

    async def load_profile(self, user_id: int) -> UserProfile:
        profile = await self.store.get_profile(user_id)
        if profile is None:
            logger.warning("profile_not_found", user_id=user_id)
            return UserProfile(user_id=user_id, currency=settings.default_currency)
        return profile

    # ── Fetch helpers ─────────────────────────────

    async def _fetch_transactions(
        self, couple_id: int, start: datetime, end: datetime
    ) -> tuple[list[TransactionRecord], dict[int, CategoryRecord]]:
        transactions = coerce_transactions(
            await self.store.list_transactions(couple_id, start, end)
        )
        categories = coerce_categories(
            await self.store.get_categories({t.category_id for t in transactions})
        )
        return transactions, categories

    async def _goal_progress(
        self, couple_id: int, monthly_net_savings: Decimal
    ) -> list[GoalProgress]:
        goals = coerce_goals(await self.store.list_goals(couple_id))
        return rank_goals(goal_progress(g, monthly_net_savings) for g in goals)

    # ── Dashboard ─────────────────────────────────

    async def build_dashboard(
        self,
        user_id: int,
        period: str | PeriodKeyword | None = "month",
        now: datetime | None = None,
    ) -> DashboardReport:
        profile = await self.load_profile(user_id)
        return await self.build_report(profile, period, now)

    async def build_report(
        self,
        profile: UserProfile,
        period: str | PeriodKeyword | None = "month",
        now: datetime | None = None,
    ) -> DashboardReport:
        """Build the full report for the profile's couple.

        One store round-trip covers the current period, the previous one, the
        monthly trend window and the calendar year; everything else is
        computed in memory.
        """
        now = now or datetime.now(timezone.utc)
        current = resolve_period(period, now)
        previous = previous_period(period, now)

        if profile.couple_id is None:
            return self._empty_report(profile, current, previous)

        # The fetch spans the whole calendar year and month of `now`, so
        # transactions dated later this month still count towards its net.
        year = resolve_period(PeriodKeyword.YEAR, now)
        month = resolve_period(PeriodKeyword.MONTH, now)
        trend_start = months_back(now, self.trend_months)
        window_start = min(previous.start, trend_start, year.start)
        window_end = max(current.end, year.end)
        transactions, categories = await self._fetch_transactions(
            profile.couple_id, window_start, window_end
        )

        current_txns = [t for t in transactions if current.contains(t.date)]
        previous_txns = [t for t in transactions if previous.contains(t.date)]
        trend_txns = [t for t in transactions if trend_start <= t.date <= month.end]

        summary = aggregate(current_txns, categories)
        previous_summary = aggregate(previous_txns, categories)
        yearly_summary = aggregate([t for t in transactions if year.contains(t.date)], categories)
        trend_points = monthly_trends(trend_txns)

        goals = await self._goal_progress(profile.couple_id, month_net(transactions, now))
        budgets = coerce_budgets(
            await self.store.list_budgets(profile.couple_id, current.start, current.end)
        )

        report = generate_insights(
            summary,
            previous_summary,
            goals=goals,
            thresholds=self.thresholds,
            member_totals=self._couple_member_totals(profile, current_txns),
            member_names=self._member_names(profile),
            currency=profile.currency,
        )

        logger.info(
            "dashboard_report",
            couple_id=profile.couple_id,
            period=current.period.value,
            transactions=summary.transaction_count,
            goals=len(goals),
            insights=len(report.insights),
        )

        return DashboardReport(
            has_data=bool(transactions) or bool(goals),
            currency=profile.currency,
            period=current,
            previous_period=previous,
            summary=summary,
            previous_summary=previous_summary,
            yearly_summary=yearly_summary,
            trend=report,
            goals=goals,
            closest_goal=closest_goal(goals),
            goals_summary=summarize_goals(goals),
            budgets=budget_progress(budgets, summary),
            monthly_trends=trend_points,
            recent_transactions=recent_transactions(
                current_txns, categories, limit=self.recent_limit
            ),
        )

    def _empty_report(
        self, profile: UserProfile, current: PeriodRange, previous: PeriodRange
    ) -> DashboardReport:
        logger.info("dashboard_report_no_couple", user_id=profile.user_id)
        empty = AggregateSnapshot()
        return DashboardReport(
            has_data=False,
            currency=profile.currency,
            period=current,
            previous_period=previous,
            summary=empty,
            previous_summary=empty,
            trend=generate_insights(empty, empty, thresholds=self.thresholds),
            goals_summary=summarize_goals([]),
        )

    @staticmethod
    def _member_names(profile: UserProfile) -> dict[int, str]:
        names = {profile.user_id: profile.name}
        if profile.partner_id is not None:
            names[profile.partner_id] = profile.partner_name or "Partner"
        return names

    @classmethod
    def _couple_member_totals(
        cls, profile: UserProfile, transactions: list[TransactionRecord]
    ) -> dict[int, Decimal]:
        members = cls._member_names(profile)
        return {
            user_id: total
            for user_id, total in member_totals(transactions).items()
            if user_id in members
        }

    # ── Chat ──────────────────────────────────────

    async def build_chat_context(
        self,
        user_id: int,
        period: str | PeriodKeyword | None = "month",
        now: datetime | None = None,
    ) -> ChatContext:
        profile = await self.load_profile(user_id)
        report = await self.build_report(profile, period, now)
        return ChatContext(profile=profile, report=report)

    # ── Analytics ─────────────────────────────────

    async def category_breakdown(
        self,
        user_id: int,
        period: str | PeriodKeyword | None = "month",
        txn_type: TransactionType = TransactionType.EXPENSE,
        now: datetime | None = None,
    ) -> CategoryBreakdownResponse:
        profile = await self.load_profile(user_id)
        current = resolve_period(period, now or datetime.now(timezone.utc))

        snapshot = AggregateSnapshot()
        if profile.couple_id is not None:
            transactions, categories = await self._fetch_transactions(
                profile.couple_id, current.start, current.end
            )
            snapshot = aggregate(transactions, categories)

        if txn_type is TransactionType.INCOME:
            total, items = snapshot.total_income, snapshot.income_breakdown
        else:
            total, items = snapshot.total_expenses, snapshot.category_breakdown
        return CategoryBreakdownResponse(period=current, type=txn_type, total=total, items=items)

    async def trends(
        self, user_id: int, months: int = 6, now: datetime | None = None
    ) -> MonthlyTrendsResponse:
        profile = await self.load_profile(user_id)
        if profile.couple_id is None:
            return MonthlyTrendsResponse(months=months, points=[])

        now = now or datetime.now(timezone.utc)
        month = resolve_period(PeriodKeyword.MONTH, now)
        transactions, _ = await self._fetch_transactions(
            profile.couple_id, months_back(now, months), month.end
        )
        return MonthlyTrendsResponse(months=months, points=monthly_trends(transactions))

    async def goals_progress(
        self, user_id: int, now: datetime | None = None
    ) -> GoalsProgressResponse:
        profile = await self.load_profile(user_id)
        if profile.couple_id is None:
            return GoalsProgressResponse(goals=[], summary=summarize_goals([]))

        now = now or datetime.now(timezone.utc)
        current = resolve_period(PeriodKeyword.MONTH, now)
        transactions, _ = await self._fetch_transactions(
            profile.couple_id, current.start, current.end
        )
        goals = await self._goal_progress(profile.couple_id, month_net(transactions, now))
        return GoalsProgressResponse(
            goals=goals,
            closest_goal=closest_goal(goals),
            summary=summarize_goals(goals),
        )
