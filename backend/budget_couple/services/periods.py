"""Period resolution: turn a period keyword into concrete datetime bounds."""

import calendar
from datetime import datetime, time, timedelta

import structlog

from budget_couple.schemas.finance import PeriodKeyword, PeriodRange

logger = structlog.get_logger()

_WEEK = timedelta(days=7)
_TICK = timedelta(microseconds=1)


def parse_period(keyword: str | PeriodKeyword | None) -> PeriodKeyword:
    """Map a raw keyword to a PeriodKeyword; anything unknown means month."""
    if isinstance(keyword, PeriodKeyword):
        return keyword
    try:
        return PeriodKeyword((keyword or "").strip().lower())
    except ValueError:
        logger.debug("unknown_period_keyword", keyword=keyword, fallback="month")
        return PeriodKeyword.MONTH


def _month_bounds(now: datetime, first_month: int, months: int) -> tuple[datetime, datetime]:
    last_month = first_month + months - 1
    last_day = calendar.monthrange(now.year, last_month)[1]
    start = datetime.combine(now.date().replace(month=first_month, day=1), time.min, tzinfo=now.tzinfo)
    end = datetime.combine(
        now.date().replace(month=last_month, day=last_day), time.max, tzinfo=now.tzinfo
    )
    return start, end


def resolve_period(
    keyword: str | PeriodKeyword | None = "month",
    now: datetime | None = None,
) -> PeriodRange:
    """Resolve ``keyword`` relative to ``now``.

    - week:    [now - 7 days, now]
    - month:   first to last day of now's month
    - quarter: first to last day of the 3-month block containing now
    - year:    Jan 1 to Dec 31 of now's year

    Calendar bounds run from 00:00 on the first day to the last microsecond
    of the last day, so both ends are inclusive.
    """
    period = parse_period(keyword)
    now = now or datetime.now()

    if period is PeriodKeyword.WEEK:
        return PeriodRange(period=period, start=now - _WEEK, end=now)
    if period is PeriodKeyword.QUARTER:
        first_month = (now.month - 1) // 3 * 3 + 1
        start, end = _month_bounds(now, first_month, 3)
    elif period is PeriodKeyword.YEAR:
        start, end = _month_bounds(now, 1, 12)
    else:
        start, end = _month_bounds(now, now.month, 1)
    return PeriodRange(period=period, start=start, end=end)


def previous_period(
    keyword: str | PeriodKeyword | None = "month",
    now: datetime | None = None,
) -> PeriodRange:
    """Return the period of the same kind immediately before the current one."""
    current = resolve_period(keyword, now)
    if current.period is PeriodKeyword.WEEK:
        return PeriodRange(
            period=current.period,
            start=current.start - _WEEK,
            end=current.start - _TICK,
        )
    return resolve_period(current.period, current.start - _TICK)


def months_back(now: datetime, months: int) -> datetime:
    """Start of the month ``months - 1`` months before now's month (inclusive window)."""
    month_index = now.year * 12 + (now.month - 1) - (months - 1)
    year, month = divmod(month_index, 12)
    return datetime(year, month + 1, 1, tzinfo=now.tzinfo)
