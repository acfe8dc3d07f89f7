"""Relative and fixed period options resolved to daily intervals."""

from __future__ import annotations

from datetime import date, timedelta

from gee_dhis2.common.errors import ConfigError
from gee_dhis2.common.models import Interval

RELATIVE_DAY_COUNTS = {
    "LAST_7_DAYS": 7,
    "LAST_14_DAYS": 14,
    "LAST_30_DAYS": 30,
}


def _parse_date(value, ctx: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ConfigError(f"Invalid date for {ctx}: {value}") from exc


def _month_start(day: date) -> date:
    return day.replace(day=1)


def interval_for_period(period: dict, run_date: str | date) -> Interval:
    """Resolve a period option relative to ``run_date``.

    Relative "last N days" windows end the day before the run date so a
    scheduled run never asks for the current, incomplete day.
    """
    today = _parse_date(run_date, "run date")
    period_id = str(period.get("id", "")).upper()

    if period_id == "FIXED":
        if "start" not in period or "end" not in period:
            raise ConfigError("FIXED period requires start and end")
        start = _parse_date(period["start"], "period.start")
        end = _parse_date(period["end"], "period.end")
    elif period_id == "TODAY":
        start = end = today
    elif period_id == "YESTERDAY":
        start = end = today - timedelta(days=1)
    elif period_id in RELATIVE_DAY_COUNTS:
        end = today - timedelta(days=1)
        start = end - timedelta(days=RELATIVE_DAY_COUNTS[period_id] - 1)
    elif period_id == "THIS_WEEK":
        start = today - timedelta(days=today.weekday())
        end = today
    elif period_id == "LAST_WEEK":
        end = today - timedelta(days=today.weekday() + 1)
        start = end - timedelta(days=6)
    elif period_id == "THIS_MONTH":
        start = _month_start(today)
        end = today
    elif period_id == "LAST_MONTH":
        end = _month_start(today) - timedelta(days=1)
        start = _month_start(end)
    elif period_id == "THIS_YEAR":
        start = date(today.year, 1, 1)
        end = today
    elif period_id == "LAST_YEAR":
        start = date(today.year - 1, 1, 1)
        end = date(today.year - 1, 12, 31)
    else:
        raise ConfigError(f"Unknown period id: {period.get('id')}")

    try:
        return Interval(start=start, end=end)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
