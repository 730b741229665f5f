"""
Week Helpers

Monday-to-Sunday week arithmetic and date display helpers used to pick the
KPI computation window.

All ranges are closed calendar-date intervals. Datetime inputs are reduced
to their calendar date before any comparison, so an appointment at 23:30 on
the Sunday still belongs to that week.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Union

from field_kpis.models import WeekRange

DateLike = Union[date, datetime]

DAYS_PER_WEEK: int = 7


def to_calendar_date(value: DateLike) -> date:
    """Reduce a date or datetime to its calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


# =============================================================================
# WEEK BOUNDARIES
# =============================================================================

def get_start_of_week(value: DateLike) -> date:
    """Monday of the week containing `value` (Sunday belongs to the week before it)."""
    day = to_calendar_date(value)
    return day - timedelta(days=day.weekday())


def get_end_of_week(value: DateLike) -> date:
    """Sunday of the week containing `value`."""
    return get_start_of_week(value) + timedelta(days=DAYS_PER_WEEK - 1)


def build_week_range(start: DateLike, end: Optional[DateLike] = None) -> WeekRange:
    """
    Build a labelled WeekRange.

    Args:
        start: First day of the range
        end: Last day of the range (default: start + 6 days)

    Raises:
        pydantic.ValidationError: If start is after end
    """
    start_day = to_calendar_date(start)
    end_day = to_calendar_date(end) if end is not None else start_day + timedelta(days=DAYS_PER_WEEK - 1)
    label = get_week_label(start_day, end_day) if start_day <= end_day else ''
    return WeekRange(start=start_day, end=end_day, label=label)


def get_current_week(today: Optional[DateLike] = None) -> WeekRange:
    """The Monday-to-Sunday week containing `today` (default: the local date)."""
    if today is None:
        today = date.today()
    return build_week_range(get_start_of_week(today), get_end_of_week(today))


def get_previous_week(current_start: DateLike) -> WeekRange:
    """The 7-day range starting one week before `current_start`."""
    return build_week_range(to_calendar_date(current_start) - timedelta(days=DAYS_PER_WEEK))


def get_next_week(current_start: DateLike) -> WeekRange:
    """The 7-day range starting one week after `current_start`."""
    return build_week_range(to_calendar_date(current_start) + timedelta(days=DAYS_PER_WEEK))


def is_date_in_week_range(value: Optional[DateLike], week_start: DateLike, week_end: DateLike) -> bool:
    """Closed-interval membership by calendar date; None is never in range."""
    if value is None:
        return False
    return to_calendar_date(week_start) <= to_calendar_date(value) <= to_calendar_date(week_end)


# =============================================================================
# DISPLAY
# =============================================================================

def format_date(value: DateLike) -> str:
    """MM/DD/YYYY with zero padding."""
    return to_calendar_date(value).strftime('%m/%d/%Y')


def format_date_range(start: DateLike, end: DateLike) -> str:
    return f"{format_date(start)} - {format_date(end)}"


def get_week_label(start: DateLike, end: DateLike) -> str:
    """
    Short label for a week.

    Examples:
        Jun 2 - Jun 8 2025   -> "Jun 2-8, 2025"
        Jun 30 - Jul 6 2025  -> "Jun 30 - Jul 6, 2025"

    The year shown is always the start date's year.
    """
    start_day = to_calendar_date(start)
    end_day = to_calendar_date(end)
    start_month = start_day.strftime('%b')
    end_month = end_day.strftime('%b')

    if start_month == end_month:
        return f"{start_month} {start_day.day}-{end_day.day}, {start_day.year}"
    return f"{start_month} {start_day.day} - {end_month} {end_day.day}, {start_day.year}"


__all__ = [
    'to_calendar_date',
    'get_start_of_week',
    'get_end_of_week',
    'build_week_range',
    'get_current_week',
    'get_previous_week',
    'get_next_week',
    'is_date_in_week_range',
    'format_date',
    'format_date_range',
    'get_week_label',
]
