# otbooking/services/stats_service.py
"""
Booking statistics for the calendar views.

Everything here is a pure function of (bookings, view window, now): counts per
status inside the viewed day, week or month, plus the capacity still open
between now and the end of that window.
"""
import calendar
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable, Tuple

from ..models import BookingStatus
from ..schemas import BookingStats, CapacityUnit, ViewMode

HOURS_PER_DAY = 24
DAYS_PER_WEEK = 7


def start_of_week(day: date, week_starts_on: int = 6) -> date:
    """First day of the 7-day week holding ``day``. ``week_starts_on`` uses Monday=0 .. Sunday=6."""
    return day - timedelta(days=(day.weekday() - week_starts_on) % DAYS_PER_WEEK)


def resolve_window(mode: ViewMode, anchor: date, week_starts_on: int = 6) -> Tuple[date, date]:
    """Inclusive (first, last) dates of the window of ``mode`` containing ``anchor``."""
    if mode == ViewMode.day:
        return anchor, anchor
    if mode == ViewMode.week:
        first = start_of_week(anchor, week_starts_on)
        return first, first + timedelta(days=DAYS_PER_WEEK - 1)
    if mode == ViewMode.month:
        days_in_month = calendar.monthrange(anchor.year, anchor.month)[1]
        return anchor.replace(day=1), anchor.replace(day=days_in_month)
    raise ValueError(f"Unknown view mode: {mode!r}")


def available_capacity(mode: ViewMode, window: Tuple[date, date], now: datetime) -> int:
    """
    Hours left in a day view, days left in a week or month view.

    A window entirely in the past has nothing left and a window entirely in
    the future is wholly open. When the window holds today, a week counts
    today among its remaining days but a month counts only the days after it.
    """
    first, last = window
    today = now.date()
    if mode == ViewMode.day:
        if first < today:
            return 0
        if first > today:
            return HOURS_PER_DAY
        return HOURS_PER_DAY - now.hour
    window_days = (last - first).days + 1
    if last < today:
        return 0
    if first > today:
        return window_days
    if mode == ViewMode.month:
        return (last - today).days
    return (last - today).days + 1


def compute_stats(bookings: Iterable, mode: ViewMode, anchor: date, now: datetime,
                  week_starts_on: int = 6) -> BookingStats:
    window = resolve_window(mode, anchor, week_starts_on)
    first, last = window
    counts = Counter(
        BookingStatus(booking.status)
        for booking in bookings
        if first <= booking.booking_date <= last
    )
    return BookingStats(
        view=mode,
        window_start=first,
        window_end=last,
        total=sum(counts.values()),
        active=counts[BookingStatus.booked],
        completed=counts[BookingStatus.completed],
        cancelled=counts[BookingStatus.cancelled],
        available_capacity=available_capacity(mode, window, now),
        capacity_unit=CapacityUnit.hours if mode == ViewMode.day else CapacityUnit.days,
    )
