# tests/test_stats_service.py
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from otbooking.models import BookingStatus
from otbooking.schemas import CapacityUnit, ViewMode
from otbooking.services.stats_service import (
    available_capacity,
    compute_stats,
    resolve_window,
    start_of_week,
)

# Wednesday
NOW = datetime(2024, 3, 13, 10, 30)
TODAY = NOW.date()


def booking(day, status):
    return SimpleNamespace(booking_date=day, status=status)


def test_week_starts_on_sunday_by_default():
    assert start_of_week(TODAY) == date(2024, 3, 10)
    assert start_of_week(date(2024, 3, 10)) == date(2024, 3, 10)
    assert start_of_week(TODAY, week_starts_on=0) == date(2024, 3, 11)


def test_windows():
    assert resolve_window(ViewMode.day, TODAY) == (TODAY, TODAY)
    assert resolve_window(ViewMode.week, TODAY) == (date(2024, 3, 10), date(2024, 3, 16))
    assert resolve_window(ViewMode.month, TODAY) == (date(2024, 3, 1), date(2024, 3, 31))
    assert resolve_window(ViewMode.month, date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_counts_by_status_inside_the_window():
    bookings = [
        booking(date(2024, 3, 11), BookingStatus.booked),
        booking(date(2024, 3, 12), BookingStatus.booked),
        booking(date(2024, 3, 13), BookingStatus.booked),
        booking(date(2024, 3, 10), BookingStatus.completed),
        booking(date(2024, 3, 12), BookingStatus.completed),
        booking(date(2024, 3, 16), BookingStatus.cancelled),
        # outside the week
        booking(date(2024, 3, 9), BookingStatus.booked),
        booking(date(2024, 3, 17), BookingStatus.completed),
    ]
    stats = compute_stats(bookings, ViewMode.week, TODAY, NOW)
    assert (stats.total, stats.active, stats.completed, stats.cancelled) == (6, 3, 2, 1)
    assert stats.total == stats.active + stats.completed + stats.cancelled
    assert stats.window_start == date(2024, 3, 10)
    assert stats.window_end == date(2024, 3, 16)
    assert stats.capacity_unit == CapacityUnit.days


def test_empty_window():
    stats = compute_stats([], ViewMode.day, TODAY, NOW)
    assert stats.total == 0
    assert stats.capacity_unit == CapacityUnit.hours


@pytest.mark.parametrize(
    "mode, anchor, expected",
    [
        (ViewMode.day, TODAY, 14),
        (ViewMode.day, date(2024, 3, 14), 24),
        (ViewMode.day, date(2024, 3, 12), 0),
        (ViewMode.week, TODAY, 4),
        (ViewMode.week, date(2024, 3, 20), 7),
        (ViewMode.week, date(2024, 3, 6), 0),
        (ViewMode.month, TODAY, 18),
        (ViewMode.month, date(2024, 4, 2), 30),
        (ViewMode.month, date(2024, 2, 2), 0),
    ],
)
def test_available_capacity(mode, anchor, expected):
    assert available_capacity(mode, resolve_window(mode, anchor), NOW) == expected


def test_last_hour_of_today_leaves_one_hour():
    late = datetime(2024, 3, 13, 23, 5)
    assert available_capacity(ViewMode.day, (TODAY, TODAY), late) == 1


def test_month_capacity_excludes_today_but_week_includes_it():
    last_day = datetime(2024, 3, 31, 8, 0)
    assert available_capacity(ViewMode.month, resolve_window(ViewMode.month, last_day.date()), last_day) == 0
    # 2024-03-31 is a Sunday, so its Sunday-first week has all seven days left
    assert available_capacity(ViewMode.week, resolve_window(ViewMode.week, last_day.date()), last_day) == 7
    saturday = datetime(2024, 3, 16, 8, 0)
    assert available_capacity(ViewMode.week, resolve_window(ViewMode.week, saturday.date()), saturday) == 1
