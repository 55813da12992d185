# tests/test_intervals.py
from datetime import date, time
from types import SimpleNamespace

import pytest

from otbooking.services.intervals import (
    TimeSlot,
    format_date_for_storage,
    parse_storage_date,
    parse_time,
    to_minutes,
)

DAY = date(2024, 3, 5)


def slot(start, end, theater=1, day=DAY):
    return TimeSlot(theater=theater, booking_date=day, start_time=parse_time(start), end_time=parse_time(end))


def test_to_minutes_counts_from_midnight():
    assert to_minutes(time(0, 0)) == 0
    assert to_minutes(time(9, 30)) == 570
    assert to_minutes(time(23, 59, 59)) == 1439


@pytest.mark.parametrize("text", ["09:30", "09:30:00", " 09:30 "])
def test_parse_time_accepts_calendar_formats(text):
    assert parse_time(text) == time(9, 30)


def test_parse_time_rejects_garbage():
    with pytest.raises(ValueError):
        parse_time("half past nine")


def test_storage_date_is_built_from_local_components():
    assert format_date_for_storage(date(2024, 3, 5)) == "2024-03-05"
    assert parse_storage_date("2024-03-05") == date(2024, 3, 5)


def test_slot_requires_end_after_start():
    with pytest.raises(ValueError):
        slot("10:00", "10:00")
    with pytest.raises(ValueError):
        slot("11:00", "10:00")


def test_overlapping_slots_conflict():
    assert slot("09:00", "10:00").overlaps(slot("09:30", "10:30"))
    assert slot("09:00", "12:00").overlaps(slot("10:00", "11:00"))
    assert slot("10:00", "11:00").overlaps(slot("09:00", "12:00"))


def test_back_to_back_slots_do_not_conflict():
    assert not slot("09:00", "10:00").overlaps(slot("10:00", "11:00"))
    assert not slot("10:00", "11:00").overlaps(slot("09:00", "10:00"))


def test_other_theatre_or_day_never_conflicts():
    assert not slot("09:00", "10:00").overlaps(slot("09:00", "10:00", theater=2))
    assert not slot("09:00", "10:00").overlaps(slot("09:00", "10:00", day=date(2024, 3, 6)))


def test_duration_and_repr():
    s = slot("08:15", "10:45", theater=3)
    assert s.duration_minutes == 150
    assert repr(s) == "TimeSlot(OT-3 2024-03-05 08:15-10:45)"


def test_from_booking_skips_corrupt_rows():
    row = SimpleNamespace(operation_theater=1, booking_date=DAY, start_time=time(11, 0), end_time=time(9, 0))
    assert TimeSlot.from_booking(row) is None
