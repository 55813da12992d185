# otbooking/services/intervals.py
"""
Time-interval model for theatre bookings.

A slot is a calendar date plus a half-open ``[start, end)`` time-of-day
window in one theatre. Times are compared as minutes since midnight so no
time zone ever enters the comparison.
"""
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Union


def to_minutes(value: time) -> int:
    """Minutes since midnight. Seconds are dropped."""
    return value.hour * 60 + value.minute


def parse_time(value: Union[str, time]) -> time:
    """Accepts ``HH:MM`` or ``HH:MM:SS`` strings (what the calendar UI sends) or a time."""
    if isinstance(value, time):
        return value
    text = value.strip()
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}")


def format_date_for_storage(value: date) -> str:
    """YYYY-MM-DD built from the date's own components, never via a UTC conversion."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_storage_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())


def local_today() -> date:
    """The host's local calendar date."""
    return datetime.now().date()


@dataclass(frozen=True)
class TimeSlot:
    theater: int
    booking_date: date
    start_time: time
    end_time: time

    def __post_init__(self):
        if to_minutes(self.end_time) <= to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")

    @property
    def start_minute(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minute(self) -> int:
        return to_minutes(self.end_time)

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    def overlaps(self, other: "TimeSlot") -> bool:
        """Same theatre, same day, and s1 < e2 and s2 < e1. Touching slots do not overlap."""
        return (
            self.theater == other.theater
            and self.booking_date == other.booking_date
            and self.start_minute < other.end_minute
            and other.start_minute < self.end_minute
        )

    @classmethod
    def from_booking(cls, booking) -> Optional["TimeSlot"]:
        """Build a slot from anything shaped like a Booking row; None if the row holds an invalid range."""
        try:
            return cls(
                theater=booking.operation_theater,
                booking_date=booking.booking_date,
                start_time=booking.start_time,
                end_time=booking.end_time,
            )
        except ValueError:
            return None

    def __repr__(self) -> str:
        return (
            f"TimeSlot(OT-{self.theater} {format_date_for_storage(self.booking_date)} "
            f"{self.start_time:%H:%M}-{self.end_time:%H:%M})"
        )
