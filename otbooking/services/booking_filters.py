# otbooking/services/booking_filters.py
from datetime import date, timedelta
from typing import Callable, Iterable, List, Optional

from ..schemas import BookingQueryOptions, DateFilter, SortKey, SortOrder, StatusFilter


def _lower(value) -> str:
    if value is None:
        return ""
    return str(getattr(value, "value", value)).lower()


def _search_fields(booking) -> List[str]:
    patient = getattr(booking, "patient", None)
    doctor = getattr(booking, "doctor", None)
    return [
        _lower(getattr(patient, "name", None)),
        _lower(getattr(patient, "patient_id", None)),
        _lower(getattr(patient, "condition", None)),
        _lower(booking.notes),
        _lower(getattr(doctor, "name", None)),
        _lower(getattr(doctor, "specialization", None)),
    ]


def matches_search(booking, search: Optional[str]) -> bool:
    """Case-insensitive substring match. Blank search matches everything."""
    if not search or not search.strip():
        return True
    needle = search.strip().lower()
    return any(needle in field for field in _search_fields(booking))


def matches_status(booking, status: StatusFilter) -> bool:
    if status == StatusFilter.all:
        return True
    return _lower(booking.status) == status.value


def matches_date_window(booking, date_filter: DateFilter, today: date) -> bool:
    booking_date = booking.booking_date
    if date_filter == DateFilter.all:
        return True
    if date_filter == DateFilter.today:
        return booking_date == today
    if date_filter == DateFilter.week:
        return today - timedelta(days=7) <= booking_date <= today
    if date_filter == DateFilter.month:
        return today - timedelta(days=30) <= booking_date <= today
    if date_filter == DateFilter.upcoming:
        return booking_date >= today
    raise ValueError(f"Unknown date filter: {date_filter!r}")


def _patient_name(booking) -> str:
    patient = getattr(booking, "patient", None)
    return (getattr(patient, "name", None) or "").casefold()


SORT_KEYS = {
    SortKey.date: lambda b: b.booking_date,
    SortKey.time: lambda b: b.start_time,
    SortKey.patient: _patient_name,
    SortKey.status: lambda b: _lower(b.status),
}


def sort_key_for(key: SortKey) -> Callable:
    return SORT_KEYS[key]


def filter_and_sort(bookings: Iterable, options: BookingQueryOptions, today: date) -> list:
    """
    Apply search, status filter, relative date window and ordering to a booking
    collection and return a new list.

    The input is never mutated. Sorting is stable in both directions: equal
    keys keep their input order even when the order is descending.
    """
    filtered = [
        booking for booking in bookings
        if matches_search(booking, options.search)
        and matches_status(booking, options.status)
        and matches_date_window(booking, options.date_filter, today)
    ]
    return sorted(
        filtered,
        key=sort_key_for(options.sort_by),
        reverse=options.sort_order == SortOrder.desc,
    )


def filter_patients(patients: Iterable, search: Optional[str] = None, gender: Optional[str] = None) -> list:
    """Patient picker filter: name, patient id or condition, plus an optional exact gender."""
    needle = (search or "").strip().lower()
    result = []
    for patient in patients:
        if needle and not any(
            needle in _lower(value)
            for value in (patient.name, patient.patient_id, patient.condition)
        ):
            continue
        if gender and gender != "all" and patient.gender != gender:
            continue
        result.append(patient)
    return result
