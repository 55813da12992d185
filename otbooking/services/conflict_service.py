# otbooking/services/conflict_service.py
from datetime import date, time
from typing import Iterable, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models
from ..exceptions import TransientStoreError
from .intervals import TimeSlot

logger = structlog.get_logger(__name__)


def _occupies_slot(booking) -> bool:
    # Completed bookings still hold their slot; only cancellation frees it.
    return booking.status != models.BookingStatus.cancelled


def find_conflicts(bookings: Iterable, candidate: TimeSlot, exclude_booking_id: Optional[str] = None) -> List:
    """
    Return the bookings from ``bookings`` whose slot overlaps ``candidate``.

    Cancelled bookings and the booking named by ``exclude_booking_id`` are
    ignored, which lets a reschedule check against everything but itself.
    """
    conflicts = []
    for booking in bookings:
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if not _occupies_slot(booking):
            continue
        slot = TimeSlot.from_booking(booking)
        if slot is not None and slot.overlaps(candidate):
            conflicts.append(booking)
    return conflicts


def has_conflict(bookings: Iterable, theater: int, booking_date: date, start_time: time, end_time: time,
                 exclude_booking_id: Optional[str] = None) -> bool:
    candidate = TimeSlot(theater=theater, booking_date=booking_date, start_time=start_time, end_time=end_time)
    return bool(find_conflicts(bookings, candidate, exclude_booking_id))


def check_booking_conflict(db: Session, theater: int, booking_date: date, start_time: time, end_time: time,
                           exclude_booking_id: Optional[str] = None) -> List[models.Booking]:
    """
    Load the occupying bookings for ``(theater, booking_date)`` and return those
    overlapping the candidate slot.

    Fails closed: if the store cannot be read a TransientStoreError is raised so
    the caller blocks the write instead of assuming the slot is free.
    """
    candidate = TimeSlot(theater=theater, booking_date=booking_date, start_time=start_time, end_time=end_time)
    try:
        same_day = crud.get_occupying_bookings(db, theater=theater, booking_date=booking_date)
    except SQLAlchemyError as e:
        logger.error("conflict_check_store_unavailable", theater=theater, booking_date=str(booking_date), error=str(e))
        raise TransientStoreError() from e

    conflicts = find_conflicts(same_day, candidate, exclude_booking_id)
    if conflicts:
        logger.info(
            "conflict_detected",
            slot=repr(candidate),
            conflicting_ids=[b.id for b in conflicts],
        )
    return conflicts
