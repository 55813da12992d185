# otbooking/services/booking_service.py
"""
Booking lifecycle: create (behind the conflict check), reschedule, status
transitions, batched auto-completion of past bookings, and deletion.

Status moves only forward: booked -> completed | cancelled. Both targets are
terminal. The conflict pre-check here is advisory; on PostgreSQL the
``bookings_no_overlap`` exclusion constraint is what finally rejects a
double booking that races past it, and that rejection is reported as a
ConflictError as well.
"""
from datetime import date, time
from typing import List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud, models
from ..audit import audit_logger
from ..exceptions import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from .conflict_service import check_booking_conflict
from .intervals import format_date_for_storage, to_minutes

logger = structlog.get_logger(__name__)

OVERLAP_CONSTRAINT = "bookings_no_overlap"


def validate_slot(theater, booking_date, start_time, end_time) -> None:
    if booking_date is None or start_time is None or end_time is None:
        raise ValidationError("booking_date, start_time and end_time are required.")
    if isinstance(theater, bool) or not isinstance(theater, int) or theater <= 0:
        raise ValidationError("operation_theater must be a positive integer.")
    if to_minutes(end_time) <= to_minutes(start_time):
        raise ValidationError("end_time must be after start_time.")


def get_booking(db: Session, booking_id: str) -> models.Booking:
    booking = crud.get_booking(db, booking_id)
    if booking is None:
        raise NotFoundError(f"Booking {booking_id} was not found.")
    return booking


def _raise_for_conflicts(db: Session, theater: int, booking_date: date, start_time: time, end_time: time,
                         exclude_booking_id: Optional[str] = None) -> None:
    conflicts = check_booking_conflict(db, theater, booking_date, start_time, end_time, exclude_booking_id)
    if conflicts:
        raise ConflictError(
            "This time slot is already booked. Please select a different time.",
            conflicting_ids=[b.id for b in conflicts],
        )


def _translate_integrity_error(e: IntegrityError):
    message = str(e.orig)
    if OVERLAP_CONSTRAINT in message:
        return ConflictError("This time slot was booked by someone else a moment ago. Please select a different time.")
    if "foreign key" in message.lower():
        return NotFoundError("The referenced doctor or patient does not exist.")
    return ValidationError(f"The booking was rejected by the store: {message}")


def create_booking(
    db: Session,
    doctor_id: str,
    patient_id: str,
    booking_date: date,
    start_time: time,
    end_time: time,
    theater: int = 1,
    notes: Optional[str] = None,
    actor_user_id: Optional[str] = None,
) -> models.Booking:
    """Create a booked booking after validating input, references and the slot."""
    validate_slot(theater, booking_date, start_time, end_time)
    if not doctor_id or not patient_id:
        raise ValidationError("doctor_id and patient_id are required.")

    if crud.get_doctor(db, doctor_id) is None:
        raise NotFoundError(f"Doctor {doctor_id} was not found.")
    if crud.get_patient(db, patient_id) is None:
        raise NotFoundError(f"Patient {patient_id} was not found.")

    _raise_for_conflicts(db, theater, booking_date, start_time, end_time)

    try:
        booking = crud.create_booking(
            db,
            doctor_id=doctor_id,
            patient_id=patient_id,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            operation_theater=theater,
            notes=notes or None,
        )
    except IntegrityError as e:
        logger.warning("booking_insert_rejected", theater=theater, booking_date=format_date_for_storage(booking_date), error=str(e.orig))
        raise _translate_integrity_error(e) from e

    logger.info(
        "booking_created",
        booking_id=booking.id,
        theater=theater,
        booking_date=format_date_for_storage(booking_date),
        start_time=start_time.strftime("%H:%M"),
        end_time=end_time.strftime("%H:%M"),
    )
    audit_logger.log_event(
        db, user_id=actor_user_id, action=models.AuditAction.CREATE, category="BOOKING",
        resource_type="Booking", resource_id=booking.id,
        details=f"Booked OT-{theater} on {format_date_for_storage(booking_date)} {start_time:%H:%M}-{end_time:%H:%M} for patient {patient_id}",
    )
    return booking


def reschedule_booking(
    db: Session,
    booking_id: str,
    booking_date: date,
    start_time: time,
    end_time: time,
    theater: Optional[int] = None,
    actor_user_id: Optional[str] = None,
) -> models.Booking:
    """Move a booked booking to another slot. The booking's own current slot never counts as a conflict."""
    booking = get_booking(db, booking_id)
    if booking.status != models.BookingStatus.booked:
        raise InvalidTransitionError(f"A {booking.status.value} booking cannot be rescheduled.")
    theater = booking.operation_theater if theater is None else theater
    validate_slot(theater, booking_date, start_time, end_time)

    _raise_for_conflicts(db, theater, booking_date, start_time, end_time, exclude_booking_id=booking.id)

    booking.booking_date = booking_date
    booking.start_time = start_time
    booking.end_time = end_time
    booking.operation_theater = theater
    try:
        booking = crud.save_booking(db, booking)
    except IntegrityError as e:
        raise _translate_integrity_error(e) from e

    audit_logger.log_event(
        db, user_id=actor_user_id, action=models.AuditAction.UPDATE, category="BOOKING",
        resource_type="Booking", resource_id=booking.id,
        details=f"Rescheduled to OT-{theater} on {format_date_for_storage(booking_date)} {start_time:%H:%M}-{end_time:%H:%M}",
    )
    return booking


def transition_status(db: Session, booking_id: str, target: models.BookingStatus,
                      actor_user_id: Optional[str] = None) -> models.Booking:
    booking = get_booking(db, booking_id)
    current = models.BookingStatus(booking.status)
    if not current.can_transition_to(target):
        raise InvalidTransitionError(
            f"Cannot change booking status from '{current.value}' to '{target.value}'."
        )

    booking.status = target
    booking = crud.save_booking(db, booking)
    logger.info("booking_status_changed", booking_id=booking.id, old_status=current.value, new_status=target.value)
    audit_logger.log_event(
        db, user_id=actor_user_id, action=models.AuditAction.UPDATE, category="BOOKING",
        resource_type="Booking", resource_id=booking.id,
        details=f"Status changed from {current.value} to {target.value}",
    )
    return booking


def mark_completed(db: Session, booking_id: str, actor_user_id: Optional[str] = None) -> models.Booking:
    return transition_status(db, booking_id, models.BookingStatus.completed, actor_user_id)


def mark_cancelled(db: Session, booking_id: str, actor_user_id: Optional[str] = None) -> models.Booking:
    return transition_status(db, booking_id, models.BookingStatus.cancelled, actor_user_id)


def auto_complete_past_bookings(db: Session, as_of: date, doctor_id: Optional[str] = None,
                                actor_user_id: Optional[str] = None) -> List[str]:
    """
    Complete every booked booking dated strictly before ``as_of`` in one batch.

    Idempotent: a second run finds nothing left in the booked state before
    ``as_of`` and changes nothing. Completed and cancelled bookings are never
    touched.
    """
    completed_ids = crud.complete_past_bookings(db, as_of=as_of, doctor_id=doctor_id)
    if completed_ids:
        logger.info("past_bookings_auto_completed", count=len(completed_ids), as_of=format_date_for_storage(as_of), doctor_id=doctor_id)
        audit_logger.log_event(
            db, user_id=actor_user_id, action=models.AuditAction.BULK_ACTION, category="BOOKING",
            resource_type="Booking",
            details=f"Auto-completed {len(completed_ids)} bookings dated before {format_date_for_storage(as_of)}",
        )
    return completed_ids


def delete_booking(db: Session, booking_id: str, actor_user_id: Optional[str] = None) -> None:
    """Administrative removal. No status precondition."""
    booking = get_booking(db, booking_id)
    crud.delete_booking(db, booking)
    logger.info("booking_deleted", booking_id=booking_id)
    audit_logger.log_event(
        db, user_id=actor_user_id, action=models.AuditAction.DELETE, category="BOOKING",
        resource_type="Booking", resource_id=booking_id,
        details=f"Deleted booking {booking_id}",
    )
