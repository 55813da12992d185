# tests/test_booking_service.py
from datetime import date, time

import pytest
from sqlalchemy.exc import SQLAlchemyError

from otbooking import crud, models
from otbooking.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from otbooking.services import booking_service

DAY = date(2030, 5, 14)


def book(db, doctor, patient, start, end, day=DAY, theater=1):
    return booking_service.create_booking(
        db,
        doctor_id=doctor.id,
        patient_id=patient.id,
        booking_date=day,
        start_time=start,
        end_time=end,
        theater=theater,
    )


def test_create_booking_starts_booked(db, doctor, patient):
    booking = book(db, doctor, patient, time(9), time(10))
    assert booking.status == models.BookingStatus.booked
    assert booking.operation_theater == 1
    audit_rows = db.query(models.AuditLog).filter(models.AuditLog.resource_id == booking.id).all()
    assert [row.action for row in audit_rows] == [models.AuditAction.CREATE]


def test_overlapping_booking_is_rejected(db, doctor, patient):
    first = book(db, doctor, patient, time(9), time(10))
    with pytest.raises(ConflictError) as excinfo:
        book(db, doctor, patient, time(9, 30), time(10, 30))
    assert excinfo.value.conflicting_ids == [first.id]
    assert db.query(models.Booking).count() == 1


def test_back_to_back_and_other_theatre_are_allowed(db, doctor, patient):
    book(db, doctor, patient, time(9), time(10))
    book(db, doctor, patient, time(10), time(11))
    book(db, doctor, patient, time(9), time(10), theater=2)
    assert db.query(models.Booking).count() == 3


def test_cancelled_booking_frees_the_slot(db, doctor, patient):
    first = book(db, doctor, patient, time(9), time(10))
    booking_service.mark_cancelled(db, first.id)
    second = book(db, doctor, patient, time(9), time(10))
    assert second.status == models.BookingStatus.booked


def test_completed_booking_still_blocks_the_slot(db, doctor, patient):
    first = book(db, doctor, patient, time(9), time(10))
    booking_service.mark_completed(db, first.id)
    with pytest.raises(ConflictError):
        book(db, doctor, patient, time(9, 15), time(9, 45))


@pytest.mark.parametrize("start, end, theater", [
    (time(10), time(10), 1),
    (time(11), time(10), 1),
    (time(9), time(10), 0),
])
def test_invalid_slot_is_a_validation_error(db, doctor, patient, start, end, theater):
    with pytest.raises(ValidationError):
        book(db, doctor, patient, start, end, theater=theater)


def test_unknown_patient_is_not_found(db, doctor):
    with pytest.raises(NotFoundError):
        booking_service.create_booking(
            db, doctor_id=doctor.id, patient_id="missing", booking_date=DAY,
            start_time=time(9), end_time=time(10),
        )


def test_store_failure_blocks_the_write(db, doctor, patient, monkeypatch):
    def unavailable(*args, **kwargs):
        raise SQLAlchemyError("connection reset")

    monkeypatch.setattr(crud, "get_occupying_bookings", unavailable)
    with pytest.raises(TransientStoreError) as excinfo:
        book(db, doctor, patient, time(9), time(10))
    assert excinfo.value.retryable
    monkeypatch.undo()
    assert db.query(models.Booking).count() == 0


@pytest.mark.parametrize("first, second", [
    (models.BookingStatus.completed, models.BookingStatus.cancelled),
    (models.BookingStatus.cancelled, models.BookingStatus.completed),
    (models.BookingStatus.completed, models.BookingStatus.booked),
    (models.BookingStatus.cancelled, models.BookingStatus.booked),
])
def test_terminal_statuses_are_final(db, doctor, patient, first, second):
    booking = book(db, doctor, patient, time(9), time(10))
    booking_service.transition_status(db, booking.id, first)
    with pytest.raises(InvalidTransitionError):
        booking_service.transition_status(db, booking.id, second)
    assert booking_service.get_booking(db, booking.id).status == first


def test_auto_complete_is_idempotent(db, doctor, patient):
    yesterday = book(db, doctor, patient, time(9), time(10), day=date(2030, 5, 13))
    cancelled = book(db, doctor, patient, time(11), time(12), day=date(2030, 5, 13))
    booking_service.mark_cancelled(db, cancelled.id)
    today = book(db, doctor, patient, time(9), time(10), day=DAY)

    assert booking_service.auto_complete_past_bookings(db, as_of=DAY) == [yesterday.id]
    assert booking_service.auto_complete_past_bookings(db, as_of=DAY) == []

    assert booking_service.get_booking(db, yesterday.id).status == models.BookingStatus.completed
    assert booking_service.get_booking(db, cancelled.id).status == models.BookingStatus.cancelled
    assert booking_service.get_booking(db, today.id).status == models.BookingStatus.booked


def test_auto_complete_can_be_scoped_to_one_doctor(db, doctor, patient):
    other = models.Doctor(
        employee_id="EMP-002", name="Cristina Yang", qualification="MS Cardiothoracic",
        specialization=models.Specialization.cardiac, contact="555-0102",
    )
    db.add(other)
    db.commit()
    mine = book(db, doctor, patient, time(9), time(10), day=date(2030, 5, 1))
    theirs = book(db, other, patient, time(11), time(12), day=date(2030, 5, 1))

    assert booking_service.auto_complete_past_bookings(db, as_of=DAY, doctor_id=doctor.id) == [mine.id]
    assert booking_service.get_booking(db, theirs.id).status == models.BookingStatus.booked


def test_reschedule_ignores_its_own_slot(db, doctor, patient):
    booking = book(db, doctor, patient, time(9), time(10))
    moved = booking_service.reschedule_booking(db, booking.id, DAY, time(9, 30), time(10, 30))
    assert (moved.start_time, moved.end_time) == (time(9, 30), time(10, 30))


def test_reschedule_into_another_booking_conflicts(db, doctor, patient):
    booking = book(db, doctor, patient, time(9), time(10))
    other = book(db, doctor, patient, time(11), time(12))
    with pytest.raises(ConflictError) as excinfo:
        booking_service.reschedule_booking(db, booking.id, DAY, time(10, 30), time(11, 30))
    assert excinfo.value.conflicting_ids == [other.id]


def test_only_booked_bookings_can_be_rescheduled(db, doctor, patient):
    booking = book(db, doctor, patient, time(9), time(10))
    booking_service.mark_completed(db, booking.id)
    with pytest.raises(InvalidTransitionError):
        booking_service.reschedule_booking(db, booking.id, DAY, time(13), time(14))


def test_delete_booking(db, doctor, patient):
    booking = book(db, doctor, patient, time(9), time(10))
    booking_service.delete_booking(db, booking.id)
    with pytest.raises(NotFoundError):
        booking_service.get_booking(db, booking.id)
