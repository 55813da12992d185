# otbooking/routers/bookings.py
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from .. import crud, schemas, models, security
from ..config import get_settings
from ..database import get_db
from ..exceptions import ValidationError
from ..limiter import limiter, booking_rate_limit
from ..services import booking_service, conflict_service, stats_service
from ..services.booking_filters import filter_and_sort
from ..services.intervals import local_today

router = APIRouter(
    prefix="/bookings",
    tags=["Bookings"],
    responses={404: {"description": "Not found"}},
)


def _ensure_can_modify(booking: models.Booking, current_doctor: models.Doctor) -> None:
    if booking.doctor_id != current_doctor.id and not current_doctor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only change your own bookings.",
        )


def _resolve_theater(requested: Optional[int]) -> int:
    settings = get_settings()
    theater = requested or settings.default_theater
    if theater > settings.theater_count:
        raise ValidationError(f"Operation theatre {theater} does not exist; this hospital has {settings.theater_count}.")
    return theater


def _theater_filter(requested: Optional[int]) -> Optional[int]:
    """A theatre filter on a read view; None means every theatre."""
    if requested is None:
        return None
    return _resolve_theater(requested)


def _scope_doctor_id(current_doctor: models.Doctor, all_doctors: bool) -> Optional[str]:
    """Admins may look across every doctor; doctors always see only their own bookings."""
    if all_doctors:
        if not current_doctor.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admins can view all bookings.")
        return None
    return current_doctor.id


@router.post("", response_model=schemas.BookingResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(booking_rate_limit)
def create_new_booking(
    request: Request,
    booking: schemas.BookingCreate,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    """Reserve an OT slot for the signed-in doctor after the conflict check."""
    return booking_service.create_booking(
        db,
        doctor_id=current_doctor.id,
        patient_id=booking.patient_id,
        booking_date=booking.booking_date,
        start_time=booking.start_time,
        end_time=booking.end_time,
        theater=_resolve_theater(booking.operation_theater),
        notes=booking.notes,
        actor_user_id=current_doctor.user_id,
    )


@router.post("/check-conflict", response_model=schemas.ConflictCheckResponse)
def check_conflict(
    slot: schemas.ConflictCheckRequest,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    """Pre-flight check: does this slot overlap an existing booked or completed booking?"""
    conflicts = conflict_service.check_booking_conflict(
        db,
        theater=_resolve_theater(slot.operation_theater),
        booking_date=slot.booking_date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        exclude_booking_id=slot.exclude_booking_id,
    )
    return schemas.ConflictCheckResponse(
        has_conflict=bool(conflicts),
        conflicting_booking_ids=[b.id for b in conflicts],
    )


@router.get("", response_model=List[schemas.BookingResponse])
def list_bookings(
    search: Optional[str] = None,
    status_filter: schemas.StatusFilter = Query(schemas.StatusFilter.all, alias="status"),
    date_filter: schemas.DateFilter = schemas.DateFilter.all,
    sort_by: schemas.SortKey = schemas.SortKey.date,
    sort_order: schemas.SortOrder = schemas.SortOrder.desc,
    theater: Optional[int] = Query(None, gt=0),
    all_doctors: bool = False,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    """The "my bookings" list: search, filter and sort over the doctor's bookings."""
    doctor_id = _scope_doctor_id(current_doctor, all_doctors)
    theater = _theater_filter(theater)
    today = local_today()
    booking_service.auto_complete_past_bookings(db, as_of=today, doctor_id=doctor_id, actor_user_id=current_doctor.user_id)

    bookings = crud.get_bookings(db, doctor_id=doctor_id, theater=theater)
    options = schemas.BookingQueryOptions(
        search=search,
        status=status_filter,
        date_filter=date_filter,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return filter_and_sort(bookings, options, today)


@router.get("/calendar", response_model=List[schemas.BookingResponse])
def calendar_bookings(
    start_date: date,
    end_date: date,
    theater: Optional[int] = Query(None, gt=0),
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    """Booked and completed bookings of one theatre in a date range, for the calendar grid."""
    if end_date < start_date:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="end_date must not be before start_date")
    bookings = crud.get_bookings(
        db,
        theater=_resolve_theater(theater),
        statuses=[models.BookingStatus.booked, models.BookingStatus.completed],
        start_date=start_date,
        end_date=end_date,
    )
    return sorted(bookings, key=lambda b: (b.booking_date, b.start_time))


@router.get("/stats", response_model=schemas.BookingStats)
def booking_stats(
    view: schemas.ViewMode = schemas.ViewMode.week,
    anchor: Optional[date] = None,
    theater: Optional[int] = Query(None, gt=0),
    all_doctors: bool = False,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    """Counts per status and remaining capacity for the viewed day, week or month."""
    doctor_id = _scope_doctor_id(current_doctor, all_doctors)
    theater = _theater_filter(theater)
    now = datetime.now()
    booking_service.auto_complete_past_bookings(db, as_of=now.date(), doctor_id=doctor_id, actor_user_id=current_doctor.user_id)

    settings = get_settings()
    window_start, window_end = stats_service.resolve_window(view, anchor or now.date(), settings.week_starts_on)
    bookings = crud.get_bookings(db, doctor_id=doctor_id, theater=theater, start_date=window_start, end_date=window_end)
    return stats_service.compute_stats(bookings, view, anchor or now.date(), now, settings.week_starts_on)


@router.post("/auto-complete", response_model=schemas.AutoCompleteResponse)
def auto_complete(
    as_of: Optional[date] = None,
    all_doctors: bool = False,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    """Mark every past booked booking as completed."""
    doctor_id = _scope_doctor_id(current_doctor, all_doctors)
    as_of = as_of or local_today()
    completed_ids = booking_service.auto_complete_past_bookings(db, as_of=as_of, doctor_id=doctor_id, actor_user_id=current_doctor.user_id)
    return schemas.AutoCompleteResponse(as_of=as_of, completed_count=len(completed_ids), completed_ids=completed_ids)


@router.get("/{booking_id}", response_model=schemas.BookingResponse)
def read_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    booking = booking_service.get_booking(db, booking_id)
    _ensure_can_modify(booking, current_doctor)
    return booking


@router.patch("/{booking_id}/status", response_model=schemas.BookingResponse)
def update_booking_status(
    booking_id: str,
    status_update: schemas.BookingStatusUpdate,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    """Complete or cancel a booked booking. Completed and cancelled bookings are final."""
    booking = booking_service.get_booking(db, booking_id)
    _ensure_can_modify(booking, current_doctor)
    return booking_service.transition_status(db, booking.id, status_update.status, actor_user_id=current_doctor.user_id)


@router.put("/{booking_id}/slot", response_model=schemas.BookingResponse)
def reschedule_booking(
    booking_id: str,
    slot: schemas.BookingReschedule,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    booking = booking_service.get_booking(db, booking_id)
    _ensure_can_modify(booking, current_doctor)
    return booking_service.reschedule_booking(
        db,
        booking.id,
        booking_date=slot.booking_date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        theater=None if slot.operation_theater is None else _resolve_theater(slot.operation_theater),
        actor_user_id=current_doctor.user_id,
    )


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    current_admin: models.Doctor = Depends(security.require_admin),
):
    booking_service.delete_booking(db, booking_id, actor_user_id=current_admin.user_id)
