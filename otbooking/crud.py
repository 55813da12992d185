# otbooking/crud.py
from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any, Iterable

import logging
from sqlalchemy import or_, func
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.orm import Session, joinedload

from . import models, schemas
from .exceptions import ConflictError, TransientStoreError

logger = logging.getLogger(__name__)


def _commit(db: Session, what: str) -> None:
    """Commit, rolling back on failure. IntegrityError propagates for the caller to interpret."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while {what}: {e}")
        raise TransientStoreError() from e

# ==================== USER CRUD OPERATIONS ====================

def get_user(db: Session, user_id: str) -> Optional[models.User]:
    try:
        return db.query(models.User).options(joinedload(models.User.doctor)).filter(models.User.id == user_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching user {user_id}: {e}")
        raise TransientStoreError() from e


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    try:
        return db.query(models.User).filter(func.lower(models.User.email) == email.strip().lower()).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching user by email: {e}")
        raise TransientStoreError() from e


def touch_last_login(db: Session, user: models.User) -> None:
    user.last_login = datetime.now(timezone.utc)
    _commit(db, "recording last login")


def create_user_with_profile(db: Session, signup: schemas.DoctorSignUp, password_hash: str) -> models.User:
    """Create the identity account and its doctor profile in one transaction."""
    db_user = models.User(email=signup.email.strip().lower(), password_hash=password_hash)
    db_doctor = models.Doctor(
        user=db_user,
        employee_id=signup.employee_id,
        name=signup.name,
        qualification=signup.qualification,
        specialization=signup.specialization,
        contact=signup.contact,
        role=signup.role,
    )
    db.add(db_user)
    db.add(db_doctor)
    try:
        _commit(db, "creating user")
    except IntegrityError as e:
        logger.warning(f"Sign-up rejected for {signup.email}: {e.orig}")
        raise ConflictError("An account with this email or employee ID already exists.") from e
    db.refresh(db_user)
    return db_user

# ==================== DOCTOR CRUD OPERATIONS ====================

def get_doctor(db: Session, doctor_id: str) -> Optional[models.Doctor]:
    try:
        return db.query(models.Doctor).filter(models.Doctor.id == doctor_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching doctor {doctor_id}: {e}")
        raise TransientStoreError() from e


def get_doctors(db: Session, skip: int = 0, limit: int = 100, search: Optional[str] = None,
                role: Optional[models.UserRole] = None) -> List[models.Doctor]:
    """Doctors newest first, optionally matching name, employee id or qualification."""
    try:
        query = db.query(models.Doctor)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                models.Doctor.name.ilike(pattern),
                models.Doctor.employee_id.ilike(pattern),
                models.Doctor.qualification.ilike(pattern),
            ))
        if role is not None:
            query = query.filter(models.Doctor.role == role)
        return query.order_by(models.Doctor.created_at.desc()).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching doctors: {e}")
        raise TransientStoreError() from e


def update_doctor(db: Session, doctor: models.Doctor, doctor_update: schemas.DoctorUpdate) -> models.Doctor:
    update_data = doctor_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(doctor, key, value)
    try:
        _commit(db, "updating doctor profile")
    except IntegrityError as e:
        raise ConflictError("Another doctor already uses this employee ID.") from e
    db.refresh(doctor)
    return doctor


def update_doctor_role(db: Session, doctor: models.Doctor, role: models.UserRole) -> models.Doctor:
    doctor.role = role
    _commit(db, "changing doctor role")
    db.refresh(doctor)
    return doctor

# ==================== PATIENT CRUD OPERATIONS ====================

def get_patient(db: Session, patient_id: str) -> Optional[models.Patient]:
    """Get a single patient by internal id."""
    try:
        return db.query(models.Patient).filter(models.Patient.id == patient_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching patient {patient_id}: {e}")
        raise TransientStoreError() from e


def get_patients(db: Session, skip: int = 0, limit: int = 100) -> List[models.Patient]:
    """Patients ordered by name, the way the booking patient picker lists them."""
    try:
        return db.query(models.Patient).order_by(models.Patient.name).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching patients: {e}")
        raise TransientStoreError() from e


def create_patient(db: Session, patient: schemas.PatientCreate) -> models.Patient:
    db_patient = models.Patient(**patient.model_dump())
    db.add(db_patient)
    try:
        _commit(db, "creating patient")
    except IntegrityError as e:
        raise ConflictError(f"Patient ID '{patient.patient_id}' is already registered.") from e
    db.refresh(db_patient)
    return db_patient


def update_patient(db: Session, db_patient: models.Patient, patient_update: schemas.PatientUpdate) -> models.Patient:
    update_data = patient_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_patient, key, value)
    try:
        _commit(db, "updating patient")
    except IntegrityError as e:
        raise ConflictError("Another patient already uses this patient ID.") from e
    db.refresh(db_patient)
    return db_patient

# ==================== BOOKING CRUD OPERATIONS ====================

def _booking_query(db: Session):
    return db.query(models.Booking).options(
        joinedload(models.Booking.patient),
        joinedload(models.Booking.doctor),
    )


def get_booking(db: Session, booking_id: str) -> Optional[models.Booking]:
    try:
        return _booking_query(db).filter(models.Booking.id == booking_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching booking {booking_id}: {e}")
        raise TransientStoreError() from e


def get_bookings(
    db: Session,
    doctor_id: Optional[str] = None,
    theater: Optional[int] = None,
    statuses: Optional[Iterable[models.BookingStatus]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[models.Booking]:
    """Bookings with their doctor and patient, newest date first then by start time."""
    try:
        query = _booking_query(db)
        if doctor_id is not None:
            query = query.filter(models.Booking.doctor_id == doctor_id)
        if theater is not None:
            query = query.filter(models.Booking.operation_theater == theater)
        if statuses is not None:
            query = query.filter(models.Booking.status.in_(list(statuses)))
        if start_date is not None:
            query = query.filter(models.Booking.booking_date >= start_date)
        if end_date is not None:
            query = query.filter(models.Booking.booking_date <= end_date)
        return query.order_by(models.Booking.booking_date.desc(), models.Booking.start_time.asc()).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching bookings: {e}")
        raise TransientStoreError() from e


def get_occupying_bookings(db: Session, theater: int, booking_date: date) -> List[models.Booking]:
    """
    Non-cancelled bookings of one theatre on one day.
    Raises SQLAlchemyError untouched so the conflict checker can fail closed.
    """
    return db.query(models.Booking).filter(
        models.Booking.operation_theater == theater,
        models.Booking.booking_date == booking_date,
        models.Booking.status != models.BookingStatus.cancelled,
    ).order_by(models.Booking.start_time).all()


def create_booking(db: Session, **fields: Any) -> models.Booking:
    """Insert a booked booking. IntegrityError propagates so the caller can tell an overlap from a bad reference."""
    db_booking = models.Booking(status=models.BookingStatus.booked, **fields)
    db.add(db_booking)
    _commit(db, "creating booking")
    db.refresh(db_booking)
    return db_booking


def save_booking(db: Session, db_booking: models.Booking) -> models.Booking:
    db.add(db_booking)
    _commit(db, f"updating booking {db_booking.id}")
    db.refresh(db_booking)
    return db_booking


def complete_past_bookings(db: Session, as_of: date, doctor_id: Optional[str] = None) -> List[str]:
    """
    Flip every booked booking dated before ``as_of`` to completed with a single
    UPDATE and a single commit. Returns the ids that changed.
    """
    try:
        query = db.query(models.Booking).filter(
            models.Booking.status == models.BookingStatus.booked,
            models.Booking.booking_date < as_of,
        )
        if doctor_id is not None:
            query = query.filter(models.Booking.doctor_id == doctor_id)
        ids = [row.id for row in query.with_entities(models.Booking.id).all()]
        if not ids:
            return []
        db.query(models.Booking).filter(
            models.Booking.id.in_(ids),
            models.Booking.status == models.BookingStatus.booked,
        ).update({models.Booking.status: models.BookingStatus.completed}, synchronize_session=False)
        db.commit()
        db.expire_all()
        return ids
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error auto-completing past bookings: {e}")
        raise TransientStoreError() from e


def delete_booking(db: Session, db_booking: models.Booking) -> None:
    db.delete(db_booking)
    _commit(db, f"deleting booking {db_booking.id}")

# ==================== AUDIT LOG / DASHBOARD ====================

def get_audit_logs(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    user_id: Optional[str] = None,
    category: Optional[str] = None,
    severity: Optional[str] = None,
) -> List[models.AuditLog]:
    """Retrieve audit logs with filtering, newest first."""
    try:
        query = db.query(models.AuditLog)
        if user_id:
            query = query.filter(models.AuditLog.user_id == user_id)
        if category:
            query = query.filter(models.AuditLog.category == category)
        if severity:
            query = query.filter(models.AuditLog.severity == severity)
        return query.order_by(models.AuditLog.timestamp.desc(), models.AuditLog.id.desc()).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching audit logs: {e}")
        raise TransientStoreError() from e


def get_dashboard_stats(db: Session) -> Dict[str, Any]:
    """Admin overview counts across the whole system."""
    try:
        stats = {
            "total_doctors": db.query(models.Doctor).count(),
            "total_patients": db.query(models.Patient).count(),
            "total_bookings": db.query(models.Booking).count(),
        }
        by_status = dict(
            db.query(models.Booking.status, func.count(models.Booking.id)).group_by(models.Booking.status).all()
        )
        for status in models.BookingStatus:
            stats[f"{status.value}_bookings"] = by_status.get(status, 0)
        return stats
    except SQLAlchemyError as e:
        logger.error(f"Error fetching dashboard stats: {e}")
        raise TransientStoreError() from e
