# otbooking/models.py
import enum
import uuid

from sqlalchemy import (
    Column, Integer, String, DateTime, Time, ForeignKey, Text, Date,
    Enum as SQLAlchemyEnum, Boolean, Index, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class UserRole(str, enum.Enum):
    doctor = "doctor"
    admin = "admin"


class Specialization(str, enum.Enum):
    surgeon = "surgeon"
    orthopedic = "orthopedic"
    neuro = "neuro"
    cardiac = "cardiac"
    general = "general"
    pediatric = "pediatric"
    gynecology = "gynecology"
    ent = "ent"
    ophthalmology = "ophthalmology"
    anesthesiology = "anesthesiology"


class BookingStatus(str, enum.Enum):
    booked = "booked"
    completed = "completed"
    cancelled = "cancelled"

    def can_transition_to(self, target: "BookingStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS = {
    BookingStatus.booked: frozenset({BookingStatus.completed, BookingStatus.cancelled}),
    BookingStatus.completed: frozenset(),
    BookingStatus.cancelled: frozenset(),
}


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    SIGNUP = "SIGNUP"
    BULK_ACTION = "BULK_ACTION"


def _new_token() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Identity-provider account. The doctor/admin profile hangs off it."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_token)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="user", uselist=False)
    audit_logs = relationship("AuditLog", back_populates="user")


class Doctor(Base):
    """Doctor or admin profile, keyed by employee id."""
    __tablename__ = "doctors"
    __table_args__ = (
        Index('idx_doctors_role', 'role'),
    )

    id = Column(String(36), primary_key=True, default=_new_token)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=True)
    employee_id = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    qualification = Column(String(255), nullable=False)
    specialization = Column(SQLAlchemyEnum(Specialization, name='specialization'), nullable=False)
    contact = Column(String(50), nullable=False)
    role = Column(SQLAlchemyEnum(UserRole, name='user_role'), default=UserRole.doctor, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="doctor")
    bookings = relationship("Booking", back_populates="doctor")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


class Patient(Base):
    __tablename__ = "patients"
    __table_args__ = (
        Index('idx_patients_name', 'name'),
        CheckConstraint('age >= 0', name='ck_patients_age_non_negative'),
    )

    id = Column(String(36), primary_key=True, default=_new_token)
    patient_id = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String(20), nullable=True)
    condition = Column(Text, nullable=False)
    emergency_contact = Column(String(50), nullable=True)
    medical_history = Column(Text, nullable=True)
    icu_days = Column(Integer, nullable=True, default=0)
    expected_hospital_stay = Column(Integer, nullable=True, default=1)
    insurance = Column(String(255), nullable=True)
    instruments = Column(Text, nullable=True)
    date_of_admission = Column(Date, nullable=True)
    date_of_discharge = Column(Date, nullable=True)
    sms_service = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    bookings = relationship("Booking", back_populates="patient")


class Booking(Base):
    """A reserved operating-theatre slot: a date plus a half-open [start, end) time window."""
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint('end_time > start_time', name='ck_bookings_end_after_start'),
        CheckConstraint('operation_theater > 0', name='ck_bookings_theater_positive'),
        Index('idx_bookings_theater_date', 'operation_theater', 'booking_date'),
        Index('idx_bookings_doctor_date', 'doctor_id', 'booking_date'),
        Index('idx_bookings_status_date', 'status', 'booking_date'),
    )

    id = Column(String(36), primary_key=True, default=_new_token)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False)

    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    operation_theater = Column(Integer, nullable=False, default=1)
    status = Column(SQLAlchemyEnum(BookingStatus, name='booking_status'), default=BookingStatus.booked, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="bookings")
    patient = relationship("Patient", back_populates="bookings")


class AuditLog(Base):
    """Append-only record of who did what to which resource."""
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index('idx_audit_logs_category_time', 'category', 'timestamp'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    action = Column(SQLAlchemyEnum(AuditAction, name='audit_action'), nullable=False)
    category = Column(String(50), nullable=False)
    severity = Column(String(20), default="INFO", nullable=False)
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(String(36), nullable=True)
    details = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user = relationship("User", back_populates="audit_logs")
