# otbooking/schemas.py
from datetime import datetime, date, time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .models import AuditAction, BookingStatus, Specialization, UserRole
from .services.intervals import parse_time, to_minutes


# --- Base Schemas ---
class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def _coerce_time(value):
    if isinstance(value, str):
        return parse_time(value)
    return value


# --- Auth Schemas ---
class DoctorSignUp(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=255)
    employee_id: str = Field(..., min_length=1, max_length=50)
    qualification: str = Field(..., min_length=1, max_length=255)
    specialization: Specialization = Specialization.surgeon
    contact: str = Field(..., min_length=1, max_length=50)
    role: UserRole = UserRole.doctor

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if not any(char.isdigit() for char in v):
            raise ValueError('Password must contain at least one digit')
        if not any(char.isalpha() for char in v):
            raise ValueError('Password must contain at least one letter')
        return v


class DoctorResponse(BaseSchema):
    id: str
    employee_id: str
    name: str
    qualification: str
    specialization: Specialization
    contact: str
    role: UserRole
    created_at: Optional[datetime] = None


class DoctorUpdate(BaseSchema):
    employee_id: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    qualification: Optional[str] = Field(None, min_length=1, max_length=255)
    specialization: Optional[Specialization] = None
    contact: Optional[str] = Field(None, min_length=1, max_length=50)


class DoctorRoleUpdate(BaseModel):
    role: UserRole


class CurrentUserResponse(BaseModel):
    user_id: str
    email: str
    last_login: Optional[datetime] = None
    doctor: Optional[DoctorResponse] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    doctor: Optional[DoctorResponse] = None


# --- Patient Schemas ---
class PatientBase(BaseSchema):
    patient_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    age: int = Field(..., ge=0, le=150)
    gender: Optional[str] = Field(None, max_length=20)
    condition: str = Field(..., min_length=1)
    emergency_contact: Optional[str] = Field(None, max_length=50)
    medical_history: Optional[str] = None
    icu_days: Optional[int] = Field(0, ge=0)
    expected_hospital_stay: Optional[int] = Field(1, ge=0)
    insurance: Optional[str] = Field(None, max_length=255)
    instruments: Optional[str] = None
    date_of_admission: Optional[date] = None
    date_of_discharge: Optional[date] = None
    sms_service: bool = False

    @model_validator(mode='after')
    def check_stay_dates(self):
        if self.date_of_admission and self.date_of_discharge and self.date_of_discharge < self.date_of_admission:
            raise ValueError('date_of_discharge cannot be before date_of_admission')
        return self


class PatientCreate(PatientBase):
    pass


class PatientUpdate(BaseSchema):
    patient_id: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[str] = Field(None, max_length=20)
    condition: Optional[str] = Field(None, min_length=1)
    emergency_contact: Optional[str] = Field(None, max_length=50)
    medical_history: Optional[str] = None
    icu_days: Optional[int] = Field(None, ge=0)
    expected_hospital_stay: Optional[int] = Field(None, ge=0)
    insurance: Optional[str] = Field(None, max_length=255)
    instruments: Optional[str] = None
    date_of_admission: Optional[date] = None
    date_of_discharge: Optional[date] = None
    sms_service: Optional[bool] = None


class PatientResponse(PatientBase):
    id: str
    created_at: Optional[datetime] = None


class PatientSummary(BaseSchema):
    id: str
    patient_id: str
    name: str
    condition: str


class DoctorSummary(BaseSchema):
    id: str
    employee_id: str
    name: str
    specialization: Specialization


# --- Booking Schemas ---
class SlotRequest(BaseModel):
    booking_date: date
    start_time: time
    end_time: time
    operation_theater: Optional[int] = Field(None, gt=0)

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def parse_times(cls, v):
        return _coerce_time(v)

    @model_validator(mode='after')
    def check_time_range(self):
        if to_minutes(self.end_time) <= to_minutes(self.start_time):
            raise ValueError('end_time must be after start_time')
        return self


class BookingCreate(SlotRequest):
    patient_id: str
    notes: Optional[str] = None


class BookingReschedule(SlotRequest):
    pass


class ConflictCheckRequest(SlotRequest):
    exclude_booking_id: Optional[str] = None


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
    conflicting_booking_ids: List[str] = []


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingResponse(BaseSchema):
    id: str
    booking_date: date
    start_time: time
    end_time: time
    operation_theater: int
    status: BookingStatus
    notes: Optional[str] = None
    doctor_id: str
    patient_id: str
    patient: Optional[PatientSummary] = None
    doctor: Optional[DoctorSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AutoCompleteResponse(BaseModel):
    as_of: date
    completed_count: int
    completed_ids: List[str]


# --- Query options ---
class StatusFilter(str, Enum):
    all = "all"
    booked = "booked"
    completed = "completed"
    cancelled = "cancelled"


class DateFilter(str, Enum):
    all = "all"
    today = "today"
    week = "week"
    month = "month"
    upcoming = "upcoming"


class SortKey(str, Enum):
    date = "date"
    time = "time"
    patient = "patient"
    status = "status"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class BookingQueryOptions(BaseModel):
    """Immutable list-view options: search text, filters and ordering."""
    model_config = ConfigDict(frozen=True)

    search: Optional[str] = None
    status: StatusFilter = StatusFilter.all
    date_filter: DateFilter = DateFilter.all
    sort_by: SortKey = SortKey.date
    sort_order: SortOrder = SortOrder.desc


# --- Stats Schemas ---
class ViewMode(str, Enum):
    day = "day"
    week = "week"
    month = "month"


class CapacityUnit(str, Enum):
    hours = "hours"
    days = "days"


class BookingStats(BaseModel):
    view: ViewMode
    window_start: date
    window_end: date
    total: int
    active: int
    completed: int
    cancelled: int
    available_capacity: int
    capacity_unit: CapacityUnit


class DashboardStatsResponse(BaseModel):
    total_doctors: int
    total_patients: int
    total_bookings: int
    booked_bookings: int
    completed_bookings: int
    cancelled_bookings: int


# --- Audit Log Schemas ---
class AuditLogResponse(BaseSchema):
    id: int
    user_id: Optional[str] = None
    action: AuditAction
    category: str
    severity: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    details: Optional[str] = None
    timestamp: Optional[datetime] = None


class HealthResponse(BaseModel):
    status: str
    database: str
    checked_at: datetime
