# otbooking/routers/doctors.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, schemas, models, security
from ..audit import audit_logger
from ..database import get_db

router = APIRouter(
    prefix="/doctors",
    tags=["Doctors"],
    responses={404: {"description": "Not found"}},
)


@router.get("/me", response_model=schemas.DoctorResponse)
def read_my_profile(current_doctor: models.Doctor = Depends(security.get_current_doctor)):
    return current_doctor


@router.put("/me", response_model=schemas.DoctorResponse)
def update_my_profile(
    doctor_update: schemas.DoctorUpdate,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    """Doctors edit their own profile. The role is not editable here."""
    updated = crud.update_doctor(db, current_doctor, doctor_update)
    audit_logger.log_event(
        db, user_id=current_doctor.user_id, action=models.AuditAction.UPDATE, category="DOCTOR",
        resource_type="Doctor", resource_id=current_doctor.id,
        details="Updated own profile",
    )
    return updated


@router.get("", response_model=List[schemas.DoctorResponse], dependencies=[Depends(security.require_admin)])
def list_doctors(
    search: Optional[str] = None,
    role: Optional[models.UserRole] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return crud.get_doctors(db, skip=skip, limit=limit, search=search, role=role)


@router.put("/{doctor_id}/role", response_model=schemas.DoctorResponse)
def change_doctor_role(
    doctor_id: str,
    role_update: schemas.DoctorRoleUpdate,
    db: Session = Depends(get_db),
    current_admin: models.Doctor = Depends(security.require_admin),
):
    db_doctor = crud.get_doctor(db, doctor_id)
    if db_doctor is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Doctor not found")
    db_doctor = crud.update_doctor_role(db, db_doctor, role_update.role)
    audit_logger.log_event(
        db, user_id=current_admin.user_id, action=models.AuditAction.UPDATE, category="DOCTOR",
        resource_type="Doctor", resource_id=doctor_id,
        details=f"Role set to {role_update.role.value}",
    )
    return db_doctor
