# otbooking/routers/patients.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, schemas, models, security
from ..audit import audit_logger
from ..database import get_db
from ..services.booking_filters import filter_patients

router = APIRouter(
    prefix="/patients",
    tags=["Patients"],
    responses={404: {"description": "Not found"}},
)


def _get_patient_or_404(db: Session, patient_id: str) -> models.Patient:
    db_patient = crud.get_patient(db, patient_id)
    if db_patient is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return db_patient


@router.post("", response_model=schemas.PatientResponse, status_code=status.HTTP_201_CREATED)
def create_new_patient(
    patient: schemas.PatientCreate,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    db_patient = crud.create_patient(db, patient)
    audit_logger.log_event(
        db, user_id=current_doctor.user_id, action=models.AuditAction.CREATE, category="PATIENT",
        resource_type="Patient", resource_id=db_patient.id,
        details=f"Registered patient {db_patient.patient_id}",
    )
    return db_patient


@router.get("", response_model=List[schemas.PatientResponse])
def list_patients(
    search: Optional[str] = None,
    gender: Optional[str] = None,
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    """Patients ordered by name, filtered by name/patient ID/condition and gender."""
    patients = crud.get_patients(db, skip=skip, limit=limit)
    return filter_patients(patients, search=search, gender=gender)


@router.get("/{patient_id}", response_model=schemas.PatientResponse)
def read_patient(
    patient_id: str,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    return _get_patient_or_404(db, patient_id)


@router.put("/{patient_id}", response_model=schemas.PatientResponse)
def update_existing_patient(
    patient_id: str,
    patient_update: schemas.PatientUpdate,
    db: Session = Depends(get_db),
    current_doctor: models.Doctor = Depends(security.get_current_doctor),
):
    db_patient = _get_patient_or_404(db, patient_id)
    updated = crud.update_patient(db, db_patient, patient_update)
    audit_logger.log_event(
        db, user_id=current_doctor.user_id, action=models.AuditAction.UPDATE, category="PATIENT",
        resource_type="Patient", resource_id=patient_id,
        details=f"Updated fields: {', '.join(sorted(patient_update.model_dump(exclude_unset=True)))}",
    )
    return updated
