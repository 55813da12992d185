# otbooking/routers/logs.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..security import require_admin

router = APIRouter(
    tags=["Logs"],
    dependencies=[Depends(require_admin)],
    responses={404: {"description": "Not found"}},
)


@router.get("/logs", response_model=List[schemas.AuditLogResponse])
def read_audit_logs(
    skip: int = 0,
    limit: int = 100,
    user_id: Optional[str] = None,
    category: Optional[str] = None,
    severity: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Retrieve audit logs with optional filtering.
    Only accessible by administrators.
    """
    return crud.get_audit_logs(
        db, skip=skip, limit=limit, user_id=user_id, category=category, severity=severity
    )


@router.get("/dashboard/stats", response_model=schemas.DashboardStatsResponse, tags=["Dashboard"])
def read_dashboard_stats(db: Session = Depends(get_db)):
    """System-wide counts for the admin dashboard."""
    return crud.get_dashboard_stats(db)
