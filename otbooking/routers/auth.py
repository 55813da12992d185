# otbooking/routers/auth.py
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from .. import crud, schemas, security, models
from ..audit import audit_logger
from ..config import get_settings
from ..database import get_db

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)


def _profile(user: models.User):
    return schemas.DoctorResponse.model_validate(user.doctor) if user.doctor else None


@router.post("/signup", response_model=schemas.CurrentUserResponse, status_code=status.HTTP_201_CREATED)
def sign_up(signup: schemas.DoctorSignUp, db: Session = Depends(get_db)):
    """Register an account together with its doctor profile."""
    if crud.get_user_by_email(db, signup.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An account with this email already exists.")

    user = crud.create_user_with_profile(db, signup, security.get_password_hash(signup.password))
    audit_logger.log_event(
        db, user_id=user.id, action=models.AuditAction.SIGNUP, category="AUTHENTICATION",
        resource_type="Doctor", resource_id=user.doctor.id,
        details=f"Signed up {user.email} as {user.doctor.role.value}",
    )
    logger.info(f"New account registered: {user.email}")
    return schemas.CurrentUserResponse(user_id=user.id, email=user.email, last_login=user.last_login, doctor=_profile(user))


@router.post("/token", response_model=schemas.TokenResponse)
def login_for_access_token(db: Session = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    user = security.authenticate_user(db, form_data.username, form_data.password)
    if user is None:
        logger.warning(f"Failed login attempt for: {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    crud.touch_last_login(db, user)
    audit_logger.log_event(
        db, user_id=user.id, action=models.AuditAction.LOGIN, category="AUTHENTICATION",
        details=f"User {user.email} logged in successfully.",
    )
    logger.info(f"User '{user.email}' successfully authenticated.")

    access_token = security.create_access_token(data={"sub": user.id})
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": get_settings().access_token_expire_minutes * 60,
        "doctor": _profile(user),
    }


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    payload: Dict[str, Any] = Depends(security.get_token_payload),
    db: Session = Depends(get_db),
):
    """Sign out: the presented token is rejected from now on."""
    security.revoke_token(payload)
    audit_logger.log_event(
        db, user_id=payload["sub"], action=models.AuditAction.LOGOUT, category="AUTHENTICATION",
        details="User signed out.",
    )


@router.get("/me", response_model=schemas.CurrentUserResponse)
async def read_users_me(current_user: models.User = Depends(security.get_current_user)):
    """
    Get the current signed-in user with the doctor profile it resolves to.
    """
    return schemas.CurrentUserResponse(
        user_id=current_user.id,
        email=current_user.email,
        last_login=current_user.last_login,
        doctor=_profile(current_user),
    )
