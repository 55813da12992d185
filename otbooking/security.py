# otbooking/security.py
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import crud, models
from .config import get_settings
from .database import get_db

security_logger = logging.getLogger("otbooking.security")

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=4,
    argon2__memory_cost=65536,
    argon2__parallelism=1,
)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/token")

# Revoked token ids (jti) until they would have expired anyway
revoked_tokens: Dict[str, datetime] = {}

CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        security_logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise CREDENTIALS_EXCEPTION
    if payload.get("sub") is None or payload.get("jti") in revoked_tokens:
        raise CREDENTIALS_EXCEPTION
    return payload


def revoke_token(payload: Dict[str, Any]) -> None:
    now = datetime.now(timezone.utc)
    # Drop entries whose tokens have expired on their own
    for jti, expires_at in list(revoked_tokens.items()):
        if expires_at <= now:
            del revoked_tokens[jti]
    expires_at = datetime.fromtimestamp(payload.get("exp", now.timestamp()), tz=timezone.utc)
    revoked_tokens[payload["jti"]] = expires_at


def authenticate_user(db: Session, email: str, password: str) -> Optional[models.User]:
    user = crud.get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def get_token_payload(token: str = Depends(oauth2_scheme)) -> Dict[str, Any]:
    return decode_access_token(token)


async def get_current_user(
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> models.User:
    user = crud.get_user(db, payload["sub"])
    if user is None or not user.is_active:
        raise CREDENTIALS_EXCEPTION
    return user


async def get_current_doctor(current_user: models.User = Depends(get_current_user)) -> models.Doctor:
    """Resolve the signed-in identity to its doctor/admin profile."""
    if current_user.doctor is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not find doctor profile for this account.",
        )
    return current_user.doctor


async def require_admin(current_doctor: models.Doctor = Depends(get_current_doctor)) -> models.Doctor:
    if current_doctor.role != models.UserRole.admin:
        security_logger.warning(f"Admin access denied for doctor {current_doctor.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this resource.",
        )
    return current_doctor
