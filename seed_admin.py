import os

from pydantic import EmailStr, TypeAdapter
from sqlalchemy.orm import Session

from otbooking import models
from otbooking.database import SessionLocal, prepare_schema
from otbooking.security import get_password_hash

# Same rules as the sign-up form, so the seeded account can use every route
_email_adapter = TypeAdapter(EmailStr)


def get_env(name: str, default: str | None = None, required: bool = False) -> str:
    val = os.getenv(name, default)
    if required and not val:
        raise RuntimeError(f"Missing required env var: {name}")
    return val or ""


def admin_email() -> str:
    raw = get_env("ADMIN_DEFAULT_EMAIL", "admin@hospital.example.com").strip().lower()
    return str(_email_adapter.validate_python(raw))


def upsert_admin(db: Session) -> str:
    """Create the first admin account, or reset an existing one to a known password and the admin role."""
    email = admin_email()
    employee_id = get_env("ADMIN_DEFAULT_EMPLOYEE_ID", "ADMIN-001")
    raw_password = get_env("ADMIN_DEFAULT_PASSWORD", required=True)

    user = db.query(models.User).filter(models.User.email == email).first()
    if user:
        user.password_hash = get_password_hash(raw_password)
        user.is_active = True
        action = "updated"
    else:
        user = models.User(email=email, password_hash=get_password_hash(raw_password))
        db.add(user)
        action = "created"

    if user.doctor is None:
        user.doctor = models.Doctor(
            employee_id=employee_id,
            name=get_env("ADMIN_DEFAULT_NAME", "Theatre Administrator"),
            qualification=get_env("ADMIN_DEFAULT_QUALIFICATION", "Administrator"),
            specialization=models.Specialization.general,
            contact=get_env("ADMIN_DEFAULT_CONTACT", "0000000000"),
        )
    user.doctor.role = models.UserRole.admin

    db.commit()
    return f"Admin user {action}: email='{email}', employee_id='{user.doctor.employee_id}'"


def main():
    # Validate required env before touching the database
    get_env("ADMIN_DEFAULT_PASSWORD", required=True)
    admin_email()

    prepare_schema()
    db = SessionLocal()
    try:
        print(upsert_admin(db))
    finally:
        db.close()


if __name__ == "__main__":
    main()
