# otbooking/audit.py
from typing import Optional, Union

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models


class AuditLogger:
    """Writes business events to the audit_logs table and mirrors them to the structured log."""

    def __init__(self, institution_id: str = 'OT-BOOKING'):
        self.institution_id = institution_id
        self.logger = structlog.get_logger("otbooking.audit")

    @staticmethod
    def _coerce_action(action: Union[str, models.AuditAction]) -> models.AuditAction:
        if isinstance(action, models.AuditAction):
            return action
        action_upper = (action or '').upper()
        try:
            return models.AuditAction[action_upper]
        except KeyError:
            # Reduce free-form actions to the closest standard value
            if 'LOGIN' in action_upper:
                return models.AuditAction.LOGIN
            if 'LOGOUT' in action_upper:
                return models.AuditAction.LOGOUT
            if 'DELETE' in action_upper:
                return models.AuditAction.DELETE
            if 'CREATE' in action_upper:
                return models.AuditAction.CREATE
            return models.AuditAction.UPDATE

    def log_event(
        self,
        db: Session,
        user_id: Optional[str],
        action: Union[str, models.AuditAction],
        category: str,
        details: Optional[str] = None,
        severity: str = 'INFO',
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> None:
        """
        Persist one audit entry. Called after the business change has been
        committed; a failure here is logged and never undoes that change.
        """
        action_enum = self._coerce_action(action)
        self.logger.info(
            "audit_event",
            institution=self.institution_id,
            user_id=user_id,
            action=action_enum.value,
            category=category,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
        )
        try:
            db.add(models.AuditLog(
                user_id=user_id,
                action=action_enum,
                category=category or 'GENERAL',
                severity=severity or 'INFO',
                resource_type=resource_type,
                resource_id=str(resource_id) if resource_id is not None else None,
                details=details,
            ))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            self.logger.error("audit_log_write_failed", error=str(e))


# Singleton instance for global import
audit_logger = AuditLogger()
