import logging
from typing import Optional, Dict, Any

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .audit_models import AuditLog

logger = logging.getLogger(__name__)


def create_audit_log(
    db: Session,
    action: str,
    user_id: Optional[int] = None,
    request: Optional[Request] = None,
    details: Optional[Dict[str, Any]] = None
) -> Optional[AuditLog]:
    """
    Creates an audit log entry.

    Audit writes are committed on their own; a failing audit write is logged
    and rolled back without affecting the account operation that triggered it.

    Args:
        db: The database session.
        action: A string describing the action performed (e.g., 'LOGIN_SUCCESS').
        user_id: The ID of the account the action concerns (if applicable).
        request: The FastAPI request object to extract IP address (if available).
        details: A dictionary containing additional context or data related to the action.

    Returns:
        The created AuditLog object, or None if it could not be written.
    """
    ip_address = None
    if request is not None and request.client:
        ip_address = request.client.host

    audit_entry = AuditLog(
        user_id=user_id,
        action=action,
        ip_address=ip_address,
        details=details
    )
    try:
        db.add(audit_entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to write audit log '{action}': {str(e)}")
        return None
    return audit_entry
