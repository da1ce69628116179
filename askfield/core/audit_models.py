from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class AuditLog(Base):
    """
    Audit Log Model - One row per authentication event

    Fields:
    - user_id: Account the event concerns, if one was resolved
    - action: Event name (e.g. 'LOGIN_SUCCESS', 'REGISTRATION_FAILED_EMAIL_EXISTS')
    - details: Additional context as JSON (never tokens or passwords)
    - ip_address: Client address, when known
    - timestamp: When the event was recorded
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    action = Column(String, nullable=False, index=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    account = relationship("Account")

    def __repr__(self):
        return f"<AuditLog(id={self.id}, user_id={self.user_id}, action='{self.action}', timestamp='{self.timestamp}')>"
