"""
Audit Log Database Model.

Tracks administrative changes to the pricing catalog.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from pricing_backend.app.core.clock import utc_now
from pricing_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking pricing catalog changes.

    Events logged:
    - VEHICLE_TYPE_CREATED / VEHICLE_TYPE_PRICING_UPDATED / VEHICLE_TYPE_DEACTIVATED
    - PRICING_MULTIPLIER_CREATED / _UPDATED / _DEACTIVATED
    - PRICING_EVENT_CREATED / _UPDATED / _DELETED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None when the caller is not identified)
    actor = Column(String(100), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which catalog entry was touched
    resource_type = Column(String(50), nullable=True, index=True)
    resource_id = Column(String(36), nullable=True, index=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', resource={self.resource_type}:{self.resource_id})>"
