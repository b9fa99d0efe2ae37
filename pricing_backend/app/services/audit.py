"""
Audit logging service for tracking admin changes to pricing configuration.

Provides centralized logging for compliance monitoring.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from pricing_backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    VEHICLE_TYPE_CREATED = "VEHICLE_TYPE_CREATED"
    VEHICLE_TYPE_PRICING_UPDATED = "VEHICLE_TYPE_PRICING_UPDATED"
    VEHICLE_TYPE_DEACTIVATED = "VEHICLE_TYPE_DEACTIVATED"

    PRICING_MULTIPLIER_CREATED = "PRICING_MULTIPLIER_CREATED"
    PRICING_MULTIPLIER_UPDATED = "PRICING_MULTIPLIER_UPDATED"
    PRICING_MULTIPLIER_DEACTIVATED = "PRICING_MULTIPLIER_DEACTIVATED"

    PRICING_EVENT_CREATED = "PRICING_EVENT_CREATED"
    PRICING_EVENT_UPDATED = "PRICING_EVENT_UPDATED"
    PRICING_EVENT_DELETED = "PRICING_EVENT_DELETED"


async def log_event(
    db: AsyncSession,
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    actor: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Stage an admin event in the audit log.

    The row is flushed, not committed: it commits or rolls back together
    with the catalog change it describes.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        resource_type: Kind of catalog entry touched
        resource_id: ID of the catalog entry
        actor: Identifier of whoever made the change, if known
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor=actor,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        meta_data=metadata,
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    resource_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if resource_id:
        query = query.where(AuditLog.resource_id == resource_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
