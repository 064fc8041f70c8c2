"""
Audit log service.

Rows are added to the caller's session and committed together with the
mutation they describe, so a change is never persisted without its audit
entry.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models.audit import AuditAction, AuditLog, EntityType

logger = logging.getLogger(__name__)


def write_audit_log(
    session: AsyncSession,
    entity_type: EntityType,
    entity_id: int,
    action: AuditAction,
    old_value: Optional[Dict[str, Any]] = None,
    new_value: Optional[Dict[str, Any]] = None,
    performed_by_id: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Append an audit entry to the current unit of work.

    Args:
        session: Session holding the primary mutation
        entity_type: Kind of entity changed
        entity_id: ID of the entity changed
        action: What happened
        old_value: JSON-serializable state before the change
        new_value: JSON-serializable state after the change
        performed_by_id: Acting staff user, None for public intake
        ip_address: Client address of the request

    Returns:
        The pending AuditLog row (flushed with the caller's commit)
    """
    entry = AuditLog(
        entity_type=EntityType(entity_type).value,
        entity_id=entity_id,
        action=AuditAction(action).value,
        old_value=old_value,
        new_value=new_value,
        performed_by_id=performed_by_id,
        ip_address=ip_address,
    )
    session.add(entry)
    logger.debug(f"Audit {entry.action} on {entry.entity_type} {entity_id}")
    return entry


async def recent_entries(
    session: AsyncSession,
    entity_type: EntityType,
    entity_id: int,
    limit: int = 20,
) -> List[AuditLog]:
    """Most recent audit entries for one entity, newest first."""
    result = await session.execute(
        select(AuditLog)
        .options(selectinload(AuditLog.performed_by))
        .where(
            AuditLog.entity_type == EntityType(entity_type).value,
            AuditLog.entity_id == entity_id,
        )
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
