"""Superadmin audit trail."""

import logging
from typing import Optional, Dict, Any
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.admin_audit_log import AdminAuditLog

logger = logging.getLogger(__name__)


async def log_admin_action(
    db: AsyncSession,
    admin_id: UUID,
    action: str,
    target_user_id: Optional[UUID] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AdminAuditLog:
    """Record a superadmin action.

    Args:
        db: Database session
        admin_id: superadmin performing the action
        action: e.g. "subscription_activate", "doctor_verify", "plan_update"
        target_user_id: affected user, if any
        details: JSON-serializable context

    Returns:
        The created audit log entry
    """
    audit_entry = AdminAuditLog(
        admin_id=admin_id,
        action=action,
        target_user_id=target_user_id,
        details=details or {},
    )

    db.add(audit_entry)
    await db.commit()
    await db.refresh(audit_entry)

    logger.info("Audit log created: admin=%s action=%s target=%s", admin_id, action, target_user_id)
    return audit_entry


async def list_admin_actions(db: AsyncSession, limit: int = 50) -> list[AdminAuditLog]:
    result = await db.execute(
        select(AdminAuditLog).order_by(AdminAuditLog.created_at.desc()).limit(limit)
    )
    return list(result.scalars().all())
