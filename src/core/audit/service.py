from enum import StrEnum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import Actor
from src.core.audit.models import AuditLog


class AuditAction(StrEnum):
    """Ledger audit actions."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"

    RECEIVE_STOCK = "RECEIVE_STOCK"
    ALLOCATE = "ALLOCATE"
    RETURN_ALLOCATION = "RETURN_ALLOCATION"
    PARTIAL_RETURN_ALLOCATION = "PARTIAL_RETURN_ALLOCATION"
    CONSUME_ALLOCATION = "CONSUME_ALLOCATION"
    MARK_OVERDUE = "MARK_OVERDUE"
    ISSUE_STOCK = "ISSUE_STOCK"
    RETURN_ISSUE = "RETURN_ISSUE"
    DELETE_GIN = "DELETE_GIN"
    DELETE_ASSET = "DELETE_ASSET"
    RESTORE_ASSET = "RESTORE_ASSET"


class AuditService:
    """Service for creating audit logs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: str | AuditAction,
        entity_type: str,
        entity_id: int,
        actor: Actor | None = None,
        entity_identifier: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        comment: str | None = None,
    ) -> AuditLog:
        """Create an audit log entry in the current transaction."""
        audit_log = AuditLog(
            user_id=actor.id if actor else None,
            user_name=actor.name if actor else None,
            action=str(action),
            entity_type=entity_type,
            entity_id=entity_id,
            entity_identifier=entity_identifier,
            old_values=old_values,
            new_values=new_values,
            comment=comment,
        )

        self.db.add(audit_log)
        await self.db.flush()

        return audit_log


async def list_audit_entries(
    session: AsyncSession,
    *,
    entity_type: str | None = None,
    entity_id: int | None = None,
    action: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[AuditLog], int]:
    """
    List audit log entries with optional filters, newest first.
    Returns (entries, total_count).
    """
    q = select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    count_q = select(func.count()).select_from(AuditLog)
    if entity_type is not None:
        q = q.where(AuditLog.entity_type == entity_type)
        count_q = count_q.where(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        q = q.where(AuditLog.entity_id == entity_id)
        count_q = count_q.where(AuditLog.entity_id == entity_id)
    if action is not None:
        q = q.where(AuditLog.action == action)
        count_q = count_q.where(AuditLog.action == action)

    total = (await session.execute(count_q)).scalar_one()

    q = q.offset((page - 1) * limit).limit(limit)
    result = await session.execute(q)
    return list(result.scalars().all()), total
