"""
Audit trail for rule mutations.

AuditRecorder writes in a session of its own, after the triggering mutation
has been committed. The two writes share no transaction: a mutation can
succeed while its audit entry is lost, and a failed audit write never
reaches the caller.
"""

import logging
import uuid
from typing import Any, Callable, List, Optional

from fastapi.encoders import jsonable_encoder
from loguru import logger as default_logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rules_service.core.database import AsyncSessionLocal
from rules_service.core.exceptions import InternalFailure
from rules_service.models import AuditAction, RuleAuditLog

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Fire-and-forget sink for rule mutation events."""

    def __init__(
        self, session_factory: Callable[[], AsyncSession], logger=default_logger
    ):
        self.session_factory = session_factory
        self.logger = logger

    async def record(
        self,
        rule_id: str,
        action: AuditAction,
        user_id: str,
        changes: Any,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        try:
            entry = RuleAuditLog(
                id=str(uuid.uuid4()),
                rule_id=rule_id,
                action=AuditAction(action).value,
                user_id=user_id,
                changes=jsonable_encoder(changes),
                ip_address=ip_address,
                user_agent=user_agent,
            )
            async with self.session_factory() as session:
                session.add(entry)
                await session.commit()
        except Exception:
            # Never propagate: the mutation that triggered this is already committed
            self.logger.opt(exception=True).error(
                f"Failed to log audit for rule {rule_id} ({action})"
            )


class AuditLogService:
    """Read access to the audit trail."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_entries(
        self,
        rule_id: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[RuleAuditLog]:
        """Entries newest first, optionally narrowed by rule and/or user."""
        query = select(RuleAuditLog)
        if rule_id:
            query = query.where(RuleAuditLog.rule_id == rule_id)
        if user_id:
            query = query.where(RuleAuditLog.user_id == user_id)
        query = query.order_by(RuleAuditLog.created_at.desc()).limit(limit)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to get audit log: {e}")
            raise InternalFailure("Failed to read audit log") from e
        return list(result.scalars().all())


def get_audit_recorder() -> AuditRecorder:
    """FastAPI dependency providing the process-wide audit sink."""
    return AuditRecorder(AsyncSessionLocal)
