"""
Service layer for the global threat pattern catalog.
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import case, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rules_service.core.exceptions import InternalFailure, NotFoundOrDenied
from rules_service.models import RISK_LEVEL_RANK, ThreatPattern
from rules_service.threats.schemas import ThreatPatternCreate

logger = logging.getLogger(__name__)


class ThreatPatternService:
    """Read-mostly access to threat patterns; creation is idempotent on name."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _execute(self, query, operation: str):
        try:
            return await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to {operation}: {e}")
            raise InternalFailure(f"Failed to {operation}") from e

    async def list_patterns(
        self, pattern_type: Optional[str] = None, risk_level: Optional[str] = None
    ) -> List[ThreatPattern]:
        """Active patterns, most severe first, then by name."""
        risk_rank = case(RISK_LEVEL_RANK, value=ThreatPattern.risk_level, else_=0)

        query = select(ThreatPattern).where(ThreatPattern.is_active.is_(True))
        if pattern_type:
            query = query.where(ThreatPattern.pattern_type == pattern_type)
        if risk_level:
            query = query.where(ThreatPattern.risk_level == risk_level)
        query = query.order_by(risk_rank.desc(), ThreatPattern.pattern_name.asc())

        result = await self._execute(query, "list threat patterns")
        return list(result.scalars().all())

    async def get_pattern(self, pattern_id: str) -> ThreatPattern:
        result = await self._execute(
            select(ThreatPattern).where(
                ThreatPattern.id == pattern_id, ThreatPattern.is_active.is_(True)
            ),
            "load threat pattern",
        )
        pattern = result.scalar_one_or_none()
        if pattern is None:
            raise NotFoundOrDenied("Threat pattern not found")
        return pattern

    async def create_pattern(
        self, data: ThreatPatternCreate
    ) -> Tuple[ThreatPattern, bool]:
        """
        Create a pattern unless one with the same name exists.

        Returns (pattern, created). An existing pattern is returned unchanged.
        """
        result = await self._execute(
            select(ThreatPattern).where(ThreatPattern.pattern_name == data.pattern_name),
            "load threat pattern",
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            return existing, False

        pattern = ThreatPattern(
            id=str(uuid.uuid4()),
            pattern_name=data.pattern_name,
            pattern_description=data.pattern_description,
            pattern_type=data.pattern_type,
            pattern_config=data.pattern_config,
            risk_level=data.risk_level.value,
            is_active=True,
        )
        self.db.add(pattern)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create threat pattern: {e}")
            raise InternalFailure("Failed to create threat pattern") from e

        logger.info(
            f"Threat pattern {pattern.id} created (type={pattern.pattern_type})"
        )
        return pattern, True
