"""
FastAPI router for the threat pattern catalog.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from rules_service.api.deps import verify_admin_token
from rules_service.core.database import get_db
from rules_service.models import RiskLevel
from rules_service.threats.schemas import (
    ThreatPatternCreate,
    ThreatPatternListResponse,
    ThreatPatternResponse,
)
from rules_service.threats.service import ThreatPatternService

router = APIRouter(prefix="/threats", tags=["threats"])


@router.get("", response_model=ThreatPatternListResponse)
async def list_threat_patterns(
    pattern_type: Optional[str] = Query(None),
    risk_level: Optional[RiskLevel] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Active threat patterns, most severe first."""
    patterns = await ThreatPatternService(db).list_patterns(
        pattern_type=pattern_type,
        risk_level=risk_level.value if risk_level else None,
    )
    return ThreatPatternListResponse(
        patterns=[ThreatPatternResponse.model_validate(p) for p in patterns],
        count=len(patterns),
    )


@router.get("/{pattern_id}", response_model=ThreatPatternResponse)
async def get_threat_pattern(pattern_id: str, db: AsyncSession = Depends(get_db)):
    pattern = await ThreatPatternService(db).get_pattern(pattern_id)
    return ThreatPatternResponse.model_validate(pattern)


@router.post("", response_model=ThreatPatternResponse)
async def create_threat_pattern(
    request: ThreatPatternCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """
    Register a threat pattern (admin only).

    Returns 201 when the pattern is new and 200 with the stored pattern when
    one with the same name already exists.
    """
    pattern, created = await ThreatPatternService(db).create_pattern(request)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return ThreatPatternResponse.model_validate(pattern)
