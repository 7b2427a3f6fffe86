"""
Pydantic schemas for threat pattern endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from rules_service.models import RiskLevel


class ThreatPatternCreate(BaseModel):
    """Request to add a threat pattern to the global catalog."""

    pattern_name: str = Field(..., min_length=1, max_length=255)
    pattern_description: Optional[str] = Field(None, max_length=1000)
    pattern_type: str = Field(
        ..., min_length=1, max_length=100, description="spam, phishing, malware, ..."
    )
    pattern_config: Dict[str, Any]
    risk_level: RiskLevel = RiskLevel.MEDIUM


class ThreatPatternResponse(BaseModel):
    id: str
    pattern_name: str
    pattern_description: Optional[str] = None
    pattern_type: str
    pattern_config: Dict[str, Any]
    risk_level: str
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ThreatPatternListResponse(BaseModel):
    patterns: List[ThreatPatternResponse]
    count: int
