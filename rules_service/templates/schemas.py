"""
Pydantic schemas for rule template endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RuleTemplateCreate(BaseModel):
    template_name: str = Field(..., min_length=1, max_length=255)
    template_description: Optional[str] = Field(None, max_length=1000)
    template_category: str = Field(..., min_length=1, max_length=100)
    template_config: Dict[str, Any] = Field(
        ..., description="Rule configuration plus an embedded rule_type"
    )
    is_public: bool = True


class TemplateRuleCreate(BaseModel):
    """
    Customizations applied when turning a template into a rule.

    Any extra key overrides the same key of the template configuration.
    """

    model_config = ConfigDict(extra="allow")

    user_id: Optional[str] = None
    rule_name: Optional[str] = Field(None, max_length=255)
    rule_description: Optional[str] = Field(None, max_length=1000)
    priority: Optional[int] = None

    def customizations(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"user_id"})


class RuleTemplateResponse(BaseModel):
    id: str
    template_name: str
    template_description: Optional[str] = None
    template_category: str
    template_config: Dict[str, Any]
    is_public: bool
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RuleTemplateListResponse(BaseModel):
    templates: List[RuleTemplateResponse]
    count: int
