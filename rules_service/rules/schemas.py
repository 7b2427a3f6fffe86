"""
Pydantic schemas for rules endpoints and the typed rule configurations.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator

from rules_service.models import RuleAction, RuleType


# Typed rule configurations, one variant per rule_type
class RuleConfigBase(BaseModel):
    """Fields shared by every typed configuration."""

    model_config = ConfigDict(extra="allow")

    # allow, block and flag are the known values; only "block" affects the final decision
    action: StrictStr = Field(
        default=RuleAction.BLOCK.value,
        description="Action requested when the rule matches",
    )


class KeywordFilterConfig(RuleConfigBase):
    keywords: List[StrictStr] = Field(..., min_length=1)
    max_occurrences: int = Field(default=1, ge=0)


class UrlFilterConfig(RuleConfigBase):
    domains: Optional[List[StrictStr]] = None
    patterns: Optional[List[StrictStr]] = None

    @model_validator(mode="after")
    def _require_domains_or_patterns(self):
        if self.domains is None and self.patterns is None:
            raise ValueError(
                "domains or patterns are required for url_filter rule type"
            )
        return self


class ContentFilter(BaseModel):
    """One entry of a content_filter rule, tagged by ``type``."""

    model_config = ConfigDict(extra="allow")

    type: StrictStr  # "regex", "length", ...
    name: Optional[str] = None
    pattern: Optional[str] = None
    max_length: Optional[int] = None


class ContentFilterConfig(RuleConfigBase):
    filters: List[ContentFilter]


# rule_type -> configuration variant. Types missing here get no shape checks.
RULE_CONFIG_VARIANTS: Dict[str, Type[RuleConfigBase]] = {
    RuleType.KEYWORD_FILTER.value: KeywordFilterConfig,
    RuleType.URL_FILTER.value: UrlFilterConfig,
    RuleType.CONTENT_FILTER.value: ContentFilterConfig,
}


# Request schemas
class RuleCreate(BaseModel):
    """
    Request to create a rule.

    rule_type, rule_name and rule_config are checked by RuleConfigValidator
    rather than here so that all missing-field errors are reported together.
    """

    rule_type: Optional[str] = Field(None, description="Rule type")
    rule_name: Optional[str] = Field(None, max_length=255, description="Rule name")
    rule_description: Optional[str] = Field(None, max_length=1000)
    rule_config: Optional[Dict[str, Any]] = Field(
        None, description="Type-specific rule configuration"
    )
    priority: Optional[int] = Field(
        None, ge=1, le=10, description="Defaults to 1 when omitted or null"
    )
    user_id: Optional[str] = Field(
        None, description="Owner; falls back to the X-User-ID header"
    )


class RuleUpdate(BaseModel):
    """
    Partial update. Only fields present (and not null) are applied.

    rule_type is not accepted: it is fixed at creation.
    """

    rule_name: Optional[str] = Field(None, min_length=1, max_length=255)
    rule_description: Optional[str] = Field(None, max_length=1000)
    rule_config: Optional[Dict[str, Any]] = None
    priority: Optional[int] = Field(None, ge=1, le=10)
    is_active: Optional[bool] = None
    user_id: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        """Fields to write, excluding the caller identity."""
        data = self.model_dump(exclude_unset=True, exclude={"user_id"})
        return {key: value for key, value in data.items() if value is not None}


class BulkRuleUpdateItem(BaseModel):
    rule_id: str
    updates: RuleUpdate


class BulkRuleUpdateRequest(BaseModel):
    user_id: Optional[str] = None
    rules: List[BulkRuleUpdateItem] = Field(..., min_length=1)


class BulkRuleDeleteRequest(BaseModel):
    user_id: Optional[str] = None
    rule_ids: List[str] = Field(..., min_length=1)


class EvaluationMessage(BaseModel):
    """Inbound message. Matching reads ``text`` first, then ``content``."""

    model_config = ConfigDict(extra="allow")

    text: Optional[str] = None
    content: Optional[str] = None
    sender: Optional[str] = None
    channel: Optional[str] = None
    timestamp: Optional[datetime] = None


class EvaluateRequest(BaseModel):
    user_id: Optional[str] = None
    message: EvaluationMessage


# Response schemas
class RuleResponse(BaseModel):
    id: str
    user_id: str
    rule_type: str
    rule_name: str
    rule_description: Optional[str] = None
    rule_config: Dict[str, Any]
    priority: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class RuleListResponse(BaseModel):
    rules: List[RuleResponse]
    count: int


class Evaluation(BaseModel):
    """Outcome of one rule against one message."""

    action: str
    reason: str
    matched: bool
    error: Optional[str] = None


class RuleEvaluationResult(Evaluation):
    rule_id: str
    rule_name: str
    rule_type: str


class EvaluationResponse(BaseModel):
    final_action: str
    rule_evaluations: List[RuleEvaluationResult] = []
    blocking_rules: List[RuleEvaluationResult] = []


class BulkItemError(BaseModel):
    rule_id: str
    code: str
    error: str


class BulkRuleUpdateResponse(BaseModel):
    updated: List[RuleResponse]
    errors: List[BulkItemError]


class BulkRuleDeleteResponse(BaseModel):
    deleted: List[RuleResponse]
    errors: List[BulkItemError]


class RuleStatsResponse(BaseModel):
    total_rules: int
    active_rules: int
    inactive_rules: int
    rules_by_type: Dict[str, int]
    rules_by_priority: Dict[int, int]
    average_priority: float


class RuleExportResponse(BaseModel):
    export_date: datetime
    user_id: str
    rules: List[RuleResponse]
