"""
Unified database models for the application.
All SQLAlchemy models are defined here.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware current time with microsecond precision."""
    return datetime.now(timezone.utc)


# Enums
class RuleType(str, enum.Enum):
    KEYWORD_FILTER = "keyword_filter"
    URL_FILTER = "url_filter"
    CONTENT_FILTER = "content_filter"
    CUSTOM = "custom"


class RuleAction(str, enum.Enum):
    """Actions a rule can request when it matches.

    FLAG is accepted and stored but only BLOCK affects the final decision.
    """

    ALLOW = "allow"
    BLOCK = "block"
    FLAG = "flag"


class RiskLevel(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Severity rank used when ordering threat patterns (higher first)
RISK_LEVEL_RANK = {
    RiskLevel.CRITICAL.value: 4,
    RiskLevel.HIGH.value: 3,
    RiskLevel.MEDIUM.value: 2,
    RiskLevel.LOW.value: 1,
}


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Rule(Base):
    """
    A user-owned moderation rule.

    Every read and mutation is scoped by user_id; rule_type never changes after
    creation.
    """

    __tablename__ = "privacy_rules"

    id = Column(String(255), primary_key=True)  # UUID
    user_id = Column(String(255), nullable=False)
    rule_type = Column(String(100), nullable=False)
    rule_name = Column(String(255), nullable=False)
    rule_description = Column(Text, nullable=True)
    rule_config = Column(JSON, nullable=False)
    priority = Column(Integer, nullable=False, default=1)  # 1..10
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, default=utcnow)
    created_by = Column(String(255), nullable=True)
    updated_by = Column(String(255), nullable=True)

    __table_args__ = (
        Index("idx_privacy_rules_user_id", "user_id"),
        Index("idx_privacy_rules_rule_type", "rule_type"),
        Index("idx_privacy_rules_is_active", "is_active"),
    )


class ThreatPattern(Base):
    """Global catalog entry describing a known risk category."""

    __tablename__ = "threat_patterns"

    id = Column(String(255), primary_key=True)  # UUID
    pattern_name = Column(String(255), nullable=False, unique=True)
    pattern_description = Column(Text, nullable=True)
    pattern_type = Column(String(100), nullable=False)
    pattern_config = Column(JSON, nullable=False)
    risk_level = Column(String(50), nullable=False, default=RiskLevel.MEDIUM.value)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, default=utcnow)

    __table_args__ = (
        Index("idx_threat_patterns_pattern_type", "pattern_type"),
        Index("idx_threat_patterns_risk_level", "risk_level"),
    )


class RuleTemplate(Base):
    """
    Reusable default configuration used to seed new rules.

    template_config has the same shape as a rule's config plus an embedded
    rule_type key.
    """

    __tablename__ = "rule_templates"

    id = Column(String(255), primary_key=True)  # UUID
    template_name = Column(String(255), nullable=False, unique=True)
    template_description = Column(Text, nullable=True)
    template_category = Column(String(100), nullable=False)
    template_config = Column(JSON, nullable=False)
    is_public = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, default=utcnow)

    __table_args__ = (Index("idx_rule_templates_category", "template_category"),)


class RuleAuditLog(Base):
    """Append-only record of rule mutations. Never updated or deleted."""

    __tablename__ = "rule_audit_log"

    id = Column(String(255), primary_key=True)  # UUID
    rule_id = Column(String(255), nullable=False)
    action = Column(String(50), nullable=False)  # CREATE / UPDATE / DELETE
    user_id = Column(String(255), nullable=False)
    changes = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_rule_audit_log_rule_id", "rule_id"),
        Index("idx_rule_audit_log_created_at", "created_at"),
    )
