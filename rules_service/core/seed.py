"""
Default threat patterns and rule templates inserted at startup.

Both catalogs are keyed by name, so running the seed repeatedly is a no-op
for entries that already exist.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from rules_service.core.exceptions import RulesServiceError
from rules_service.templates.schemas import RuleTemplateCreate
from rules_service.templates.service import RuleTemplateService
from rules_service.threats.schemas import ThreatPatternCreate
from rules_service.threats.service import ThreatPatternService

logger = logging.getLogger(__name__)

DEFAULT_THREAT_PATTERNS = [
    {
        "pattern_name": "Spam Detection",
        "pattern_description": "Detects common spam patterns in messages",
        "pattern_type": "spam",
        "pattern_config": {
            "keywords": [
                "buy now",
                "limited time",
                "act fast",
                "free money",
                "click here",
                "make money fast",
            ],
            "max_occurrences": 3,
            "action": "block",
        },
        "risk_level": "low",
    },
    {
        "pattern_name": "Phishing Attempt",
        "pattern_description": "Detects potential phishing attempts",
        "pattern_type": "phishing",
        "pattern_config": {
            "suspicious_urls": True,
            "urgent_language": True,
            "personal_info_request": True,
            "action": "block",
        },
        "risk_level": "high",
    },
    {
        "pattern_name": "Malware Link",
        "pattern_description": "Detects suspicious file downloads and links",
        "pattern_type": "malware",
        "pattern_config": {
            "file_extensions": [".exe", ".bat", ".scr", ".vbs", ".com", ".pif"],
            "suspicious_domains": True,
            "action": "block",
        },
        "risk_level": "high",
    },
    {
        "pattern_name": "Harassment Detection",
        "pattern_description": "Detects potential harassment or abusive content",
        "pattern_type": "harassment",
        "pattern_config": {
            "offensive_words": ["hate", "kill", "die", "stupid", "idiot"],
            "repeated_messages": True,
            "action": "flag",
        },
        "risk_level": "medium",
    },
    {
        "pattern_name": "Personal Information",
        "pattern_description": "Detects attempts to extract personal information",
        "pattern_type": "personal_info",
        "pattern_config": {
            "patterns": [
                r"\b\d{3}-\d{2}-\d{4}\b",  # SSN
                r"\b\d{4}\s\d{4}\s\d{4}\s\d{4}\b",  # Credit card
                r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b",  # Email
            ],
            "action": "flag",
        },
        "risk_level": "medium",
    },
]

DEFAULT_RULE_TEMPLATES = [
    {
        "template_name": "Basic Spam Filter",
        "template_description": "Basic template to filter common spam messages",
        "template_category": "spam_protection",
        "template_config": {
            "rule_type": "keyword_filter",
            "keywords": ["buy now", "limited time", "act fast"],
            "max_occurrences": 2,
            "action": "block",
        },
        "is_public": True,
    },
    {
        "template_name": "URL Safety Check",
        "template_description": "Template to check URLs for safety",
        "template_category": "security",
        "template_config": {
            "rule_type": "url_filter",
            "domains": ["trusted-domain.com", "safe-site.org"],
            "patterns": ["https://"],
            "action": "allow",
        },
        "is_public": True,
    },
    {
        "template_name": "Content Length Limit",
        "template_description": "Template to limit message content length",
        "template_category": "content_control",
        "template_config": {
            "rule_type": "content_filter",
            "filters": [
                {"type": "length", "max_length": 1000, "name": "Message Length Limit"}
            ],
            "action": "flag",
        },
        "is_public": True,
    },
]


async def seed_defaults(session: AsyncSession) -> None:
    """Insert the default catalog; failures are logged, not raised."""
    patterns = ThreatPatternService(session)
    templates = RuleTemplateService(session)

    try:
        created_patterns = 0
        for pattern in DEFAULT_THREAT_PATTERNS:
            _, created = await patterns.create_pattern(ThreatPatternCreate(**pattern))
            created_patterns += int(created)

        created_templates = 0
        for template in DEFAULT_RULE_TEMPLATES:
            _, created = await templates.create_template(
                RuleTemplateCreate(**template), created_by="system"
            )
            created_templates += int(created)
    except RulesServiceError:
        logger.exception("Failed to insert default threat patterns and templates")
        return

    logger.info(
        f"Default catalog seeded: {created_patterns} threat patterns, "
        f"{created_templates} rule templates inserted"
    )
