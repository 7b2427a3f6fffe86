"""
Service layer for rule templates and template-to-rule materialisation.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger as default_logger
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rules_service.core.exceptions import (
    InternalFailure,
    TemplateNotFound,
    ValidationFailed,
)
from rules_service.models import Rule, RuleTemplate, RuleType
from rules_service.rules.schemas import RuleCreate
from rules_service.rules.service import RuleService
from rules_service.templates.schemas import RuleTemplateCreate

logger = logging.getLogger(__name__)

# Customization keys that describe the rule itself, not its configuration
RESERVED_CUSTOMIZATION_KEYS = frozenset(
    {"user_id", "rule_type", "rule_name", "rule_description", "priority"}
)


class RuleTemplateService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _execute(self, query, operation: str):
        try:
            return await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to {operation}: {e}")
            raise InternalFailure(f"Failed to {operation}") from e

    async def list_templates(
        self, category: Optional[str] = None, is_public: bool = True
    ) -> List[RuleTemplate]:
        """Templates ordered by category, then name."""
        query = select(RuleTemplate).where(RuleTemplate.is_public.is_(is_public))
        if category:
            query = query.where(RuleTemplate.template_category == category)
        query = query.order_by(
            RuleTemplate.template_category.asc(), RuleTemplate.template_name.asc()
        )
        result = await self._execute(query, "list rule templates")
        return list(result.scalars().all())

    async def get_template(self, template_id: str, public_only: bool = True) -> RuleTemplate:
        query = select(RuleTemplate).where(RuleTemplate.id == template_id)
        if public_only:
            query = query.where(RuleTemplate.is_public.is_(True))
        result = await self._execute(query, "load rule template")
        template = result.scalar_one_or_none()
        if template is None:
            raise TemplateNotFound("Template not found")
        return template

    async def create_template(
        self, data: RuleTemplateCreate, created_by: Optional[str] = None
    ) -> Tuple[RuleTemplate, bool]:
        """Create a template unless one with the same name exists."""
        result = await self._execute(
            select(RuleTemplate).where(RuleTemplate.template_name == data.template_name),
            "load rule template",
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            return existing, False

        template = RuleTemplate(
            id=str(uuid.uuid4()),
            template_name=data.template_name,
            template_description=data.template_description,
            template_category=data.template_category,
            template_config=data.template_config,
            is_public=data.is_public,
            created_by=created_by,
        )
        self.db.add(template)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create rule template: {e}")
            raise InternalFailure("Failed to create rule template") from e

        logger.info(f"Rule template {template.id} created ({template.template_name})")
        return template, True


def build_rule_from_template(
    template: RuleTemplate, customizations: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Merge a template with caller customizations into rule creation fields.

    Every non-reserved customization key overrides the template config key of
    the same name (shallow merge).
    """
    template_config = dict(template.template_config or {})

    rule_config = {
        key: value
        for key, value in template_config.items()
        if key not in RESERVED_CUSTOMIZATION_KEYS
    }
    rule_config.update(
        {
            key: value
            for key, value in customizations.items()
            if key not in RESERVED_CUSTOMIZATION_KEYS
        }
    )

    priority = customizations.get("priority")
    if priority is None:
        priority = template_config.get("priority", 1)

    return {
        "rule_type": template_config.get("rule_type") or RuleType.CUSTOM.value,
        "rule_name": customizations.get("rule_name") or template.template_name,
        "rule_description": customizations.get("rule_description")
        or template.template_description,
        "rule_config": rule_config,
        "priority": priority,
    }


class TemplateResolver:
    """Turns a public template into a rule through the normal creation path."""

    def __init__(
        self,
        template_service: RuleTemplateService,
        rule_service: RuleService,
        logger=default_logger,
    ):
        self.template_service = template_service
        self.rule_service = rule_service
        self.logger = logger

    async def materialize(
        self,
        template_id: str,
        user_id: str,
        customizations: Dict[str, Any],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Rule:
        template = await self.template_service.get_template(template_id)
        fields = build_rule_from_template(template, customizations)

        try:
            data = RuleCreate(**fields)
        except ValidationError as e:
            raise ValidationFailed(
                "Validation failed",
                [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
            ) from e

        rule = await self.rule_service.create_rule(data, user_id, ip_address, user_agent)
        self.logger.info(f"Rule {rule.id} created from template {template_id}")
        return rule
