"""
Service layer for rule operations.

Every read and mutation is scoped by the owning user id. A rule that does not
exist and a rule owned by someone else both surface as NotFoundOrDenied.
Mutations are committed here, before the audit entry is written, so that the
audit record always follows a durable change.
"""

import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from fastapi.encoders import jsonable_encoder
from loguru import logger as default_logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rules_service.audit.service import AuditRecorder
from rules_service.core.exceptions import (
    InternalFailure,
    NotFoundOrDenied,
    RulesServiceError,
    ValidationFailed,
)
from rules_service.models import AuditAction, Rule, utcnow
from rules_service.rules.schemas import (
    BulkItemError,
    BulkRuleUpdateItem,
    RuleCreate,
    RuleResponse,
    RuleUpdate,
)
from rules_service.rules.validator import RuleConfigValidator

RULE_NOT_FOUND = "Rule not found or access denied"


class RuleService:
    """Service layer for rule CRUD, bulk operations and statistics."""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditRecorder,
        validator: Optional[RuleConfigValidator] = None,
        logger=default_logger,
    ):
        self.db = db
        self.audit = audit
        self.logger = logger
        self.validator = validator or RuleConfigValidator(logger=logger)

    async def _commit(self, operation: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error(f"Failed to {operation}: {e}")
            raise InternalFailure(f"Failed to {operation}") from e

    async def _fetch_owned(self, rule_id: str, user_id: str) -> Optional[Rule]:
        try:
            result = await self.db.execute(
                select(Rule).where(Rule.id == rule_id, Rule.user_id == user_id)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to load rule {rule_id}: {e}")
            raise InternalFailure("Failed to load rule") from e
        return result.scalar_one_or_none()

    async def create_rule(
        self,
        data: RuleCreate,
        user_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Rule:
        """Validate, persist and audit a new rule."""
        validation = self.validator.validate(data.model_dump())
        if not validation.is_valid:
            raise ValidationFailed("Validation failed", validation.errors)

        rule = Rule(
            id=str(uuid.uuid4()),
            user_id=user_id,
            rule_type=data.rule_type,
            rule_name=data.rule_name,
            rule_description=data.rule_description,
            rule_config=data.rule_config,
            priority=data.priority or 1,
            is_active=True,
            created_by=user_id,
            updated_by=user_id,
        )
        self.db.add(rule)
        await self._commit("create rule")

        await self.audit.record(
            rule.id,
            AuditAction.CREATE,
            user_id,
            {"rule_data": {**data.model_dump(exclude={"user_id"}), "priority": rule.priority}},
            ip_address,
            user_agent,
        )

        self.logger.info(
            f"Rule {rule.id} created for user {user_id} (type={rule.rule_type})"
        )
        return rule

    async def get_rule(self, rule_id: str, user_id: str) -> Rule:
        rule = await self._fetch_owned(rule_id, user_id)
        if rule is None:
            raise NotFoundOrDenied(RULE_NOT_FOUND)
        return rule

    async def list_rules(
        self,
        user_id: str,
        rule_type: Optional[str] = None,
        is_active: Optional[bool] = None,
        priority: Optional[int] = None,
    ) -> List[Rule]:
        """Owner's rules, highest priority first, then newest first."""
        query = select(Rule).where(Rule.user_id == user_id)
        if rule_type is not None:
            query = query.where(Rule.rule_type == rule_type)
        if is_active is not None:
            query = query.where(Rule.is_active == is_active)
        if priority is not None:
            query = query.where(Rule.priority == priority)
        query = query.order_by(
            Rule.priority.desc(), Rule.created_at.desc(), Rule.id.asc()
        )

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to list rules for user {user_id}: {e}")
            raise InternalFailure("Failed to list rules") from e
        return list(result.scalars().all())

    async def update_rule(
        self,
        rule_id: str,
        data: RuleUpdate,
        user_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Rule:
        """Apply the fields present in ``data``; everything else keeps its value."""
        rule = await self.get_rule(rule_id, user_id)
        changes = data.changes()

        if "rule_config" in changes:
            errors = self.validator.validate_config(
                rule.rule_type, changes["rule_config"]
            )
            if errors:
                raise ValidationFailed("Validation failed", errors)

        for field, value in changes.items():
            setattr(rule, field, value)
        rule.updated_at = utcnow()
        rule.updated_by = user_id

        await self._commit("update rule")

        await self.audit.record(
            rule.id,
            AuditAction.UPDATE,
            user_id,
            {"updates": changes},
            ip_address,
            user_agent,
        )

        self.logger.info(f"Rule {rule_id} updated by user {user_id}")
        return rule

    async def delete_rule(
        self,
        rule_id: str,
        user_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Rule:
        """Hard-delete the rule and return the removed row."""
        rule = await self.get_rule(rule_id, user_id)
        snapshot = jsonable_encoder(RuleResponse.model_validate(rule))

        await self.db.delete(rule)
        await self._commit("delete rule")

        await self.audit.record(
            rule_id,
            AuditAction.DELETE,
            user_id,
            {"deleted_rule": snapshot},
            ip_address,
            user_agent,
        )

        self.logger.info(f"Rule {rule_id} deleted by user {user_id}")
        return rule

    async def bulk_update_rules(
        self,
        items: List[BulkRuleUpdateItem],
        user_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Tuple[List[Rule], List[BulkItemError]]:
        """Update each rule independently; failures are collected, not raised."""
        updated: List[Rule] = []
        errors: List[BulkItemError] = []

        for item in items:
            try:
                rule = await self.update_rule(
                    item.rule_id, item.updates, user_id, ip_address, user_agent
                )
                updated.append(rule)
            except RulesServiceError as e:
                errors.append(
                    BulkItemError(rule_id=item.rule_id, code=e.code.value, error=e.message)
                )

        self.logger.info(
            f"Bulk update for user {user_id}: {len(updated)} updated, {len(errors)} failed"
        )
        return updated, errors

    async def bulk_delete_rules(
        self,
        rule_ids: List[str],
        user_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Tuple[List[Rule], List[BulkItemError]]:
        deleted: List[Rule] = []
        errors: List[BulkItemError] = []

        for rule_id in rule_ids:
            try:
                rule = await self.delete_rule(rule_id, user_id, ip_address, user_agent)
                deleted.append(rule)
            except RulesServiceError as e:
                errors.append(
                    BulkItemError(rule_id=rule_id, code=e.code.value, error=e.message)
                )

        self.logger.info(
            f"Bulk delete for user {user_id}: {len(deleted)} deleted, {len(errors)} failed"
        )
        return deleted, errors

    async def get_rule_stats(self, user_id: str) -> Dict[str, Any]:
        rules = await self.list_rules(user_id)
        return summarize_rules(rules)

    async def export_rules(self, user_id: str) -> Dict[str, Any]:
        rules = await self.list_rules(user_id)
        return {
            "export_date": datetime.now(timezone.utc),
            "user_id": user_id,
            "rules": rules,
        }


def summarize_rules(rules: List[Rule]) -> Dict[str, Any]:
    """Counts by activity, type and priority plus the mean priority."""
    active = sum(1 for rule in rules if rule.is_active)
    average = (
        round(sum(rule.priority for rule in rules) / len(rules), 2) if rules else 0
    )
    return {
        "total_rules": len(rules),
        "active_rules": active,
        "inactive_rules": len(rules) - active,
        "rules_by_type": dict(Counter(rule.rule_type for rule in rules)),
        "rules_by_priority": dict(Counter(rule.priority for rule in rules)),
        "average_priority": average,
    }
