"""
FastAPI router for rules endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status
from loguru import logger as app_logger
from sqlalchemy.ext.asyncio import AsyncSession

from rules_service.api.deps import (
    ClientInfo,
    get_client_info,
    get_query_user_id,
    require_user_id,
)
from rules_service.audit.schemas import AuditLogEntryResponse, AuditLogListResponse
from rules_service.audit.service import AuditLogService, AuditRecorder, get_audit_recorder
from rules_service.core.config import settings
from rules_service.core.database import get_db
from rules_service.rules.coordinator import EvaluationCoordinator
from rules_service.rules.evaluator import RuleEvaluator
from rules_service.rules.schemas import (
    BulkRuleDeleteRequest,
    BulkRuleDeleteResponse,
    BulkRuleUpdateRequest,
    BulkRuleUpdateResponse,
    EvaluateRequest,
    EvaluationResponse,
    RuleCreate,
    RuleExportResponse,
    RuleListResponse,
    RuleResponse,
    RuleStatsResponse,
    RuleUpdate,
)
from rules_service.rules.service import RuleService

router = APIRouter(prefix="/rules", tags=["rules"])


def get_rule_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> RuleService:
    return RuleService(db, audit, logger=app_logger)


def _list_response(rules) -> RuleListResponse:
    return RuleListResponse(
        rules=[RuleResponse.model_validate(rule) for rule in rules],
        count=len(rules),
    )


@router.get("", response_model=RuleListResponse)
async def list_rules(
    rule_type: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    priority: Optional[int] = Query(None, ge=1, le=10),
    user_id: str = Depends(get_query_user_id),
    service: RuleService = Depends(get_rule_service),
):
    """
    List the caller's rules.

    Ordered by priority (highest first), then creation time (newest first).
    """
    rules = await service.list_rules(
        user_id, rule_type=rule_type, is_active=is_active, priority=priority
    )
    return _list_response(rules)


@router.get("/active", response_model=RuleListResponse)
async def list_active_rules(
    user_id: str = Depends(get_query_user_id),
    service: RuleService = Depends(get_rule_service),
):
    rules = await service.list_rules(user_id, is_active=True)
    return _list_response(rules)


@router.get("/type/{rule_type}", response_model=RuleListResponse)
async def list_rules_by_type(
    rule_type: str,
    is_active: Optional[bool] = Query(None),
    user_id: str = Depends(get_query_user_id),
    service: RuleService = Depends(get_rule_service),
):
    rules = await service.list_rules(user_id, rule_type=rule_type, is_active=is_active)
    return _list_response(rules)


@router.get("/stats/{user_id}", response_model=RuleStatsResponse)
async def get_rule_stats(
    user_id: str,
    service: RuleService = Depends(get_rule_service),
):
    """Counts by activity, type and priority for a user's rules."""
    return RuleStatsResponse(**await service.get_rule_stats(user_id))


@router.get("/export/{user_id}", response_model=RuleExportResponse)
async def export_rules(
    user_id: str,
    service: RuleService = Depends(get_rule_service),
):
    export = await service.export_rules(user_id)
    return RuleExportResponse(
        export_date=export["export_date"],
        user_id=export["user_id"],
        rules=[RuleResponse.model_validate(rule) for rule in export["rules"]],
    )


@router.get("/audit", response_model=AuditLogListResponse)
async def list_audit_log(
    rule_id: Optional[str] = Query(None),
    limit: int = Query(settings.AUDIT_LOG_DEFAULT_LIMIT, ge=1, le=settings.AUDIT_LOG_MAX_LIMIT),
    user_id: str = Depends(get_query_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Audit entries written by the caller, newest first."""
    entries = await AuditLogService(db).list_entries(
        rule_id=rule_id, user_id=user_id, limit=limit
    )
    return AuditLogListResponse(
        entries=[AuditLogEntryResponse.model_validate(entry) for entry in entries],
        count=len(entries),
    )


@router.post("/evaluate", response_model=EvaluationResponse)
async def evaluate_message(
    request: EvaluateRequest,
    x_user_id: Optional[str] = Header(None),
    service: RuleService = Depends(get_rule_service),
):
    """
    Evaluate a message against all of the caller's active rules.

    Every rule is evaluated; the message is blocked when at least one matched
    rule requests ``block``.
    """
    user_id = require_user_id(request.user_id, x_user_id)
    coordinator = EvaluationCoordinator(
        service, RuleEvaluator(logger=app_logger), logger=app_logger
    )
    return await coordinator.evaluate_all(user_id, request.message)


@router.put("/bulk", response_model=BulkRuleUpdateResponse)
async def bulk_update_rules(
    request: BulkRuleUpdateRequest,
    x_user_id: Optional[str] = Header(None),
    client: ClientInfo = Depends(get_client_info),
    service: RuleService = Depends(get_rule_service),
):
    """Update several rules; per-rule failures are reported, not raised."""
    user_id = require_user_id(request.user_id, x_user_id)
    updated, errors = await service.bulk_update_rules(
        request.rules, user_id, client.ip_address, client.user_agent
    )
    return BulkRuleUpdateResponse(
        updated=[RuleResponse.model_validate(rule) for rule in updated],
        errors=errors,
    )


@router.delete("/bulk", response_model=BulkRuleDeleteResponse)
async def bulk_delete_rules(
    request: BulkRuleDeleteRequest,
    x_user_id: Optional[str] = Header(None),
    client: ClientInfo = Depends(get_client_info),
    service: RuleService = Depends(get_rule_service),
):
    user_id = require_user_id(request.user_id, x_user_id)
    deleted, errors = await service.bulk_delete_rules(
        request.rule_ids, user_id, client.ip_address, client.user_agent
    )
    return BulkRuleDeleteResponse(
        deleted=[RuleResponse.model_validate(rule) for rule in deleted],
        errors=errors,
    )


@router.get("/{rule_id}", response_model=RuleResponse)
async def get_rule(
    rule_id: str,
    user_id: str = Depends(get_query_user_id),
    service: RuleService = Depends(get_rule_service),
):
    rule = await service.get_rule(rule_id, user_id)
    return RuleResponse.model_validate(rule)


@router.post("", response_model=RuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(
    request: RuleCreate,
    x_user_id: Optional[str] = Header(None),
    client: ClientInfo = Depends(get_client_info),
    service: RuleService = Depends(get_rule_service),
):
    """
    Create a rule for the caller.

    The configuration is validated against the rule type before it is stored.
    """
    user_id = require_user_id(request.user_id, x_user_id)
    rule = await service.create_rule(
        request, user_id, client.ip_address, client.user_agent
    )
    return RuleResponse.model_validate(rule)


@router.put("/{rule_id}", response_model=RuleResponse)
async def update_rule(
    rule_id: str,
    request: RuleUpdate,
    x_user_id: Optional[str] = Header(None),
    client: ClientInfo = Depends(get_client_info),
    service: RuleService = Depends(get_rule_service),
):
    """Partially update a rule; omitted fields keep their value."""
    user_id = require_user_id(request.user_id, x_user_id)
    rule = await service.update_rule(
        rule_id, request, user_id, client.ip_address, client.user_agent
    )
    return RuleResponse.model_validate(rule)


@router.delete("/{rule_id}", response_model=RuleResponse)
async def delete_rule(
    rule_id: str,
    user_id: str = Depends(get_query_user_id),
    client: ClientInfo = Depends(get_client_info),
    service: RuleService = Depends(get_rule_service),
):
    """Delete a rule and return the removed row."""
    rule = await service.delete_rule(
        rule_id, user_id, client.ip_address, client.user_agent
    )
    return RuleResponse.model_validate(rule)
