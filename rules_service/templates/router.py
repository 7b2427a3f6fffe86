"""
FastAPI router for rule templates.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response, status
from loguru import logger as app_logger
from sqlalchemy.ext.asyncio import AsyncSession

from rules_service.api.deps import (
    ClientInfo,
    get_client_info,
    require_user_id,
    verify_admin_token,
)
from rules_service.core.database import get_db
from rules_service.rules.router import get_rule_service
from rules_service.rules.schemas import RuleResponse
from rules_service.rules.service import RuleService
from rules_service.templates.schemas import (
    RuleTemplateCreate,
    RuleTemplateListResponse,
    RuleTemplateResponse,
    TemplateRuleCreate,
)
from rules_service.templates.service import RuleTemplateService, TemplateResolver

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=RuleTemplateListResponse)
async def list_templates(
    category: Optional[str] = Query(None),
    public: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    templates = await RuleTemplateService(db).list_templates(
        category=category, is_public=public
    )
    return RuleTemplateListResponse(
        templates=[RuleTemplateResponse.model_validate(t) for t in templates],
        count=len(templates),
    )


@router.get("/{template_id}", response_model=RuleTemplateResponse)
async def get_template(template_id: str, db: AsyncSession = Depends(get_db)):
    template = await RuleTemplateService(db).get_template(template_id)
    return RuleTemplateResponse.model_validate(template)


@router.post("", response_model=RuleTemplateResponse)
async def create_template(
    request: RuleTemplateCreate,
    response: Response,
    x_user_id: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(verify_admin_token),
):
    """Register a rule template (admin only); idempotent on template name."""
    template, created = await RuleTemplateService(db).create_template(
        request, created_by=x_user_id
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return RuleTemplateResponse.model_validate(template)


@router.post(
    "/{template_id}/create-rule",
    response_model=RuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_rule_from_template(
    template_id: str,
    request: TemplateRuleCreate,
    x_user_id: Optional[str] = Header(None),
    client: ClientInfo = Depends(get_client_info),
    db: AsyncSession = Depends(get_db),
    rule_service: RuleService = Depends(get_rule_service),
):
    """
    Create a rule for the caller from a public template.

    Extra body keys override the template configuration key by key.
    """
    user_id = require_user_id(request.user_id, x_user_id)
    resolver = TemplateResolver(
        RuleTemplateService(db), rule_service, logger=app_logger
    )
    rule = await resolver.materialize(
        template_id,
        user_id,
        request.customizations(),
        client.ip_address,
        client.user_agent,
    )
    return RuleResponse.model_validate(rule)
