"""Workflow template endpoints — browse the catalog and instantiate templates."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status

from api.schemas.workflow import TemplateInstantiate
from app.dependencies import Actor, get_actor, get_workflow_service
from services.workflow_service import WorkflowService
from workflow.templates import get_template_catalog

router = APIRouter(tags=["templates"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=list[dict[str, Any]])
async def list_templates(category: Optional[str] = Query(default=None)) -> list[dict[str, Any]]:
    """List templates, optionally filtered by category."""
    return [t.summary() for t in get_template_catalog().list(category)]


@router.get("/{template_id}", response_model=dict[str, Any])
async def get_template(template_id: str) -> dict[str, Any]:
    """Template summary plus its (placeholder-id) steps."""
    template = get_template_catalog().get(template_id)
    return {
        **template.summary(),
        "triggerStepId": template.trigger_step_id,
        "steps": [s.model_dump(mode="json", by_alias=True) for s in template.steps],
    }


@router.post(
    "/{template_id}/instantiate",
    status_code=status.HTTP_201_CREATED,
    response_model=dict[str, Any],
)
async def instantiate_template(
    template_id: str,
    request: Optional[TemplateInstantiate] = None,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """Create a new workflow with fresh step ids from a template."""
    request = request or TemplateInstantiate()
    workflow = await svc.create_from_template(
        template_id,
        organization_id=actor.organization_id,
        created_by=actor.user_id,
        project_id=request.project_id,
        name=request.name,
        is_active=request.is_active,
    )
    return workflow.to_document()
