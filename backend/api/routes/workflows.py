"""Workflow endpoints — CRUD, builder operations on steps and edges, manual runs."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from api.schemas.execution import ExecuteRequest, ExecutionResponse
from api.schemas.workflow import (
    EdgeRequest,
    StepCreate,
    StepUpdate,
    WorkflowCreate,
    WorkflowUpdate,
)
from app.dependencies import Actor, get_actor, get_workflow_service
from core.exceptions import NotFoundError
from services.workflow_service import WorkflowService
from workflow import builder
from workflow.context import ExecutionContext
from workflow.models import Workflow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["workflows"])


def _scope(actor: Actor) -> Optional[str]:
    return actor.organization_id or None


@router.get("/", response_model=list[dict[str, Any]])
async def list_workflows(
    project_id: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> list[dict[str, Any]]:
    """List workflows, optionally for one project."""
    if project_id:
        workflows = await svc.list_by_project(project_id, _scope(actor))
    else:
        workflows = await svc.list_workflows(_scope(actor))
    return [wf.to_document() for wf in workflows]


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=dict[str, Any])
async def create_workflow(
    request: WorkflowCreate,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """Create a workflow from a full step list, or an empty one with a single trigger."""
    if request.steps is None:
        draft = builder.create_empty_workflow(
            name=request.name,
            description=request.description,
            created_by=actor.user_id,
            organization_id=actor.organization_id,
            project_id=request.project_id,
        ).model_copy(update={"is_active": request.is_active})
    else:
        draft = Workflow(
            name=request.name,
            description=request.description,
            created_by=actor.user_id,
            organization_id=actor.organization_id,
            project_id=request.project_id,
            is_active=request.is_active,
            steps=request.steps,
            trigger_step_id=request.trigger_step_id,
        )
    workflow = await svc.create(draft)
    return workflow.to_document()


@router.get("/{workflow_id}", response_model=dict[str, Any])
async def get_workflow(
    workflow_id: str,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    workflow = await svc.get_or_404(workflow_id, _scope(actor))
    return workflow.to_document()


@router.put("/{workflow_id}", response_model=dict[str, Any])
async def update_workflow(
    workflow_id: str,
    request: WorkflowUpdate,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """Change name, description, activation or the full step set."""
    await svc.get_or_404(workflow_id, _scope(actor))
    workflow = await svc.update(workflow_id, request.to_patch())
    return workflow.to_document()


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workflow(
    workflow_id: str,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> Response:
    await svc.get_or_404(workflow_id, _scope(actor))
    await svc.delete(workflow_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Steps ─────────────────────────────────────────────────

@router.post("/{workflow_id}/steps", status_code=status.HTTP_201_CREATED, response_model=dict[str, Any])
async def add_step(
    workflow_id: str,
    request: StepCreate,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    workflow = await svc.get_or_404(workflow_id, _scope(actor))
    step_id = request.id or builder.new_step_id()
    workflow = builder.add_step(workflow, request.to_step_data(step_id))
    return (await svc.save(workflow)).to_document()


@router.put("/{workflow_id}/steps/{step_id}", response_model=dict[str, Any])
async def update_step(
    workflow_id: str,
    step_id: str,
    request: StepUpdate,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    workflow = await svc.get_or_404(workflow_id, _scope(actor))
    workflow = builder.update_step(
        workflow, step_id, name=request.name, description=request.description, config=request.config
    )
    return (await svc.save(workflow)).to_document()


@router.delete("/{workflow_id}/steps/{step_id}", response_model=dict[str, Any])
async def remove_step(
    workflow_id: str,
    step_id: str,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """Remove a step and every edge pointing at it."""
    workflow = await svc.get_or_404(workflow_id, _scope(actor))
    workflow = builder.remove_step(workflow, step_id)
    return (await svc.save(workflow)).to_document()


# ─── Edges ─────────────────────────────────────────────────

@router.post("/{workflow_id}/edges", response_model=dict[str, Any])
async def connect_steps(
    workflow_id: str,
    request: EdgeRequest,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    workflow = await svc.get_or_404(workflow_id, _scope(actor))
    workflow = builder.connect_steps(
        workflow, request.from_step_id, request.to_step_id, branch=request.branch
    )
    return (await svc.save(workflow)).to_document()


@router.delete("/{workflow_id}/edges", response_model=dict[str, Any])
async def disconnect_steps(
    workflow_id: str,
    from_step_id: str = Query(alias="fromStepId"),
    to_step_id: str = Query(alias="toStepId"),
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    workflow = await svc.get_or_404(workflow_id, _scope(actor))
    workflow = builder.disconnect_steps(workflow, from_step_id, to_step_id)
    return (await svc.save(workflow)).to_document()


# ─── Execution ─────────────────────────────────────────────

@router.post("/{workflow_id}/execute", response_model=dict[str, Any])
async def execute_workflow(
    workflow_id: str,
    request: Optional[ExecuteRequest] = None,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """Run the workflow now. Inactive or invalid workflows return an aborted run."""
    request = request or ExecuteRequest()
    context = ExecutionContext(
        organization_id=actor.organization_id,
        acting_user=actor.user_id,
        task_id=request.task_id,
        variables=request.variables,
    )
    run = await svc.execute(workflow_id, context, organization_id=_scope(actor))
    return run.to_dict()


@router.get("/{workflow_id}/executions", response_model=list[ExecutionResponse])
async def list_executions(
    workflow_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> list[ExecutionResponse]:
    await svc.get_or_404(workflow_id, _scope(actor))
    records = await svc.list_executions(workflow_id, limit=limit)
    return [ExecutionResponse.model_validate(r) for r in records]


@router.get("/{workflow_id}/executions/{execution_id}", response_model=ExecutionResponse)
async def get_execution(
    workflow_id: str,
    execution_id: str,
    actor: Actor = Depends(get_actor),
    svc: WorkflowService = Depends(get_workflow_service),
) -> ExecutionResponse:
    await svc.get_or_404(workflow_id, _scope(actor))
    record = await svc.get_execution(execution_id)
    if record is None or record.workflow_id != workflow_id:
        raise NotFoundError(f"Execution {execution_id} not found")
    return ExecutionResponse.model_validate(record)
