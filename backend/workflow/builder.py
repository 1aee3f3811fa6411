"""Draft mutation for the workflow builder.

Every operation takes a ``Workflow`` and returns a new one; the input draft
is never modified. Saving a draft still goes through the validator.
"""

import uuid
from typing import Any, Optional

from core.constants import TriggerType
from core.exceptions import (
    CannotRemoveOnlyTriggerError,
    DuplicateStepError,
    EdgeIntoTriggerError,
    InvalidBranchError,
    SelfLoopError,
    StepNotFoundError,
)
from workflow.models import ConditionStep, TriggerStep, Workflow, parse_step

BRANCH_NEXT = "next"
BRANCH_ELSE = "else"


def new_step_id() -> str:
    return f"step-{uuid.uuid4().hex[:12]}"


def create_empty_workflow(
    name: str = "New Workflow",
    description: str = "",
    created_by: str = "",
    organization_id: str = "",
    project_id: str = "",
    trigger_type: TriggerType = TriggerType.MANUAL,
) -> Workflow:
    """A draft holding a single trigger step, inactive until explicitly enabled."""
    trigger = TriggerStep(
        id=new_step_id(),
        name="Trigger",
        description="Workflow entry point",
        config={"triggerType": TriggerType(trigger_type).value},
    )
    return Workflow(
        name=name,
        description=description,
        created_by=created_by,
        organization_id=organization_id,
        project_id=project_id,
        is_active=False,
        steps={trigger.id: trigger},
        trigger_step_id=trigger.id,
    )


def _require(workflow: Workflow, step_id: str):
    step = workflow.get_step(step_id)
    if step is None:
        raise StepNotFoundError(step_id)
    return step


def add_step(workflow: Workflow, step: Any) -> Workflow:
    """Add a step (model or dict). Edges listed on the new step are kept as given."""
    step = parse_step(step)
    if step.id in workflow.steps:
        raise DuplicateStepError(step.id)
    steps = dict(workflow.steps)
    steps[step.id] = step
    return workflow.with_steps(steps)


def update_step(
    workflow: Workflow,
    step_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    config: Optional[dict[str, Any]] = None,
) -> Workflow:
    """Change a step's free text or config. Id and kind never change."""
    step = _require(workflow, step_id)
    update: dict[str, Any] = {}
    if name is not None:
        update["name"] = name
    if description is not None:
        update["description"] = description
    if config is not None:
        update["config"] = dict(config)
    steps = dict(workflow.steps)
    steps[step_id] = step.model_copy(update=update)
    return workflow.with_steps(steps)


def remove_step(workflow: Workflow, step_id: str) -> Workflow:
    """Remove a step and every edge pointing at it."""
    step = _require(workflow, step_id)
    if isinstance(step, TriggerStep) and len(workflow.trigger_steps()) == 1:
        raise CannotRemoveOnlyTriggerError(step_id)

    steps = {
        sid: other.without_target(step_id)
        for sid, other in workflow.steps.items()
        if sid != step_id
    }
    updates: dict[str, Any] = {}
    if workflow.trigger_step_id == step_id:
        remaining = [s for s in steps.values() if isinstance(s, TriggerStep)]
        updates["trigger_step_id"] = remaining[0].id if remaining else None
    return workflow.with_steps(steps, **updates)


def connect_steps(
    workflow: Workflow, from_step_id: str, to_step_id: str, branch: str = BRANCH_NEXT
) -> Workflow:
    """Append an edge. Connecting an existing edge returns an equal draft."""
    source = _require(workflow, from_step_id)
    target = _require(workflow, to_step_id)
    if from_step_id == to_step_id:
        raise SelfLoopError(from_step_id)
    if isinstance(target, TriggerStep):
        raise EdgeIntoTriggerError(from_step_id, to_step_id)

    if branch == BRANCH_NEXT:
        field = "next_steps"
    elif branch == BRANCH_ELSE and isinstance(source, ConditionStep):
        field = "else_steps"
    else:
        raise InvalidBranchError(from_step_id, branch)

    edges = list(getattr(source, field))
    if to_step_id in edges:
        return workflow
    edges.append(to_step_id)
    steps = dict(workflow.steps)
    steps[from_step_id] = source.model_copy(update={field: edges})
    return workflow.with_steps(steps)


def disconnect_steps(workflow: Workflow, from_step_id: str, to_step_id: str) -> Workflow:
    """Drop the edge from one step to another on every branch."""
    source = _require(workflow, from_step_id)
    steps = dict(workflow.steps)
    steps[from_step_id] = source.without_target(to_step_id)
    return workflow.with_steps(steps)
