"""Structural validation of workflow graphs.

Pure and synchronous; safe to call concurrently on distinct drafts.
Checks run in a fixed order and the first failure is raised.
"""

from core.exceptions import (
    DanglingEdgeError,
    EdgeIntoTriggerError,
    MissingTriggerError,
    MultipleTriggersError,
    OrphanTriggerReferenceError,
    WorkflowValidationError,
)
from workflow.models import TriggerStep, Workflow


def validate_workflow(workflow: Workflow) -> Workflow:
    """Raise the first ``WorkflowValidationError`` found, else return the workflow."""
    triggers = workflow.trigger_steps()
    if not triggers:
        raise MissingTriggerError()
    if len(triggers) > 1:
        raise MultipleTriggersError(sorted(t.id for t in triggers))

    for step in workflow.steps.values():
        for target_id in step.outgoing():
            if target_id not in workflow.steps:
                raise DanglingEdgeError(step.id, target_id)

    for step in workflow.steps.values():
        for target_id in step.outgoing():
            if isinstance(workflow.steps[target_id], TriggerStep):
                raise EdgeIntoTriggerError(step.id, target_id)

    trigger = triggers[0]
    if workflow.trigger_step_id != trigger.id:
        raise OrphanTriggerReferenceError(workflow.trigger_step_id, trigger.id)

    return workflow


def is_valid(workflow: Workflow) -> bool:
    try:
        validate_workflow(workflow)
    except WorkflowValidationError:
        return False
    return True
