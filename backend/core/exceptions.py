"""Custom exceptions for the workflow automation engine."""

from typing import Optional


class WorkflowAutomationError(Exception):
    """Base exception for the workflow automation engine."""

    error_code: str = "error"

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code.

        Args:
            message: Exception message
            status_code: HTTP status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(WorkflowAutomationError):
    """Resource not found exception."""

    error_code = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, 404)


class ConflictError(WorkflowAutomationError):
    """Resource conflict exception."""

    error_code = "conflict"

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message, 409)


# ─── Graph validation ─────────────────────────────────────────

class WorkflowValidationError(WorkflowAutomationError):
    """A workflow draft violates a structural invariant.

    Always raised to the caller and blocks persistence.
    """

    error_code = "validation_failed"
    kind: str = "ValidationError"

    def __init__(self, message: str = "Workflow validation failed", status_code: int = 422):
        super().__init__(message, status_code)


class MissingTriggerError(WorkflowValidationError):
    kind = "MissingTrigger"

    def __init__(self):
        super().__init__("Workflow must have a trigger step")


class MultipleTriggersError(WorkflowValidationError):
    kind = "MultipleTriggers"

    def __init__(self, trigger_ids: list[str]):
        self.trigger_ids = trigger_ids
        super().__init__(
            f"Workflow must have exactly one trigger step, found {len(trigger_ids)}: "
            f"{', '.join(trigger_ids)}"
        )


class DanglingEdgeError(WorkflowValidationError):
    kind = "DanglingEdge"

    def __init__(self, step_id: str, target_id: str):
        self.step_id = step_id
        self.target_id = target_id
        super().__init__(f"Step {step_id} references non-existent next step {target_id}")


class EdgeIntoTriggerError(WorkflowValidationError):
    kind = "EdgeIntoTrigger"

    def __init__(self, step_id: str, target_id: str):
        self.step_id = step_id
        self.target_id = target_id
        super().__init__(f"Step {step_id} cannot connect to trigger step {target_id}")


class OrphanTriggerReferenceError(WorkflowValidationError):
    kind = "OrphanTriggerReference"

    def __init__(self, trigger_step_id: Optional[str], actual_id: str):
        self.trigger_step_id = trigger_step_id
        self.actual_id = actual_id
        super().__init__(
            f"triggerStepId {trigger_step_id!r} does not match the trigger step {actual_id!r}"
        )


class CannotRemoveOnlyTriggerError(WorkflowValidationError):
    kind = "CannotRemoveOnlyTrigger"

    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"Cannot remove the only trigger step {step_id}")


class DuplicateStepError(WorkflowValidationError):
    kind = "DuplicateStep"

    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"Step {step_id} already exists in the workflow")


class SelfLoopError(WorkflowValidationError):
    kind = "SelfLoop"

    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"Step {step_id} cannot connect to itself")


class StepNotFoundError(WorkflowValidationError):
    kind = "StepNotFound"
    error_code = "not_found"

    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"Step {step_id} not found in workflow", status_code=404)


class InvalidBranchError(WorkflowValidationError):
    kind = "InvalidBranch"

    def __init__(self, step_id: str, branch: str):
        self.step_id = step_id
        self.branch = branch
        super().__init__(f"Step {step_id} has no {branch!r} branch")


# ─── Runtime ──────────────────────────────────────────────────

class StepConfigError(WorkflowAutomationError):
    """A step's config payload does not match its typed schema."""

    error_code = "invalid_step_config"

    def __init__(self, step_id: str, message: str):
        self.step_id = step_id
        super().__init__(f"Invalid config for step {step_id}: {message}", 422)


class EvaluationError(WorkflowAutomationError):
    """A condition could not be evaluated (distinct from a False result)."""

    error_code = "evaluation_failed"

    def __init__(self, step_id: str, message: str):
        self.step_id = step_id
        super().__init__(f"Condition {step_id} could not be evaluated: {message}", 422)


class EngineStartError(WorkflowAutomationError):
    """The engine refused to start a run."""

    error_code = "engine_start_failed"

    def __init__(self, message: str = "Workflow run could not start"):
        super().__init__(message, 409)


class WorkflowInactiveError(EngineStartError):
    error_code = "workflow_inactive"

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow {workflow_id} is not active")


class IllegalTransitionError(WorkflowAutomationError):
    """A run attempted a state change outside the transition table."""

    error_code = "illegal_transition"

    def __init__(self, current: str, target: str):
        super().__init__(f"Illegal run transition: {current} -> {target}", 500)
