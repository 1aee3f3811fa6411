"""Workflow, step and edge request schemas.

Bodies use camelCase like the stored workflow documents; snake_case is
accepted too.
"""

from typing import Any, Literal, Optional

from pydantic import Field

from core.constants import StepKind
from workflow.models import CamelModel


class WorkflowCreate(CamelModel):
    """Request to create a workflow. Without steps a single manual trigger is created."""

    name: str = Field(min_length=1, description="Workflow name")
    description: str = Field(default="", description="Workflow description")
    project_id: str = Field(default="", description="Project the workflow automates")
    is_active: bool = Field(default=False, description="Whether the workflow may run")
    steps: Optional[list[dict[str, Any]]] = Field(default=None, description="Full step list")
    trigger_step_id: Optional[str] = Field(default=None, description="Entry step id")


class WorkflowUpdate(CamelModel):
    """Partial workflow update; only provided fields change."""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    steps: Optional[list[dict[str, Any]]] = None
    trigger_step_id: Optional[str] = None

    def to_patch(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class StepCreate(CamelModel):
    """Request to add a step. An id is generated when omitted."""

    id: Optional[str] = Field(default=None, min_length=1)
    kind: StepKind
    name: str = ""
    description: str = ""
    config: dict[str, Any] = Field(default_factory=dict)
    next_steps: list[str] = Field(default_factory=list)
    else_steps: list[str] = Field(default_factory=list)

    def to_step_data(self, step_id: str) -> dict[str, Any]:
        data = self.model_dump(exclude={"id"})
        data["id"] = step_id
        data["kind"] = self.kind.value
        if self.kind != StepKind.CONDITION:
            data.pop("else_steps")
        return data


class StepUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    config: Optional[dict[str, Any]] = None


class EdgeRequest(CamelModel):
    """An edge between two steps; ``else`` is the false branch of a condition."""

    from_step_id: str = Field(min_length=1)
    to_step_id: str = Field(min_length=1)
    branch: Literal["next", "else"] = "next"


class TemplateInstantiate(CamelModel):
    name: Optional[str] = None
    project_id: str = ""
    is_active: bool = False
