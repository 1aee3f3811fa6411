"""Execution and workflow run schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from workflow.models import CamelModel


class ExecuteRequest(CamelModel):
    """Manual run request."""

    task_id: Optional[str] = Field(default=None, description="Task the run acts on")
    variables: dict[str, Any] = Field(default_factory=dict, description="Run variables")


class ExecutionResponse(BaseModel):
    """Recorded workflow run."""

    id: str = Field(description="Execution (run) ID")
    workflow_id: str = Field(description="Workflow ID")
    triggered_by: str = Field(description="User who started the run")
    status: str = Field(description="pending, running, completed, partially_failed or aborted")
    started_at: Optional[datetime] = Field(default=None, description="Run start timestamp")
    completed_at: Optional[datetime] = Field(default=None, description="Run completion timestamp")
    results: list[dict[str, Any]] = Field(default_factory=list, description="Per-step results")
    error: Optional[str] = Field(default=None, description="Abort or truncation reason")

    class Config:
        from_attributes = True
