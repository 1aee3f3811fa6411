"""Workflow table."""

from typing import Optional

from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import BaseModel


class WorkflowRecord(BaseModel):
    """Persisted workflow. Steps live in one JSON column so a workflow and
    its steps are written and deleted together.

    Attributes:
        organization_id: Owning organization
        project_id: Project the workflow automates
        created_by: User who created the workflow
        name: Workflow name
        description: Workflow description
        is_active: Whether the workflow may be executed
        trigger_step_id: Id of the entry step
        steps: List of step documents (camelCase, as served by the API)
        version: Incremented on every saved change
    """

    __tablename__ = "workflows"

    organization_id: Mapped[str] = mapped_column(nullable=False, default="", index=True)
    project_id: Mapped[str] = mapped_column(nullable=False, default="", index=True)
    created_by: Mapped[str] = mapped_column(nullable=False, default="")
    name: Mapped[str] = mapped_column(nullable=False, index=True)
    description: Mapped[str] = mapped_column(nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(default=False, index=True)
    trigger_step_id: Mapped[Optional[str]] = mapped_column(nullable=True)
    steps: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    version: Mapped[int] = mapped_column(default=1)

    executions: Mapped[list["ExecutionRecord"]] = relationship(
        "ExecutionRecord",
        back_populates="workflow",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<WorkflowRecord(id={self.id}, name={self.name}, active={self.is_active})>"
