"""Workflow execution (run) table."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import RunStatus
from db.base import BaseModel


class ExecutionRecord(BaseModel):
    """One run of a workflow.

    Attributes:
        workflow_id: Workflow that was run
        organization_id: Organization the run acted for
        triggered_by: User who started the run
        status: Run status (pending, running, completed, partially_failed, aborted)
        started_at / completed_at: Run timestamps
        results: Per-step results in execution order
        context: Identity fields and variables the run started with
        error: Reason for an aborted or truncated run
    """

    __tablename__ = "workflow_executions"

    workflow_id: Mapped[str] = mapped_column(
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[str] = mapped_column(nullable=False, default="", index=True)
    triggered_by: Mapped[str] = mapped_column(nullable=False, default="")
    status: Mapped[str] = mapped_column(default=RunStatus.PENDING.value, index=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    results: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    context: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    error: Mapped[Optional[str]] = mapped_column(nullable=True)

    workflow: Mapped["WorkflowRecord"] = relationship(
        "WorkflowRecord", back_populates="executions", lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<ExecutionRecord(id={self.id}, workflow_id={self.workflow_id}, status={self.status})>"
