"""Workflow graph model.

A workflow is a flat collection of steps keyed by id. Edges are id lists
(``nextSteps``, plus ``elseSteps`` on conditions), never object references,
so a workflow serializes, validates and remaps without walking pointers.

Steps form a closed tagged union on ``kind``. Each kind keeps its config as
the raw persisted payload and exposes a typed parse of it:

    {
        "id": "check-assignee",
        "kind": "condition",
        "name": "Unassigned?",
        "config": {"conditionType": "task.assignee.empty", "taskId": "T-1"},
        "nextSteps": ["notify-lead"],
        "elseSteps": ["assign-owner"]
    }
"""

from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from core.constants import (
    ActionType,
    ComparisonOperator,
    LEGACY_NOTIFY_ACTION,
    TriggerType,
    UNARY_OPERATORS,
)
from core.exceptions import StepConfigError


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def coerce_due_date(value: Any) -> Any:
    """Parse ISO strings into ``date`` (YYYY-MM-DD) or ``datetime``."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    return value


# ─── Trigger config ───────────────────────────────────────────

class TriggerConfig(CamelModel):
    trigger_type: TriggerType = TriggerType.MANUAL


# ─── Condition configs ────────────────────────────────────────

class ValueComparisonConfig(CamelModel):
    condition_type: Literal["value.compare"]
    left_value: Any = None
    operator: ComparisonOperator
    right_value: Any = None

    @model_validator(mode="after")
    def _operands_present(self) -> "ValueComparisonConfig":
        required = {"left_value"}
        if self.operator not in UNARY_OPERATORS:
            required.add("right_value")
        missing = required - self.model_fields_set
        if missing:
            raise ValueError(f"{self.operator.value} requires " + ", ".join(sorted(missing)))
        return self


class TaskFieldEqualsConfig(CamelModel):
    condition_type: Literal["task.status.equals", "task.priority.equals", "task.assignee.equals"]
    task_id: Optional[str] = None
    expected_value: str

    @property
    def field_name(self) -> str:
        # "task.status.equals" -> "status"
        return self.condition_type.split(".")[1]


class TaskAssigneeEmptyConfig(CamelModel):
    condition_type: Literal["task.assignee.empty"]
    task_id: Optional[str] = None


class TaskDueDateConfig(CamelModel):
    condition_type: Literal["task.dueDate.overdue", "task.dueDate.today", "task.dueDate.thisWeek"]
    task_id: Optional[str] = None

    @property
    def predicate(self) -> str:
        return self.condition_type.rsplit(".", 1)[1]


class ProjectCompletionConfig(CamelModel):
    condition_type: Literal["project.completion.above", "project.completion.below"]
    project_id: Optional[str] = None
    percentage: float = Field(ge=0, le=100)

    @property
    def direction(self) -> str:
        return self.condition_type.rsplit(".", 1)[1]


ConditionConfig = Annotated[
    Union[
        ValueComparisonConfig,
        TaskFieldEqualsConfig,
        TaskAssigneeEmptyConfig,
        TaskDueDateConfig,
        ProjectCompletionConfig,
    ],
    Field(discriminator="condition_type"),
]


# ─── Action configs ───────────────────────────────────────────

class TaskData(CamelModel):
    """Fields for a new task."""

    title: str = Field(default="New Task", min_length=1)
    description: str = ""
    assignee: Optional[str] = None
    due_date: Optional[Union[date, datetime]] = None
    priority: str = "Medium"
    status: str = "To Do"
    project_id: Optional[str] = None

    _parse_due_date = field_validator("due_date", mode="before")(coerce_due_date)


class TaskPatch(CamelModel):
    """Partial task update; only explicitly provided fields are applied."""

    task_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    assignee: Optional[str] = None
    due_date: Optional[Union[date, datetime]] = None
    priority: Optional[str] = None
    status: Optional[str] = None

    _parse_due_date = field_validator("due_date", mode="before")(coerce_due_date)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"task_id"})


class TaskCreateConfig(CamelModel):
    action_type: Literal["task.create"]
    task_data: TaskData = Field(default_factory=TaskData)


class TaskUpdateConfig(CamelModel):
    action_type: Literal["task.update"]
    task_data: TaskPatch


class TaskAssignConfig(CamelModel):
    action_type: Literal["task.assign"]
    task_id: Optional[str] = None
    assignee: str = Field(min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _lift_task_data(cls, data: Any) -> Any:
        # The builder stores assign targets under taskData like the other task actions.
        if isinstance(data, dict) and isinstance(data.get("taskData"), dict):
            nested = data["taskData"]
            data = {k: v for k, v in data.items() if k != "taskData"}
            for key in ("taskId", "assignee"):
                if key in nested and key not in data:
                    data[key] = nested[key]
        return data


class NotifyConfig(CamelModel):
    action_type: Literal["notify"]
    recipients: list[str] = Field(min_length=1)
    message: str
    title: str = "Workflow notification"
    channel: str = "in_app"
    notification_type: str = Field(default="info", alias="type")

    @model_validator(mode="before")
    @classmethod
    def _single_recipient(cls, data: Any) -> Any:
        if isinstance(data, dict) and "recipients" not in data and data.get("recipient"):
            data = {**data, "recipients": [data["recipient"]]}
        return data


ActionConfig = Annotated[
    Union[TaskCreateConfig, TaskUpdateConfig, TaskAssignConfig, NotifyConfig],
    Field(discriminator="action_type"),
]

_TRIGGER_CONFIG = TypeAdapter(TriggerConfig)
_CONDITION_CONFIG = TypeAdapter(ConditionConfig)
_ACTION_CONFIG = TypeAdapter(ActionConfig)


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error["loc"]) or "config"
        parts.append(f"{loc}: {error['msg']}")
    return "; ".join(parts)


def parse_trigger_config(step_id: str, raw: dict[str, Any]) -> TriggerConfig:
    try:
        return _TRIGGER_CONFIG.validate_python(raw or {})
    except ValidationError as exc:
        raise StepConfigError(step_id, _summarize(exc)) from exc


def parse_condition_config(step_id: str, raw: dict[str, Any]):
    """Parse a raw condition payload into its typed config."""
    try:
        return _CONDITION_CONFIG.validate_python(raw or {})
    except ValidationError as exc:
        raise StepConfigError(step_id, _summarize(exc)) from exc


def _normalize_action_type(raw: dict[str, Any]) -> dict[str, Any]:
    for key in ("actionType", "action_type"):
        if raw.get(key) == LEGACY_NOTIFY_ACTION:
            return {**raw, key: ActionType.NOTIFY.value}
    return raw

def parse_action_config(step_id: str, raw: dict[str, Any]):
    """Parse a raw action payload into its typed config."""
    try:
        return _ACTION_CONFIG.validate_python(_normalize_action_type(raw or {}))
    except ValidationError as exc:
        raise StepConfigError(step_id, _summarize(exc)) from exc


# ─── Steps ────────────────────────────────────────────────────

class StepBase(CamelModel):
    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    config: dict[str, Any] = Field(default_factory=dict)
    next_steps: list[str] = Field(default_factory=list)

    def outgoing(self) -> list[str]:
        """Every edge target, in declaration order."""
        return list(self.next_steps)

    def without_target(self, target_id: str) -> "StepBase":
        return self.model_copy(
            update={"next_steps": [s for s in self.next_steps if s != target_id]}
        )


class TriggerStep(StepBase):
    kind: Literal["trigger"] = "trigger"

    def trigger_config(self) -> TriggerConfig:
        return parse_trigger_config(self.id, self.config)


class ConditionStep(StepBase):
    kind: Literal["condition"] = "condition"
    # False-branch edges; next_steps is the true branch.
    else_steps: list[str] = Field(default_factory=list)

    def outgoing(self) -> list[str]:
        return list(self.next_steps) + list(self.else_steps)

    def without_target(self, target_id: str) -> "ConditionStep":
        return self.model_copy(
            update={
                "next_steps": [s for s in self.next_steps if s != target_id],
                "else_steps": [s for s in self.else_steps if s != target_id],
            }
        )

    def condition_config(self, raw: Optional[dict[str, Any]] = None):
        """Typed config; raw overrides the stored payload, e.g. once placeholders are resolved."""
        return parse_condition_config(self.id, self.config if raw is None else raw)


class ActionStep(StepBase):
    kind: Literal["action"] = "action"

    def action_config(self, raw: Optional[dict[str, Any]] = None):
        return parse_action_config(self.id, self.config if raw is None else raw)


Step = Annotated[Union[TriggerStep, ConditionStep, ActionStep], Field(discriminator="kind")]

STEP_ADAPTER = TypeAdapter(Step)

def parse_step(data: Any) -> Union[TriggerStep, ConditionStep, ActionStep]:
    """Validate a step dict (or pass a step model through)."""
    if isinstance(data, StepBase):
        return data
    return STEP_ADAPTER.validate_python(data)


# ─── Workflow ─────────────────────────────────────────────────

class Workflow(CamelModel):
    """A named, owned graph of steps with a single trigger entry point."""

    id: str = ""
    name: str = "New Workflow"
    description: str = ""
    created_by: str = ""
    organization_id: str = ""
    project_id: str = ""
    is_active: bool = False
    steps: dict[str, Step] = Field(default_factory=dict)
    trigger_step_id: Optional[str] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("steps", mode="before")
    @classmethod
    def _key_steps_by_id(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            return value
        keyed: dict[str, Any] = {}
        for item in value:
            step_id = item.id if isinstance(item, StepBase) else (item or {}).get("id")
            if step_id in keyed:
                raise ValueError(f"duplicate step id {step_id!r}")
            keyed[step_id] = item
        return keyed

    @model_validator(mode="after")
    def _keys_match_ids(self) -> "Workflow":
        for key, step in self.steps.items():
            if key != step.id:
                raise ValueError(f"step keyed as {key!r} has id {step.id!r}")
        return self

    def get_step(self, step_id: str):
        return self.steps.get(step_id)

    def trigger_steps(self) -> list[TriggerStep]:
        return [s for s in self.steps.values() if isinstance(s, TriggerStep)]

    def with_steps(self, steps: dict[str, Any], **updates: Any) -> "Workflow":
        """Copy of this workflow with a replaced step mapping."""
        return self.model_copy(update={"steps": dict(steps), **updates})

    def to_document(self) -> dict[str, Any]:
        """JSON-safe camelCase document, as persisted and served."""
        return self.model_dump(mode="json", by_alias=True)
