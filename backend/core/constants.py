"""Constants and enums for the workflow automation engine."""

from enum import Enum


class StepKind(str, Enum):
    """Kind of a workflow step (closed set)."""

    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"


class TriggerType(str, Enum):
    """Trigger vocabulary. Only MANUAL is wired to execution."""

    MANUAL = "manual"
    TASK_CREATED = "task.created"
    TASK_UPDATED = "task.updated"
    TASK_COMPLETED = "task.completed"
    PROJECT_CREATED = "project.created"
    PROJECT_UPDATED = "project.updated"
    SCHEDULED_DAILY = "scheduled.daily"
    SCHEDULED_WEEKLY = "scheduled.weekly"


class ConditionType(str, Enum):
    """Condition families understood by the evaluator."""

    VALUE_COMPARE = "value.compare"
    TASK_STATUS_EQUALS = "task.status.equals"
    TASK_PRIORITY_EQUALS = "task.priority.equals"
    TASK_ASSIGNEE_EQUALS = "task.assignee.equals"
    TASK_ASSIGNEE_EMPTY = "task.assignee.empty"
    TASK_DUE_OVERDUE = "task.dueDate.overdue"
    TASK_DUE_TODAY = "task.dueDate.today"
    TASK_DUE_THIS_WEEK = "task.dueDate.thisWeek"
    PROJECT_COMPLETION_ABOVE = "project.completion.above"
    PROJECT_COMPLETION_BELOW = "project.completion.below"


class ComparisonOperator(str, Enum):
    """Operators for value comparison conditions."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    CONTAINS = "contains"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"


# Operators that only look at the left operand.
UNARY_OPERATORS = frozenset({ComparisonOperator.IS_EMPTY, ComparisonOperator.IS_NOT_EMPTY})


class ActionType(str, Enum):
    """Action kinds applied through the external sinks."""

    TASK_CREATE = "task.create"
    TASK_UPDATE = "task.update"
    TASK_ASSIGN = "task.assign"
    NOTIFY = "notify"


# Older workflows stored notifications under this name.
LEGACY_NOTIFY_ACTION = "notification.send"


class StepOutcome(str, Enum):
    """Outcome recorded for a single visited step."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


class RunStatus(str, Enum):
    """Lifecycle of one workflow run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"
    ABORTED = "aborted"


TERMINAL_RUN_STATUSES = frozenset(
    {RunStatus.COMPLETED, RunStatus.PARTIALLY_FAILED, RunStatus.ABORTED}
)


class TemplateCategory(str, Enum):
    """Template catalog categories."""

    TASK_MANAGEMENT = "task-management"
    NOTIFICATIONS = "notifications"
    PROJECT_TRACKING = "project-tracking"


class TaskStatus(str, Enum):
    """Task statuses used by the built-in task store."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    COMPLETED = "Completed"


class TaskPriority(str, Enum):
    """Task priorities used by the built-in task store."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
