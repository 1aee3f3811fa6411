"""Run-time context and ``{{ path }}`` placeholder resolution.

Placeholders are plain dotted-path lookups, never evaluated:

    {{ variables.owner }}          value passed in when the run started
    {{ steps.create-task.taskId }} output of an action step that already ran
    {{ context.project_id }}       identity fields of the run

A string that is exactly one placeholder resolves to the raw value (so
numbers stay numbers); placeholders embedded in longer text are
substituted as strings. Anything that cannot be resolved is left as written.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_.\-]+)\s*\}\}")

_MISSING = object()


@dataclass
class ExecutionContext:
    """Ephemeral facts supplied when a run starts. Never persisted as such."""

    project_id: str = ""
    organization_id: str = ""
    acting_user: str = ""
    task_id: Optional[str] = None
    variables: dict[str, Any] = field(default_factory=dict)
    outputs: dict[str, Any] = field(default_factory=dict)

    def record_output(self, step_id: str, output: Any) -> None:
        self.outputs[step_id] = output

    def namespace(self) -> dict[str, Any]:
        return {
            "variables": self.variables,
            "steps": self.outputs,
            "context": {
                "project_id": self.project_id,
                "organization_id": self.organization_id,
                "acting_user": self.acting_user,
                "task_id": self.task_id,
            },
        }

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "organization_id": self.organization_id,
            "acting_user": self.acting_user,
            "task_id": self.task_id,
            "variables": self.variables,
        }


def lookup_path(path: str, namespace: dict[str, Any]) -> Any:
    """Walk a dotted path through dicts and lists; ``_MISSING`` if it breaks."""
    current: Any = namespace
    for part in path.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return _MISSING
    return current


def resolve_value(value: Any, context: ExecutionContext) -> Any:
    """Resolve placeholders in a string, or recursively in dicts and lists."""
    if isinstance(value, dict):
        return {k: resolve_value(v, context) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_value(v, context) for v in value]
    if not isinstance(value, str) or "{{" not in value:
        return value

    namespace = context.namespace()
    whole = _PLACEHOLDER.fullmatch(value.strip())
    if whole:
        found = lookup_path(whole.group(1), namespace)
        return value if found is _MISSING else found

    def _substitute(match: re.Match) -> str:
        found = lookup_path(match.group(1), namespace)
        if found is _MISSING:
            return match.group(0)
        return "" if found is None else str(found)

    return _PLACEHOLDER.sub(_substitute, value)
