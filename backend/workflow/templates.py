"""Template catalog and instantiation.

Templates are immutable and never executed. Instantiating one gives every
step a fresh id and rewrites every edge (and ``{{ steps.<id> }}`` reference)
through the old-to-new id table, so two instances never share an id.
"""

import re
import uuid
from typing import Any, Iterable, Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.constants import TemplateCategory
from core.exceptions import NotFoundError
from workflow.models import CamelModel, Step, Workflow
from workflow.template_library import BUILTIN_TEMPLATES
from workflow.validator import validate_workflow

_STEP_REFERENCE = re.compile(r"(\{\{\s*steps\.)([A-Za-z0-9_\-]+)(?=[.\s}])")


class WorkflowTemplate(CamelModel):
    id: str
    name: str
    description: str = ""
    category: TemplateCategory
    tags: list[str] = Field(default_factory=list)
    steps: list[Step]
    trigger_step_id: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def as_workflow(self) -> Workflow:
        return Workflow(
            id=self.id,
            name=self.name,
            description=self.description,
            steps=list(self.steps),
            trigger_step_id=self.trigger_step_id,
        )

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "tags": list(self.tags),
            "stepCount": len(self.steps),
        }


def _remap_references(value: Any, id_map: dict[str, str]) -> Any:
    if isinstance(value, dict):
        return {k: _remap_references(v, id_map) for k, v in value.items()}
    if isinstance(value, list):
        return [_remap_references(v, id_map) for v in value]
    if isinstance(value, str) and "{{" in value:
        return _STEP_REFERENCE.sub(
            lambda m: m.group(1) + id_map.get(m.group(2), m.group(2)), value
        )
    return value


def instantiate(template: WorkflowTemplate) -> tuple[dict[str, Any], str]:
    """Fresh steps keyed by their new ids, plus the new trigger step id."""
    id_map = {step.id: f"step-{uuid.uuid4().hex[:12]}" for step in template.steps}

    steps: dict[str, Any] = {}
    for step in template.steps:
        update: dict[str, Any] = {
            "id": id_map[step.id],
            "next_steps": [id_map[s] for s in step.next_steps],
            "config": _remap_references(step.config, id_map),
        }
        if hasattr(step, "else_steps"):
            update["else_steps"] = [id_map[s] for s in step.else_steps]
        new_step = step.model_copy(update=update)
        steps[new_step.id] = new_step

    return steps, id_map[template.trigger_step_id]


def instantiate_workflow(
    template: WorkflowTemplate,
    name: Optional[str] = None,
    created_by: str = "",
    organization_id: str = "",
    project_id: str = "",
    is_active: bool = False,
) -> Workflow:
    """A new workflow draft built from a template."""
    steps, trigger_step_id = instantiate(template)
    return Workflow(
        name=name or template.name,
        description=template.description,
        created_by=created_by,
        organization_id=organization_id,
        project_id=project_id,
        is_active=is_active,
        steps=steps,
        trigger_step_id=trigger_step_id,
    )


class TemplateCatalog:
    """The templates available for instantiation, keyed by template id."""

    def __init__(self, templates: Optional[Iterable[Any]] = None):
        self._templates: dict[str, WorkflowTemplate] = {}
        for template in BUILTIN_TEMPLATES if templates is None else templates:
            self.register(template)

    def register(self, template: Any) -> WorkflowTemplate:
        """Add a template; it must be a valid workflow on its own."""
        if not isinstance(template, WorkflowTemplate):
            template = WorkflowTemplate.model_validate(template)
        validate_workflow(template.as_workflow())
        self._templates[template.id] = template
        return template

    def list(self, category: Optional[str] = None) -> list[WorkflowTemplate]:
        templates = list(self._templates.values())
        if category:
            templates = [t for t in templates if t.category.value == category]
        return templates

    def get(self, template_id: str) -> WorkflowTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise NotFoundError(f"Template {template_id} not found")
        return template

    def __len__(self) -> int:
        return len(self._templates)


_catalog: Optional[TemplateCatalog] = None


def get_template_catalog() -> TemplateCatalog:
    """Get or create the singleton catalog of built-in templates."""
    global _catalog
    if _catalog is None:
        _catalog = TemplateCatalog()
    return _catalog
