"""Tests for the template catalog and instantiation."""

import pytest
from pydantic import ValidationError

from conftest import action, trigger
from core.exceptions import NotFoundError, WorkflowValidationError
from workflow.templates import (
    TemplateCatalog,
    WorkflowTemplate,
    get_template_catalog,
    instantiate,
    instantiate_workflow,
)
from workflow.validator import is_valid

BUILTIN_IDS = {
    "tpl-task-follow-up",
    "tpl-unassigned-task-triage",
    "tpl-review-handoff",
    "tpl-overdue-escalation",
    "tpl-project-milestone",
}


def _topology(steps: dict, trigger_id: str) -> list:
    """Edges as (step name, branch, target name) reachable from the trigger."""
    seen, edges, stack = set(), [], [trigger_id]
    while stack:
        step_id = stack.pop()
        if step_id in seen:
            continue
        seen.add(step_id)
        step = steps[step_id]
        for branch, targets in (("next", step.next_steps), ("else", getattr(step, "else_steps", []))):
            for target in targets:
                edges.append((step.name, branch, steps[target].name))
                stack.append(target)
    return sorted(edges)


@pytest.mark.unit
class TestCatalog:

    def test_builtins_load_and_validate(self):
        catalog = TemplateCatalog()
        assert {t.id for t in catalog.list()} == BUILTIN_IDS
        assert len(catalog) == 5
        for template in catalog.list():
            assert is_valid(template.as_workflow())

    def test_filter_by_category(self):
        catalog = get_template_catalog()
        ids = {t.id for t in catalog.list("project-tracking")}
        assert ids == {"tpl-project-milestone"}
        assert catalog.list("no-such-category") == []

    def test_get_unknown(self):
        with pytest.raises(NotFoundError):
            get_template_catalog().get("tpl-missing")

    def test_summary(self):
        summary = get_template_catalog().get("tpl-overdue-escalation").summary()
        assert summary["category"] == "notifications"
        assert summary["stepCount"] == 6

    def test_register_rejects_invalid_graph(self):
        catalog = TemplateCatalog(templates=[])
        broken = {
            "id": "tpl-broken",
            "name": "Broken",
            "category": "task-management",
            "triggerStepId": "t",
            "steps": [trigger("t", next_steps=["ghost"])],
        }
        with pytest.raises(WorkflowValidationError):
            catalog.register(broken)
        assert len(catalog) == 0

    def test_templates_are_immutable(self):
        template = get_template_catalog().get("tpl-task-follow-up")
        with pytest.raises(ValidationError):
            template.name = "Changed"


@pytest.mark.unit
class TestInstantiate:

    @pytest.mark.parametrize("template_id", sorted(BUILTIN_IDS))
    def test_instance_is_valid_with_same_shape(self, template_id):
        template = get_template_catalog().get(template_id)
        wf = instantiate_workflow(template, created_by="ana", project_id="P-1")

        assert is_valid(wf)
        assert wf.is_active is False
        assert wf.name == template.name
        original = template.as_workflow()
        assert _topology(wf.steps, wf.trigger_step_id) == _topology(original.steps, original.trigger_step_id)

    def test_ids_are_fresh_and_disjoint(self):
        template = get_template_catalog().get("tpl-overdue-escalation")
        first, _ = instantiate(template)
        second, _ = instantiate(template)
        template_ids = {s.id for s in template.steps}
        assert not set(first) & template_ids
        assert not set(first) & set(second)
        assert len(first) == len(template.steps)

    def test_step_references_follow_new_ids(self):
        template = get_template_catalog().get("tpl-task-follow-up")
        wf = instantiate_workflow(template)
        create = next(s for s in wf.steps.values() if s.name == "Create follow-up")
        notify = next(s for s in wf.steps.values() if s.name == "Notify owner")
        assert f"{{{{ steps.{create.id}.taskId }}}}" in notify.config["message"]
        assert "steps.step-2." not in notify.config["message"]

    def test_other_placeholders_untouched(self):
        template = get_template_catalog().get("tpl-review-handoff")
        wf = instantiate_workflow(template, name="Hand to reviewer", is_active=True)
        assign = next(s for s in wf.steps.values() if s.name == "Assign reviewer")
        assert assign.config["assignee"] == "{{ variables.reviewer }}"
        assert wf.name == "Hand to reviewer"
        assert wf.is_active is True

    def test_template_left_unchanged(self):
        template = get_template_catalog().get("tpl-project-milestone")
        before = template.model_dump()
        instantiate(template)
        assert template.model_dump() == before

    def test_custom_template(self):
        template = WorkflowTemplate(
            id="tpl-custom",
            name="Custom",
            category="task-management",
            trigger_step_id="t",
            steps=[trigger("t", next_steps=["a"]), action("a", {"actionType": "task.create"})],
        )
        steps, trigger_id = instantiate(template)
        assert steps[trigger_id].next_steps == [s for s in steps if s != trigger_id]
