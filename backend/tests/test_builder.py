"""Tests for draft editing operations."""

import pytest

from conftest import action, condition, make_workflow, trigger
from core.constants import TriggerType
from core.exceptions import (
    CannotRemoveOnlyTriggerError,
    DuplicateStepError,
    EdgeIntoTriggerError,
    InvalidBranchError,
    SelfLoopError,
    StepNotFoundError,
)
from workflow import builder
from workflow.validator import is_valid


@pytest.fixture
def draft():
    return make_workflow(
        trigger(next_steps=["check"]),
        condition("check", {"conditionType": "task.assignee.empty"}, next_steps=["assign"], else_steps=["notify"]),
        action("assign", {"actionType": "task.assign", "assignee": "lee"}),
        action("notify", {"actionType": "notify", "recipients": ["lee"], "message": "done"}),
    )


@pytest.mark.unit
class TestCreateEmpty:

    def test_single_trigger_inactive(self):
        wf = builder.create_empty_workflow(name="Onboarding", trigger_type=TriggerType.TASK_CREATED)
        assert wf.name == "Onboarding"
        assert wf.is_active is False
        assert len(wf.steps) == 1
        only = next(iter(wf.steps.values()))
        assert wf.trigger_step_id == only.id
        assert only.trigger_config().trigger_type == TriggerType.TASK_CREATED
        assert is_valid(wf)

    def test_fresh_ids(self):
        a = builder.create_empty_workflow()
        b = builder.create_empty_workflow()
        assert a.trigger_step_id != b.trigger_step_id
        assert a.trigger_step_id.startswith("step-")


@pytest.mark.unit
class TestAddUpdateStep:

    def test_add_step_from_dict(self, draft):
        wf = builder.add_step(draft, action("extra", {"actionType": "task.create"}))
        assert "extra" in wf.steps
        assert "extra" not in draft.steps

    def test_add_duplicate(self, draft):
        with pytest.raises(DuplicateStepError):
            builder.add_step(draft, action("assign", {}))

    def test_update_fields(self, draft):
        wf = builder.update_step(draft, "assign", name="Give to Kim", config={"actionType": "task.assign", "assignee": "kim"})
        step = wf.get_step("assign")
        assert step.name == "Give to Kim"
        assert step.config["assignee"] == "kim"
        assert step.kind == "action"
        assert draft.get_step("assign").config["assignee"] == "lee"

    def test_update_keeps_unspecified_fields(self, draft):
        wf = builder.update_step(draft, "check", description="Is it free?")
        step = wf.get_step("check")
        assert step.description == "Is it free?"
        assert step.else_steps == ["notify"]

    def test_update_missing(self, draft):
        with pytest.raises(StepNotFoundError) as exc_info:
            builder.update_step(draft, "ghost", name="x")
        assert exc_info.value.status_code == 404


@pytest.mark.unit
class TestRemoveStep:

    def test_remove_cascades_edges(self, draft):
        wf = builder.remove_step(draft, "notify")
        assert "notify" not in wf.steps
        assert wf.get_step("check").else_steps == []
        assert is_valid(wf)

    def test_remove_step_on_true_branch(self, draft):
        wf = builder.remove_step(draft, "check")
        assert wf.get_step("trigger").next_steps == []
        assert set(wf.steps) == {"trigger", "assign", "notify"}

    def test_cannot_remove_only_trigger(self, draft):
        with pytest.raises(CannotRemoveOnlyTriggerError):
            builder.remove_step(draft, "trigger")

    def test_remove_one_of_two_triggers_fixes_reference(self):
        wf = make_workflow(trigger("t1"), trigger("t2"), trigger_step_id="t1")
        result = builder.remove_step(wf, "t1")
        assert result.trigger_step_id == "t2"
        assert is_valid(result)

    def test_remove_missing(self, draft):
        with pytest.raises(StepNotFoundError):
            builder.remove_step(draft, "ghost")


@pytest.mark.unit
class TestEdges:

    def test_connect_appends(self, draft):
        wf = builder.connect_steps(draft, "assign", "notify")
        assert wf.get_step("assign").next_steps == ["notify"]
        assert draft.get_step("assign").next_steps == []

    def test_connect_else_branch(self, draft):
        wf = builder.connect_steps(draft, "check", "assign", branch=builder.BRANCH_ELSE)
        assert wf.get_step("check").else_steps == ["notify", "assign"]

    def test_connect_is_idempotent(self, draft):
        wf = builder.connect_steps(draft, "trigger", "check")
        assert wf == draft
        assert wf.get_step("trigger").next_steps == ["check"]

    def test_self_loop(self, draft):
        with pytest.raises(SelfLoopError):
            builder.connect_steps(draft, "assign", "assign")

    def test_into_trigger(self, draft):
        with pytest.raises(EdgeIntoTriggerError):
            builder.connect_steps(draft, "notify", "trigger")

    def test_else_on_action(self, draft):
        with pytest.raises(InvalidBranchError):
            builder.connect_steps(draft, "assign", "notify", branch="else")

    def test_unknown_branch(self, draft):
        with pytest.raises(InvalidBranchError):
            builder.connect_steps(draft, "check", "notify", branch="maybe")

    def test_connect_missing_step(self, draft):
        with pytest.raises(StepNotFoundError):
            builder.connect_steps(draft, "assign", "ghost")

    def test_disconnect_both_branches(self, draft):
        wf = builder.connect_steps(draft, "check", "notify")
        wf = builder.disconnect_steps(wf, "check", "notify")
        step = wf.get_step("check")
        assert step.next_steps == ["assign"]
        assert step.else_steps == []

    def test_disconnect_absent_edge_is_noop(self, draft):
        assert builder.disconnect_steps(draft, "assign", "notify") == draft
