"""Tests for add/edit form state transitions and validation."""

from __future__ import annotations

import datetime

import pytest

from task_manager.tasks.forms import (
    SetAssignedBy,
    SetDescription,
    SetPriority,
    SetStatus,
    SetTitle,
    TaskFormState,
    Touch,
    from_task,
    reduce,
    to_draft,
    to_patch,
    validate,
    with_errors,
)
from task_manager.tasks.models import MetadataRef, PersonRef, Task

TODAY = datetime.date(2025, 3, 1)


def _complete_state(**overrides) -> TaskFormState:
    values = dict(
        title="Write spec",
        description="First draft",
        due_date="2025-03-04",
        priority=MetadataRef(id=1, title="High"),
        status="Pending",
        category="Docs",
        assigned_by=PersonRef(id=None, title="alice@x.com"),
    )
    values.update(overrides)
    return TaskFormState(**values)


class TestReduce:
    def test_text_update_clears_field_error(self):
        state = TaskFormState(field_errors={"title": "Title is required."})

        state = reduce(state, SetTitle("Hello"))

        assert state.title == "Hello"
        assert state.field_errors["title"] == ""
        assert not state.has_errors

    def test_reduce_returns_new_state(self):
        original = TaskFormState()

        updated = reduce(original, SetDescription("text"))

        assert original.description == ""
        assert updated.description == "text"

    def test_clearing_priority_flags_selection(self):
        state = reduce(TaskFormState(), SetPriority(None))

        assert state.priority is None
        assert state.field_errors["priority"] == "Please select a value"

    def test_selecting_priority_clears_error(self):
        state = reduce(TaskFormState(), SetPriority(None))

        state = reduce(state, SetPriority(MetadataRef(id=None, title="Low")))

        assert state.priority == MetadataRef(id=None, title="Low")
        assert state.field_errors["priority"] == ""

    def test_clearing_status_flags_selection(self):
        state = reduce(TaskFormState(status="Pending"), SetStatus(None))

        assert state.status == ""
        assert state.field_errors["status"] == "Please select a value"

    def test_clearing_assignee_flags_required(self):
        state = reduce(TaskFormState(), SetAssignedBy(PersonRef(id=None, title="")))

        assert state.assigned_by is None
        assert state.field_errors["assigned_by"] == "Assigned By is required."

    def test_touch_flags_blank_field(self):
        state = reduce(TaskFormState(title="   "), Touch("title"))
        assert state.field_errors["title"] == "Title is required."

        state = reduce(TaskFormState(), Touch("due_date"))
        assert state.field_errors["due_date"] == "Due Date is required."

    def test_touch_on_filled_field_clears_error(self):
        state = TaskFormState(category="Ops", field_errors={"category": "Category is required."})

        assert reduce(state, Touch("category")).field_errors["category"] == ""

    def test_touch_unknown_field(self):
        with pytest.raises(ValueError):
            reduce(TaskFormState(), Touch("colour"))

    def test_unknown_command(self):
        with pytest.raises(TypeError):
            reduce(TaskFormState(), object())  # type: ignore[arg-type]


class TestValidate:
    def test_complete_add_form_is_valid(self):
        assert validate(_complete_state(), "add", today=TODAY) == {}

    def test_empty_add_form_reports_every_required_field(self):
        errors = validate(TaskFormState(), "add", today=TODAY)

        assert errors == {
            "title": "Title is required.",
            "description": "Description is required.",
            "due_date": "Due Date is required.",
            "priority": "Priority is required.",
            "status": "Status is required.",
            "category": "Category is required.",
            "assigned_by": "Assigned By is required.",
        }

    def test_past_due_date_rejected_when_adding(self):
        errors = validate(_complete_state(due_date="2025-02-28"), "add", today=TODAY)

        assert errors == {"due_date": "Due Date cannot be in the past."}

    def test_today_is_allowed(self):
        assert validate(_complete_state(due_date="2025-03-01"), "add", today=TODAY) == {}

    def test_past_due_date_allowed_when_editing(self):
        state = _complete_state(due_date="2020-01-01", comment="late")

        assert validate(state, "edit", today=TODAY) == {}

    def test_edit_requires_comment(self):
        errors = validate(_complete_state(), "edit", today=TODAY)

        assert errors == {"comment": "Comment is required."}

    def test_invalid_due_date(self):
        errors = validate(_complete_state(due_date="31/31/2025"), "add", today=TODAY)

        assert errors == {"due_date": "Due Date is not a valid date."}

    def test_values_outside_choices(self):
        state = _complete_state(
            priority=MetadataRef(id=None, title="Urgent"), status="Blocked"
        )

        errors = validate(state, "add", today=TODAY)

        assert errors == {
            "priority": "Please select a value",
            "status": "Please select a value",
        }

    def test_with_errors_resets_other_fields(self):
        state = TaskFormState(field_errors={"title": "Title is required."})

        state = with_errors(state, {"status": "Status is required."})

        assert state.field_errors["title"] == ""
        assert state.field_errors["status"] == "Status is required."
        assert state.has_errors


class TestConversions:
    def test_from_task_seeds_edit_form(self):
        task = Task(
            id=5,
            title="Edit me",
            description="",
            due_date="2025-12-31",
            priority=MetadataRef(id=2, title="Medium"),
            status=None,
            assigned_by=None,
            category="",
        )

        state = from_task(task)

        assert state.id == 5
        assert state.status == ""
        assert state.comment == ""
        assert state.priority == MetadataRef(id=2, title="Medium")

    def test_to_draft_carries_entered_values(self):
        draft = to_draft(_complete_state(due_date=""))

        assert draft.title == "Write spec"
        assert draft.due_date is None
        assert draft.assigned_by == PersonRef(id=None, title="alice@x.com")

    def test_to_patch_includes_comment(self):
        patch = to_patch(_complete_state(id=8, comment="done"))

        assert patch.id == 8
        assert patch.comment == "done"
        assert patch.status == "Pending"
