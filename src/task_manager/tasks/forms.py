"""Add/edit form state, field update commands and validation.

Form state is immutable: each user edit is a command applied by ``reduce``,
which returns a new state. ``validate`` is pure and returns the field errors
for a state without touching it.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field, replace
from typing import Literal, Mapping, Optional, Union

from ..utils.datetime_utils import parse_form_date
from .models import (
    PRIORITY_CHOICES,
    STATUS_CHOICES,
    MetadataRef,
    PersonRef,
    Task,
    TaskDraft,
    TaskPatch,
)

FormMode = Literal["add", "edit"]

SELECT_A_VALUE = "Please select a value"
ASSIGNED_BY_REQUIRED = "Assigned By is required."

FIELD_LABELS: dict[str, str] = {
    "title": "Title",
    "description": "Description",
    "due_date": "Due Date",
    "priority": "Priority",
    "status": "Status",
    "category": "Category",
    "assigned_by": "Assigned By",
    "comment": "Comment",
}


@dataclass(frozen=True)
class TaskFormState:
    id: int = 0
    title: str = ""
    description: str = ""
    due_date: str = ""
    priority: Optional[MetadataRef] = None
    status: str = ""
    category: str = ""
    assigned_by: Optional[PersonRef] = None
    comment: str = ""
    field_errors: Mapping[str, str] = field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        return any(self.field_errors.values())


@dataclass(frozen=True)
class SetTitle:
    value: str


@dataclass(frozen=True)
class SetDescription:
    value: str


@dataclass(frozen=True)
class SetDueDate:
    value: str


@dataclass(frozen=True)
class SetCategory:
    value: str


@dataclass(frozen=True)
class SetComment:
    value: str


@dataclass(frozen=True)
class SetPriority:
    value: Optional[MetadataRef]


@dataclass(frozen=True)
class SetStatus:
    value: Optional[str]


@dataclass(frozen=True)
class SetAssignedBy:
    value: Optional[PersonRef]


@dataclass(frozen=True)
class Touch:
    """A field lost focus; flag it when still empty."""

    field: str


FieldCommand = Union[
    SetTitle,
    SetDescription,
    SetDueDate,
    SetCategory,
    SetComment,
    SetPriority,
    SetStatus,
    SetAssignedBy,
    Touch,
]

_TEXT_COMMANDS: dict[type, str] = {
    SetTitle: "title",
    SetDescription: "description",
    SetDueDate: "due_date",
    SetCategory: "category",
    SetComment: "comment",
}


def _with_error(state: TaskFormState, name: str, message: str, **changes) -> TaskFormState:
    errors = dict(state.field_errors)
    errors[name] = message
    return replace(state, field_errors=errors, **changes)


def _is_blank(state: TaskFormState, name: str) -> bool:
    value = getattr(state, name)
    if isinstance(value, (MetadataRef, PersonRef)):
        return not value.title
    return not (value or "").strip()


def reduce(state: TaskFormState, command: FieldCommand) -> TaskFormState:
    """Apply one field update and return the new state."""

    name = _TEXT_COMMANDS.get(type(command))
    if name is not None:
        return _with_error(state, name, "", **{name: command.value or ""})

    if isinstance(command, SetPriority):
        selected = command.value if command.value and command.value.title else None
        return _with_error(
            state, "priority", "" if selected else SELECT_A_VALUE, priority=selected
        )

    if isinstance(command, SetStatus):
        value = command.value or ""
        return _with_error(
            state, "status", "" if value else SELECT_A_VALUE, status=value
        )

    if isinstance(command, SetAssignedBy):
        selected = command.value if command.value and command.value.title else None
        return _with_error(
            state,
            "assigned_by",
            "" if selected else ASSIGNED_BY_REQUIRED,
            assigned_by=selected,
        )

    if isinstance(command, Touch):
        if command.field not in FIELD_LABELS:
            raise ValueError(f"Unknown form field: {command.field}")
        message = (
            f"{FIELD_LABELS[command.field]} is required."
            if _is_blank(state, command.field)
            else ""
        )
        return _with_error(state, command.field, message)

    raise TypeError(f"Unsupported form command: {command!r}")


def validate(
    state: TaskFormState,
    mode: FormMode = "add",
    *,
    today: Optional[datetime.date] = None,
) -> dict[str, str]:
    """Return ``{field: message}`` for every invalid field (empty when valid)."""

    errors: dict[str, str] = {}

    if not state.title.strip():
        errors["title"] = "Title is required."
    if not state.description.strip():
        errors["description"] = "Description is required."

    if not state.due_date:
        errors["due_date"] = "Due Date is required."
    else:
        due = parse_form_date(state.due_date)
        if due is None:
            errors["due_date"] = "Due Date is not a valid date."
        elif mode == "add" and due < (today or datetime.date.today()):
            errors["due_date"] = "Due Date cannot be in the past."

    if state.priority is None or not state.priority.title:
        errors["priority"] = "Priority is required."
    elif state.priority.title not in PRIORITY_CHOICES:
        errors["priority"] = SELECT_A_VALUE

    if not state.status:
        errors["status"] = "Status is required."
    elif state.status not in STATUS_CHOICES:
        errors["status"] = SELECT_A_VALUE

    if not state.category:
        errors["category"] = "Category is required."
    if state.assigned_by is None or not state.assigned_by.title:
        errors["assigned_by"] = ASSIGNED_BY_REQUIRED

    if mode == "edit" and not state.comment.strip():
        errors["comment"] = "Comment is required."

    return errors


def with_errors(state: TaskFormState, errors: Mapping[str, str]) -> TaskFormState:
    """Return ``state`` carrying ``errors`` on top of its cleared fields."""

    merged = {name: "" for name in FIELD_LABELS}
    merged.update(errors)
    return replace(state, field_errors=merged)


def from_task(task: Task) -> TaskFormState:
    """Seed an edit form from a task fetched for editing."""

    return TaskFormState(
        id=task.id,
        title=task.title or "",
        description=task.description or "",
        due_date=task.due_date or "",
        priority=task.priority,
        status=task.status or "",
        category=task.category or "",
        assigned_by=task.assigned_by,
    )


def to_draft(state: TaskFormState) -> TaskDraft:
    return TaskDraft(
        title=state.title,
        description=state.description,
        due_date=state.due_date or None,
        priority=state.priority,
        status=state.status,
        assigned_by=state.assigned_by,
        category=state.category,
    )


def to_patch(state: TaskFormState) -> TaskPatch:
    return TaskPatch(
        id=state.id,
        title=state.title,
        description=state.description,
        due_date=state.due_date,
        priority=state.priority,
        status=state.status,
        assigned_by=state.assigned_by,
        category=state.category,
        comment=state.comment,
    )


__all__ = [
    "TaskFormState",
    "FieldCommand",
    "SetTitle",
    "SetDescription",
    "SetDueDate",
    "SetCategory",
    "SetComment",
    "SetPriority",
    "SetStatus",
    "SetAssignedBy",
    "Touch",
    "reduce",
    "validate",
    "with_errors",
    "from_task",
    "to_draft",
    "to_patch",
]
