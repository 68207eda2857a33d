"""Domain models representing tasks and their list-store references."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

STATUS_CHOICES: tuple[str, ...] = ("Pending", "Completed", "In Progress")
PRIORITY_CHOICES: tuple[str, ...] = ("High", "Medium", "Low")


@dataclass(frozen=True, slots=True)
class MetadataRef:
    """A metadata list entry (priority level) inlined through an expand."""

    id: Optional[int]
    title: str


@dataclass(frozen=True, slots=True)
class PersonRef:
    """A site user; ``title`` holds the login or e-mail identifier."""

    id: Optional[int]
    title: str


@dataclass(slots=True)
class Task:
    """Task record as consumed by the list, dashboard and edit views.

    ``due_date`` is already rendered for the surface that fetched it.
    """

    id: int
    title: str
    description: Optional[str]
    due_date: str
    priority: Optional[MetadataRef]
    status: Optional[str]
    assigned_by: Optional[PersonRef]
    category: str


@dataclass(slots=True)
class TaskDraft:
    """Fields submitted when creating a task. ``id`` stays 0 until stored."""

    title: str
    description: str = ""
    due_date: Optional[str] = None
    priority: Optional[MetadataRef] = None
    status: str = ""
    assigned_by: Optional[PersonRef] = None
    category: str = ""
    id: int = 0


@dataclass(slots=True)
class TaskPatch:
    """Sparse update; ``None`` means "leave unchanged"."""

    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[MetadataRef] = None
    status: Optional[str] = None
    assigned_by: Optional[PersonRef] = None
    category: Optional[str] = None
    comment: Optional[str] = None


__all__ = [
    "MetadataRef",
    "PersonRef",
    "Task",
    "TaskDraft",
    "TaskPatch",
    "STATUS_CHOICES",
    "PRIORITY_CHOICES",
]
