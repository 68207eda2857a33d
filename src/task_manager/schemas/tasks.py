"""Pydantic schemas for the task endpoints."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..tasks.models import MetadataRef, PersonRef, Task, TaskDraft, TaskPatch
from ..tasks.views import TaskCard
from ..utils.datetime_utils import parse_rfc3339_datetime


def _check_due_date(value: Optional[str]) -> Optional[str]:
    if value and parse_rfc3339_datetime(value) is None:
        raise ValueError("due_date must be YYYY-MM-DD or an ISO 8601 datetime")
    return value


class MetadataRefModel(BaseModel):
    """A priority reference; ``id`` may be omitted when writing by title."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    title: str

    def to_ref(self) -> MetadataRef:
        return MetadataRef(id=self.id, title=self.title)


class PersonRefModel(BaseModel):
    """A site user; ``title`` is the login or e-mail."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    title: str

    def to_ref(self) -> PersonRef:
        return PersonRef(id=self.id, title=self.title)


class TaskModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    due_date: str = ""
    priority: Optional[MetadataRefModel] = None
    status: Optional[str] = None
    assigned_by: Optional[PersonRefModel] = None
    category: str = ""

    @classmethod
    def from_task(cls, task: Task) -> "TaskModel":
        return cls.model_validate(task)


class TaskCardModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    due_date: str
    priority: str
    priority_color: str
    status: str
    category: str
    assigned_by: str

    @classmethod
    def from_card(cls, card: TaskCard) -> "TaskCardModel":
        return cls.model_validate(card)


class TaskPage(BaseModel):
    """One page of the searchable, sortable task table."""

    items: List[TaskModel]
    total: int = Field(..., ge=0, description="Tasks matching the search")
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    sort: Optional[str] = None
    descending: bool = False
    query: str = ""


class DashboardResponse(BaseModel):
    cards: List[TaskCardModel]
    query: str = ""
    message: Optional[str] = None


class TaskCreatePayload(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    due_date: Optional[str] = Field(
        default=None, description="YYYY-MM-DD or ISO 8601 datetime"
    )
    priority: Optional[MetadataRefModel] = None
    status: str = ""
    assigned_by: Optional[PersonRefModel] = None
    category: str = ""

    @field_validator("due_date")
    @classmethod
    def _validate_due_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_due_date(value)

    def to_draft(self) -> TaskDraft:
        return TaskDraft(
            title=self.title,
            description=self.description,
            due_date=self.due_date,
            priority=self.priority.to_ref() if self.priority else None,
            status=self.status,
            assigned_by=self.assigned_by.to_ref() if self.assigned_by else None,
            category=self.category,
        )


class TaskCreated(BaseModel):
    id: int


class TaskUpdatePayload(BaseModel):
    """Sparse update: omitted or null fields are left unchanged."""

    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[MetadataRefModel] = None
    status: Optional[str] = None
    assigned_by: Optional[PersonRefModel] = None
    category: Optional[str] = None
    comment: Optional[str] = None

    @field_validator("due_date")
    @classmethod
    def _validate_due_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_due_date(value)

    def to_patch(self, task_id: int) -> TaskPatch:
        return TaskPatch(
            id=task_id,
            title=self.title,
            description=self.description,
            due_date=self.due_date,
            priority=self.priority.to_ref() if self.priority else None,
            status=self.status,
            assigned_by=self.assigned_by.to_ref() if self.assigned_by else None,
            category=self.category,
            comment=self.comment,
        )


__all__ = [
    "MetadataRefModel",
    "PersonRefModel",
    "TaskModel",
    "TaskCardModel",
    "TaskPage",
    "DashboardResponse",
    "TaskCreatePayload",
    "TaskCreated",
    "TaskUpdatePayload",
]
