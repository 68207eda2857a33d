"""Task domain package: list-store mapping, in-memory queries and page controllers."""

from .models import MetadataRef, PersonRef, Task, TaskDraft, TaskPatch
from .query import filter_tasks, get_page, sort_tasks, total_pages
from .service import (
    CreateError,
    DeleteError,
    FetchError,
    NotFoundError,
    TaskService,
    TaskServiceError,
    UpdateError,
    ValidationError,
)

__all__ = [
    "Task",
    "TaskDraft",
    "TaskPatch",
    "MetadataRef",
    "PersonRef",
    "TaskService",
    "TaskServiceError",
    "FetchError",
    "NotFoundError",
    "ValidationError",
    "CreateError",
    "UpdateError",
    "DeleteError",
    "sort_tasks",
    "filter_tasks",
    "get_page",
    "total_pages",
]
