"""Service layer translating SharePoint list items into task records."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from ..config import Settings
from ..sharepoint import ListStoreError, SharePointClient, quote_odata_literal
from ..utils.datetime_utils import (
    DEFAULT_LOCALE_DATE_FORMAT,
    format_edit_date,
    format_locale_date,
    to_store_instant,
)
from .models import MetadataRef, PersonRef, Task, TaskDraft, TaskPatch

logger = logging.getLogger(__name__)

TASK_FIELDS: tuple[str, ...] = (
    "Id",
    "Title",
    "Description",
    "DueDate",
    "Priority/Id",
    "Priority/Title",
    "Status",
    "AssignedBy/Id",
    "AssignedBy/Title",
    "Category",
)
TASK_EXPANSIONS: tuple[str, ...] = ("Priority", "AssignedBy")

UNCATEGORIZED = "Uncategorized"


class TaskServiceError(RuntimeError):
    """Base class for task operation failures.

    Messages are generic per operation; the store error, when there is one,
    is logged and kept as ``__cause__``.
    """


class FetchError(TaskServiceError):
    """Raised when the task list cannot be read."""


class NotFoundError(TaskServiceError):
    """Raised when a referenced metadata entry does not exist."""


class ValidationError(TaskServiceError):
    """Raised when a create or update is missing required data."""


class CreateError(TaskServiceError):
    """Raised when a task cannot be added."""


class UpdateError(TaskServiceError):
    """Raised when a task cannot be updated."""


class DeleteError(TaskServiceError):
    """Raised when a task cannot be deleted."""


def _metadata_ref(raw: Any) -> Optional[MetadataRef]:
    if not isinstance(raw, Mapping):
        return None
    title = raw.get("Title")
    if title is None:
        return None
    return MetadataRef(id=raw.get("Id"), title=title)


def _person_ref(raw: Any) -> Optional[PersonRef]:
    if not isinstance(raw, Mapping):
        return None
    title = raw.get("Title")
    if title is None:
        return None
    return PersonRef(id=raw.get("Id"), title=title)


def _store_due_date(value: Optional[str]) -> Optional[str]:
    # An empty due date means "not set".
    if not value:
        return None
    try:
        return to_store_instant(value)
    except ValueError as exc:
        raise ValidationError("Due date is not a valid date.") from exc


class TaskService:
    """Read and write tasks stored in the task and metadata lists.

    Nothing is cached: every call goes back to the store.
    """

    def __init__(
        self,
        client: SharePointClient,
        *,
        task_list: str = "TaskManagerList",
        metadata_list: str = "TaskManagerMetadata",
        display_timezone: str = "UTC",
        locale_date_format: str = DEFAULT_LOCALE_DATE_FORMAT,
    ):
        self._client = client
        self._task_list = task_list
        self._metadata_list = metadata_list
        self._display_timezone = display_timezone
        self._locale_date_format = locale_date_format

    @classmethod
    def from_settings(
        cls, settings: Settings, client: Optional[SharePointClient] = None
    ) -> "TaskService":
        return cls(
            client or SharePointClient(settings),
            task_list=settings.task_list_name,
            metadata_list=settings.metadata_list_name,
            display_timezone=settings.display_timezone,
            locale_date_format=settings.locale_date_format,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_tasks(self) -> List[Task]:
        """Return every task with locale-formatted due dates."""

        try:
            items = await self._client.get_items(
                self._task_list, select=TASK_FIELDS, expand=TASK_EXPANSIONS
            )
            return [self._task_from_list_item(item) for item in items]
        except Exception as exc:
            logger.error("Error fetching tasks: %s", exc)
            raise FetchError("Failed to fetch tasks") from exc

    async def get_task(self, task_id: int) -> Optional[Task]:
        """Return one task formatted for editing, or None when unavailable."""

        try:
            item = await self._client.get_item(
                self._task_list, task_id, select=TASK_FIELDS, expand=TASK_EXPANSIONS
            )
            task = self._task_from_edit_item(item)
        except ListStoreError as exc:
            if exc.is_not_found:
                logger.warning("Task %s not found", task_id)
            else:
                logger.error("Error fetching task with ID %s: %s", task_id, exc)
            return None
        except Exception:
            logger.exception("Error fetching task with ID %s", task_id)
            return None

        logger.debug("Fetched task %s: %s", task_id, item)
        return task

    async def list_priorities(self) -> List[MetadataRef]:
        """Return the priority entries of the metadata list."""

        try:
            items = await self._client.get_items(
                self._metadata_list, select=("Id", "Title")
            )
            return [
                MetadataRef(id=item.get("Id"), title=item["Title"])
                for item in items
                if item.get("Title")
            ]
        except Exception as exc:
            logger.error("Error fetching priorities: %s", exc)
            raise FetchError("Failed to fetch priorities") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_task(self, draft: TaskDraft) -> int:
        """Add a task, resolving its assignee and priority; return the new id."""

        assigned_by_email = draft.assigned_by.title if draft.assigned_by else ""
        if not assigned_by_email:
            raise ValidationError("AssignedBy email is required.")
        due_date = _store_due_date(draft.due_date)

        try:
            assigned_by_id = await self._ensure_user_id(assigned_by_email)
            priority_title = draft.priority.title if draft.priority else ""
            priority_id = await self._priority_id(priority_title)

            fields: dict[str, Any] = {
                "Title": draft.title,
                "Description": draft.description,
                "DueDate": due_date,
                "PriorityId": priority_id,
                "Status": draft.status,
                "Category": draft.category,
                "AssignedById": assigned_by_id,
            }
            created = await self._client.add_item(self._task_list, fields)
        except TaskServiceError:
            raise
        except Exception as exc:
            logger.error("Error adding task: %s", exc)
            raise CreateError("Failed to add task") from exc

        new_id = int(created.get("Id") or created.get("ID") or 0)
        logger.info("Task added successfully (id=%s)", new_id)
        return new_id

    async def update_task(self, patch: TaskPatch) -> None:
        """Apply the non-null fields of ``patch`` to the stored task."""

        due_date = _store_due_date(patch.due_date)
        try:
            update_data = await self._build_update(patch, due_date)
        except TaskServiceError:
            raise
        except Exception as exc:
            logger.error("Error preparing update for task %s: %s", patch.id, exc)
            raise UpdateError("Failed to update task") from exc

        if not update_data:
            raise ValidationError("No data to update")

        logger.debug("Update task %s with %s", patch.id, update_data)
        try:
            await self._client.update_item(self._task_list, patch.id, update_data)
        except Exception as exc:
            logger.error("Error updating task %s: %s", patch.id, exc)
            raise UpdateError("Failed to update task") from exc

    async def delete_task(self, task_id: int) -> None:
        """Permanently delete a task."""

        try:
            await self._client.delete_item(self._task_list, task_id)
        except Exception as exc:
            logger.error("Error deleting task with ID %s: %s", task_id, exc)
            raise DeleteError("Failed to delete task") from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _ensure_user_id(self, logon_name: str) -> int:
        result = await self._client.ensure_user(logon_name)
        return int(result["Id"])

    async def _priority_id(self, title: str) -> int:
        items: list[dict[str, Any]] = []
        if title:
            items = await self._client.get_items(
                self._metadata_list,
                select=("Id", "Title"),
                filter=f"Title eq {quote_odata_literal(title)}",
            )
        if not items:
            raise NotFoundError(f"Priority '{title}' not found in metadata list.")
        return int(items[0]["Id"])

    async def _build_update(
        self, patch: TaskPatch, due_date: Optional[str]
    ) -> dict[str, Any]:
        priority_id: Optional[int] = None
        if patch.priority is not None:
            priority_id = patch.priority.id
            if priority_id is None and patch.priority.title:
                priority_id = await self._priority_id(patch.priority.title)

        assigned_by_id: Optional[int] = None
        if patch.assigned_by is not None:
            assigned_by_id = patch.assigned_by.id
            if assigned_by_id is None and patch.assigned_by.title:
                assigned_by_id = await self._ensure_user_id(patch.assigned_by.title)

        candidates: dict[str, Any] = {
            "Title": patch.title,
            "Description": patch.description,
            "DueDate": due_date,
            "PriorityId": priority_id,
            "Status": patch.status,
            "AssignedById": assigned_by_id,
            "Category": patch.category,
            "Comment": patch.comment,
        }
        return {key: value for key, value in candidates.items() if value is not None}

    def _task_from_list_item(self, item: Mapping[str, Any]) -> Task:
        return Task(
            id=item["Id"],
            title=item.get("Title") or "",
            description=item.get("Description"),
            due_date=format_locale_date(
                item.get("DueDate"), self._display_timezone, self._locale_date_format
            ),
            priority=_metadata_ref(item.get("Priority")),
            status=item.get("Status"),
            assigned_by=_person_ref(item.get("AssignedBy")),
            category=item.get("Category") or UNCATEGORIZED,
        )

    def _task_from_edit_item(self, item: Mapping[str, Any]) -> Task:
        # Unlike list reads, a missing category stays empty here.
        return Task(
            id=item["Id"],
            title=item.get("Title") or "",
            description=item.get("Description") or "",
            due_date=format_edit_date(item.get("DueDate"), self._display_timezone),
            priority=_metadata_ref(item.get("Priority")),
            status=item.get("Status"),
            assigned_by=_person_ref(item.get("AssignedBy")),
            category=item.get("Category") or "",
        )


__all__ = [
    "TaskService",
    "TaskServiceError",
    "FetchError",
    "NotFoundError",
    "ValidationError",
    "CreateError",
    "UpdateError",
    "DeleteError",
    "TASK_FIELDS",
    "TASK_EXPANSIONS",
]
