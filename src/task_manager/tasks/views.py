"""Framework-independent controllers behind the list, dashboard and form pages.

Each controller owns its own snapshot of tasks and reloads the full list after
a mutation instead of patching the snapshot. Page navigation and blocking
prompts are injected through ``Navigator`` and ``Prompter`` so that nothing in
here depends on a particular UI toolkit.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional, Protocol

from .forms import (
    FieldCommand,
    TaskFormState,
    from_task,
    reduce,
    to_draft,
    to_patch,
    validate,
    with_errors,
)
from .models import Task
from .query import (
    DEFAULT_PAGE_SIZE,
    clamp_page,
    filter_tasks,
    get_page,
    parse_page_input,
    sort_tasks,
    total_pages,
)
from .service import TaskService, TaskServiceError

logger = logging.getLogger(__name__)

AlertKind = Literal["success", "error", "warning", "question"]

NO_DESCRIPTION = "No description available."
NO_DUE_DATE = "N/A"
UNASSIGNED = "Unassigned"
PRIORITY_COLORS: dict[str, str] = {"High": "red", "Medium": "yellow"}
DEFAULT_PRIORITY_COLOR = "#90EE90"


class Navigator(Protocol):
    """Moves the user between pages."""

    def go_to_dashboard(self) -> None: ...

    def go_to_list(self) -> None: ...

    def go_to_add_task(self) -> None: ...

    def go_to_edit_task(self, task_id: int) -> None: ...


class Prompter(Protocol):
    """Blocking dialogs shown to the user."""

    async def confirm(self, title: str, text: str, confirm_label: str) -> bool: ...

    async def alert(self, title: str, text: str, kind: AlertKind) -> None: ...


@dataclass(frozen=True, slots=True)
class TaskCard:
    """Dashboard card with display fallbacks applied."""

    id: int
    title: str
    description: str
    due_date: str
    priority: str
    priority_color: str
    status: str
    category: str
    assigned_by: str


def to_card(task: Task) -> TaskCard:
    priority = task.priority.title if task.priority else ""
    return TaskCard(
        id=task.id,
        title=task.title,
        description=task.description or NO_DESCRIPTION,
        due_date=task.due_date or NO_DUE_DATE,
        priority=priority,
        priority_color=PRIORITY_COLORS.get(priority, DEFAULT_PRIORITY_COLOR),
        status=task.status or "",
        category=task.category,
        assigned_by=(task.assigned_by.title if task.assigned_by else "") or UNASSIGNED,
    )


@dataclass
class _Snapshot:
    tasks: List[Task] = field(default_factory=list)
    filtered_tasks: List[Task] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[str] = None
    search_query: str = ""


class _SnapshotController:
    _load_error = "Failed to load tasks"

    def __init__(self, service: TaskService):
        self._service = service
        self.snapshot = _Snapshot()

    @property
    def tasks(self) -> List[Task]:
        return self.snapshot.tasks

    @property
    def filtered_tasks(self) -> List[Task]:
        return self.snapshot.filtered_tasks

    @property
    def error(self) -> Optional[str]:
        return self.snapshot.error

    async def load(self) -> None:
        """Refetch the full list; the search box is cleared."""

        self.snapshot.is_loading = True
        self.snapshot.error = None
        try:
            tasks = await self._service.list_tasks()
        except TaskServiceError as exc:
            logger.warning("Loading tasks failed: %s", exc)
            self.snapshot.is_loading = False
            self.snapshot.error = self._describe_failure(exc)
            return
        self.snapshot = _Snapshot(tasks=tasks, filtered_tasks=list(tasks))

    def _describe_failure(self, exc: TaskServiceError) -> str:
        return str(exc) or self._load_error

    def search(self, value: Optional[str]) -> List[Task]:
        query = (value or "").lower()
        self.snapshot.search_query = query
        self.snapshot.filtered_tasks = filter_tasks(self.snapshot.tasks, query)
        return self.snapshot.filtered_tasks


class TaskListController(_SnapshotController):
    """Sortable, searchable, paginated table of tasks."""

    def __init__(self, service: TaskService, page_size: int = DEFAULT_PAGE_SIZE):
        super().__init__(service)
        self.page_size = page_size
        self.sort_key: Optional[str] = None
        self.is_descending = False
        self.current_page = 1

    @property
    def total_pages(self) -> int:
        return total_pages(len(self.filtered_tasks), self.page_size)

    @property
    def current_page_tasks(self) -> List[Task]:
        return get_page(self.filtered_tasks, self.current_page, self.page_size)

    @property
    def empty_message(self) -> Optional[str]:
        if self.snapshot.is_loading or self.error or self.current_page_tasks:
            return None
        return "No tasks available."

    async def load(self) -> None:
        await super().load()
        # Sort column and direction survive a reload; the refetched rows are unsorted.
        self.current_page = clamp_page(
            self.current_page, len(self.filtered_tasks), self.page_size
        )

    def search(self, value: Optional[str]) -> List[Task]:
        filtered = super().search(value)
        self.current_page = clamp_page(self.current_page, len(filtered), self.page_size)
        return filtered

    def sort_by(self, key: str) -> List[Task]:
        """Sort ascending on a new column, toggle direction on the same one."""

        descending = not self.is_descending if key == self.sort_key else False
        self.snapshot.filtered_tasks = sort_tasks(self.filtered_tasks, key, descending)
        self.sort_key = key
        self.is_descending = descending
        return self.snapshot.filtered_tasks

    def change_page(self, page: int) -> int:
        self.current_page = clamp_page(page, len(self.filtered_tasks), self.page_size)
        return self.current_page

    def next_page(self) -> int:
        return self.change_page(self.current_page + 1)

    def previous_page(self) -> int:
        return self.change_page(self.current_page - 1)

    def set_page_input(self, raw: object) -> int:
        """Jump to a typed page number; invalid input leaves the page unchanged."""

        page = parse_page_input(raw, len(self.filtered_tasks), self.page_size)
        if page is not None:
            self.current_page = page
        return self.current_page


class TaskDashboardController(_SnapshotController):
    """Card view with edit and delete actions."""

    _load_error = "Failed to fetch tasks."

    def __init__(self, service: TaskService, navigator: Navigator, prompter: Prompter):
        super().__init__(service)
        self._navigator = navigator
        self._prompter = prompter

    def _describe_failure(self, exc: TaskServiceError) -> str:
        return self._load_error

    @property
    def cards(self) -> List[TaskCard]:
        return [to_card(task) for task in self.filtered_tasks]

    @property
    def empty_message(self) -> Optional[str]:
        if self.snapshot.is_loading or self.error or self.filtered_tasks:
            return None
        return "No matching task data found."

    def edit(self, task_id: int) -> None:
        self._navigator.go_to_edit_task(task_id)

    async def delete(self, task_id: int) -> bool:
        """Delete after confirmation, then reload; returns True when deleted."""

        confirmed = await self._prompter.confirm(
            "Are you sure?", "You won't be able to revert this!", "Yes, delete it!"
        )
        if not confirmed:
            return False

        try:
            await self._service.delete_task(task_id)
        except TaskServiceError:
            logger.exception("Failed to delete task %s", task_id)
            message = "Failed to delete task. Please try again."
            self.snapshot.error = message
            await self._prompter.alert("Error!", message, "error")
            return False

        await self.load()
        await self._prompter.alert("Deleted!", "Your task has been deleted.", "success")
        return True


class _FormController:
    mode: Literal["add", "edit"] = "add"

    def __init__(
        self,
        service: TaskService,
        navigator: Navigator,
        prompter: Prompter,
        *,
        today: Callable[[], datetime.date] = datetime.date.today,
    ):
        self._service = service
        self._navigator = navigator
        self._prompter = prompter
        self._today = today
        self.state = TaskFormState()
        self.is_submitting = False
        self.error_message = ""

    def dispatch(self, command: FieldCommand) -> TaskFormState:
        self.state = reduce(self.state, command)
        return self.state

    def _validate(self) -> bool:
        errors = validate(self.state, self.mode, today=self._today())
        self.state = with_errors(self.state, errors)
        return not errors


class AddTaskController(_FormController):
    mode = "add"
    _failure = "Failed to add the task. Please try again."

    async def submit(self) -> bool:
        if not self._validate():
            return False

        confirmed = await self._prompter.confirm(
            "Do you want to submit?",
            "Please confirm that you want to submit the form.",
            "Yes, submit it!",
        )
        if not confirmed:
            return False

        self.is_submitting = True
        self.error_message = ""
        try:
            await self._service.create_task(to_draft(self.state))
        except TaskServiceError as exc:
            self.is_submitting = False
            self.error_message = str(exc) or self._failure
            await self._prompter.alert("Error", self._failure, "error")
            return False

        self.state = TaskFormState()
        self.is_submitting = False
        await self._prompter.alert("Success", "Task added successfully!", "success")
        self._navigator.go_to_dashboard()
        return True

    def cancel(self) -> None:
        self.state = TaskFormState()
        self.is_submitting = False


class EditTaskController(_FormController):
    mode = "edit"
    _failure = "Failed to update the task. Please try again."

    async def load(self, task_id: int) -> bool:
        task = await self._service.get_task(task_id)
        if task is None:
            logger.error("Task data not found for ID: %s", task_id)
            return False
        self.state = from_task(task)
        return True

    async def submit(self) -> bool:
        if not self._validate():
            return False

        self.is_submitting = True
        self.error_message = ""
        try:
            await self._service.update_task(to_patch(self.state))
        except TaskServiceError as exc:
            self.is_submitting = False
            self.error_message = str(exc) or self._failure
            await self._prompter.alert("Error", self.error_message, "error")
            return False

        self.state = TaskFormState()
        self.is_submitting = False
        await self._prompter.alert("Success", "Task updated successfully!", "success")
        self._navigator.go_to_dashboard()
        return True

    def cancel(self) -> None:
        self._navigator.go_to_dashboard()


__all__ = [
    "Navigator",
    "Prompter",
    "TaskCard",
    "to_card",
    "TaskListController",
    "TaskDashboardController",
    "AddTaskController",
    "EditTaskController",
]
