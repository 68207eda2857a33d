"""REST API endpoints for task management."""

from __future__ import annotations

import logging
from typing import Annotated, Any, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ..schemas.tasks import (
    DashboardResponse,
    TaskCardModel,
    TaskCreated,
    TaskCreatePayload,
    TaskModel,
    TaskPage,
    TaskUpdatePayload,
)
from ..tasks.query import (
    DEFAULT_PAGE_SIZE,
    SORT_KEYS,
    clamp_page,
    filter_tasks,
    get_page,
    sort_tasks,
    total_pages,
)
from ..tasks.service import (
    NotFoundError,
    TaskService,
    TaskServiceError,
    ValidationError,
)
from ..tasks.views import to_card

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def get_task_service(request: Request) -> TaskService:
    service = getattr(request.app.state, "task_service", None)
    if service is None:  # pragma: no cover
        raise RuntimeError("Task service is not configured")
    return service


def get_default_page_size(request: Request) -> int:
    return getattr(request.app.state, "page_size", DEFAULT_PAGE_SIZE)


def raise_service_error(exc: TaskServiceError) -> NoReturn:
    """Translate a service failure into an HTTP error carrying only its message."""

    if isinstance(exc, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_502_BAD_GATEWAY
    raise HTTPException(status_code=code, detail=str(exc)) from exc


@router.get("", response_model=TaskPage)
async def list_tasks(
    service: TaskService = Depends(get_task_service),
    default_page_size: int = Depends(get_default_page_size),
    q: Annotated[str, Query(description="Case-insensitive search text")] = "",
    sort: Annotated[Optional[str], Query(description="Task field to sort by")] = None,
    descending: bool = False,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[Optional[int], Query(ge=1, le=500)] = None,
) -> TaskPage:
    """Search, sort and page the full task list."""

    if sort is not None and sort not in SORT_KEYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown sort key '{sort}'. Valid keys: {', '.join(SORT_KEYS)}",
        )

    try:
        tasks = await service.list_tasks()
    except TaskServiceError as exc:
        raise_service_error(exc)

    size = page_size or default_page_size
    query = q.lower()
    filtered = filter_tasks(tasks, query)
    if sort is not None:
        filtered = sort_tasks(filtered, sort, descending)
    current = clamp_page(page, len(filtered), size)

    return TaskPage(
        items=[TaskModel.from_task(task) for task in get_page(filtered, current, size)],
        total=len(filtered),
        page=current,
        page_size=size,
        total_pages=total_pages(len(filtered), size),
        sort=sort,
        descending=descending,
        query=query,
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def task_dashboard(
    service: TaskService = Depends(get_task_service),
    q: Annotated[str, Query(description="Case-insensitive search text")] = "",
) -> DashboardResponse:
    """Task cards with display fallbacks applied."""

    try:
        tasks = await service.list_tasks()
    except TaskServiceError as exc:
        raise_service_error(exc)

    query = q.lower()
    cards = [TaskCardModel.from_card(to_card(task)) for task in filter_tasks(tasks, query)]
    return DashboardResponse(
        cards=cards,
        query=query,
        message=None if cards else "No matching task data found.",
    )


@router.get("/{task_id}", response_model=TaskModel)
async def read_task(
    task_id: int, service: TaskService = Depends(get_task_service)
) -> TaskModel:
    """Fetch one task formatted for the edit form."""

    task = await service.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return TaskModel.from_task(task)


@router.post("", response_model=TaskCreated, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreatePayload, service: TaskService = Depends(get_task_service)
) -> TaskCreated:
    try:
        new_id = await service.create_task(payload.to_draft())
    except TaskServiceError as exc:
        raise_service_error(exc)
    return TaskCreated(id=new_id)


@router.patch("/{task_id}")
async def update_task(
    task_id: int,
    payload: TaskUpdatePayload,
    service: TaskService = Depends(get_task_service),
) -> dict[str, Any]:
    try:
        await service.update_task(payload.to_patch(task_id))
    except TaskServiceError as exc:
        raise_service_error(exc)
    return {"success": True, "id": task_id, "action": "updated"}


@router.delete("/{task_id}")
async def delete_task(
    task_id: int, service: TaskService = Depends(get_task_service)
) -> dict[str, Any]:
    try:
        await service.delete_task(task_id)
    except TaskServiceError as exc:
        raise_service_error(exc)
    return {"success": True, "id": task_id, "action": "deleted"}


__all__ = ["router", "get_task_service", "raise_service_error"]
