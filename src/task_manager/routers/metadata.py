"""Metadata list endpoints (priority options for the task forms)."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from ..schemas.tasks import MetadataRefModel
from ..tasks.models import STATUS_CHOICES
from ..tasks.service import TaskService, TaskServiceError
from .tasks import get_task_service, raise_service_error

router = APIRouter(prefix="/api/metadata", tags=["metadata"])


@router.get("/priorities", response_model=List[MetadataRefModel])
async def list_priorities(
    service: TaskService = Depends(get_task_service),
) -> List[MetadataRefModel]:
    try:
        priorities = await service.list_priorities()
    except TaskServiceError as exc:
        raise_service_error(exc)
    return [MetadataRefModel.model_validate(ref) for ref in priorities]


@router.get("/statuses", response_model=List[str])
async def list_statuses() -> List[str]:
    return list(STATUS_CHOICES)


__all__ = ["router"]
