"""Application factory for the task manager API."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import PROJECT_ROOT, Settings, get_settings
from .logging_handlers import DateStampedFileHandler, cleanup_old_logs
from .logging_settings import parse_logging_settings
from .routers.metadata import router as metadata_router
from .routers.tasks import router as tasks_router
from .sharepoint import SharePointClient
from .tasks.service import TaskService

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _resolve_under(base: Path, p: Path) -> Path:
    # Absolute paths are used as-is (tests, external mounts).
    if p.is_absolute():
        return p.resolve()
    return (base / p).resolve()


def _configure_logging(settings: Settings) -> None:
    """Configure logging from LOG_LEVEL / LOG_FILE and the logging settings file."""
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT)

    file_settings = parse_logging_settings(
        _resolve_under(PROJECT_ROOT, settings.logging_settings_path)
    )
    handlers: list[logging.Handler] = []

    if file_settings.terminal_level is not None:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(file_settings.terminal_level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    log_dir = _resolve_under(PROJECT_ROOT, settings.log_dir)
    if file_settings.writes_files:
        service_handler = DateStampedFileHandler(
            log_dir, tz=settings.display_timezone
        )
        service_handler.setLevel(file_settings.service_level)
        service_handler.setFormatter(formatter)
        handlers.append(service_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    logging.getLogger("task_manager").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # Request URLs carry OData queries; only show them when debugging
    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    cleanup_old_logs(
        [log_dir],
        file_settings.retention_hours,
        logger=logging.getLogger("task_manager.logging"),
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    task_service: Optional[TaskService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings)

    client = SharePointClient(settings)
    service = task_service or TaskService.from_settings(settings, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            try:
                await client.aclose()
            except Exception as exc:
                logging.warning("Error closing SharePoint client: %s", exc)

    app = FastAPI(
        title="Task Manager API",
        version="0.1.0",
        description="Task dashboard, list and forms backed by SharePoint lists.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.task_service = service
    app.state.page_size = settings.page_size

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(tasks_router)
    app.include_router(metadata_router)

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {
            "status": "ok",
            "site": settings.site_url,
            "task_list": settings.task_list_name,
        }

    return app


__all__ = ["create_app"]
