"""Persistence layer for procureflow workflow items."""

from __future__ import annotations

import logging
from typing import Optional

from ..config import ProcureflowConfig, load_config
from .inmemory import InMemoryWorkflowRepository
from .repository import WorkflowRepository
from .sqlite import SQLiteWorkflowRepository

try:  # pragma: no cover - optional dependency
    from .postgres import PostgresWorkflowRepository
except ImportError:  # pragma: no cover - optional dependency
    PostgresWorkflowRepository = None  # type: ignore

logger = logging.getLogger(__name__)

_repository_instance: WorkflowRepository | None = None


def _open_repository(database_url: Optional[str]) -> WorkflowRepository:
    if not database_url:
        return InMemoryWorkflowRepository()
    scheme, sep, location = database_url.partition("://")
    if sep and scheme == "sqlite":
        return SQLiteWorkflowRepository(location)
    if sep and scheme in ("postgres", "postgresql"):
        if PostgresWorkflowRepository is None:
            raise RuntimeError("Postgres support not available; install procureflow[postgres]")
        return PostgresWorkflowRepository(database_url)
    raise ValueError(f"Unsupported database backend: {database_url}")


def get_repository(
    database_url: Optional[str] = None, config: Optional[ProcureflowConfig] = None
) -> WorkflowRepository:
    """Return the repository workflow items are stored in.

    Without arguments the process-wide repository is returned, opened from
    :func:`load_config` on first use. An explicit ``database_url`` or
    ``config`` opens a new repository and makes it the process-wide one. A
    missing database URL selects the in-memory store.
    """

    global _repository_instance
    if database_url is None and config is None and _repository_instance is not None:
        return _repository_instance

    if database_url is None:
        database_url = (config or load_config()).database_url
    _repository_instance = _open_repository(database_url)
    logger.debug(f"Opened {type(_repository_instance).__name__}")
    return _repository_instance


__all__ = [
    "WorkflowRepository",
    "SQLiteWorkflowRepository",
    "PostgresWorkflowRepository",
    "InMemoryWorkflowRepository",
    "get_repository",
]
