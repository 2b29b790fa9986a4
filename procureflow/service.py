"""Async orchestration of the workflow engine over a repository."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from . import engine
from .catalog import BranchChoice, ProductType
from .config import ProcureflowConfig, load_config
from .errors import ItemNotFoundError
from .metrics import ProjectMetrics, project_metrics
from .models import WorkflowItem
from .persistence import WorkflowRepository, get_repository

logger = logging.getLogger(__name__)


class WorkflowService:
    """Load an item, apply one engine transition, and save it back.

    Saves are conditional on the version that was loaded (or on the
    ``expected_version`` the caller supplies), unless the configuration asks
    for last-writer-wins.
    """

    def __init__(
        self,
        repository: WorkflowRepository | None = None,
        config: ProcureflowConfig | None = None,
    ) -> None:
        self._config = config or load_config()
        self._repository = repository or get_repository(config=config)

    @property
    def repository(self) -> WorkflowRepository:
        return self._repository

    async def create(
        self,
        project_id: str,
        product_type: ProductType | str,
        product_name: str = "",
        **fields: Any,
    ) -> WorkflowItem:
        item = engine.create_item(project_id, product_type, product_name, **fields)
        return await self._repository.create_item(item)

    async def get(self, item_id: str) -> WorkflowItem:
        item = await self._repository.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(f"Workflow item {item_id} not found")
        return item

    async def list_items(self, project_id: Optional[str] = None) -> list[WorkflowItem]:
        return await self._repository.list_items(project_id)

    async def delete(self, item_id: str) -> None:
        if not await self._repository.delete_item(item_id):
            raise ItemNotFoundError(f"Workflow item {item_id} not found")
        logger.info(f"Deleted workflow item {item_id}")

    async def _apply(
        self,
        item_id: str,
        transition: Callable[[WorkflowItem], WorkflowItem],
        expected_version: Optional[int],
    ) -> WorkflowItem:
        current = await self.get(item_id)
        updated = transition(current)
        if updated is current:
            return current
        if self._config.last_writer_wins:
            version = None
        elif expected_version is not None:
            version = expected_version
        else:
            version = current.version
        return await self._repository.save_item(updated, expected_version=version)

    async def advance(
        self,
        item_id: str,
        actor: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> WorkflowItem:
        return await self._apply(
            item_id, lambda item: engine.advance(item, actor), expected_version
        )

    async def retreat(
        self,
        item_id: str,
        actor: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> WorkflowItem:
        return await self._apply(
            item_id, lambda item: engine.retreat(item, actor), expected_version
        )

    async def choose_branch(
        self,
        item_id: str,
        branch: BranchChoice | str,
        actor: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> WorkflowItem:
        return await self._apply(
            item_id,
            lambda item: engine.choose_branch(item, branch, actor),
            expected_version,
        )

    async def update_step_data(
        self,
        item_id: str,
        updates: Mapping[str, Any],
        actor: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> WorkflowItem:
        return await self._apply(
            item_id,
            lambda item: engine.update_step_data(item, updates, actor),
            expected_version,
        )

    async def metrics(
        self, project_id: str, lu_total: int = 0, lu_completed: int = 0
    ) -> ProjectMetrics:
        items = await self._repository.list_items(project_id)
        return project_metrics(
            items, project_id=project_id, lu_total=lu_total, lu_completed=lu_completed
        )
