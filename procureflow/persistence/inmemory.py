"""In-memory implementation of the workflow repository."""

from __future__ import annotations

from typing import Dict, Optional

from ..errors import ConcurrentUpdateError, ItemExistsError, ItemNotFoundError
from ..models import WorkflowItem
from .repository import WorkflowRepository


class InMemoryWorkflowRepository(WorkflowRepository):
    """Store workflow items in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._items: Dict[str, WorkflowItem] = {}

    # ------------------------------------------------------------------
    async def create_item(self, item: WorkflowItem) -> WorkflowItem:
        if item.id in self._items:
            raise ItemExistsError(f"Workflow item {item.id} already exists")
        self._items[item.id] = item.model_copy(deep=True)
        return item

    async def get_item(self, item_id: str) -> WorkflowItem | None:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def save_item(
        self, item: WorkflowItem, expected_version: Optional[int] = None
    ) -> WorkflowItem:
        stored = self._items.get(item.id)
        if stored is None:
            raise ItemNotFoundError(f"Workflow item {item.id} not found")
        if expected_version is not None and stored.version != expected_version:
            raise ConcurrentUpdateError(item.id, expected_version, stored.version)
        saved = item.model_copy(update={"version": stored.version + 1}, deep=True)
        self._items[item.id] = saved
        return saved.model_copy(deep=True)

    async def list_items(self, project_id: Optional[str] = None) -> list[WorkflowItem]:
        return [
            item.model_copy(deep=True)
            for item in self._items.values()
            if project_id is None or item.project_id == project_id
        ]

    async def delete_item(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None
