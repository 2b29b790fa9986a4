"""Repository abstraction for workflow item persistence."""

from __future__ import annotations

from typing import Optional, Protocol

from ..models import WorkflowItem


class WorkflowRepository(Protocol):
    """Protocol for workflow item persistence backends.

    ``save_item`` is a compare-and-set on ``version``: when
    ``expected_version`` is given and differs from the stored version the
    save fails with ``ConcurrentUpdateError``. Passing ``None`` lets the last
    writer win.
    """

    async def create_item(self, item: WorkflowItem) -> WorkflowItem:
        """Persist a new item."""

    async def get_item(self, item_id: str) -> WorkflowItem | None:
        """Retrieve an item by id."""

    async def save_item(
        self, item: WorkflowItem, expected_version: Optional[int] = None
    ) -> WorkflowItem:
        """Store ``item`` and return it with its new version."""

    async def list_items(self, project_id: Optional[str] = None) -> list[WorkflowItem]:
        """Return all items, optionally restricted to one project."""

    async def delete_item(self, item_id: str) -> bool:
        """Remove an item; returns ``False`` if it did not exist."""
