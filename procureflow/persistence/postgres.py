"""PostgreSQL implementation of the workflow repository."""

from __future__ import annotations

from typing import Optional

import asyncpg

from ..errors import ConcurrentUpdateError, ItemExistsError, ItemNotFoundError
from ..models import WorkflowItem
from .repository import WorkflowRepository


class PostgresWorkflowRepository(WorkflowRepository):
    """Persist workflow items using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_items (
                id TEXT PRIMARY KEY,
                project_id TEXT NOT NULL,
                product_type TEXT NOT NULL,
                current_step_id TEXT NOT NULL,
                version INTEGER NOT NULL,
                data JSONB NOT NULL,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_workflow_items_project ON workflow_items (project_id)"
        )

    # ------------------------------------------------------------------
    async def create_item(self, item: WorkflowItem) -> WorkflowItem:
        conn = await self._connect()
        try:
            await conn.execute(
                "INSERT INTO workflow_items (id, project_id, product_type, current_step_id, version, data) VALUES ($1, $2, $3, $4, $5, $6)",
                item.id,
                item.project_id,
                item.product_type.value,
                item.current_step_id,
                item.version,
                item.model_dump_json(),
            )
        except asyncpg.UniqueViolationError:
            raise ItemExistsError(f"Workflow item {item.id} already exists") from None
        finally:
            await conn.close()
        return item

    async def get_item(self, item_id: str) -> WorkflowItem | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT data FROM workflow_items WHERE id = $1", item_id
            )
        finally:
            await conn.close()
        if not row:
            return None
        return WorkflowItem.model_validate_json(row["data"])

    async def save_item(
        self, item: WorkflowItem, expected_version: Optional[int] = None
    ) -> WorkflowItem:
        conn = await self._connect()
        try:
            async with conn.transaction():
                stored_version = await conn.fetchval(
                    "SELECT version FROM workflow_items WHERE id = $1 FOR UPDATE",
                    item.id,
                )
                if stored_version is None:
                    raise ItemNotFoundError(f"Workflow item {item.id} not found")
                if expected_version is not None and stored_version != expected_version:
                    raise ConcurrentUpdateError(item.id, expected_version, stored_version)
                saved = item.model_copy(update={"version": stored_version + 1})
                await conn.execute(
                    """
                    UPDATE workflow_items
                    SET current_step_id = $1, version = $2, data = $3
                    WHERE id = $4
                    """,
                    saved.current_step_id,
                    saved.version,
                    saved.model_dump_json(),
                    item.id,
                )
        finally:
            await conn.close()
        return saved

    async def list_items(self, project_id: Optional[str] = None) -> list[WorkflowItem]:
        conn = await self._connect()
        try:
            if project_id is None:
                rows = await conn.fetch(
                    "SELECT data FROM workflow_items ORDER BY created_at"
                )
            else:
                rows = await conn.fetch(
                    "SELECT data FROM workflow_items WHERE project_id = $1 ORDER BY created_at",
                    project_id,
                )
        finally:
            await conn.close()
        return [WorkflowItem.model_validate_json(r["data"]) for r in rows]

    async def delete_item(self, item_id: str) -> bool:
        conn = await self._connect()
        try:
            status = await conn.execute(
                "DELETE FROM workflow_items WHERE id = $1", item_id
            )
        finally:
            await conn.close()
        return status != "DELETE 0"
