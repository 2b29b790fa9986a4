"""SQLite implementation of the workflow repository."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any, Optional

from ..errors import ConcurrentUpdateError, ItemExistsError, ItemNotFoundError
from ..models import WorkflowItem
from .repository import WorkflowRepository


class SQLiteWorkflowRepository(WorkflowRepository):
    """Persist workflow items using SQLite.

    The full item is stored as JSON; the columns next to it exist for
    filtering and for the version check.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_items (
                id TEXT PRIMARY KEY,
                project_id TEXT NOT NULL,
                product_type TEXT NOT NULL,
                current_step_id TEXT NOT NULL,
                version INTEGER NOT NULL,
                data TEXT NOT NULL
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_workflow_items_project ON workflow_items (project_id)"
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    def _insert(self, item: WorkflowItem) -> None:
        try:
            with self._conn:
                self._conn.execute(
                    "INSERT INTO workflow_items (id, project_id, product_type, current_step_id, version, data) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        item.id,
                        item.project_id,
                        item.product_type.value,
                        item.current_step_id,
                        item.version,
                        item.model_dump_json(),
                    ),
                )
        except sqlite3.IntegrityError:
            raise ItemExistsError(f"Workflow item {item.id} already exists") from None

    def _save(self, item: WorkflowItem, expected_version: Optional[int]) -> WorkflowItem:
        with self._conn:
            row = self._conn.execute(
                "SELECT version FROM workflow_items WHERE id = ?", (item.id,)
            ).fetchone()
            if row is None:
                raise ItemNotFoundError(f"Workflow item {item.id} not found")
            stored_version = row["version"]
            if expected_version is not None and stored_version != expected_version:
                raise ConcurrentUpdateError(item.id, expected_version, stored_version)
            saved = item.model_copy(update={"version": stored_version + 1})
            cur = self._conn.execute(
                """
                UPDATE workflow_items
                SET current_step_id = ?, version = ?, data = ?
                WHERE id = ? AND version = ?
                """,
                (
                    saved.current_step_id,
                    saved.version,
                    saved.model_dump_json(),
                    item.id,
                    stored_version,
                ),
            )
            if cur.rowcount == 0:
                raise ConcurrentUpdateError(
                    item.id, expected_version or stored_version, stored_version + 1
                )
        return saved

    def _delete(self, item_id: str) -> bool:
        with self._conn:
            cur = self._conn.execute("DELETE FROM workflow_items WHERE id = ?", (item_id,))
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Repository API
    async def create_item(self, item: WorkflowItem) -> WorkflowItem:
        await asyncio.to_thread(self._insert, item)
        return item

    async def get_item(self, item_id: str) -> WorkflowItem | None:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT data FROM workflow_items WHERE id = ?", item_id
        )
        if not row:
            return None
        return WorkflowItem.model_validate_json(row["data"])

    async def save_item(
        self, item: WorkflowItem, expected_version: Optional[int] = None
    ) -> WorkflowItem:
        return await asyncio.to_thread(self._save, item, expected_version)

    async def list_items(self, project_id: Optional[str] = None) -> list[WorkflowItem]:
        if project_id is None:
            rows = await asyncio.to_thread(
                self._fetchall, "SELECT data FROM workflow_items ORDER BY rowid"
            )
        else:
            rows = await asyncio.to_thread(
                self._fetchall,
                "SELECT data FROM workflow_items WHERE project_id = ? ORDER BY rowid",
                project_id,
            )
        return [WorkflowItem.model_validate_json(row["data"]) for row in rows]

    async def delete_item(self, item_id: str) -> bool:
        return await asyncio.to_thread(self._delete, item_id)
