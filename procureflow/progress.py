"""Progress summary of a workflow item along its resolved path."""

from __future__ import annotations

from pydantic import BaseModel, Field

from .catalog import BranchChoice, ProductType
from .models import WorkflowItem
from .status import StatusBucket, status_bucket


class WorkflowProgress(BaseModel):
    item_id: str
    product_type: ProductType
    branch_choice: BranchChoice
    current_index: int
    total_steps: int
    percentage: int
    current_step_id: str
    current_step_title: str
    completed_steps: list[str] = Field(default_factory=list)
    is_completed: bool = False
    bucket: StatusBucket


def workflow_progress(item: WorkflowItem) -> WorkflowProgress:
    """Summarize how far ``item`` is along its path.

    Every step before the current one is complete; the terminal step counts
    as complete once reached. With the IMP branch unset the total is the
    length of the partial path.
    """
    path = item.path
    index = path.index(item.current_step_id)
    completed = path[: index + 1] if item.is_terminal else path[:index]
    percentage = round(len(completed) / len(path) * 100) if path else 0
    return WorkflowProgress(
        item_id=item.id,
        product_type=item.product_type,
        branch_choice=item.branch_choice,
        current_index=index,
        total_steps=len(path),
        percentage=percentage,
        current_step_id=item.current_step_id,
        current_step_title=item.current_step_title,
        completed_steps=completed,
        is_completed=item.is_terminal,
        bucket=status_bucket(item),
    )
