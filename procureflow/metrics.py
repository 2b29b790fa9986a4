"""Per-project aggregate counts consumed by the dashboard."""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, Field

from .catalog import ProductType
from .costs import item_total_cost
from .models import WorkflowItem
from .status import StatusBucket, StatusMapper


class TypeMetrics(BaseModel):
    """Counts for one product type."""

    total: int = 0
    completed: int = 0
    percentage: int = 0
    buckets: dict[StatusBucket, int] = Field(default_factory=dict)
    total_cost: float = 0.0

    def pending(self, bucket: StatusBucket | str) -> int:
        return self.buckets.get(StatusBucket(bucket), 0)


class ProjectMetrics(BaseModel):
    project_id: str | None = None
    lu: TypeMetrics = Field(default_factory=TypeMetrics)
    cl: TypeMetrics = Field(default_factory=TypeMetrics)
    imp: TypeMetrics = Field(default_factory=TypeMetrics)

    def for_type(self, product_type: ProductType | str) -> TypeMetrics:
        return getattr(self, ProductType(product_type).value.lower())


def _percentage(completed: int, total: int) -> int:
    return round(completed / total * 100) if total else 0


def _type_metrics(product_type: ProductType, items: list[WorkflowItem]) -> TypeMetrics:
    buckets = {bucket: 0 for bucket in StatusMapper.buckets(product_type)}
    total_cost = 0.0
    for item in items:
        buckets[StatusMapper.map(product_type, item.current_step_id)] += 1
        total_cost += item_total_cost(item)
    completed = buckets.get(StatusBucket.RECEIVED, 0)
    return TypeMetrics(
        total=len(items),
        completed=completed,
        percentage=_percentage(completed, len(items)),
        buckets=buckets,
        total_cost=total_cost,
    )


def project_metrics(
    items: Iterable[WorkflowItem],
    project_id: str | None = None,
    lu_total: int = 0,
    lu_completed: int = 0,
) -> ProjectMetrics:
    """Aggregate bucket counts for the workflow items of a project.

    LU items live outside the workflow; collaborators pass their counts in.
    """
    by_type: dict[ProductType, list[WorkflowItem]] = {
        ProductType.CL: [],
        ProductType.IMP: [],
    }
    for item in items:
        if project_id is not None and item.project_id != project_id:
            continue
        by_type[item.product_type].append(item)

    return ProjectMetrics(
        project_id=project_id,
        lu=TypeMetrics(
            total=lu_total,
            completed=lu_completed,
            percentage=_percentage(lu_completed, lu_total),
        ),
        cl=_type_metrics(ProductType.CL, by_type[ProductType.CL]),
        imp=_type_metrics(ProductType.IMP, by_type[ProductType.IMP]),
    )
