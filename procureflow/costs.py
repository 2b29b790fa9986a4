"""Running and final cost totals for workflow items."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel

from .catalog import BranchChoice, ProductType
from .models import StepData, WorkflowItem


class CostBreakdown(BaseModel):
    """Individual cost terms of an item; unset amounts count as zero."""

    product_type: ProductType
    purchase: float = 0.0  # PI amount (IMP) or quotation amount (CL)
    freight: float = 0.0
    customs: float = 0.0
    total: float = 0.0


def _amount(data: Mapping[str, Any], field: str) -> float:
    value: Optional[float] = data.get(field)
    return float(value) if value else 0.0


def _as_mapping(step_data: StepData | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(step_data, StepData):
        return step_data.model_dump()
    return step_data


def _freight(data: Mapping[str, Any], branch_choice: BranchChoice | str | None) -> float:
    branch = BranchChoice(branch_choice) if branch_choice else BranchChoice.UNSET
    if branch is BranchChoice.AIR:
        return _amount(data, "air_freight_cost")
    if branch is BranchChoice.SEA:
        return _amount(data, "sea_freight_cost")
    return 0.0


def total_cost(
    step_data: StepData | Mapping[str, Any],
    branch_choice: BranchChoice | str | None = None,
) -> float:
    """Return ``pi + freight + customs`` for IMP step data.

    The freight term follows ``branch_choice``; with no branch chosen it is
    zero. Amounts not yet captured count as zero so partial totals are
    meaningful mid-flow.
    """
    data = _as_mapping(step_data)
    return (
        _amount(data, "pi_amount")
        + _freight(data, branch_choice)
        + _amount(data, "customs_duty_amount")
    )


def quotation_total(step_data: StepData | Mapping[str, Any]) -> float:
    """Return ``quotation + shipping`` for CL step data."""
    data = _as_mapping(step_data)
    return _amount(data, "quotation_amount") + _amount(data, "shipping_cost")


def cost_breakdown(item: WorkflowItem) -> CostBreakdown:
    data = item.step_data.model_dump()
    if item.product_type is ProductType.CL:
        purchase = _amount(data, "quotation_amount")
        freight = _amount(data, "shipping_cost")
        return CostBreakdown(
            product_type=item.product_type,
            purchase=purchase,
            freight=freight,
            total=purchase + freight,
        )

    purchase = _amount(data, "pi_amount")
    customs = _amount(data, "customs_duty_amount")
    freight = _freight(data, item.branch_choice)
    return CostBreakdown(
        product_type=item.product_type,
        purchase=purchase,
        freight=freight,
        customs=customs,
        total=purchase + freight + customs,
    )


def item_total_cost(item: WorkflowItem) -> float:
    """Total cost of ``item`` according to its product type."""
    if item.product_type is ProductType.CL:
        return quotation_total(item.step_data)
    return total_cost(item.step_data, item.branch_choice)
