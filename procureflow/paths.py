"""Resolve the ordered step list of a workflow item."""

from __future__ import annotations

from typing import Optional

from .catalog import BranchChoice, ProductType, branch_point, get_catalog
from .errors import UnknownStepError


def _branch(branch_choice: BranchChoice | str | None) -> BranchChoice:
    return BranchChoice(branch_choice) if branch_choice else BranchChoice.UNSET


def resolve_path(
    product_type: ProductType | str,
    branch_choice: BranchChoice | str | None = None,
) -> list[str]:
    """Return the ordered step ids for ``product_type`` and ``branch_choice``.

    Catalogs without a branch point (CL) ignore ``branch_choice``. With the
    branch unset, only the steps up to and including the branch point are
    resolvable.
    """
    catalog = get_catalog(product_type)
    decision = branch_point(product_type)
    if decision is None:
        return [step.id for step in catalog]

    branch = _branch(branch_choice)
    if branch is BranchChoice.UNSET:
        ids = [step.id for step in catalog]
        return ids[: ids.index(decision.id) + 1]
    return [step.id for step in catalog if step.branch in (None, branch)]


def step_index(
    product_type: ProductType | str,
    branch_choice: BranchChoice | str | None,
    step_id: str,
) -> int:
    path = resolve_path(product_type, branch_choice)
    try:
        return path.index(step_id)
    except ValueError:
        raise UnknownStepError(step_id, ProductType(product_type).value) from None


def next_step_id(
    product_type: ProductType | str,
    branch_choice: BranchChoice | str | None,
    step_id: str,
) -> Optional[str]:
    """Return the step after ``step_id``, or ``None`` at the end of the path."""
    path = resolve_path(product_type, branch_choice)
    index = step_index(product_type, branch_choice, step_id)
    return path[index + 1] if index + 1 < len(path) else None


def previous_step_id(
    product_type: ProductType | str,
    branch_choice: BranchChoice | str | None,
    step_id: str,
) -> Optional[str]:
    """Return the step before ``step_id``, or ``None`` at the first step."""
    path = resolve_path(product_type, branch_choice)
    index = step_index(product_type, branch_choice, step_id)
    return path[index - 1] if index > 0 else None


def clamp_step(
    product_type: ProductType | str,
    current_step_id: str,
    old_branch: BranchChoice | str | None,
    new_branch: BranchChoice | str | None,
) -> str:
    """Return the step an item points at after its branch changes.

    The index is clamped to ``min(current index, branch point index)`` so the
    item never points at a step that only existed on the old branch.
    """
    current = step_index(product_type, old_branch, current_step_id)
    new_path = resolve_path(product_type, new_branch)
    decision = branch_point(product_type)
    if decision is None:
        return new_path[min(current, len(new_path) - 1)]
    return new_path[min(current, new_path.index(decision.id))]
