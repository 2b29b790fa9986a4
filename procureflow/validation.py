"""Per-step validation driven by the catalog's requirement table."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from .catalog import BranchChoice, FieldRequirement, ProductType, Rule, get_step

# Freight fields and the branch each one belongs to.
FREIGHT_FIELDS: dict[str, BranchChoice] = {
    "air_freight_cost": BranchChoice.AIR,
    "sea_freight_cost": BranchChoice.SEA,
}


class FieldError(BaseModel):
    """A single failed field requirement."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str


def _as_mapping(step_data: Any) -> Mapping[str, Any]:
    if isinstance(step_data, BaseModel):
        return step_data.model_dump()
    return step_data or {}


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def satisfies(requirement: FieldRequirement, value: Any) -> bool:
    """Return ``True`` when ``value`` meets ``requirement``."""
    rule = requirement.rule
    if rule is Rule.PRESENT:
        if isinstance(value, str):
            return bool(value.strip())
        return value is not None
    if rule is Rule.BRANCH:
        return value in (BranchChoice.AIR, BranchChoice.SEA, "air", "sea")
    number = _as_number(value)
    if number is None:
        return False
    if rule is Rule.POSITIVE:
        return number > 0
    if rule is Rule.AT_LEAST_ONE:
        return number >= 1
    raise ValueError(f"Unhandled rule: {rule}")


def validate(
    step_id: str,
    step_data: Mapping[str, Any] | BaseModel | None,
    product_type: ProductType | str | None = None,
) -> set[FieldError]:
    """Check ``step_data`` against the requirements of ``step_id``.

    Returns an empty set when the step may be completed. Fields the step does
    not declare are ignored.

    Raises:
        UnknownStepError: If ``step_id`` is not in any catalog.
    """
    step = get_step(step_id, product_type)
    values = _as_mapping(step_data)
    return {
        FieldError(field=req.field, message=req.message)
        for req in step.requirements
        if not satisfies(req, values.get(req.field))
    }


def validate_freight(
    branch_choice: BranchChoice | str | None, updates: Mapping[str, Any]
) -> set[FieldError]:
    """Reject freight costs that do not belong to the chosen branch."""
    branch = BranchChoice(branch_choice) if branch_choice else BranchChoice.UNSET
    errors: set[FieldError] = set()
    for field, owner in FREIGHT_FIELDS.items():
        if updates.get(field) is None or branch is owner:
            continue
        if branch is BranchChoice.UNSET:
            message = f"Select the {owner.value} branch before recording {field}"
        else:
            message = f"{field} cannot be recorded on the {branch.value} branch"
        errors.add(FieldError(field=field, message=message))
    return errors
