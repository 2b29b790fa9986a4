"""Workflow state machine: create, advance, retreat and branch items.

Every transition is pure: it returns a new :class:`WorkflowItem` and leaves
its input untouched, so a rejected transition never changes the caller's
instance.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from .catalog import (
    BranchChoice,
    ProductType,
    first_step_id,
    get_catalog,
    get_step,
)
from .errors import (
    InvalidBranchError,
    TerminalStepError,
    UnsupportedProductTypeError,
    ValidationError,
)
from .models import (
    DETAIL_FIELDS,
    StepData,
    TransitionRecord,
    WorkflowItem,
    is_blank,
    utcnow,
)
from .paths import clamp_step, next_step_id, previous_step_id
from .validation import FieldError, validate, validate_freight

logger = logging.getLogger(__name__)

# Fields that may still be written once an item is received.
TERMINAL_WRITABLE_FIELDS = frozenset({"completion_notes"})
UPDATABLE_FIELDS = frozenset(StepData.model_fields) | frozenset(DETAIL_FIELDS)


def _field_errors(exc: PydanticValidationError) -> set[FieldError]:
    errors: set[FieldError] = set()
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "step_data"]
        errors.add(FieldError(field=loc[0] if loc else "__root__", message=err["msg"]))
    return errors


def _completed_step_errors(item: WorkflowItem) -> set[FieldError]:
    """Requirements of the steps before the current one that ``item`` fails."""
    path = item.path
    view = item.field_view()
    errors: set[FieldError] = set()
    for step_id in path[: path.index(item.current_step_id)]:
        errors |= validate(step_id, view, item.product_type)
    return errors


def _evolve(
    item: WorkflowItem,
    action: str,
    to_step: str,
    actor: Optional[str] = None,
    **changes: Any,
) -> WorkflowItem:
    """Build the next revision of ``item``, re-checking every invariant."""
    data = item.model_dump()
    data.update(changes)
    data["current_step_id"] = to_step
    data["updated_at"] = utcnow()
    record = TransitionRecord(
        action=action,
        from_step=item.current_step_id,
        to_step=to_step,
        branch_choice=data.get("branch_choice", item.branch_choice),
        actor=actor,
    )
    data["history"] = [*data["history"], record.model_dump()]
    try:
        return WorkflowItem.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(item.current_step_id, _field_errors(exc)) from exc


def create_item(
    project_id: str,
    product_type: ProductType | str,
    product_name: str = "",
    *,
    quantity: int = 1,
    product_description: str = "",
    supplier_name: str = "",
    supplier_contact: str = "",
    step_data: Mapping[str, Any] | None = None,
    created_by: Optional[str] = None,
    item_id: Optional[str] = None,
) -> WorkflowItem:
    """Start a new workflow item at the first step of its catalog.

    Raises:
        UnsupportedProductTypeError: For LU items, which bypass the workflow.
        ValidationError: If the initial data is malformed (e.g. negative amounts).
    """
    product_type = ProductType(product_type)
    get_catalog(product_type)
    first = first_step_id(product_type)
    now = utcnow()
    try:
        item = WorkflowItem(
            id=item_id or f"{product_type.value.lower()}_{uuid.uuid4().hex}",
            project_id=project_id,
            product_type=product_type,
            product_name=product_name,
            product_description=product_description,
            quantity=quantity,
            supplier_name=supplier_name,
            supplier_contact=supplier_contact,
            current_step_id=first,
            step_data=StepData.model_validate(step_data or {}),
            created_by=created_by,
            created_at=now,
            updated_at=now,
            history=[TransitionRecord(action="created", to_step=first, actor=created_by, at=now)],
        )
    except PydanticValidationError as exc:
        raise ValidationError(first, _field_errors(exc)) from exc
    errors = validate_freight(BranchChoice.UNSET, item.step_data.model_dump())
    if errors:
        raise ValidationError(first, errors)
    logger.info(f"Created {product_type.value} item {item.id} in project {project_id}")
    return item


def _ensure_mutable(item: WorkflowItem, action: str) -> None:
    if item.is_terminal:
        raise TerminalStepError(
            f"Cannot {action} item {item.id}: it has already been received"
        )


def advance(item: WorkflowItem, actor: Optional[str] = None) -> WorkflowItem:
    """Complete the current step and move to the next one on the path.

    Raises:
        TerminalStepError: If the item is already received.
        InvalidBranchError: If the branch point is completed without a branch.
        ValidationError: If the current step's requirements are not met.
    """
    _ensure_mutable(item, "advance")
    step = get_step(item.current_step_id, item.product_type)
    if step.is_branch_point and item.branch_choice is BranchChoice.UNSET:
        logger.warning(f"Item {item.id} reached {step.id} without a branch choice")
        raise InvalidBranchError(
            f"Item {item.id} needs a freight mode (air or sea) before leaving {step.id}"
        )

    errors = validate(step.id, item.field_view(), item.product_type)
    if errors:
        exc = ValidationError(step.id, errors)
        logger.warning(f"Rejected advance of item {item.id}: {exc}")
        raise exc

    target = next_step_id(item.product_type, item.branch_choice, step.id)
    if target is None:  # pragma: no cover - only the terminal step ends a path
        raise TerminalStepError(f"Item {item.id} has no step after {step.id}")
    logger.info(f"Item {item.id} advanced {step.id} -> {target}")
    return _evolve(item, "advance", target, actor)


def retreat(item: WorkflowItem, actor: Optional[str] = None) -> WorkflowItem:
    """Move back one step; no validation is required.

    At the first step the item is returned unchanged.
    """
    _ensure_mutable(item, "retreat")
    target = previous_step_id(item.product_type, item.branch_choice, item.current_step_id)
    if target is None:
        logger.debug(f"Item {item.id} is already at its first step")
        return item
    logger.info(f"Item {item.id} retreated {item.current_step_id} -> {target}")
    return _evolve(item, "retreat", target, actor)


def choose_branch(
    item: WorkflowItem, branch: BranchChoice | str, actor: Optional[str] = None
) -> WorkflowItem:
    """Select (or change) the freight mode of an IMP item.

    Changing the branch re-derives the path and clamps the current step to
    the branch point at most. Once a freight cost is recorded the branch is
    fixed.

    Raises:
        InvalidBranchError: For non-IMP items, an ``unset`` choice, or a
            change after a freight cost was recorded.
        TerminalStepError: If the item is already received.
    """
    if item.product_type is not ProductType.IMP:
        raise InvalidBranchError(
            f"{item.product_type.value} item {item.id} has no shipping branch"
        )
    _ensure_mutable(item, "change the branch of")
    try:
        branch = BranchChoice(branch)
    except ValueError:
        raise InvalidBranchError(f"Unknown freight mode: {branch!r}") from None
    if branch is BranchChoice.UNSET:
        raise InvalidBranchError("Freight mode must be 'air' or 'sea'")
    if branch is item.branch_choice:
        return item
    if item.step_data.has_freight():
        raise InvalidBranchError(
            f"Item {item.id} already has a {item.branch_choice.value} freight cost; "
            "the freight mode can no longer change"
        )

    target = clamp_step(
        item.product_type, item.current_step_id, item.branch_choice, branch
    )
    logger.info(
        f"Item {item.id} branch {item.branch_choice.value} -> {branch.value}, "
        f"step {item.current_step_id} -> {target}"
    )
    return _evolve(item, "branch", target, actor, branch_choice=branch)


def update_step_data(
    item: WorkflowItem, updates: Mapping[str, Any], actor: Optional[str] = None
) -> WorkflowItem:
    """Merge ``updates`` into the item's step data and descriptive fields.

    ``None`` and blank strings are ignored so captured data is never cleared.
    Unknown keys are ignored. Data required by steps the item has already
    completed must keep satisfying those steps.

    Raises:
        TerminalStepError: If a received item gets anything but completion notes.
        ValidationError: For malformed values, a freight cost on the wrong
            branch, or a value that breaks a completed step's requirement.
    """
    present = {
        key: value
        for key, value in updates.items()
        if key in UPDATABLE_FIELDS and not is_blank(value)
    }
    if item.is_terminal and set(present) - TERMINAL_WRITABLE_FIELDS:
        raise TerminalStepError(
            f"Item {item.id} has been received; only completion notes can be added"
        )

    errors = validate_freight(item.branch_choice, present)
    if errors:
        raise ValidationError(item.current_step_id, errors)

    details = {key: value for key, value in present.items() if key in DETAIL_FIELDS}
    try:
        step_data = item.step_data.merged(present)
    except PydanticValidationError as exc:
        raise ValidationError(item.current_step_id, _field_errors(exc)) from exc
    updated = _evolve(
        item,
        "update",
        item.current_step_id,
        actor,
        step_data=step_data.model_dump(),
        **details,
    )
    errors = _completed_step_errors(updated)
    if errors:
        exc = ValidationError(item.current_step_id, errors)
        logger.warning(f"Rejected update of item {item.id}: {exc}")
        raise exc
    logger.debug(f"Item {item.id} updated fields: {sorted(present)}")
    return updated
