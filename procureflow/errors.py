"""Exceptions raised by the procureflow workflow engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .validation import FieldError


class WorkflowError(Exception):
    """Base class for all recoverable per-item workflow errors."""


class ValidationError(WorkflowError):
    """One or more fields required by the active step are missing or invalid."""

    def __init__(self, step_id: str, errors: Iterable[FieldError]) -> None:
        self.step_id = step_id
        self.errors = frozenset(errors)
        details = "; ".join(f"{e.field}: {e.message}" for e in self.sorted_errors())
        super().__init__(f"Step '{step_id}' is incomplete: {details}")

    @property
    def fields(self) -> set[str]:
        """Names of the offending fields."""
        return {e.field for e in self.errors}

    def sorted_errors(self) -> list[FieldError]:
        return sorted(self.errors, key=lambda e: e.field)


class InvalidBranchError(WorkflowError):
    """The shipping branch is missing, not applicable, or can no longer change."""


class UnknownStepError(WorkflowError):
    """A step id is not part of the catalog it was looked up in."""

    def __init__(self, step_id: str, product_type: str | None = None) -> None:
        self.step_id = step_id
        self.product_type = product_type
        scope = f" for product type {product_type}" if product_type else ""
        super().__init__(f"Unknown step '{step_id}'{scope}")


class TerminalStepError(WorkflowError):
    """The item already reached its terminal step and cannot change."""


class UnsupportedProductTypeError(WorkflowError):
    """The product type has no workflow (LU items are tracked elsewhere)."""


class ConcurrentUpdateError(WorkflowError):
    """The stored item changed since it was loaded."""

    def __init__(self, item_id: str, expected: int, actual: int) -> None:
        self.item_id = item_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Workflow item {item_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )


class ItemNotFoundError(WorkflowError):
    """No workflow item exists with the requested id."""


class ItemExistsError(WorkflowError):
    """A workflow item with the same id is already stored."""
