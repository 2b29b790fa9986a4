"""Data models for workflow items and their accumulated step data."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .catalog import TERMINAL_STEP_ID, BranchChoice, ProductType, get_catalog
from .paths import resolve_path

MONEY_FIELDS = (
    "pi_amount",
    "air_freight_cost",
    "sea_freight_cost",
    "customs_duty_amount",
    "quotation_amount",
    "shipping_cost",
)

DETAIL_FIELDS = (
    "product_name",
    "product_description",
    "quantity",
    "supplier_name",
    "supplier_contact",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_blank(value: Any) -> bool:
    """``None`` and empty or whitespace-only strings carry no value."""
    if isinstance(value, str):
        return not value.strip()
    return value is None


class StepData(BaseModel):
    """Monetary amounts and notes captured while completing steps."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    # IMP
    pi_amount: Optional[float] = Field(default=None, ge=0)
    pi_notes: Optional[str] = None
    shipping_label_notes: Optional[str] = None
    air_freight_cost: Optional[float] = Field(default=None, ge=0)
    air_freight_notes: Optional[str] = None
    sea_freight_cost: Optional[float] = Field(default=None, ge=0)
    sea_freight_notes: Optional[str] = None
    coordination_notes: Optional[str] = None
    customs_duty_amount: Optional[float] = Field(default=None, ge=0)
    customs_notes: Optional[str] = None
    # CL
    quotation_amount: Optional[float] = Field(default=None, ge=0)
    quotation_notes: Optional[str] = None
    payment_notes: Optional[str] = None
    shipping_cost: Optional[float] = Field(default=None, ge=0)
    shipping_notes: Optional[str] = None
    # both
    completion_notes: Optional[str] = None

    @model_validator(mode="after")
    def _single_freight_mode(self) -> "StepData":
        if self.air_freight_cost is not None and self.sea_freight_cost is not None:
            raise ValueError("air_freight_cost and sea_freight_cost are mutually exclusive")
        return self

    def merged(self, updates: dict[str, Any]) -> "StepData":
        """Return a copy with ``updates`` applied; blank values never clear a field."""
        data = self.model_dump()
        for key, value in updates.items():
            if key in data and not is_blank(value):
                data[key] = value
        return StepData.model_validate(data)

    def has_freight(self) -> bool:
        return self.air_freight_cost is not None or self.sea_freight_cost is not None


class TransitionRecord(BaseModel):
    """One entry in an item's append-only transition log."""

    action: str  # created, advance, retreat, branch, update
    from_step: Optional[str] = None
    to_step: str
    branch_choice: BranchChoice = BranchChoice.UNSET
    actor: Optional[str] = None
    at: datetime = Field(default_factory=utcnow)


class WorkflowItem(BaseModel):
    """One tracked product moving through a procurement workflow."""

    id: str
    project_id: str
    product_type: ProductType
    product_name: str = ""
    product_description: str = ""
    quantity: int = 1
    supplier_name: str = ""
    supplier_contact: str = ""
    current_step_id: str
    branch_choice: BranchChoice = BranchChoice.UNSET
    step_data: StepData = Field(default_factory=StepData)
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 1
    history: list[TransitionRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_invariants(self) -> "WorkflowItem":
        if self.product_type is ProductType.LU:
            raise ValueError("LU items are not tracked by the procurement workflow")
        if self.product_type is not ProductType.IMP and self.branch_choice is not BranchChoice.UNSET:
            raise ValueError(f"{self.product_type.value} items have no shipping branch")
        path = resolve_path(self.product_type, self.branch_choice)
        if self.current_step_id not in path:
            raise ValueError(
                f"current_step_id '{self.current_step_id}' is not on the "
                f"{self.branch_choice.value} path of a {self.product_type.value} item"
            )
        return self

    @property
    def path(self) -> list[str]:
        return resolve_path(self.product_type, self.branch_choice)

    @property
    def is_terminal(self) -> bool:
        return self.current_step_id == TERMINAL_STEP_ID

    @property
    def current_step_title(self) -> str:
        for step in get_catalog(self.product_type):
            if step.id == self.current_step_id:
                return step.title
        return self.current_step_id

    def field_view(self) -> dict[str, Any]:
        """Flatten details, branch choice and step data for validation."""
        view: dict[str, Any] = {name: getattr(self, name) for name in DETAIL_FIELDS}
        view["branch_choice"] = self.branch_choice
        view.update(self.step_data.model_dump())
        return view
