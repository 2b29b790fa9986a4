"""Static step catalogs for the IMP and CL procurement workflows."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .errors import UnknownStepError, UnsupportedProductTypeError

TERMINAL_STEP_ID = "received"
BRANCH_STEP_ID = "ship_decision"


class ProductType(str, Enum):
    """Kind of tracked product; each workflow type has its own catalog."""

    LU = "LU"  # picked from local inventory, no procurement workflow
    CL = "CL"  # quotation flow
    IMP = "IMP"  # import flow


class BranchChoice(str, Enum):
    """Freight mode chosen at the IMP branch point."""

    UNSET = "unset"
    AIR = "air"
    SEA = "sea"


class Rule(str, Enum):
    """Constraint a required field must satisfy."""

    PRESENT = "present"
    POSITIVE = "positive"  # > 0
    AT_LEAST_ONE = "at_least_one"  # >= 1
    BRANCH = "branch"  # air or sea


class FieldRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    rule: Rule
    message: str


class StepDefinition(BaseModel):
    """Describes one step of a workflow catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    requirements: tuple[FieldRequirement, ...] = ()
    is_branch_point: bool = False
    branch: Optional[BranchChoice] = None
    is_terminal: bool = False


IMP_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        id="pay_pi",
        title="Pay PI to supplier",
        description="Pay the proforma invoice to the supplier",
        requirements=(
            FieldRequirement(
                field="product_name",
                rule=Rule.PRESENT,
                message="Product name is required",
            ),
            FieldRequirement(
                field="supplier_name",
                rule=Rule.PRESENT,
                message="Supplier name is required",
            ),
            FieldRequirement(
                field="quantity",
                rule=Rule.AT_LEAST_ONE,
                message="Quantity must be at least 1",
            ),
            FieldRequirement(
                field="pi_amount",
                rule=Rule.POSITIVE,
                message="PI amount must be greater than 0",
            ),
        ),
    ),
    StepDefinition(
        id="send_label",
        title="Send shipping label",
        description="Send the shipping label to the supplier",
    ),
    StepDefinition(
        id=BRANCH_STEP_ID,
        title="Decide air or sea freight",
        description="Select the freight mode",
        requirements=(
            FieldRequirement(
                field="branch_choice",
                rule=Rule.BRANCH,
                message="A freight mode (air or sea) must be selected",
            ),
        ),
        is_branch_point=True,
    ),
    StepDefinition(
        id="pay_air_freight",
        title="Pay air freight",
        requirements=(
            FieldRequirement(
                field="air_freight_cost",
                rule=Rule.POSITIVE,
                message="Air freight cost must be greater than 0",
            ),
        ),
        branch=BranchChoice.AIR,
    ),
    StepDefinition(
        id="pay_sea_freight",
        title="Pay sea freight",
        requirements=(
            FieldRequirement(
                field="sea_freight_cost",
                rule=Rule.POSITIVE,
                message="Sea freight cost must be greater than 0",
            ),
        ),
        branch=BranchChoice.SEA,
    ),
    StepDefinition(
        id="coordinate_shipping",
        title="Coordinate shipping",
        description="Coordinate the sea shipment",
        branch=BranchChoice.SEA,
    ),
    StepDefinition(
        id="pay_customs_duty",
        title="Pay customs duty",
        requirements=(
            FieldRequirement(
                field="customs_duty_amount",
                rule=Rule.POSITIVE,
                message="Customs duty amount must be greater than 0",
            ),
        ),
    ),
    StepDefinition(
        id=TERMINAL_STEP_ID,
        title="Received",
        description="Product received",
        is_terminal=True,
    ),
)

CL_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        id="request_quote",
        title="Request quote",
        requirements=(
            FieldRequirement(
                field="product_name",
                rule=Rule.PRESENT,
                message="Product name is required",
            ),
            FieldRequirement(
                field="quantity",
                rule=Rule.AT_LEAST_ONE,
                message="Quantity must be at least 1",
            ),
        ),
    ),
    StepDefinition(
        id="pay_quote",
        title="Pay quote",
        requirements=(
            FieldRequirement(
                field="quotation_amount",
                rule=Rule.POSITIVE,
                message="Quotation amount must be greater than 0",
            ),
        ),
    ),
    StepDefinition(
        id="coordinate_shipping_freight",
        title="Coordinate shipping and pay freight",
        requirements=(
            FieldRequirement(
                field="shipping_cost",
                rule=Rule.POSITIVE,
                message="Shipping cost must be greater than 0",
            ),
        ),
    ),
    StepDefinition(
        id=TERMINAL_STEP_ID,
        title="Received",
        description="Product received",
        is_terminal=True,
    ),
)

CATALOGS: dict[ProductType, tuple[StepDefinition, ...]] = {
    ProductType.IMP: IMP_STEPS,
    ProductType.CL: CL_STEPS,
}


def get_catalog(product_type: ProductType | str) -> tuple[StepDefinition, ...]:
    """Return the ordered catalog for ``product_type``."""
    product_type = ProductType(product_type)
    try:
        return CATALOGS[product_type]
    except KeyError:
        raise UnsupportedProductTypeError(
            f"Product type {product_type.value} has no procurement workflow"
        ) from None


def get_step(
    step_id: str, product_type: ProductType | str | None = None
) -> StepDefinition:
    """Look up a step definition.

    Without ``product_type`` every catalog is searched; step ids are unique
    across catalogs except for the shared terminal step.
    """
    if product_type is not None:
        catalogs = [get_catalog(product_type)]
    else:
        catalogs = list(CATALOGS.values())
    for catalog in catalogs:
        for step in catalog:
            if step.id == step_id:
                return step
    raise UnknownStepError(
        step_id, ProductType(product_type).value if product_type else None
    )


def first_step_id(product_type: ProductType | str) -> str:
    return get_catalog(product_type)[0].id


def branch_point(product_type: ProductType | str) -> Optional[StepDefinition]:
    """Return the catalog's branch point, if it has one."""
    return next((s for s in get_catalog(product_type) if s.is_branch_point), None)
