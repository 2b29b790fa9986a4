"""Map workflow steps to the coarse status buckets used by dashboards."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from .catalog import ProductType
from .errors import UnknownStepError, UnsupportedProductTypeError

if TYPE_CHECKING:
    from .models import WorkflowItem

logger = logging.getLogger(__name__)


class StatusBucket(str, Enum):
    """Dashboard buckets. Values are part of the metrics contract."""

    AWAITING_PI_PAYMENT = "awaiting_pi_payment"
    AWAITING_SHIPPING_LABEL = "awaiting_shipping_label"
    AWAITING_SHIPPING_COORDINATION = "awaiting_shipping_coordination"
    AWAITING_CUSTOMS_PAYMENT = "awaiting_customs_payment"
    AWAITING_QUOTE_REQUEST = "awaiting_quote_request"
    AWAITING_QUOTE_PAYMENT = "awaiting_quote_payment"
    RECEIVED = "received"


IMP_BUCKETS: dict[str, StatusBucket] = {
    "pay_pi": StatusBucket.AWAITING_PI_PAYMENT,
    "send_label": StatusBucket.AWAITING_SHIPPING_LABEL,
    "ship_decision": StatusBucket.AWAITING_SHIPPING_COORDINATION,
    "pay_air_freight": StatusBucket.AWAITING_SHIPPING_COORDINATION,
    "pay_sea_freight": StatusBucket.AWAITING_SHIPPING_COORDINATION,
    "coordinate_shipping": StatusBucket.AWAITING_SHIPPING_COORDINATION,
    "pay_customs_duty": StatusBucket.AWAITING_CUSTOMS_PAYMENT,
    "received": StatusBucket.RECEIVED,
}

CL_BUCKETS: dict[str, StatusBucket] = {
    "request_quote": StatusBucket.AWAITING_QUOTE_REQUEST,
    "pay_quote": StatusBucket.AWAITING_QUOTE_PAYMENT,
    "coordinate_shipping_freight": StatusBucket.AWAITING_SHIPPING_COORDINATION,
    "received": StatusBucket.RECEIVED,
}

# product type -> (step mapping, bucket for unrecognized ids)
_TABLES: dict[ProductType, tuple[dict[str, StatusBucket], StatusBucket]] = {
    ProductType.IMP: (IMP_BUCKETS, StatusBucket.AWAITING_PI_PAYMENT),
    ProductType.CL: (CL_BUCKETS, StatusBucket.AWAITING_QUOTE_REQUEST),
}


class StatusMapper:
    """Reduce a step id to its dashboard bucket."""

    @staticmethod
    def buckets(product_type: ProductType | str) -> list[StatusBucket]:
        """Buckets reachable for ``product_type`` in workflow order."""
        table, _ = _table(product_type)
        return list(dict.fromkeys(table.values()))

    @staticmethod
    def map(product_type: ProductType | str, step_id: str | None) -> StatusBucket:
        """Return the bucket for ``step_id``.

        Unrecognized ids are logged and fall back to the earliest bucket of
        the product type so the item still shows up as pending.
        """
        table, default = _table(product_type)
        bucket = table.get(step_id or "")
        if bucket is None:
            error = UnknownStepError(step_id or "<empty>", ProductType(product_type).value)
            logger.warning(f"{error}; counting it as {default.value}")
            return default
        return bucket


def _table(
    product_type: ProductType | str,
) -> tuple[dict[str, StatusBucket], StatusBucket]:
    product_type = ProductType(product_type)
    try:
        return _TABLES[product_type]
    except KeyError:
        raise UnsupportedProductTypeError(
            f"Product type {product_type.value} has no status buckets"
        ) from None


def status_bucket(item: WorkflowItem) -> StatusBucket:
    return StatusMapper.map(item.product_type, item.current_step_id)
