import logging

import pytest

from procureflow.engine import create_item
from procureflow.errors import UnsupportedProductTypeError
from procureflow.status import StatusBucket, StatusMapper, status_bucket


@pytest.mark.parametrize(
    "step_id, bucket",
    [
        ("pay_pi", "awaiting_pi_payment"),
        ("send_label", "awaiting_shipping_label"),
        ("ship_decision", "awaiting_shipping_coordination"),
        ("pay_air_freight", "awaiting_shipping_coordination"),
        ("pay_sea_freight", "awaiting_shipping_coordination"),
        ("coordinate_shipping", "awaiting_shipping_coordination"),
        ("pay_customs_duty", "awaiting_customs_payment"),
        ("received", "received"),
    ],
)
def test_imp_buckets(step_id, bucket):
    assert StatusMapper.map("IMP", step_id).value == bucket


@pytest.mark.parametrize(
    "step_id, bucket",
    [
        ("request_quote", "awaiting_quote_request"),
        ("pay_quote", "awaiting_quote_payment"),
        ("coordinate_shipping_freight", "awaiting_shipping_coordination"),
        ("received", "received"),
    ],
)
def test_cl_buckets(step_id, bucket):
    assert StatusMapper.map("CL", step_id).value == bucket


def test_shipping_steps_share_one_bucket():
    buckets = {
        StatusMapper.map("IMP", step)
        for step in ("coordinate_shipping", "pay_sea_freight", "ship_decision")
    }
    assert buckets == {StatusBucket.AWAITING_SHIPPING_COORDINATION}


def test_unknown_step_falls_back_and_logs(caplog):
    with caplog.at_level(logging.WARNING, logger="procureflow.status"):
        assert StatusMapper.map("IMP", "imp_step9") is StatusBucket.AWAITING_PI_PAYMENT
        assert StatusMapper.map("CL", None) is StatusBucket.AWAITING_QUOTE_REQUEST
    assert "imp_step9" in caplog.text


def test_lu_has_no_buckets():
    with pytest.raises(UnsupportedProductTypeError):
        StatusMapper.map("LU", "pay_pi")


def test_buckets_in_workflow_order():
    assert StatusMapper.buckets("CL") == [
        StatusBucket.AWAITING_QUOTE_REQUEST,
        StatusBucket.AWAITING_QUOTE_PAYMENT,
        StatusBucket.AWAITING_SHIPPING_COORDINATION,
        StatusBucket.RECEIVED,
    ]


def test_status_bucket_of_item():
    item = create_item("p1", "IMP", "Pump")
    assert status_bucket(item) is StatusBucket.AWAITING_PI_PAYMENT
