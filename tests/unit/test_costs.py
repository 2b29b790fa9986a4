from procureflow.catalog import BranchChoice
from procureflow.costs import cost_breakdown, item_total_cost, quotation_total, total_cost
from procureflow.engine import advance, choose_branch, create_item, update_step_data
from procureflow.models import StepData


def test_total_cost_air_branch():
    data = {"pi_amount": 100, "air_freight_cost": 50, "customs_duty_amount": 25}
    assert total_cost(data, BranchChoice.AIR) == 175


def test_switching_branch_drops_air_term():
    data = {"pi_amount": 100, "air_freight_cost": 50, "customs_duty_amount": 25}
    assert total_cost(data, "sea") == 125


def test_partial_totals_count_unset_as_zero():
    assert total_cost(StepData(), None) == 0
    assert total_cost(StepData(pi_amount=80.5), "unset") == 80.5
    assert total_cost(StepData(pi_amount=80, sea_freight_cost=20), "sea") == 100


def test_quotation_total():
    assert quotation_total({"quotation_amount": 40, "shipping_cost": 12.5}) == 52.5
    assert quotation_total(StepData()) == 0


def test_item_cost_breakdown_imp():
    item = create_item(
        "p1",
        "IMP",
        "Pump",
        step_data={"pi_amount": 100, "customs_duty_amount": 30},
    )
    breakdown = cost_breakdown(item)
    assert breakdown.purchase == 100
    assert breakdown.freight == 0
    assert breakdown.customs == 30
    assert breakdown.total == 130 == item_total_cost(item)


def test_item_cost_breakdown_cl():
    item = create_item(
        "p1", "CL", "Desk", step_data={"quotation_amount": 200, "shipping_cost": 15}
    )
    breakdown = cost_breakdown(item)
    assert breakdown.purchase == 200
    assert breakdown.freight == 15
    assert breakdown.customs == 0
    assert item_total_cost(item) == 215


def test_breakdown_freight_is_the_branch_amount():
    item = create_item(
        "p1",
        "IMP",
        "Pump",
        supplier_name="Acme",
        step_data={"pi_amount": 0.1, "customs_duty_amount": 0.3},
    )
    item = choose_branch(advance(advance(item)), "air")
    item = update_step_data(advance(item), {"air_freight_cost": 0.2})

    breakdown = cost_breakdown(item)
    assert breakdown.freight == 0.2
    assert breakdown.purchase == 0.1
    assert breakdown.customs == 0.3
