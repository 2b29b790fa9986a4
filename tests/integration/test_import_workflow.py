"""End-to-end workflow runs through the service and a SQLite repository."""

import pytest

from procureflow.config import ProcureflowConfig
from procureflow.errors import ConcurrentUpdateError, InvalidBranchError, ItemNotFoundError
from procureflow.persistence import SQLiteWorkflowRepository
from procureflow.progress import workflow_progress
from procureflow.service import WorkflowService
from procureflow.status import StatusBucket, status_bucket


def _service(tmp_path, **config) -> WorkflowService:
    repo = SQLiteWorkflowRepository(tmp_path / "items.db")
    return WorkflowService(repository=repo, config=ProcureflowConfig(**config))


@pytest.mark.asyncio
async def test_sea_import_to_received(tmp_path):
    service = _service(tmp_path)
    item = await service.create(
        "proj-1", "IMP", "Generator", quantity=1, supplier_name="Volt Ltd", created_by="ana"
    )

    item = await service.update_step_data(item.id, {"pi_amount": 1000}, actor="ana")
    item = await service.advance(item.id, actor="ana")
    item = await service.advance(item.id, actor="ana")
    assert status_bucket(item) is StatusBucket.AWAITING_SHIPPING_COORDINATION

    item = await service.choose_branch(item.id, "sea", actor="ana")
    item = await service.advance(item.id)
    item = await service.update_step_data(item.id, {"sea_freight_cost": 300})
    item = await service.advance(item.id)
    assert item.current_step_id == "coordinate_shipping"

    item = await service.advance(item.id)
    item = await service.update_step_data(item.id, {"customs_duty_amount": 150})
    item = await service.advance(item.id)
    assert item.current_step_id == "received"

    stored = await service.get(item.id)
    assert stored.version == item.version
    assert workflow_progress(stored).percentage == 100

    metrics = await service.metrics("proj-1")
    assert metrics.imp.completed == 1
    assert metrics.imp.total_cost == 1450


@pytest.mark.asyncio
async def test_branch_switch_after_reaching_freight_step(tmp_path):
    service = _service(tmp_path)
    item = await service.create(
        "proj-1",
        "IMP",
        "Generator",
        supplier_name="Volt Ltd",
        step_data={"pi_amount": 1000},
    )
    for _ in range(2):
        item = await service.advance(item.id)
    item = await service.choose_branch(item.id, "air")
    item = await service.advance(item.id)
    assert item.current_step_id == "pay_air_freight"

    item = await service.choose_branch(item.id, "sea")
    assert item.current_step_id == "ship_decision"
    assert item.path[3] == "pay_sea_freight"

    item = await service.advance(item.id)
    item = await service.update_step_data(item.id, {"sea_freight_cost": 80})
    with pytest.raises(InvalidBranchError):
        await service.choose_branch(item.id, "air")


@pytest.mark.asyncio
async def test_stale_writer_is_rejected(tmp_path):
    service = _service(tmp_path)
    item = await service.create("proj-1", "CL", "Desk", step_data={"quotation_amount": 90})

    await service.advance(item.id, expected_version=item.version)
    with pytest.raises(ConcurrentUpdateError):
        await service.update_step_data(
            item.id, {"quotation_notes": "second user"}, expected_version=item.version
        )


@pytest.mark.asyncio
async def test_last_writer_wins_mode(tmp_path):
    service = _service(tmp_path, last_writer_wins=True)
    item = await service.create("proj-1", "CL", "Desk", step_data={"quotation_amount": 90})

    await service.advance(item.id, expected_version=item.version)
    updated = await service.update_step_data(
        item.id, {"quotation_notes": "second user"}, expected_version=item.version
    )
    assert updated.step_data.quotation_notes == "second user"
    assert updated.current_step_id == "pay_quote"


@pytest.mark.asyncio
async def test_unknown_item(tmp_path):
    service = _service(tmp_path)
    with pytest.raises(ItemNotFoundError):
        await service.advance("nope")
    with pytest.raises(ItemNotFoundError):
        await service.delete("nope")
