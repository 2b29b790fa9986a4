from procureflow.engine import advance, choose_branch, create_item
from procureflow.metrics import project_metrics
from procureflow.progress import workflow_progress
from procureflow.status import StatusBucket


def _imp(project="proj-1", **step_data):
    return create_item(
        project, "IMP", "Pump", supplier_name="Acme", step_data={"pi_amount": 100, **step_data}
    )


def test_progress_on_partial_path():
    progress = workflow_progress(advance(_imp()))
    assert progress.current_step_id == "send_label"
    assert progress.current_index == 1
    assert progress.total_steps == 3
    assert progress.completed_steps == ["pay_pi"]
    assert progress.percentage == 33
    assert not progress.is_completed
    assert progress.bucket is StatusBucket.AWAITING_SHIPPING_LABEL


def test_progress_total_follows_branch():
    item = choose_branch(_imp(), "sea")
    progress = workflow_progress(item)
    assert progress.total_steps == 7
    assert progress.percentage == 0


def test_progress_terminal_is_complete():
    item = create_item(
        "proj-1", "CL", "Desk", step_data={"quotation_amount": 5, "shipping_cost": 1}
    )
    item = advance(advance(advance(item)))
    progress = workflow_progress(item)
    assert progress.is_completed
    assert progress.percentage == 100
    assert progress.completed_steps[-1] == "received"


def test_project_metrics_counts_buckets():
    pending_pi = _imp()
    labelled = advance(_imp())
    deciding = advance(advance(_imp()))
    other_project = _imp(project="proj-2")
    received_cl = advance(
        advance(
            advance(
                create_item(
                    "proj-1",
                    "CL",
                    "Desk",
                    step_data={"quotation_amount": 40, "shipping_cost": 10},
                )
            )
        )
    )
    quote = create_item("proj-1", "CL", "Chair")

    metrics = project_metrics(
        [pending_pi, labelled, deciding, other_project, received_cl, quote],
        project_id="proj-1",
        lu_total=4,
        lu_completed=1,
    )

    assert metrics.imp.total == 3
    assert metrics.imp.pending(StatusBucket.AWAITING_PI_PAYMENT) == 1
    assert metrics.imp.pending("awaiting_shipping_label") == 1
    assert metrics.imp.pending(StatusBucket.AWAITING_SHIPPING_COORDINATION) == 1
    assert metrics.imp.pending(StatusBucket.AWAITING_CUSTOMS_PAYMENT) == 0
    assert metrics.imp.completed == 0
    assert metrics.imp.total_cost == 300

    assert metrics.cl.total == 2
    assert metrics.cl.completed == 1
    assert metrics.cl.percentage == 50
    assert metrics.cl.pending(StatusBucket.AWAITING_QUOTE_REQUEST) == 1
    assert metrics.for_type("CL").total_cost == 50

    assert metrics.lu.total == 4
    assert metrics.lu.percentage == 25


def test_project_metrics_empty():
    metrics = project_metrics([])
    assert metrics.imp.total == 0
    assert metrics.imp.percentage == 0
    assert set(metrics.imp.buckets) == {
        StatusBucket.AWAITING_PI_PAYMENT,
        StatusBucket.AWAITING_SHIPPING_LABEL,
        StatusBucket.AWAITING_SHIPPING_COORDINATION,
        StatusBucket.AWAITING_CUSTOMS_PAYMENT,
        StatusBucket.RECEIVED,
    }
