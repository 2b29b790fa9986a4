"""Command line interface for procureflow workflow items."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, List, Optional, TypeVar

import typer

from procureflow.catalog import get_catalog
from procureflow.config import load_config
from procureflow.costs import cost_breakdown
from procureflow.errors import WorkflowError
from procureflow.models import WorkflowItem
from procureflow.persistence import get_repository
from procureflow.progress import workflow_progress
from procureflow.service import WorkflowService
from procureflow.status import status_bucket

T = TypeVar("T")

app = typer.Typer(help="CLI for procureflow workflow items")

# Command groups
item_app = typer.Typer(help="Commands for managing workflow items")
project_app = typer.Typer(help="Commands for project-level views")

app.add_typer(item_app, name="item")
app.add_typer(project_app, name="project")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """procureflow CLI entry point."""
    config = load_config()
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _service() -> WorkflowService:
    return WorkflowService(repository=get_repository())


def _run(coro: Awaitable[T]) -> T:
    """Run ``coro`` and turn workflow errors into a red message and exit 1."""
    try:
        return asyncio.run(coro)
    except WorkflowError as exc:
        typer.secho(f"{type(exc).__name__}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def _parse_assignments(assignments: List[str]) -> dict[str, str]:
    updates: dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key.strip():
            typer.secho(f"Expected FIELD=VALUE, got '{assignment}'", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        updates[key.strip()] = value
    return updates


def _echo_summary(item: WorkflowItem) -> None:
    typer.echo(
        f"{item.id}: {item.current_step_id} ({status_bucket(item).value}) v{item.version}"
    )


@item_app.command("create")
def item_create(
    project_id: str,
    product_type: str = typer.Argument(..., help="CL or IMP"),
    name: str = typer.Option("", help="Product name"),
    quantity: int = typer.Option(1, help="Quantity"),
    description: str = typer.Option("", help="Product description"),
    supplier: str = typer.Option("", help="Supplier name"),
    supplier_contact: str = typer.Option("", help="Supplier contact"),
    created_by: Optional[str] = typer.Option(None, help="Creating user"),
) -> None:
    """
    Start a new workflow item at the first step of its catalog.

    Example:
        procureflow item create proj-1 IMP --name "Pump" --supplier Acme --quantity 4
    """
    if product_type.upper() not in ("CL", "IMP"):
        typer.secho("Product type must be CL or IMP", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    item = _run(
        _service().create(
            project_id,
            product_type.upper(),
            name,
            quantity=quantity,
            product_description=description,
            supplier_name=supplier,
            supplier_contact=supplier_contact,
            created_by=created_by,
        )
    )
    typer.echo(f"Created {item.product_type.value} item {item.id}")
    _echo_summary(item)


@item_app.command("list")
def item_list(project: Optional[str] = typer.Option(None, help="Filter by project")) -> None:
    """
    List workflow items with their current step and status bucket.

    Example:
        procureflow item list --project proj-1
        # Output: imp_3f2a...    IMP    pay_pi    awaiting_pi_payment
    """
    items = _run(_service().list_items(project))
    if not items:
        typer.echo("No workflow items found")
        return
    for item in items:
        typer.echo(
            f"{item.id}\t{item.product_type.value}\t{item.current_step_id}\t{status_bucket(item).value}"
        )


@item_app.command("show")
def item_show(item_id: str) -> None:
    """
    Show the path, captured data, costs and history of a workflow item.

    Example:
        procureflow item show imp_3f2a...
    """
    item = _run(_service().get(item_id))
    config = load_config()
    progress = workflow_progress(item)
    costs = cost_breakdown(item)

    typer.echo(f"Workflow item {item.id}: {item.product_type.value} / {item.product_name}")
    typer.echo(f"Project: {item.project_id}  Version: {item.version}")
    typer.echo(f"Status: {progress.bucket.value} ({progress.percentage}%)")
    if item.product_type.value == "IMP":
        typer.echo(f"Branch: {item.branch_choice.value}")
    titles = {step.id: step.title for step in get_catalog(item.product_type)}
    for step_id in item.path:
        marker = (
            "x" if step_id in progress.completed_steps
            else ">" if step_id == item.current_step_id
            else " "
        )
        typer.echo(f"  [{marker}] {step_id}: {titles[step_id]}")
    data = item.step_data.model_dump(exclude_none=True)
    if data:
        typer.echo(f"Step data: {data}")
    typer.echo(
        f"Total cost: {costs.total:.2f} {config.currency} "
        f"(purchase {costs.purchase:.2f}, freight {costs.freight:.2f}, customs {costs.customs:.2f})"
    )
    for record in item.history:
        typer.echo(
            f"- {record.at:%Y-%m-%d %H:%M} {record.action}: "
            f"{record.from_step or '-'} -> {record.to_step}"
            + (f" by {record.actor}" if record.actor else "")
        )


@item_app.command("update")
def item_update(
    item_id: str,
    assignments: List[str] = typer.Argument(..., help="FIELD=VALUE pairs"),
    actor: Optional[str] = typer.Option(None, help="Acting user"),
    expected_version: Optional[int] = typer.Option(None, help="Fail if the item changed"),
) -> None:
    """
    Record step data or descriptive fields on a workflow item.

    Example:
        procureflow item update imp_3f2a... pi_amount=1200 pi_notes="wire transfer"
    """
    updates = _parse_assignments(assignments)
    item = _run(
        _service().update_step_data(
            item_id, updates, actor=actor, expected_version=expected_version
        )
    )
    _echo_summary(item)


@item_app.command("branch")
def item_branch(
    item_id: str,
    branch: str = typer.Argument(..., help="air or sea"),
    actor: Optional[str] = typer.Option(None, help="Acting user"),
    expected_version: Optional[int] = typer.Option(None, help="Fail if the item changed"),
) -> None:
    """Choose the freight mode of an IMP item."""
    item = _run(
        _service().choose_branch(
            item_id, branch.lower(), actor=actor, expected_version=expected_version
        )
    )
    _echo_summary(item)


@item_app.command("advance")
def item_advance(
    item_id: str,
    actor: Optional[str] = typer.Option(None, help="Acting user"),
    expected_version: Optional[int] = typer.Option(None, help="Fail if the item changed"),
) -> None:
    """Complete the current step and move to the next one."""
    item = _run(
        _service().advance(item_id, actor=actor, expected_version=expected_version)
    )
    _echo_summary(item)


@item_app.command("retreat")
def item_retreat(
    item_id: str,
    actor: Optional[str] = typer.Option(None, help="Acting user"),
    expected_version: Optional[int] = typer.Option(None, help="Fail if the item changed"),
) -> None:
    """Move back to the previous step."""
    item = _run(
        _service().retreat(item_id, actor=actor, expected_version=expected_version)
    )
    _echo_summary(item)


@project_app.command("metrics")
def project_metrics_command(
    project_id: str,
    lu_total: int = typer.Option(0, help="LU items tracked outside the workflow"),
    lu_completed: int = typer.Option(0, help="Completed LU items"),
) -> None:
    """
    Show per-bucket counts for the workflow items of a project.

    Example:
        procureflow project metrics proj-1
        # Output: IMP: 3 items, 1 received (33%)
        #           awaiting_pi_payment: 1
        #           ...
    """
    metrics = _run(
        _service().metrics(project_id, lu_total=lu_total, lu_completed=lu_completed)
    )
    config = load_config()
    typer.echo(
        f"LU: {metrics.lu.total} items, {metrics.lu.completed} selected ({metrics.lu.percentage}%)"
    )
    for label, type_metrics in (("CL", metrics.cl), ("IMP", metrics.imp)):
        typer.echo(
            f"{label}: {type_metrics.total} items, {type_metrics.completed} received "
            f"({type_metrics.percentage}%), total cost {type_metrics.total_cost:.2f} {config.currency}"
        )
        for bucket, count in type_metrics.buckets.items():
            typer.echo(f"  {bucket.value}: {count}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
