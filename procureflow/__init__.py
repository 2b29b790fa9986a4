"""procureflow: state machine for multi-stage procurement workflows."""

from .catalog import BranchChoice, ProductType, StepDefinition, get_catalog, get_step
from .costs import cost_breakdown, item_total_cost, total_cost
from .engine import advance, choose_branch, create_item, retreat, update_step_data
from .errors import (
    ConcurrentUpdateError,
    InvalidBranchError,
    TerminalStepError,
    UnknownStepError,
    UnsupportedProductTypeError,
    ValidationError,
    WorkflowError,
)
from .metrics import ProjectMetrics, project_metrics
from .models import StepData, WorkflowItem
from .paths import resolve_path
from .persistence import get_repository
from .progress import workflow_progress
from .service import WorkflowService
from .status import StatusBucket, StatusMapper, status_bucket
from .validation import FieldError, validate

__version__ = "0.1.0"
__all__ = [
    "BranchChoice",
    "ProductType",
    "StepDefinition",
    "get_catalog",
    "get_step",
    "resolve_path",
    "validate",
    "FieldError",
    "StepData",
    "WorkflowItem",
    "create_item",
    "advance",
    "retreat",
    "choose_branch",
    "update_step_data",
    "total_cost",
    "item_total_cost",
    "cost_breakdown",
    "StatusBucket",
    "StatusMapper",
    "status_bucket",
    "workflow_progress",
    "ProjectMetrics",
    "project_metrics",
    "WorkflowService",
    "get_repository",
    "WorkflowError",
    "ValidationError",
    "InvalidBranchError",
    "UnknownStepError",
    "TerminalStepError",
    "UnsupportedProductTypeError",
    "ConcurrentUpdateError",
]
