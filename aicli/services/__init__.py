"""Services for the application."""

from .change_applier import ChangeApplier
from .decision_collector import DecisionCollector
from .diff_presenter import DiffPresenter
from .generate_workflow import GenerateWorkflow, default_branch_name

__all__ = [
    "ChangeApplier",
    "DecisionCollector",
    "DiffPresenter",
    "GenerateWorkflow",
    "default_branch_name",
]
