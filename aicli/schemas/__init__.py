from .auth import AuthToken
from .changes import (
    ChangeAction,
    GenerationRequest,
    GenerationResult,
    ProposedChange,
    ReviewDecision,
    ScannedFile,
)
from .workflow import (
    ApplyFailure,
    GenerateConfig,
    WorkflowPhase,
    WorkflowReport,
    WorkflowState,
)

__all__ = [
    "ApplyFailure",
    "AuthToken",
    "ChangeAction",
    "GenerateConfig",
    "GenerationRequest",
    "GenerationResult",
    "ProposedChange",
    "ReviewDecision",
    "ScannedFile",
    "WorkflowPhase",
    "WorkflowReport",
    "WorkflowState",
]
