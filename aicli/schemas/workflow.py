from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class WorkflowPhase(str, Enum):
    """States of a single generate invocation."""

    INIT = "init"
    PREFLIGHT_BRANCH = "preflight_branch"
    SCANNING = "scanning"
    REMOTE_GENERATE = "remote_generate"
    REVIEWING = "reviewing"
    APPLYING = "applying"
    POSTFLIGHT_STAGE = "postflight_stage"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


class GenerateConfig(BaseModel):
    """Options for one generate run, resolved by the CLI before the workflow starts."""

    prompt: str
    project_root: Path
    scan_paths: List[str] = Field(default_factory=lambda: ["."])
    auto_confirm: bool = False
    skip_git: bool = False
    branch_name: Optional[str] = None
    branch_prefix: str = "feature/"
    branch_name_max_length: int = 50


class WorkflowState(BaseModel):
    """Session-scoped state; discarded when the run ends."""

    project_root: Path
    phase: WorkflowPhase = WorkflowPhase.INIT
    in_repository: bool = False
    git_enabled: bool = False
    original_branch: Optional[str] = None
    planned_branch: Optional[str] = None
    working_branch: Optional[str] = None
    original_contents: Dict[str, str] = Field(default_factory=dict)
    applied_paths: List[str] = Field(default_factory=list)


class ApplyFailure(BaseModel):
    path: str
    message: str


class WorkflowReport(BaseModel):
    """Final outcome of a generate run."""

    phase: WorkflowPhase
    summary: str = ""
    applied_paths: List[str] = Field(default_factory=list)
    failures: List[ApplyFailure] = Field(default_factory=list)
    staging_error: Optional[str] = None
    error: Optional[str] = None
    original_branch: Optional[str] = None
    working_branch: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.phase == WorkflowPhase.DONE
