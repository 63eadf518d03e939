from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChangeAction(str, Enum):
    """Enum for the kinds of change the backend may propose."""

    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"


class ReviewDecision(str, Enum):
    """Outcome of reviewing one proposed change."""

    APPLY = "apply"
    SKIP = "skip"
    APPLY_ALL_REMAINING = "apply-all-remaining"
    ABORT = "abort"


class ProposedChange(BaseModel):
    """One file change proposed by the generation backend."""

    model_config = ConfigDict(populate_by_name=True)

    target_path: str = Field(alias="filePath")
    action: ChangeAction
    new_content: Optional[str] = Field(default=None, alias="newContent")
    rationale: Optional[str] = Field(default=None, alias="reason")

    @model_validator(mode="after")
    def _require_content(self) -> "ProposedChange":
        if self.action != ChangeAction.DELETE and self.new_content is None:
            raise ValueError(
                f"'{self.action.value}' change for {self.target_path} has no newContent"
            )
        return self


class ScannedFile(BaseModel):
    """A project file as read by the backend scanner."""

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(alias="filePath")
    relative_path: str = Field(alias="relativePath")
    content: str


class GenerationRequest(BaseModel):
    """Structured input for the backend generation endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    user_prompt: str = Field(alias="userPrompt")
    project_root: str = Field(alias="projectRoot")
    project_structure: str = Field(default="", alias="projectStructure")
    scan_paths: List[str] = Field(alias="scanPaths")
    relevant_files: List[ScannedFile] = Field(alias="relevantFiles")
    additional_instructions: str = Field(alias="additionalInstructions")
    expected_output_format: str = Field(alias="expectedOutputFormat")


class GenerationResult(BaseModel):
    """Changes and explanation returned by the backend generation endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    changes: List[ProposedChange] = Field(default_factory=list)
    summary: str = ""
    thought_process: Optional[str] = Field(default=None, alias="thoughtProcess")
