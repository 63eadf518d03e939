"""Backend service protocol interface."""

from typing import Any, Dict, List, Protocol, runtime_checkable

from ..schemas import GenerationRequest, GenerationResult, ScannedFile


@runtime_checkable
class BackendProtocol(Protocol):
    """Protocol for the remote scan, generate and file mutation service."""

    @property
    def is_authenticated(self) -> bool:
        """True if a bearer credential is available for requests."""
        ...

    def scan_project(
        self, scan_paths: List[str], project_root: str, verbose: bool = False
    ) -> List[ScannedFile]:
        """Scan the given paths below project_root and return their contents."""
        ...

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Ask the backend to propose changes for a prompt."""
        ...

    def create_file(self, file_path: str, content: str) -> Dict[str, Any]:
        ...

    def write_file(self, file_path: str, content: str) -> Dict[str, Any]:
        ...

    def delete_file(self, file_path: str) -> Dict[str, Any]:
        ...
