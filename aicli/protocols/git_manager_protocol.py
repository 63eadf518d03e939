"""Git Manager protocol interface."""

from pathlib import Path
from typing import List, Optional, Protocol, Union, runtime_checkable

PathLike = Union[str, Path]


@runtime_checkable
class GitManagerProtocol(Protocol):
    """Protocol for the local git operations used by the generate workflow."""

    def is_repository(self, path: PathLike) -> bool:
        """Return True if path is the root of a git repository."""
        ...

    def current_branch(self, path: PathLike) -> Optional[str]:
        """Name of the checked out branch, or None on a detached HEAD."""
        ...

    def create_or_checkout(self, path: PathLike, branch_name: str) -> None:
        """Create and check out a branch, or check it out if it already exists."""
        ...

    def checkout(self, path: PathLike, branch_name: str) -> None:
        """Check out an existing branch."""
        ...

    def stage(self, path: PathLike, files: List[str]) -> None:
        """Stage the given files (absolute or root-relative)."""
        ...
