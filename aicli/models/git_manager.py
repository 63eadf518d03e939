from pathlib import Path
from typing import List, Optional, Union

from git import Repo
from git.exc import GitError, InvalidGitRepositoryError, NoSuchPathError
from rich.console import Console

from ..exceptions import GitOperationError


class GitManager:
    """Runs the local git operations needed around a generate session."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _open(self, path: Union[str, Path]) -> Repo:
        try:
            return Repo(Path(path))
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise GitOperationError(f"Not a git repository: {path}") from e

    def is_repository(self, path: Union[str, Path]) -> bool:
        """Check whether path is the root of a git repository."""
        try:
            repo = Repo(Path(path))
        except (InvalidGitRepositoryError, NoSuchPathError):
            return False
        # Repo() accepts a path inside .git as well; only the work tree root counts
        working_dir = repo.working_tree_dir
        return working_dir is not None and Path(working_dir).resolve() == Path(
            path
        ).resolve()

    def current_branch(self, path: Union[str, Path]) -> Optional[str]:
        """Get the name of the active branch, or None on a detached HEAD."""
        repo = self._open(path)
        try:
            return repo.active_branch.name
        except TypeError:
            return None

    def create_or_checkout(self, path: Union[str, Path], branch_name: str) -> None:
        """Create and check out a new branch, reusing it if it already exists."""
        repo = self._open(path)
        try:
            if branch_name in [head.name for head in repo.heads]:
                self.console.print(
                    f"  ⚠️ Git: Branch '{branch_name}' already exists. Checking it out instead."
                )
                repo.git.checkout(branch_name)
                return

            repo.git.checkout("-b", branch_name)
            self.console.print(
                f"  ✅ Git: Created and checked out new branch: {branch_name}"
            )
        except GitError as e:
            raise GitOperationError(
                f"Could not create or checkout branch '{branch_name}': {e}"
            ) from e

    def checkout(self, path: Union[str, Path], branch_name: str) -> None:
        """Check out an existing branch."""
        repo = self._open(path)
        try:
            repo.git.checkout(branch_name)
        except GitError as e:
            raise GitOperationError(
                f"Could not checkout branch '{branch_name}': {e}"
            ) from e

    @staticmethod
    def _is_tracked(repo: Repo, relative_path: str) -> bool:
        try:
            return bool(repo.git.ls_files("--", relative_path))
        except GitError as e:
            raise GitOperationError(f"Failed to stage files: {e}") from e

    def stage(self, path: Union[str, Path], files: List[str]) -> None:
        """Stage files, including deletions, relative to the repository root."""
        repo = self._open(path)
        root = Path(path).resolve()
        relative_paths = []
        for file_path in files:
            candidate = Path(file_path)
            if candidate.is_absolute():
                try:
                    candidate = candidate.resolve().relative_to(root)
                except ValueError as e:
                    raise GitOperationError(
                        f"Cannot stage {file_path}: outside of repository {root}"
                    ) from e
            relative = candidate.as_posix()
            # A removed file git never tracked has nothing to stage and would fail the add
            if not (root / relative).exists() and not self._is_tracked(repo, relative):
                self.console.print(
                    f"  ⚠️ Git: {relative} is neither on disk nor tracked. Skipping."
                )
                continue
            relative_paths.append(relative)

        if not relative_paths:
            return
        try:
            repo.git.add("--all", "--", *relative_paths)
        except GitError as e:
            raise GitOperationError(f"Failed to stage files: {e}") from e
        self.console.print(f"  ✅ Git: Staged {len(relative_paths)} files.")
