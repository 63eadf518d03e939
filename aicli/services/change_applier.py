from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.markup import escape

from ..exceptions import ApplyError, RemoteCallError
from ..protocols.backend_protocol import BackendProtocol
from ..schemas import ChangeAction, ProposedChange


def resolve_target(project_root: Union[str, Path], target_path: str) -> str:
    """Absolute path of a change target; relative paths are taken from the root."""
    path = Path(target_path)
    if not path.is_absolute():
        path = Path(project_root) / path
    return str(path.resolve())


class ChangeApplier:
    """Sends a confirmed change to the backend file service."""

    def __init__(
        self,
        backend: BackendProtocol,
        project_root: Union[str, Path],
        console: Optional[Console] = None,
    ):
        self.backend = backend
        self.project_root = Path(project_root)
        self.console = console or Console()

    def apply(self, change: ProposedChange) -> str:
        """Apply one change and return the absolute path that was mutated.

        Raises ApplyError when the backend rejects the mutation. No retries
        are attempted.
        """
        path = resolve_target(self.project_root, change.target_path)
        try:
            if change.action == ChangeAction.ADD:
                self.console.print(f"Creating new file: {escape(change.target_path)}")
                self.backend.create_file(path, change.new_content or "")
            elif change.action == ChangeAction.MODIFY:
                self.console.print(f"Modifying file: {escape(change.target_path)}")
                self.backend.write_file(path, change.new_content or "")
            else:
                self.console.print(f"Deleting file: {escape(change.target_path)}")
                self.backend.delete_file(path)
        except RemoteCallError as e:
            raise ApplyError(path, e) from e
        return path
