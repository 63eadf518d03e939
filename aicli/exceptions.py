"""Exception types raised across the CLI."""

from typing import Optional


class AicliError(Exception):
    """Base class for all CLI errors."""


class PreconditionError(AicliError):
    """The workflow cannot start (missing credential, invalid project root)."""


class RemoteCallError(AicliError):
    """A backend request failed at the transport level or was rejected."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ApplyError(AicliError):
    """A single proposed change could not be applied."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"Failed to apply change for {path}: {cause}")
        self.path = path
        self.cause = cause


class GitOperationError(AicliError):
    """A git command (branch, checkout, stage) failed."""


class AbortRequested(AicliError):
    """The user chose to abort during change review."""


class AuthError(AicliError):
    """Credential storage or OAuth login failed."""
