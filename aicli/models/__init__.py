"""Models for the application."""

from .auth_store import AuthStore
from .backend_client import BackendClient
from .git_manager import GitManager
from .oauth_callback import OAuthCallbackServer

__all__ = ["AuthStore", "BackendClient", "GitManager", "OAuthCallbackServer"]
