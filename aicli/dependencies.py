from typing import Optional

from rich.console import Console

from aicli.config.settings import Settings, get_settings  # noqa: F401
from aicli.models import AuthStore, BackendClient, GitManager
from aicli.schemas import AuthToken, GenerateConfig
from aicli.services import (
    ChangeApplier,
    DecisionCollector,
    DiffPresenter,
    GenerateWorkflow,
)


def get_auth_store(settings: Settings) -> AuthStore:
    return AuthStore(settings.AUTH_CONFIG_PATH)


def get_backend_client(
    settings: Settings, auth_token: Optional[AuthToken], console: Console
) -> BackendClient:
    return BackendClient(
        base_url=settings.BACKEND_URL,
        auth_token=auth_token,
        timeout=settings.REQUEST_TIMEOUT,
        console=console,
    )


def get_git_manager(console: Console) -> GitManager:
    return GitManager(console=console)


# The workflow depends on the collaborators built above
def get_generate_workflow(
    config: GenerateConfig,
    settings: Settings,
    backend: BackendClient,
    console: Console,
) -> GenerateWorkflow:
    return GenerateWorkflow(
        config=config,
        backend=backend,
        git_manager=get_git_manager(console),
        collector=DecisionCollector(console=console),
        presenter=DiffPresenter(preview_lines=settings.DIFF_PREVIEW_LINES),
        applier=ChangeApplier(backend, config.project_root, console=console),
        console=console,
    )
