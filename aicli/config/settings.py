from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    CLI settings loaded from environment variables.

    The CLI calls ``load_dotenv()`` on start-up, so a ``.env`` file in the
    current directory is honored as well as the real environment.
    """

    # Backend service
    BACKEND_URL: str = "http://localhost:3000"
    REQUEST_TIMEOUT: float = 300.0  # LLM generation can take minutes

    # Authentication
    AUTH_CONFIG_PATH: str = str(Path.home() / ".ai-editor-config.json")
    OAUTH_CALLBACK_TIMEOUT: int = 300  # Seconds to wait for the browser redirect

    # Review and branching
    DIFF_PREVIEW_LINES: int = 20
    BRANCH_PREFIX: str = "feature/"
    BRANCH_NAME_MAX_LENGTH: int = 50


@lru_cache
def get_settings() -> Settings:
    return Settings()
