import json
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from ..exceptions import AuthError
from ..schemas import AuthToken


class AuthStore:
    """Persists the OAuth credential as JSON in the user's home directory."""

    def __init__(self, config_path: Union[str, Path]):
        self.config_path = Path(config_path).expanduser()

    def load(self) -> Optional[AuthToken]:
        """Return the stored token, or None if nobody is logged in."""
        try:
            raw = self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise AuthError(f"Failed to read authentication token: {e}") from e

        try:
            return AuthToken.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise AuthError(f"Failed to read authentication token: {e}") from e

    def save(self, token: AuthToken) -> None:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(
                token.model_dump_json(by_alias=True, exclude_none=True, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise AuthError(f"Failed to store authentication token: {e}") from e

    def clear(self) -> None:
        """Delete the stored token; a missing file is already clear."""
        try:
            self.config_path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise AuthError(f"Failed to clear authentication token: {e}") from e
