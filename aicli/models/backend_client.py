import json
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError
from rich.console import Console

from ..exceptions import RemoteCallError
from ..schemas import AuthToken, GenerationRequest, GenerationResult, ScannedFile

# A valid JSON escape pair, or a lone backslash that starts none
_ESCAPE_RE = re.compile(r'\\(["\\/bfnrtu])|\\')

_scanned_files_adapter = TypeAdapter(List[ScannedFile])


def repair_bad_escapes(text: str) -> str:
    """Escape lone backslashes that do not begin a valid JSON escape sequence.

    LLM output frequently contains Windows paths or regexes with single
    backslashes inside string values (``"C:\\path"``), which strict JSON
    parsers reject. Valid escapes such as ``\\n`` or ``\\\\`` are left as is.
    """
    return _ESCAPE_RE.sub(
        lambda match: match.group(0) if match.group(1) else "\\\\", text
    )


class BackendClient:
    """Authenticated JSON client for the code-generation backend."""

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[AuthToken] = None,
        timeout: float = 300.0,
        http_client: Optional[httpx.Client] = None,
        console: Optional[Console] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.console = console or Console()
        self._client = http_client or httpx.Client(
            base_url=self.base_url, timeout=timeout
        )

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth_token and self.auth_token.access_token)

    def close(self) -> None:
        self._client.close()

    def _headers(self, endpoint: str) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.is_authenticated:
            headers["Authorization"] = f"Bearer {self.auth_token.access_token}"
        else:
            self.console.print(
                f"[yellow]Warning: No authentication token found for request to {endpoint}. "
                "Request might fail if backend requires auth.[/yellow]"
            )
        return headers

    def _post(
        self,
        endpoint: str,
        payload: Any,
        params: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            response = self._client.post(
                endpoint,
                content=json.dumps(payload),
                params=params,
                headers=self._headers(endpoint),
            )
        except httpx.HTTPError as e:
            raise RemoteCallError(f"Request to {endpoint} failed: {e}") from e

        if not response.is_success:
            raise RemoteCallError(
                f"Backend Error ({response.status_code}): {self._error_message(response)}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase or "Unknown error parsing backend response body"

        message = body.get("message") if isinstance(body, dict) else None
        if isinstance(message, list):
            return ", ".join(str(item) for item in message)
        if message:
            return str(message)
        return response.reason_phrase or "Unknown error"

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return json.loads(response.text)
        except json.JSONDecodeError:
            pass
        try:
            return json.loads(repair_bad_escapes(response.text))
        except json.JSONDecodeError as e:
            raise RemoteCallError(f"Backend returned malformed JSON: {e}") from e

    # --- LLM operations ---

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Call the backend LLM endpoint and validate the proposed changes."""
        response = self._post(
            "/api/llm/generate-llm",
            request.model_dump(by_alias=True),
            params={"projectRoot": request.project_root},
        )
        try:
            return GenerationResult.model_validate(self._json(response))
        except ValidationError as e:
            raise RemoteCallError(f"Unexpected generation response: {e}") from e

    # --- File scanning ---

    def scan_project(
        self, scan_paths: List[str], project_root: str, verbose: bool = False
    ) -> List[ScannedFile]:
        """Scan project files through the backend file service."""
        response = self._post(
            "/api/file/scan",
            {"scanPaths": scan_paths, "projectRoot": project_root, "verbose": verbose},
        )
        try:
            return _scanned_files_adapter.validate_python(self._json(response))
        except ValidationError as e:
            raise RemoteCallError(f"Unexpected scan response: {e}") from e

    # --- File operations ---

    def _ack(self, response: httpx.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {"result": body}

    def create_file(self, file_path: str, content: str) -> Dict[str, Any]:
        response = self._post(
            "/api/file/create",
            {"filePath": file_path, "isDirectory": False, "content": content},
        )
        return self._ack(response)

    def write_file(self, file_path: str, content: str) -> Dict[str, Any]:
        response = self._post(
            "/api/file/write", {"filePath": file_path, "content": content}
        )
        return self._ack(response)

    def delete_file(self, file_path: str) -> Dict[str, Any]:
        response = self._post("/api/file/delete", {"filePath": file_path})
        return self._ack(response)
