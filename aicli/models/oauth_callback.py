"""One-shot local HTTP server that captures the OAuth redirect."""

import threading
import time
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from pydantic import ValidationError

from ..exceptions import AuthError
from ..schemas import AuthToken

REQUIRED_PARAMS = ("accessToken", "userId", "userEmail", "provider")
OPTIONAL_PARAMS = ("userName", "userImage", "userRole", "username")

SUCCESS_PAGE = (
    "<h1>Authentication Successful!</h1>"
    "<p>You can now close this tab and return to the AI Editor CLI.</p>"
    "<script>window.close();</script>"
)
FAILURE_PAGE = "<h1>Authentication Failed!</h1><p>Missing required parameters.</p>"

ResultHandler = Callable[[Optional[AuthToken], Optional[str]], None]


def create_callback_app(on_result: ResultHandler) -> FastAPI:
    """Build the callback app; on_result receives (token, None) or (None, error)."""
    app = FastAPI(title="aicli OAuth callback", docs_url=None, redoc_url=None)

    @app.get("/auth/callback", response_class=HTMLResponse)
    async def auth_callback(request: Request):
        params = request.query_params
        if any(not params.get(name) for name in REQUIRED_PARAMS):
            on_result(None, "Missing authentication parameters in callback.")
            return HTMLResponse(FAILURE_PAGE, status_code=400)

        fields = {name: params[name] for name in REQUIRED_PARAMS}
        fields.update({name: params[name] for name in OPTIONAL_PARAMS if params.get(name)})
        try:
            token = AuthToken.model_validate(fields)
        except ValidationError as e:
            on_result(None, f"Invalid authentication parameters in callback: {e}")
            return HTMLResponse(FAILURE_PAGE, status_code=400)

        on_result(token, None)
        return HTMLResponse(SUCCESS_PAGE)

    return app


class OAuthCallbackServer:
    """Serves the callback app on localhost until one redirect arrives."""

    def __init__(self, port: int, timeout: float = 300.0, host: str = "127.0.0.1"):
        self.port = port
        self.timeout = timeout
        self.host = host
        self._token: Optional[AuthToken] = None
        self._error: Optional[str] = None
        self._received = threading.Event()
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    def _on_result(self, token: Optional[AuthToken], error: Optional[str]) -> None:
        self._token = token
        self._error = error
        self._received.set()

    def start(self) -> None:
        config = uvicorn.Config(
            create_callback_app(self._on_result),
            host=self.host,
            port=self.port,
            log_level="warning",
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._server.run, daemon=True)
        self._thread.start()

        while not self._server.started:
            if not self._thread.is_alive():
                raise AuthError(
                    f"Port {self.port} is already in use. "
                    "Please specify a different port using --port."
                )
            time.sleep(0.05)

    def wait_for_token(self) -> AuthToken:
        """Block until the callback fires or the timeout elapses."""
        try:
            if not self._received.wait(self.timeout):
                raise AuthError("Authentication callback timed out.")
        finally:
            self.stop()

        if self._error or self._token is None:
            raise AuthError(self._error or "Authentication failed.")
        return self._token

    def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=5)
