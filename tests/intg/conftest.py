from pathlib import Path
from typing import List

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from aicli.models import BackendClient
from aicli.schemas import AuthToken


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"statusCode": status_code, "message": message}, status_code=status_code
    )


def create_fake_backend() -> FastAPI:
    """In-process backend that scans and mutates files on the local disk.

    Generation returns whatever is stored in ``app.state.changes``.
    """
    app = FastAPI()
    app.state.changes = []
    app.state.generate_requests = []

    def _authorized(request: Request) -> bool:
        return request.headers.get("Authorization", "").startswith("Bearer ")

    @app.post("/api/file/scan")
    async def scan(request: Request):
        if not _authorized(request):
            return _error(401, "Unauthorized")
        body = await request.json()
        root = Path(body["projectRoot"])
        found: List[Path] = []
        for scan_path in body["scanPaths"]:
            target = (root / scan_path).resolve()
            if target.is_file():
                found.append(target)
            elif target.is_dir():
                found.extend(
                    p
                    for p in sorted(target.rglob("*"))
                    if p.is_file() and ".git" not in p.parts
                )
        return [
            {
                "filePath": str(p),
                "relativePath": p.relative_to(root).as_posix(),
                "content": p.read_text(encoding="utf-8"),
            }
            for p in found
        ]

    @app.post("/api/llm/generate-llm")
    async def generate(request: Request):
        if not _authorized(request):
            return _error(401, "Unauthorized")
        app.state.generate_requests.append(await request.json())
        return {"changes": app.state.changes, "summary": "Fake change set"}

    @app.post("/api/file/create")
    async def create(request: Request):
        body = await request.json()
        path = Path(body["filePath"])
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body["content"], encoding="utf-8")
        return {"success": True}

    @app.post("/api/file/write")
    async def write(request: Request):
        body = await request.json()
        Path(body["filePath"]).write_text(body["content"], encoding="utf-8")
        return {"success": True}

    @app.post("/api/file/delete")
    async def delete(request: Request):
        body = await request.json()
        path = Path(body["filePath"])
        if not path.exists():
            return _error(404, f"File not found: {path}")
        path.unlink()
        return {"success": True}

    return app


@pytest.fixture
def fake_backend() -> FastAPI:
    return create_fake_backend()


@pytest.fixture
def backend_client(fake_backend, console):
    token = AuthToken(
        access_token="intg-token",
        user_id="1",
        user_email="dev@example.com",
        provider="google",
    )
    client = BackendClient(
        "http://testserver",
        token,
        http_client=TestClient(fake_backend),
        console=console,
    )
    yield client
    client.close()
