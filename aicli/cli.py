"""Command line entry point for aicli."""

from pathlib import Path
from typing import List, Optional
from urllib.parse import urlencode

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from aicli import __version__
from aicli.dependencies import (
    get_auth_store,
    get_backend_client,
    get_generate_workflow,
    get_settings,
)
from aicli.exceptions import AuthError, RemoteCallError
from aicli.models import OAuthCallbackServer
from aicli.schemas import AuthToken, GenerateConfig, WorkflowPhase

PROVIDERS = ("google", "github")

app = typer.Typer(
    name="aicli",
    help="An AI-powered tool for editing and updating code files.",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"aicli {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """AI-assisted code editing through the backend service."""
    load_dotenv()


def _split_paths(values: Optional[List[str]]) -> List[str]:
    """Accept both repeated options and comma separated lists."""
    paths: List[str] = []
    for value in values or []:
        paths.extend(part.strip() for part in value.split(",") if part.strip())
    return paths


def _require_token() -> AuthToken:
    try:
        token = get_auth_store(get_settings()).load()
    except AuthError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    if token is None:
        console.print(
            "[red]Error: You are not logged in. Please run `aicli login <provider>` first.[/red]"
        )
        raise typer.Exit(1)
    return token


@app.command()
def scan(
    paths: Optional[List[str]] = typer.Argument(
        None, help="Files or directories to scan (default: current directory)."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Output detailed information during scan."
    ),
    show_content: bool = typer.Option(
        False, "--show-content", "-s", help="Show a snippet of content for sample files."
    ),
):
    """Scan files or directories through the backend service."""
    settings = get_settings()
    target_paths = paths or ["."]
    project_root = Path.cwd()
    console.print(
        "Scanning paths: "
        + ", ".join(escape(str((project_root / p).resolve())) for p in target_paths)
    )
    if verbose:
        console.print("Verbose mode enabled.")

    backend = get_backend_client(settings, _require_token(), console)
    try:
        scanned_files = backend.scan_project(target_paths, str(project_root), verbose)
    except RemoteCallError as e:
        console.print(f"[red]Error during scan: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    finally:
        backend.close()

    console.print("\n--- Scan Complete ---")
    console.print(f"Found {len(scanned_files)} files.")
    if not scanned_files:
        return

    console.print("Sample files found:")
    for scanned_file in scanned_files[:5]:
        console.print(f"  - {escape(scanned_file.relative_path)}")
        if show_content:
            snippet = scanned_file.content[:200]
            if len(scanned_file.content) > 200:
                snippet += "..."
            indented = "\n".join(f"      {line}" for line in snippet.split("\n"))
            console.print(f"    Content snippet:\n{indented}\n", markup=False)
    if len(scanned_files) > 5:
        console.print(f"  ... and {len(scanned_files) - 5} more.")


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="Natural language description of the change."),
    path: Path = typer.Option(
        Path("."),
        "--path",
        "-p",
        help="Project root directory. Git operations and file resolution are based here.",
    ),
    scan_dirs: Optional[List[str]] = typer.Option(
        None, "--scan-dirs", help="Directory to scan within the project root (repeatable)."
    ),
    scan_files: Optional[List[str]] = typer.Option(
        None, "--scan-files", help="Single file to scan within the project root (repeatable)."
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Automatically confirm all proposed changes without prompting (USE WITH CAUTION!).",
    ),
    no_git: bool = typer.Option(
        False, "--no-git", help="Skip all Git operations (branching, staging)."
    ),
    branch: Optional[str] = typer.Option(
        None,
        "--branch",
        help="Branch name to create/checkout. If not provided, a default is suggested.",
    ),
):
    """Generate or modify code from a prompt via the backend LLM service.

    Exits with 1 when the run fails; a user abort exits with 0.
    """
    settings = get_settings()
    try:
        token = get_auth_store(settings).load()
    except AuthError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    config = GenerateConfig(
        prompt=prompt,
        project_root=(Path.cwd() / path).resolve(),
        scan_paths=_split_paths(scan_dirs) + _split_paths(scan_files) or ["."],
        auto_confirm=yes,
        skip_git=no_git,
        branch_name=branch,
        branch_prefix=settings.BRANCH_PREFIX,
        branch_name_max_length=settings.BRANCH_NAME_MAX_LENGTH,
    )
    backend = get_backend_client(settings, token, console)
    try:
        report = get_generate_workflow(config, settings, backend, console).run()
    finally:
        backend.close()

    if report.phase == WorkflowPhase.FAILED:
        raise typer.Exit(1)


@app.command()
def login(
    provider: str = typer.Argument(..., help="OAuth provider: google or github."),
    port: int = typer.Option(
        8080, "--port", "-p", help="Local port the CLI listens on for the OAuth callback."
    ),
):
    """Authenticate the CLI with the backend using OAuth."""
    if provider not in PROVIDERS:
        console.print(
            "[red]Invalid provider. Supported providers are 'google' and 'github'.[/red]"
        )
        raise typer.Exit(1)
    if port < 1024 or port > 65535:
        console.print("[red]Invalid port. Please specify a port between 1024 and 65535.[/red]")
        raise typer.Exit(1)

    settings = get_settings()
    auth_url = f"{settings.BACKEND_URL.rstrip('/')}/api/auth/{provider}"
    browser_url = f"{auth_url}?{urlencode({'cli_port': port})}"

    console.print(f"Initiating {provider} OAuth login...")
    console.print(f"CLI will listen on http://localhost:{port} for the callback.")
    console.print(f"Opening browser to: {browser_url}")

    server = OAuthCallbackServer(port, timeout=settings.OAUTH_CALLBACK_TIMEOUT)
    try:
        server.start()
        typer.launch(browser_url)
        token = server.wait_for_token()
        get_auth_store(settings).save(token)
    except AuthError as e:
        console.print(f"\n[red]OAuth login failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(
        f"\nSuccessfully logged in as {escape(token.user_email)} "
        f"({escape(token.user_name or 'N/A')}) via {token.provider}."
    )


@app.command()
def logout():
    """Clear the stored authentication token."""
    try:
        get_auth_store(get_settings()).clear()
    except AuthError as e:
        console.print(f"[red]Logout failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    console.print("Successfully logged out. Authentication token cleared.")


@app.command()
def whoami():
    """Display the currently authenticated user."""
    try:
        token = get_auth_store(get_settings()).load()
    except AuthError as e:
        console.print(f"[red]Error retrieving user info: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if token is None:
        console.print("Not currently logged in. Use `aicli login <provider>` to log in.")
        return

    console.print("Currently authenticated user:")
    console.print(f"  Email: {escape(token.user_email)}")
    console.print(f"  Name: {escape(token.user_name or 'N/A')}")
    console.print(f"  Provider: {token.provider}")
    console.print(f"  User ID: {escape(token.user_id)}")
    if token.user_role:
        console.print(f"  Role: {escape(token.user_role)}")
    if token.username:
        console.print(f"  Username: {escape(token.username)}")
    console.print(f"  Access Token (first 10 chars): {escape(token.access_token[:10])}...")


if __name__ == "__main__":
    app()
