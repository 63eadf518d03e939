"""Coordinates one generate run: scan, remote generation, review, apply, stage."""

import re
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from ..exceptions import (
    AbortRequested,
    ApplyError,
    GitOperationError,
    PreconditionError,
    RemoteCallError,
)
from ..protocols.backend_protocol import BackendProtocol
from ..protocols.git_manager_protocol import GitManagerProtocol
from ..schemas import (
    ApplyFailure,
    GenerateConfig,
    GenerationRequest,
    GenerationResult,
    ProposedChange,
    ReviewDecision,
    ScannedFile,
    WorkflowPhase,
    WorkflowReport,
    WorkflowState,
)
from .change_applier import ChangeApplier, resolve_target
from .decision_collector import DecisionCollector
from .diff_presenter import DiffPresenter
from .instructions import EXPECTED_OUTPUT_FORMAT, INSTRUCTION, strip_indentation


def default_branch_name(prompt: str, prefix: str = "feature/", max_length: int = 50) -> str:
    """Derive a branch name from the prompt text, e.g. 'feature/add-login-page'."""
    slug = re.sub(r"[^a-z0-9]+", "-", prompt.lower())
    if not slug.strip("-"):
        slug = "ai-changes"
    return f"{prefix}{slug}"[:max_length]


class GenerateWorkflow:
    """Runs the generate state machine for a single invocation.

    Review and apply are two separate passes: every change is reviewed first,
    and nothing is sent to the backend for mutation until the review loop has
    finished. An abort during review therefore discards the whole batch.
    """

    def __init__(
        self,
        config: GenerateConfig,
        backend: BackendProtocol,
        git_manager: GitManagerProtocol,
        collector: Optional[DecisionCollector] = None,
        presenter: Optional[DiffPresenter] = None,
        applier: Optional[ChangeApplier] = None,
        console: Optional[Console] = None,
    ):
        self.config = config
        self.backend = backend
        self.git_manager = git_manager
        self.console = console or Console()
        self.collector = collector or DecisionCollector(console=self.console)
        self.presenter = presenter or DiffPresenter()
        self.applier = applier or ChangeApplier(
            backend, config.project_root, console=self.console
        )

    def run(self) -> WorkflowReport:
        state = WorkflowState(project_root=Path(self.config.project_root).resolve())
        result: Optional[GenerationResult] = None

        self.console.print(f"AI Code Generation Request: '{escape(self.config.prompt)}'")
        self.console.print(f"Project root: {state.project_root}")
        self.console.print(
            f"Scanning paths (relative to project root): {', '.join(self.config.scan_paths)}"
        )

        try:
            self._check_preconditions(state)
            self._preflight_branch(state)
            scanned = self._scan(state)
            result = self._remote_generate(state, scanned)

            if not result.changes:
                self.console.print("No changes proposed by the LLM. Exiting.")
                return self._report(state, result, WorkflowPhase.DONE)

            self._create_working_branch(state)

            try:
                queue = self._review(state, result.changes)
            except AbortRequested:
                self.console.print("Aborting changes. No files modified.")
                self._revert_branch(state)
                return self._report(state, result, WorkflowPhase.ABORTED)

            if not queue:
                self.console.print("\nNo changes were confirmed. Exiting.")
                self._revert_branch(state)
                return self._report(state, result, WorkflowPhase.DONE)

            failures = self._apply(state, queue)
            staging_error = self._stage(state)
            report = self._report(
                state,
                result,
                WorkflowPhase.DONE,
                failures=failures,
                staging_error=staging_error,
            )
            self._print_outcome(state, report)
            return report

        except (PreconditionError, RemoteCallError, GitOperationError) as e:
            self.console.print(f"[red]Error during generation: {escape(str(e))}[/red]")
            report = self._report(state, result, WorkflowPhase.FAILED)
            report.error = str(e)
            return report

    # --- States ---

    def _check_preconditions(self, state: WorkflowState) -> None:
        if not self.backend.is_authenticated:
            raise PreconditionError(
                "You are not logged in. Please run `aicli login <provider>` first."
            )
        if not state.project_root.is_dir():
            raise PreconditionError(
                f"Project root does not exist or is not a directory: {state.project_root}"
            )

    def _preflight_branch(self, state: WorkflowState) -> None:
        state.phase = WorkflowPhase.PREFLIGHT_BRANCH
        if self.config.skip_git:
            self.console.print("\n--- Git: Skipping Git operations as requested. ---")
            return

        if not self.git_manager.is_repository(state.project_root):
            self.console.print(
                "\n--- Git: Not a Git repository. Skipping Git operations. ---"
            )
            return

        state.in_repository = True
        state.original_branch = self.git_manager.current_branch(state.project_root)
        self.console.print(
            f"\n--- Git: Detected Git repository. Current branch: {state.original_branch} ---"
        )

        suggestion = default_branch_name(
            self.config.prompt,
            prefix=self.config.branch_prefix,
            max_length=self.config.branch_name_max_length,
        )
        if self.config.auto_confirm:
            branch_name = self.config.branch_name or suggestion
            if not self.config.branch_name:
                self.console.print(f"Auto-creating branch: {branch_name}")
        else:
            if not self.collector.confirm_branching():
                self.console.print("Skipping Git operations for this session.")
                return
            branch_name = self.config.branch_name or self.collector.choose_branch_name(
                suggestion
            )

        state.git_enabled = True
        state.planned_branch = branch_name

    def _scan(self, state: WorkflowState) -> List[ScannedFile]:
        state.phase = WorkflowPhase.SCANNING
        self.console.print("\n--- Step 1: Scanning project files ---")
        scanned = self.backend.scan_project(
            self.config.scan_paths, str(state.project_root)
        )
        self.console.print(f"Found {len(scanned)} files.")

        # The only snapshot of on-disk content; all diffs are computed against it
        for scanned_file in scanned:
            path = resolve_target(state.project_root, scanned_file.path)
            state.original_contents[path] = scanned_file.content
        return scanned

    def _remote_generate(
        self, state: WorkflowState, scanned: List[ScannedFile]
    ) -> GenerationResult:
        state.phase = WorkflowPhase.REMOTE_GENERATE
        request = GenerationRequest(
            user_prompt=self.config.prompt,
            project_root=str(state.project_root),
            scan_paths=self.config.scan_paths,
            relevant_files=scanned,
            additional_instructions=strip_indentation(INSTRUCTION),
            expected_output_format=strip_indentation(EXPECTED_OUTPUT_FORMAT),
        )

        self.console.print("\n--- Step 2: Calling LLM ---")
        self.console.print("Please wait, this may take a while...")
        result = self.backend.generate(request)

        self.console.print("\n--- Step 3: LLM Proposed Changes ---")
        self.console.print(f"Summary: {escape(result.summary)}")
        if result.thought_process:
            self.console.print(f"Thought Process:\n{escape(result.thought_process)}")
        return result

    def _create_working_branch(self, state: WorkflowState) -> None:
        if not state.git_enabled or not state.planned_branch:
            return
        self.git_manager.create_or_checkout(state.project_root, state.planned_branch)
        state.working_branch = state.planned_branch

    def _review(
        self, state: WorkflowState, changes: List[ProposedChange]
    ) -> List[ProposedChange]:
        state.phase = WorkflowPhase.REVIEWING
        self.console.print("\nReviewing Proposed File Changes:")
        auto_apply = self.config.auto_confirm
        queue: List[ProposedChange] = []

        for change in changes:
            path = resolve_target(state.project_root, change.target_path)
            display_path = self._display_path(state, path)
            self.console.print(
                f"\n--- Proposed Change for: {escape(display_path)} ({change.action.value.upper()}) ---"
            )
            if change.rationale:
                self.console.print(f"Reason: {escape(change.rationale)}")

            block = self.presenter.present(change, state.original_contents.get(path))
            self.console.print(self.presenter.render(block))
            if block.is_noop:
                continue

            if auto_apply:
                self.console.print("Auto-confirming this change.")
                decision = ReviewDecision.APPLY
            else:
                decision = self.collector.collect(
                    change, block, False, display_path=display_path
                )
            if decision == ReviewDecision.ABORT:
                raise AbortRequested(display_path)
            if decision == ReviewDecision.SKIP:
                self.console.print(f"Skipping change for {escape(display_path)}.")
                continue
            if decision == ReviewDecision.APPLY_ALL_REMAINING:
                auto_apply = True
            queue.append(change)

        return queue

    def _apply(
        self, state: WorkflowState, queue: List[ProposedChange]
    ) -> List[ApplyFailure]:
        state.phase = WorkflowPhase.APPLYING
        self.console.print("\n--- Applying Confirmed Changes ---")
        failures: List[ApplyFailure] = []
        for change in queue:
            try:
                path = self.applier.apply(change)
            except ApplyError as e:
                self.console.print(f"[red]{escape(str(e))}[/red]")
                failures.append(ApplyFailure(path=e.path, message=str(e.cause)))
                continue
            state.applied_paths.append(path)
        return failures

    def _stage(self, state: WorkflowState) -> Optional[str]:
        if not state.git_enabled or not state.applied_paths:
            return None
        state.phase = WorkflowPhase.POSTFLIGHT_STAGE
        self.console.print("\n--- Git: Staging changes ---")
        try:
            self.git_manager.stage(state.project_root, state.applied_paths)
        except GitOperationError as e:
            self.console.print(f"  ❌ Git: {escape(str(e))}")
            return str(e)
        return None

    def _revert_branch(self, state: WorkflowState) -> None:
        if not state.working_branch:
            return
        if not state.original_branch:
            self.console.print(
                "[yellow]Original branch unknown (detached HEAD); staying on "
                f"{state.working_branch}.[/yellow]"
            )
            return
        self.console.print(f"Reverting to original branch: {state.original_branch}")
        try:
            self.git_manager.checkout(state.project_root, state.original_branch)
        except GitOperationError as e:
            self.console.print(f"  ⚠️ Git: Could not revert branch: {escape(str(e))}")

    # --- Reporting ---

    @staticmethod
    def _display_path(state: WorkflowState, path: str) -> str:
        try:
            return Path(path).relative_to(state.project_root).as_posix()
        except ValueError:
            return path

    @staticmethod
    def _report(
        state: WorkflowState,
        result: Optional[GenerationResult],
        phase: WorkflowPhase,
        failures: Optional[List[ApplyFailure]] = None,
        staging_error: Optional[str] = None,
    ) -> WorkflowReport:
        state.phase = phase
        return WorkflowReport(
            phase=phase,
            summary=result.summary if result else "",
            applied_paths=list(state.applied_paths),
            failures=failures or [],
            staging_error=staging_error,
            original_branch=state.original_branch,
            working_branch=state.working_branch,
        )

    def _print_outcome(self, state: WorkflowState, report: WorkflowReport) -> None:
        if report.failures:
            self.console.print(
                f"\n--- Applied {len(report.applied_paths)} changes, "
                f"{len(report.failures)} failed ---"
            )
            for failure in report.failures:
                self.console.print(f"[red]  - {escape(failure.path)}: {escape(failure.message)}[/red]")
        else:
            self.console.print("\n--- Changes Applied Successfully! ---")
        for path in report.applied_paths:
            self.console.print(f"  - {self._display_path(state, path)}")

        self.console.print("\nNext Steps:")
        if state.git_enabled:
            self.console.print(
                "1. Your changes have been applied and staged on branch "
                f"'{state.working_branch or state.original_branch}'."
            )
            self.console.print("2. Review the changes using 'git diff --staged'.")
            self.console.print("3. Commit your changes:")
            self.console.print(f"   git commit -m '{escape(report.summary)}'")
            self.console.print(
                "4. Run your tests to ensure everything still works as expected."
            )
            if state.original_branch:
                self.console.print(
                    "5. If you want to revert to the previous branch: "
                    f"git checkout {state.original_branch}"
                )
            return

        self.console.print(
            "1. It's highly recommended to review the changes in your editor."
        )
        if state.in_repository:
            self.console.print(
                "2. You skipped Git operations. To commit, you'll need to manually:"
            )
            self.console.print("   git add .")
            self.console.print(f"   git commit -m '{escape(report.summary)}'")
        else:
            self.console.print(
                "2. This is not a Git repository. Consider initializing one if this is a project:"
            )
            self.console.print("   git init")
            self.console.print("   git add .")
            self.console.print("   git commit -m 'Initial commit by AI Editor'")
        self.console.print("3. Run your tests to ensure everything still works as expected.")
