"""Unit tests for GenerateWorkflow."""

from unittest.mock import Mock

import pytest

from aicli.exceptions import ApplyError, GitOperationError, RemoteCallError
from aicli.models import BackendClient, GitManager
from aicli.schemas import (
    GenerateConfig,
    GenerationRequest,
    GenerationResult,
    ProposedChange,
    ReviewDecision,
    ScannedFile,
    WorkflowPhase,
)
from aicli.services import (
    ChangeApplier,
    DecisionCollector,
    DiffPresenter,
    GenerateWorkflow,
    default_branch_name,
)


class TestDefaultBranchName:
    """Test cases for branch name derivation."""

    def test_slugifies_prompt(self):
        assert default_branch_name("Add Login Page!") == "feature/add-login-page-"

    def test_collapses_runs(self):
        assert default_branch_name("fix   the   bug") == "feature/fix-the-bug"

    def test_truncates(self):
        name = default_branch_name("x" * 100, max_length=50)
        assert len(name) == 50
        assert name.startswith("feature/xxx")

    def test_custom_prefix(self):
        assert default_branch_name("Tidy up", prefix="ai/") == "ai/tidy-up"

    @pytest.mark.parametrize("prompt", ["", "!!!", "  "])
    def test_empty_slug_falls_back(self, prompt):
        assert default_branch_name(prompt) == "feature/ai-changes"


class TestGenerateWorkflow:
    """Test cases for the generate state machine."""

    @pytest.fixture(autouse=True)
    def _setup(self, tmp_path, console):
        self.root = tmp_path
        self.console = console
        self.original = "console.log(0)\n"
        (tmp_path / "app.js").write_text(self.original, encoding="utf-8")

        self.mock_backend = Mock(spec=BackendClient)
        self.mock_backend.is_authenticated = True
        self.mock_backend.scan_project.return_value = [
            ScannedFile(
                path=str(tmp_path / "app.js"),
                relative_path="app.js",
                content=self.original,
            )
        ]

        self.mock_git = Mock(spec=GitManager)
        self.mock_git.is_repository.return_value = True
        self.mock_git.current_branch.return_value = "main"

        self.mock_collector = Mock(spec=DecisionCollector)
        self.mock_collector.confirm_branching.return_value = True
        self.mock_collector.choose_branch_name.side_effect = lambda default: default

        self.mock_applier = Mock(spec=ChangeApplier)
        self.mock_applier.apply.side_effect = lambda change: str(
            (self.root / change.target_path).resolve()
        )

    def _workflow(self, changes, summary="Add logging", **overrides):
        self.mock_backend.generate.return_value = GenerationResult(
            changes=changes, summary=summary
        )
        options = {"prompt": "Add logging", "project_root": self.root}
        options.update(overrides)
        return GenerateWorkflow(
            config=GenerateConfig(**options),
            backend=self.mock_backend,
            git_manager=self.mock_git,
            collector=self.mock_collector,
            presenter=DiffPresenter(),
            applier=self.mock_applier,
            console=self.console,
        )

    def _modify(self, content="console.log(2)\n", path="app.js"):
        return ProposedChange(target_path=path, action="modify", new_content=content)

    def _add(self, path, content="x"):
        return ProposedChange(target_path=path, action="add", new_content=content)

    def test_scenario_a_auto_confirm_without_git(self):
        """Test one add change with auto-confirm and git skipped."""
        workflow = self._workflow(
            [self._add("new.js", "console.log(1)")], auto_confirm=True, skip_git=True
        )

        report = workflow.run()

        assert report.phase == WorkflowPhase.DONE
        assert report.applied_paths == [str((self.root / "new.js").resolve())]
        self.mock_collector.collect.assert_not_called()
        assert self.mock_git.method_calls == []

    def test_scenario_b_identical_modify_is_skipped(self):
        """Test that a no-op modification never reaches review or apply."""
        workflow = self._workflow([self._modify(self.original)], skip_git=True)

        report = workflow.run()

        assert report.phase == WorkflowPhase.DONE
        assert report.summary == "Add logging"
        assert report.applied_paths == []
        self.mock_collector.collect.assert_not_called()
        self.mock_applier.apply.assert_not_called()
        assert "No effective changes detected" in self.console.file.getvalue()

    def test_scenario_c_abort_discards_confirmed_changes(self):
        """Test that abort after an apply decision applies nothing and reverts."""
        self.mock_collector.collect.side_effect = [
            ReviewDecision.APPLY,
            ReviewDecision.ABORT,
        ]
        workflow = self._workflow(
            [self._add("one.js"), self._add("two.js"), self._add("three.js")]
        )

        report = workflow.run()

        assert report.phase == WorkflowPhase.ABORTED
        assert report.applied_paths == []
        assert self.mock_collector.collect.call_count == 2
        self.mock_applier.apply.assert_not_called()
        self.mock_git.create_or_checkout.assert_called_once_with(
            self.root.resolve(), "feature/add-logging"
        )
        self.mock_git.checkout.assert_called_once_with(self.root.resolve(), "main")
        self.mock_git.stage.assert_not_called()

    def test_scenario_d_scan_failure_creates_no_branch(self):
        """Test that a failed scan ends in failed before any branch exists."""
        self.mock_backend.scan_project.side_effect = RemoteCallError(
            "Request to /api/file/scan failed: connection refused"
        )
        workflow = self._workflow([self._add("new.js")], auto_confirm=True)

        report = workflow.run()

        assert report.phase == WorkflowPhase.FAILED
        assert "connection refused" in report.error
        self.mock_git.create_or_checkout.assert_not_called()
        self.mock_backend.generate.assert_not_called()
        self.mock_applier.apply.assert_not_called()

    def test_generate_failure_is_fatal(self):
        """Test that a failed generation call mutates nothing."""
        workflow = self._workflow([], auto_confirm=True)
        self.mock_backend.generate.side_effect = RemoteCallError("Backend Error (502): bad gateway")

        report = workflow.run()

        assert report.phase == WorkflowPhase.FAILED
        assert report.error == "Backend Error (502): bad gateway"
        self.mock_git.create_or_checkout.assert_not_called()

    def test_apply_all_remaining_stops_prompting(self):
        """Test that apply-all-remaining applies every later change silently."""
        self.mock_collector.collect.side_effect = [
            ReviewDecision.SKIP,
            ReviewDecision.APPLY_ALL_REMAINING,
        ]
        changes = [self._add(f"f{i}.js") for i in range(4)]
        workflow = self._workflow(changes, skip_git=True)

        report = workflow.run()

        auto_flags = [c.args[2] for c in self.mock_collector.collect.call_args_list]
        assert auto_flags == [False, False]
        applied = [c.args[0].target_path for c in self.mock_applier.apply.call_args_list]
        assert applied == ["f1.js", "f2.js", "f3.js"]
        assert len(report.applied_paths) == 3

    def test_apply_failure_continues_batch(self):
        """Test that one failed apply is reported and the rest still run."""
        failed_path = str((self.root / "bad.js").resolve())

        def apply(change):
            if change.target_path == "bad.js":
                raise ApplyError(failed_path, RemoteCallError("Backend Error (403): denied"))
            return str((self.root / change.target_path).resolve())

        self.mock_applier.apply.side_effect = apply
        workflow = self._workflow(
            [self._add("good.js"), self._add("bad.js"), self._add("last.js")],
            auto_confirm=True,
        )

        report = workflow.run()

        assert report.phase == WorkflowPhase.DONE
        assert len(report.applied_paths) == 2
        assert report.failures[0].path == failed_path
        assert "denied" in report.failures[0].message
        staged = self.mock_git.stage.call_args.args[1]
        assert failed_path not in staged
        assert len(staged) == 2

    def test_staging_failure_is_reported(self):
        """Test that a staging error leaves applied changes in place."""
        self.mock_git.stage.side_effect = GitOperationError("Failed to stage files: locked")
        workflow = self._workflow([self._modify()], auto_confirm=True)

        report = workflow.run()

        assert report.phase == WorkflowPhase.DONE
        assert report.staging_error == "Failed to stage files: locked"
        assert len(report.applied_paths) == 1
        self.mock_git.checkout.assert_not_called()

    def test_auto_confirm_uses_explicit_branch(self):
        """Test that an explicit branch name wins over the derived one."""
        workflow = self._workflow(
            [self._modify()], auto_confirm=True, branch_name="ai/custom"
        )

        report = workflow.run()

        self.mock_git.create_or_checkout.assert_called_once_with(
            self.root.resolve(), "ai/custom"
        )
        self.mock_collector.confirm_branching.assert_not_called()
        assert report.working_branch == "ai/custom"
        assert report.original_branch == "main"

    def test_declining_git_disables_branch_and_staging(self):
        """Test that answering no to git operations skips them for the session."""
        self.mock_collector.confirm_branching.return_value = False
        self.mock_collector.collect.return_value = ReviewDecision.APPLY
        workflow = self._workflow([self._modify()])

        report = workflow.run()

        assert report.phase == WorkflowPhase.DONE
        self.mock_collector.choose_branch_name.assert_not_called()
        self.mock_git.create_or_checkout.assert_not_called()
        self.mock_git.stage.assert_not_called()
        assert "You skipped Git operations" in self.console.file.getvalue()

    def test_not_a_repository_is_reported_once(self):
        """Test that git steps are skipped when the root is not a repository."""
        self.mock_git.is_repository.return_value = False
        workflow = self._workflow([self._modify()], auto_confirm=True)

        report = workflow.run()

        assert report.phase == WorkflowPhase.DONE
        self.mock_git.current_branch.assert_not_called()
        self.mock_git.stage.assert_not_called()
        output = self.console.file.getvalue()
        assert output.count("Not a Git repository") == 1
        assert "git init" in output

    def test_nothing_confirmed_reverts_branch(self):
        """Test that skipping every change returns to the original branch."""
        self.mock_collector.collect.return_value = ReviewDecision.SKIP
        workflow = self._workflow([self._modify(), self._add("b.js")])

        report = workflow.run()

        assert report.phase == WorkflowPhase.DONE
        self.mock_applier.apply.assert_not_called()
        self.mock_git.checkout.assert_called_once_with(self.root.resolve(), "main")

    def test_empty_change_list_ends_early(self):
        """Test that no proposed changes means no branch and no review."""
        workflow = self._workflow([], auto_confirm=True)

        report = workflow.run()

        assert report.phase == WorkflowPhase.DONE
        self.mock_git.create_or_checkout.assert_not_called()
        self.mock_collector.collect.assert_not_called()
        assert "No changes proposed" in self.console.file.getvalue()

    def test_revert_failure_does_not_escalate(self):
        """Test that a failed revert on abort is only reported."""
        self.mock_collector.collect.return_value = ReviewDecision.ABORT
        self.mock_git.checkout.side_effect = GitOperationError("checkout blocked")
        workflow = self._workflow([self._modify()])

        report = workflow.run()

        assert report.phase == WorkflowPhase.ABORTED
        assert "checkout blocked" in self.console.file.getvalue()

    def test_branch_creation_failure_is_fatal(self):
        """Test that failing to create the working branch stops the run."""
        self.mock_git.create_or_checkout.side_effect = GitOperationError("bad ref name")
        workflow = self._workflow([self._modify()], auto_confirm=True)

        report = workflow.run()

        assert report.phase == WorkflowPhase.FAILED
        self.mock_applier.apply.assert_not_called()

    def test_missing_credential_fails_before_anything(self):
        """Test the credential precondition."""
        self.mock_backend.is_authenticated = False
        workflow = self._workflow([self._modify()], auto_confirm=True)

        report = workflow.run()

        assert report.phase == WorkflowPhase.FAILED
        assert "not logged in" in report.error
        self.mock_backend.scan_project.assert_not_called()
        self.mock_git.is_repository.assert_not_called()

    def test_invalid_root_fails(self):
        """Test the project root precondition."""
        workflow = self._workflow([self._modify()], project_root=self.root / "missing")

        report = workflow.run()

        assert report.phase == WorkflowPhase.FAILED
        assert "not a directory" in report.error

    def test_generation_request_contents(self):
        """Test the structured request sent to the generation endpoint."""
        workflow = self._workflow([], scan_paths=["src", "tests"], skip_git=True)

        workflow.run()

        self.mock_backend.scan_project.assert_called_once_with(
            ["src", "tests"], str(self.root.resolve())
        )
        request = self.mock_backend.generate.call_args.args[0]
        assert isinstance(request, GenerationRequest)
        assert request.user_prompt == "Add logging"
        assert request.scan_paths == ["src", "tests"]
        assert request.relevant_files[0].content == self.original
        assert request.additional_instructions
        assert not request.expected_output_format.startswith(" ")

    def test_modify_diffs_against_scan_snapshot(self):
        """Test that diffs use the scanned content, not the file on disk."""
        (self.root / "app.js").write_text("changed on disk\n", encoding="utf-8")
        workflow = self._workflow([self._modify(self.original)], skip_git=True)

        workflow.run()

        self.mock_collector.collect.assert_not_called()
