import io
from pathlib import Path

import pytest
from git import Actor, Repo
from rich.console import Console

AUTHOR = Actor("Test User", "test@example.com")


@pytest.fixture
def console() -> Console:
    """Console writing to an in-memory buffer without colors."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def git_repo(tmp_path: Path) -> Repo:
    """A repository on 'main' with one committed file, app.js."""
    repo = Repo.init(tmp_path / "project")
    work_tree = Path(repo.working_tree_dir)
    (work_tree / "app.js").write_text("console.log(0)\n", encoding="utf-8")
    repo.index.add(["app.js"])
    repo.index.commit("initial commit", author=AUTHOR, committer=AUTHOR)
    repo.git.branch("-M", "main")
    return repo
