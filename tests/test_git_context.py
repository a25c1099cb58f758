"""Tests for the git_context module."""

import shutil

import git
import pytest

from code2prompt.git_context import get_git_diff, get_git_diff_between_branches, get_git_log

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


@pytest.fixture
def git_repo(tmp_path):
    """Create a repository with a `main` and a `feature` branch."""
    repo = git.Repo.init(tmp_path, initial_branch="main")
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")

    (tmp_path / "app.py").write_text("print('v1')\n")
    repo.index.add(["app.py"])
    repo.index.commit("Initial commit")

    repo.git.checkout("-b", "feature")
    (tmp_path / "app.py").write_text("print('v2')\n")
    repo.index.add(["app.py"])
    repo.index.commit("Update app")
    repo.git.checkout("main")

    yield tmp_path
    repo.close()


class TestOutsideRepository:
    """Tests for paths that are not inside a repository."""

    def test_empty_results(self, tmp_path):
        """Test that every query yields an empty string."""
        assert get_git_diff(tmp_path) == ""
        assert get_git_diff_between_branches(tmp_path, "main", "feature") == ""
        assert get_git_log(tmp_path, "main", "feature") == ""

    def test_missing_path(self, tmp_path):
        """Test that a missing path yields an empty string."""
        assert get_git_diff(tmp_path / "missing") == ""


@requires_git
class TestInsideRepository:
    """Tests against a real repository."""

    def test_clean_working_tree(self, git_repo):
        """Test that a clean tree has no diff."""
        assert get_git_diff(git_repo) == ""

    def test_working_tree_diff(self, git_repo):
        """Test the diff of uncommitted changes."""
        (git_repo / "app.py").write_text("print('dirty')\n")

        diff = get_git_diff(git_repo)

        assert "-print('v1')" in diff
        assert "+print('dirty')" in diff

    def test_diff_between_branches(self, git_repo):
        """Test the diff between two branches."""
        diff = get_git_diff_between_branches(git_repo, "main", "feature")

        assert "+print('v2')" in diff

    def test_log_between_branches(self, git_repo):
        """Test the one-line log between two branches."""
        log = get_git_log(git_repo, "main", "feature")

        assert log.endswith("Update app")
        assert "Initial commit" not in log

    def test_unknown_branch(self, git_repo):
        """Test that an unknown ref yields an empty string."""
        assert get_git_diff_between_branches(git_repo, "main", "nope") == ""
        assert get_git_log(git_repo, "nope", "feature") == ""
