"""
Git context for code2prompt.

Collects the working tree diff, the diff between two refs and the log between two refs
for a root directory. Any git failure yields an empty string.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# A missing git executable must not break imports; commands then fail and yield ""
os.environ.setdefault("GIT_PYTHON_REFRESH", "quiet")

import git  # noqa: E402

logger = logging.getLogger(__name__)


def _open_repo(path: Path) -> git.Repo | None:
    """Open the repository containing `path`, or return None if there is none."""
    try:
        return git.Repo(path, search_parent_directories=True)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
        logger.debug("No git repository at %s: %s", path, e)
        return None


def get_git_diff(path: Path) -> str:
    """Diff of the working tree and index against HEAD.

    Args:
        path: Directory inside the repository.

    Returns:
        Unified diff text, or an empty string if unavailable.
    """
    repo = _open_repo(path)
    if repo is None:
        return ""
    try:
        with repo:
            return repo.git.diff("HEAD", "--no-color")
    except (git.GitError, OSError) as e:
        logger.debug("git diff failed for %s: %s", path, e)
        return ""


def get_git_diff_between_branches(path: Path, branch1: str, branch2: str) -> str:
    """Diff between two refs.

    Args:
        path: Directory inside the repository.
        branch1: Base ref.
        branch2: Compared ref.

    Returns:
        Unified diff text, or an empty string if either ref is unknown.
    """
    repo = _open_repo(path)
    if repo is None:
        return ""
    try:
        with repo:
            return repo.git.diff(branch1, branch2, "--no-color")
    except (git.GitError, OSError) as e:
        logger.debug("git diff %s %s failed for %s: %s", branch1, branch2, path, e)
        return ""


def get_git_log(path: Path, branch1: str, branch2: str) -> str:
    """One-line log of the commits reachable from `branch2` but not from `branch1`.

    Args:
        path: Directory inside the repository.
        branch1: Excluded ref.
        branch2: Included ref.

    Returns:
        Log text, or an empty string if unavailable.
    """
    repo = _open_repo(path)
    if repo is None:
        return ""
    try:
        with repo:
            return repo.git.log(f"{branch1}..{branch2}", "--oneline", "--no-color")
    except (git.GitError, OSError) as e:
        logger.debug("git log %s..%s failed for %s: %s", branch1, branch2, path, e)
        return ""
