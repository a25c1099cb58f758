"""
Ignore engine for code2prompt.

Combines the default excludes, project-local `.c2pignore` files, user excludes and user
includes into the decisions the directory walker needs.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

import pathspec

from .config import DEFAULT_EXCLUDE_GLOBS, IGNORE_FILE_NAME
from .utils import normalize_path

logger = logging.getLogger(__name__)


class IgnoreRule:
    """A single glob rule rooted at a directory of the traversal.

    Patterns use gitignore syntax; `**/` matches at any depth.
    """

    def __init__(self, pattern: str, exclude: bool = True, base: str = ""):
        """
        Initialize the rule.

        Args:
            pattern: Glob pattern without any negation prefix
            exclude: Whether a match excludes (True) or re-includes (False) the path
            base: Directory the rule is rooted at, relative to the traversal root
        """
        self.pattern = pattern
        self.exclude = exclude
        self.base = normalize_path(base).strip("/")
        self._spec = pathspec.PathSpec.from_lines("gitignore", [pattern])

    @classmethod
    def from_override(cls, line: str, base: str = "") -> IgnoreRule:
        """Parse an override rule: `!pattern` excludes, a bare pattern includes."""
        if line.startswith("!"):
            return cls(line[1:], exclude=True, base=base)
        return cls(line, exclude=False, base=base)

    @classmethod
    def from_ignore_line(cls, line: str, base: str = "") -> IgnoreRule:
        """Parse an ignore-file line: a bare pattern excludes, `!pattern` re-includes."""
        if line.startswith("!"):
            return cls(line[1:], exclude=False, base=base)
        return cls(line, exclude=True, base=base)

    def matches(self, rel_path: str, is_dir: bool = False) -> bool:
        """
        Check whether the rule matches a path.

        Args:
            rel_path: Path relative to the traversal root, forward slashes
            is_dir: Whether the path is a directory

        Returns:
            True if the pattern matches the path (or the directory form of it)
        """
        if self.base:
            prefix = self.base + "/"
            if not rel_path.startswith(prefix):
                return False
            rel_path = rel_path[len(prefix):]

        if self._spec.match_file(rel_path):
            return True
        return is_dir and self._spec.match_file(rel_path + "/")

    def __repr__(self) -> str:
        sign = "!" if self.exclude else ""
        return f"IgnoreRule({sign}{self.pattern!r}, base={self.base!r})"


class IgnoreRuleSet:
    """An ordered sequence of rules where later rules override earlier ones."""

    def __init__(self, rules: Iterable[IgnoreRule] = ()):
        self._rules: list[IgnoreRule] = list(rules)

    def add(self, rule: IgnoreRule) -> None:
        self._rules.append(rule)

    def extend(self, rules: Iterable[IgnoreRule]) -> None:
        self._rules.extend(rules)

    def decide(self, rel_path: str, is_dir: bool = False) -> bool | None:
        """
        Find the decision of the last matching rule.

        Returns:
            True to keep, False to exclude, None if no rule matched
        """
        for rule in reversed(self._rules):
            if rule.matches(rel_path, is_dir):
                return not rule.exclude
        return None

    def __iter__(self) -> Iterator[IgnoreRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    @classmethod
    def from_ignore_file(cls, ignore_file: Path, base: str = "") -> IgnoreRuleSet:
        """
        Load an ignore file.

        Blank lines and `#` comments are skipped. Unreadable files yield an empty set.

        Args:
            ignore_file: Path to the ignore file
            base: Directory of the ignore file, relative to the traversal root

        Returns:
            The rules of the file, in file order
        """
        try:
            with open(ignore_file, "r", encoding="utf-8", errors="replace") as f:
                lines = f.read().splitlines()
        except OSError as e:
            logger.debug("Cannot read ignore file %s: %s", ignore_file, e)
            return cls()

        rules = cls()
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                rules.add(IgnoreRule.from_ignore_line(line, base=base))
            except ValueError as e:
                logger.debug("Skipping invalid pattern %r in %s: %s", line, ignore_file, e)
        return rules


class IgnoreEngine:
    """
    Decides which entries survive traversal.

    User excludes are checked first, then the default excludes, then `.c2pignore` files
    (inner directories first, last matching rule per file). A default exclude cannot be
    undone by a `.c2pignore` negation; negations only re-include entries an outer
    `.c2pignore` excluded. Entries no rule matches are kept. Include patterns never
    re-enable an excluded entry; they only narrow the surviving files.
    """

    def __init__(
        self,
        root_path: Path,
        exclude_patterns: Iterable[str] | None = None,
        include_patterns: Iterable[str] | None = None,
        use_defaults: bool = True,
    ):
        """
        Initialize the engine.

        Args:
            root_path: Traversal root
            exclude_patterns: Compiled user exclude patterns (a leading `!` is optional)
            include_patterns: Compiled user include patterns
            use_defaults: Whether to apply `DEFAULT_EXCLUDE_GLOBS`
        """
        self.root_path = root_path.resolve()

        self.defaults = IgnoreRuleSet()
        if use_defaults:
            self.defaults.extend(IgnoreRule(p, exclude=True) for p in DEFAULT_EXCLUDE_GLOBS)

        self.user_excludes = IgnoreRuleSet()
        for pattern in exclude_patterns or ():
            override = pattern if pattern.startswith("!") else f"!{pattern}"
            self.user_excludes.add(IgnoreRule.from_override(override))

        self.include_patterns = list(include_patterns or ())
        self._include_spec: pathspec.PathSpec | None = None
        if self.include_patterns:
            self._include_spec = pathspec.PathSpec.from_lines("gitignore", self.include_patterns)
        self._path_includes = [
            p.lstrip("/") for p in self.include_patterns if "/" in p and not p.startswith("!")
        ]

        # Ignore-file rule sets keyed by their directory, relative to the root
        self._ignore_files: dict[str, IgnoreRuleSet] = {}

    @property
    def has_includes(self) -> bool:
        return self._include_spec is not None

    def load_ignore_file(self, directory: Path) -> bool:
        """
        Load the `.c2pignore` of a directory, if it has one.

        Args:
            directory: Directory inside the traversal root

        Returns:
            True if an ignore file was found and loaded
        """
        ignore_file = directory / IGNORE_FILE_NAME
        if not ignore_file.is_file():
            return False

        try:
            base = normalize_path(str(directory.resolve().relative_to(self.root_path)))
        except ValueError:
            return False
        if base == ".":
            base = ""

        rules = IgnoreRuleSet.from_ignore_file(ignore_file, base=base)
        self._ignore_files[base] = rules
        logger.debug("Loaded %d rules from %s", len(rules), ignore_file)
        return True

    def _applicable_ignore_files(self, rel_path: str) -> list[IgnoreRuleSet]:
        bases = [
            base
            for base in self._ignore_files
            if not base or rel_path.startswith(base + "/")
        ]
        bases.sort(key=lambda b: 0 if not b else b.count("/") + 1)
        return [self._ignore_files[b] for b in bases]

    def is_ignored(self, rel_path: str, is_dir: bool = False) -> bool:
        """
        Check whether an entry is excluded by defaults, ignore files or user excludes.

        Args:
            rel_path: Path relative to the root, forward slashes
            is_dir: Whether the entry is a directory

        Returns:
            True if the entry must be skipped
        """
        rel_path = normalize_path(rel_path)

        decision = self.user_excludes.decide(rel_path, is_dir)
        if decision is not None:
            return not decision

        if self.defaults.decide(rel_path, is_dir) is False:
            return True

        for layer in reversed(self._applicable_ignore_files(rel_path)):
            decision = layer.decide(rel_path, is_dir)
            if decision is not None:
                return not decision
        return False

    def keep(self, rel_path: str, is_dir: bool = False) -> bool:
        return not self.is_ignored(rel_path, is_dir)

    def matches_include(self, rel_path: str, is_dir: bool = False) -> bool:
        """
        Apply the include post-filter.

        Patterns use gitignore syntax. Patterns containing `/` additionally match when `*`
        spans directories, so `src/*.py` also selects `src/a/b.py`.

        Returns:
            True if no include patterns were given, or at least one matches
        """
        if self._include_spec is None:
            return True

        rel_path = normalize_path(rel_path)
        if self._include_spec.match_file(rel_path):
            return True
        if is_dir and self._include_spec.match_file(rel_path + "/"):
            return True
        return any(fnmatch.fnmatchcase(rel_path, p) for p in self._path_includes)
