"""
Directory walker and tree builder for code2prompt.

Walks a root depth-first in lexicographic order, applies the ignore engine, and builds
both the source tree and the ordered list of file records.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Generator, Iterable
from dataclasses import dataclass
from pathlib import Path

from .config import DEFAULT_MAX_FILE_BYTES, TREE_ALWAYS_SHOW_DEPTH, FileRecord, ScanStats
from .ignore import IgnoreEngine
from .tree import TreeNode
from .utils import file_extension, label, normalize_content, normalize_path, wrap_code_block

logger = logging.getLogger(__name__)


@dataclass
class WalkEntry:
    """An entry that survived the ignore rules."""

    path: Path
    relative_path: str
    is_dir: bool
    depth: int


class FileScanner:
    """
    Scans a root for files to include in the prompt.

    Handles default and user excludes, `.c2pignore` files, the include post-filter,
    the size cap, content normalization and tree construction.
    """

    def __init__(
        self,
        root_path: Path,
        include_patterns: Iterable[str] | None = None,
        exclude_patterns: Iterable[str] | None = None,
        line_number: bool = False,
        relative_paths: bool = False,
        exclude_from_tree: bool = False,
        no_codeblock: bool = False,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    ):
        """
        Initialize the scanner.

        Args:
            root_path: Directory or file to scan
            include_patterns: Compiled include globs
            exclude_patterns: Compiled exclude globs
            line_number: Number lines in file content
            relative_paths: Use `<label>/<relative>` record paths
            exclude_from_tree: Produce an empty tree
            no_codeblock: Do not fence file content
            max_file_bytes: Maximum file size in bytes
        """
        self.root_path = root_path.resolve()
        self.label = label(self.root_path)
        self.line_number = line_number
        self.relative_paths = relative_paths
        self.exclude_from_tree = exclude_from_tree
        self.no_codeblock = no_codeblock
        self.max_file_bytes = max_file_bytes

        self.engine = IgnoreEngine(
            self.root_path,
            exclude_patterns=exclude_patterns,
            include_patterns=include_patterns,
        )

        self.tree = TreeNode(self.label)
        self.stats = ScanStats()

    def _read_record(self, file_path: Path, relative_path: str, display_path: str) -> FileRecord | None:
        """
        Read and normalize one file.

        Returns:
            The record, or None if the file is too big, unreadable or blank
        """
        try:
            size = file_path.stat().st_size
            if size > self.max_file_bytes:
                self.stats.files_skipped_size += 1
                logger.debug("Skipping %s: %d bytes exceeds limit", relative_path, size)
                return None
            with open(file_path, "rb") as f:
                data = f.read()
        except OSError as e:
            self.stats.files_unreadable += 1
            logger.debug("Skipping unreadable file %s: %s", file_path, e)
            return None

        code = normalize_content(data)
        if not code.strip():
            self.stats.files_skipped_empty += 1
            return None

        extension = file_extension(file_path)
        self.stats.files_included += 1
        self.stats.total_bytes_included += len(data)

        return FileRecord(
            path=display_path,
            extension=extension,
            code=wrap_code_block(code, extension, self.line_number, self.no_codeblock),
            relative_path=relative_path,
        )

    def _walk(self, directory: Path, parent_rel: str, depth: int) -> Generator[WalkEntry, None, None]:
        """Yield surviving entries below `directory` in depth-first, sorted order."""
        self.engine.load_ignore_file(directory)

        try:
            with os.scandir(directory) as entries:
                entries_list = sorted(entries, key=lambda e: e.name)
        except OSError as e:
            logger.debug("Cannot list %s: %s", directory, e)
            return

        for entry in entries_list:
            rel_path = f"{parent_rel}/{entry.name}" if parent_rel else entry.name
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                if not is_dir and entry.is_symlink() and os.path.isdir(entry.path):
                    logger.debug("Not following directory symlink %s", rel_path)
                    continue
            except OSError as e:
                logger.debug("Skipping %s: %s", rel_path, e)
                continue

            if self.engine.is_ignored(rel_path, is_dir=is_dir):
                self.stats.files_skipped_ignore += 1
                continue

            yield WalkEntry(path=Path(entry.path), relative_path=rel_path, is_dir=is_dir, depth=depth)

            if is_dir:
                yield from self._walk(Path(entry.path), rel_path, depth + 1)

    def scan(self) -> Generator[FileRecord, None, None]:
        """
        Scan the root and yield file records in discovery order.

        The tree is filled in as a side effect. Directories and files appear in it when
        they match the include filter or sit at most three levels below the root.

        Yields:
            FileRecord objects for each included, non-blank file
        """
        if self.root_path.is_file():
            yield from self._scan_single_file()
            return

        for entry in self._walk(self.root_path, "", 1):
            matches_include = self.engine.matches_include(entry.relative_path, is_dir=entry.is_dir)

            if not self.exclude_from_tree and (matches_include or entry.depth <= TREE_ALWAYS_SHOW_DEPTH):
                self.tree.add_relative_path(entry.relative_path)

            if entry.is_dir:
                continue

            self.stats.files_scanned += 1
            if not matches_include:
                self.stats.files_skipped_include += 1
                continue

            if self.relative_paths:
                display_path = f"{self.label}/{entry.relative_path}"
            else:
                display_path = normalize_path(str(entry.path))

            record = self._read_record(entry.path, entry.relative_path, display_path)
            if record is not None:
                yield record

    def _scan_single_file(self) -> Generator[FileRecord, None, None]:
        self.stats.files_scanned += 1
        record = self._read_record(self.root_path, self.root_path.name, str(self.root_path))
        if record is not None:
            yield record

    def render_tree(self) -> str:
        """Render the source tree collected by `scan`."""
        if self.exclude_from_tree:
            return ""
        if self.root_path.is_file():
            return str(self.root_path)
        return self.tree.render()


def traverse_directory(
    root_path: Path,
    include_patterns: Iterable[str] | None = None,
    exclude_patterns: Iterable[str] | None = None,
    line_number: bool = False,
    relative_paths: bool = False,
    exclude_from_tree: bool = False,
    no_codeblock: bool = False,
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
) -> tuple[str, list[FileRecord], ScanStats]:
    """
    Convenience function to scan a root.

    Returns:
        Tuple of (rendered source tree, list of FileRecord, ScanStats)

    Raises:
        FileNotFoundError: If the root does not exist
    """
    if not root_path.exists():
        raise FileNotFoundError(f"Path does not exist: {root_path}")

    scanner = FileScanner(
        root_path=root_path,
        include_patterns=include_patterns,
        exclude_patterns=exclude_patterns,
        line_number=line_number,
        relative_paths=relative_paths,
        exclude_from_tree=exclude_from_tree,
        no_codeblock=no_codeblock,
        max_file_bytes=max_file_bytes,
    )

    files = list(scanner.scan())
    return scanner.render_tree(), files, scanner.stats
