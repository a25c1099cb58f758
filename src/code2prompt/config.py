"""
Configuration models and defaults for code2prompt.

Holds the run configuration, the per-file record handed to templates, scan statistics,
and the built-in exclude list applied to every directory traversal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Per-file size cap; larger files are skipped rather than read into memory
DEFAULT_MAX_FILE_BYTES = 5 * 1024 * 1024

# Default token sampling rate when `-s` is given without a value
DEFAULT_SAMPLE_RATE = 10.0

# Name of the project-local ignore file honored during traversal
IGNORE_FILE_NAME = ".c2pignore"

# Directory depth (in path components) up to which entries always appear in the tree
TREE_ALWAYS_SHOW_DEPTH = 3

DEFAULT_ENCODING = "cl100k"

# CLI encoding name -> (tiktoken encoding, model description)
ENCODINGS: dict[str, tuple[str, str]] = {
    "cl100k": ("cl100k_base", "ChatGPT models, text-embedding-ada-002"),
    "p50k": ("p50k_base", "Code models, text-davinci-002, text-davinci-003"),
    "p50k_edit": ("p50k_edit", "Edit models like text-davinci-edit-001, code-davinci-edit-001"),
    "r50k": ("r50k_base", "GPT-3 models like davinci"),
    "gpt2": ("gpt2", "GPT-3 models like davinci"),
}

# Reserved include/exclude shortcuts and their glob expansions
PATTERN_SHORTCUTS: dict[str, list[str]] = {
    "docker": ["**/Dockerfile", "**/docker-compose.yml", "**/docker-compose.yaml"],
    "env": ["**/.env", "**/.env.*"],
}

# Default glob patterns to exclude (gitignore syntax, rooted at the traversal root)
DEFAULT_EXCLUDE_GLOBS: list[str] = [
    # Version control
    "**/.git/**",
    "**/.svn/**",
    "**/.hg/**",
    # Editor / OS state
    "**/.DS_Store",
    "**/.idea/**",
    "**/.vscode/**",
    "**/*.swp",
    "**/*.swo",
    "**/.history/**",
    "**/.cache/**",
    "**/tmp/**",
    "**/temp/**",
    "**/Thumbs.db",
    # Python
    "**/__pycache__/**",
    "**/.pytest_cache/**",
    "**/.mypy_cache/**",
    "**/.venv/**",
    "**/venv/**",
    "**/.virtualenv/**",
    # Node / JS / TS
    "**/node_modules/**",
    "**/npm-debug.log",
    "**/yarn.lock",
    "**/pnpm-lock.yaml",
    "**/package-lock.json",
    "**/dist/**",
    "**/build/**",
    "**/out/**",
    # Rust
    "**/target/**",
    "**/Cargo.lock",
    "**/.cargo/**",
    # Java / Gradle
    "**/.gradle/**",
    "**/*.class",
    "**/*.jar",
    "**/*.war",
    # .NET
    "**/bin/**",
    "**/obj/**",
    # Docker
    "**/.docker/**",
    "**/docker-compose.override.yml",
    "**/docker-compose.override.yaml",
    # Lock files
    "**/*.lock",
    "**/Gemfile.lock",
    "**/Pipfile.lock",
    # Framework caches and coverage
    "**/*.log",
    "**/coverage/**",
    "**/.nyc_output/**",
    "**/.serverless/**",
    "**/.aws-sam/**",
    "**/.terraform/**",
    "**/.next/**",
    "**/.nuxt/**",
    "**/.angular/**",
    # Binary / object files
    "**/*.pyc",
    "**/*.pyo",
    "**/*.pyd",
    "**/*.so",
    "**/*.dylib",
    "**/*.dll",
    "**/*.exe",
    "**/*.o",
    "**/*.obj",
    # Databases
    "**/*.sqlite",
    "**/*.db",
    # Images
    "**/*.png",
    "**/*.jpg",
    "**/*.jpeg",
    "**/*.gif",
    "**/*.ico",
    "**/*.bmp",
    "**/*.tiff",
    "**/*.tif",
    "**/*.webp",
    "**/*.svg",
    "**/*.psd",
    "**/*.ai",
    "**/*.xcf",
    # Video
    "**/*.mp4",
    "**/*.mov",
    "**/*.avi",
    "**/*.mkv",
    "**/*.wmv",
    "**/*.flv",
    "**/*.webm",
    "**/*.m4v",
    "**/*.3gp",
    # Audio
    "**/*.mp3",
    "**/*.wav",
    "**/*.ogg",
    "**/*.m4a",
    "**/*.flac",
    "**/*.aac",
    "**/*.wma",
    "**/*.mid",
    "**/*.midi",
    # Documents and archives
    "**/*.pdf",
    "**/*.zip",
    "**/*.rar",
    "**/*.7z",
    "**/*.tar",
    "**/*.gz",
    "**/*.bz2",
    "**/*.xz",
    "**/*.doc",
    "**/*.docx",
    "**/*.ppt",
    "**/*.pptx",
    "**/*.xls",
    "**/*.xlsx",
]


def parse_branches(value: str | None, option: str) -> tuple[str, str] | None:
    """Parse a `a,b` branch pair option.

    Args:
        value: Raw option value, or None when the option was not given.
        option: Option name used in the error message.

    Returns:
        The two branch names, or None when `value` is None.

    Raises:
        ValueError: If the value does not name exactly two branches.
    """
    if value is None:
        return None
    branches = [b.strip() for b in value.split(",") if b.strip()]
    if len(branches) != 2:
        raise ValueError(f"{option} expects exactly two branches separated by a comma")
    return branches[0], branches[1]


@dataclass
class Config:
    """Run configuration for `code2prompt`.

    Mirrors the command surface one field per option and validates the invariants the
    pipeline relies on.

    Attributes:
        paths: Root paths to process (may be empty when `read` is set).
        include: Raw comma-separated include patterns.
        exclude: Raw comma-separated exclude patterns.
        include_priority: Legacy flag, accepted and ignored.
        exclude_from_tree: Render an empty source tree.
        encoding: Tokenizer name (see `ENCODINGS`).
        output: Optional output file path.
        diff: Include the working tree git diff.
        git_diff_branch: Two refs to diff, as a `(a, b)` pair.
        git_log_branch: Two refs to log, as a `(a, b)` pair.
        line_number: Prefix file lines with line numbers.
        no_codeblock: Do not fence file contents.
        relative_paths: Use `<label>/<relative>` instead of absolute file paths.
        no_clipboard: Skip the clipboard sink.
        append: Append to the clipboard instead of overwriting.
        template: Optional path to a custom template.
        json_output: Print a JSON summary instead of the human summary.
        read: Read root paths from the clipboard.
        sample_rate: Token sampling percentage, or None to disable sampling.
        max_file_bytes: Files larger than this are skipped.
    """

    paths: list[Path] = field(default_factory=list)
    include: str | None = None
    exclude: str | None = None
    include_priority: bool = False
    exclude_from_tree: bool = False
    encoding: str = DEFAULT_ENCODING
    output: Path | None = None
    diff: bool = False
    git_diff_branch: tuple[str, str] | None = None
    git_log_branch: tuple[str, str] | None = None
    line_number: bool = False
    no_codeblock: bool = False
    relative_paths: bool = False
    no_clipboard: bool = False
    append: bool = False
    template: Path | None = None
    json_output: bool = False
    read: bool = False
    sample_rate: float | None = None
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            ValueError: If no root is given without `read`, the encoding is unknown, or the
                sample rate is out of range.
        """
        if not self.paths and not self.read:
            raise ValueError("At least one path is required unless --read is given")

        if self.encoding not in ENCODINGS:
            supported = ", ".join(ENCODINGS)
            raise ValueError(f"Unknown encoding '{self.encoding}' (supported: {supported})")

        if self.sample_rate is not None and not 0 <= self.sample_rate <= 100:
            raise ValueError(f"Sample rate must be between 0 and 100, got {self.sample_rate}")

        if self.max_file_bytes <= 0:
            raise ValueError("--max-file-bytes must be positive")

        self.paths = [Path(p) for p in self.paths]


@dataclass
class FileRecord:
    """A file selected for the prompt.

    Attributes:
        path: Display path (absolute, or `<label>/<relative>`).
        extension: File extension without the leading dot (as found on disk).
        code: Normalized, possibly fenced content.
        relative_path: Path relative to the traversal root, forward slashes.
    """

    path: str
    extension: str
    code: str
    relative_path: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to the mapping exposed to templates.

        Returns:
            Dict with `path`, `extension` and `code`, in that order.
        """
        return {
            "path": self.path,
            "extension": self.extension,
            "code": self.code,
        }


@dataclass
class ScanStats:
    """Statistics from traversing one root.

    Attributes:
        files_scanned: Regular files visited after ignore rules.
        files_included: Files emitted as records.
        files_skipped_ignore: Entries pruned by default, `.c2pignore` or user excludes.
        files_skipped_include: Files rejected by the include filter.
        files_skipped_size: Files over the size cap.
        files_skipped_empty: Files whose content is blank after normalization.
        files_unreadable: Entries that raised `OSError` while being read.
        total_bytes_included: Bytes read for included files.
    """

    files_scanned: int = 0
    files_included: int = 0
    files_skipped_ignore: int = 0
    files_skipped_include: int = 0
    files_skipped_size: int = 0
    files_skipped_empty: int = 0
    files_unreadable: int = 0
    total_bytes_included: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary with sorted keys."""
        return {
            "files_included": self.files_included,
            "files_scanned": self.files_scanned,
            "files_skipped": {
                "empty": self.files_skipped_empty,
                "ignore": self.files_skipped_ignore,
                "include": self.files_skipped_include,
                "size": self.files_skipped_size,
                "unreadable": self.files_unreadable,
            },
            "total_bytes_included": self.total_bytes_included,
        }
