"""
Utility functions for code2prompt.

Includes content normalization (lossy decoding, base64 elision, line numbering, code
fences), root labels, path normalization and token counting.
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path

import tiktoken

from .config import DEFAULT_ENCODING, ENCODINGS

# Runs of base64 alphabet long enough to be considered for elision
BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/=]{80,}")

# Runs longer than this are shortened to head + "..." + tail
BASE64_MAX_LENGTH = 100
BASE64_KEEP_CHARS = 50

REPLACEMENT_CHARACTER = "\ufffd"
REPLACEMENT_MARKER = "[]"

CODE_FENCE = "`" * 3


def normalize_path(path: str) -> str:
    """Normalize a path for consistent cross-platform comparisons.

    Args:
        path: Path string that may contain platform-specific separators.

    Returns:
        Normalized path using forward slashes.
    """
    return path.replace("\\", "/")


def label(path: str | os.PathLike[str]) -> str:
    """Return a short display name for a root.

    The label is the final path component. Paths without one (`.`, `/`) fall back to
    the name of the current working directory, or `.` when that has no name either.
    A trailing `..` is resolved so the label matches the canonical path.

    Args:
        path: Root path as given or canonicalized.

    Returns:
        The label used for tree roots, relative paths and multi-root envelopes.
    """
    name = os.path.basename(os.path.normpath(os.fspath(path)))
    if name == "..":
        name = Path(path).resolve().name
    if name and name != ".":
        return name
    return Path.cwd().name or "."


def decode_content(data: bytes) -> str:
    """Decode bytes as UTF-8, marking every undecodable sequence with `[]`.

    Replacement characters already present in the source are marked the same way, so
    the result never contains U+FFFD.
    """
    text = data.decode("utf-8", errors="replace")
    return text.replace(REPLACEMENT_CHARACTER, REPLACEMENT_MARKER)


def shorten_long_base64_strings(code: str) -> str:
    """Shorten base64-looking runs longer than 100 characters.

    Runs of 80 to 100 characters are kept verbatim; longer runs become the first 50
    characters, `...`, and the last 50 characters.

    Args:
        code: File content.

    Returns:
        Content with long base64 runs elided.
    """

    def _shorten(match: re.Match[str]) -> str:
        run = match.group(0)
        if len(run) <= BASE64_MAX_LENGTH:
            return run
        return f"{run[:BASE64_KEEP_CHARS]}...{run[-BASE64_KEEP_CHARS:]}"

    return BASE64_PATTERN.sub(_shorten, code)


def normalize_content(data: bytes) -> str:
    """Apply the destructive normalization steps to raw file bytes."""
    return shorten_long_base64_strings(decode_content(data))


def add_line_numbers(code: str) -> str:
    """Prefix each line with a right-aligned, 4-wide line number.

    A trailing newline does not produce an extra numbered line, and a trailing
    carriage return is dropped from each line.

    Args:
        code: Normalized content.

    Returns:
        Numbered content, one `NNNN | line` per line, each ending with a newline.
    """
    lines = code.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    numbered = []
    for number, line in enumerate(lines, start=1):
        line = line.removesuffix("\r")
        numbered.append(f"{number:4} | {line}\n")
    return "".join(numbered)


def wrap_code_block(
    code: str, extension: str, line_numbers: bool = False, no_codeblock: bool = False
) -> str:
    """Format normalized content for the template.

    Args:
        code: Normalized content.
        extension: Fence info string (the file extension, possibly empty).
        line_numbers: Whether to number lines.
        no_codeblock: Return the (possibly numbered) content without a fence.

    Returns:
        The formatted content.
    """
    if line_numbers:
        code = add_line_numbers(code)

    if no_codeblock:
        return code

    return f"{CODE_FENCE}{extension}\n{code}\n{CODE_FENCE}"


def file_extension(path: Path) -> str:
    """Return the extension of a path without its leading dot, or an empty string."""
    return path.suffix[1:] if path.suffix else ""


@lru_cache(maxsize=None)
def get_tokenizer(encoding: str | None = None) -> tiktoken.Encoding:
    """Load the tiktoken encoding for a CLI encoding name.

    Unknown or missing names fall back to `cl100k`.

    Args:
        encoding: One of the keys of `ENCODINGS`.

    Returns:
        The tiktoken `Encoding`.
    """
    tiktoken_name, _ = ENCODINGS.get(encoding or DEFAULT_ENCODING, ENCODINGS[DEFAULT_ENCODING])
    return tiktoken.get_encoding(tiktoken_name)


def count_tokens(text: str, encoding: str | None = None) -> int:
    """Count the tokens in `text` for an encoding.

    Special tokens such as `<|endoftext|>` are encoded as single tokens instead of raising.

    Special-token text such as `<|endoftext|>` counts as one token each instead of raising.

    Args:
        text: Input text.
        encoding: CLI encoding name.

    Returns:
        Number of tokens in `text`.
    """
    return len(get_tokenizer(encoding).encode(text, allowed_special="all"))


def get_model_info(encoding: str | None = None) -> str:
    """Describe the models that use an encoding."""
    _, info = ENCODINGS.get(encoding or DEFAULT_ENCODING, ENCODINGS[DEFAULT_ENCODING])
    return info
