"""
Pattern compiler for include/exclude options.

Turns the comma-separated values given on the command line into glob patterns.
"""

from __future__ import annotations

from .config import PATTERN_SHORTCUTS


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated option into trimmed, non-empty tokens."""
    if not value:
        return []
    return [token.strip() for token in value.split(",") if token.strip()]


def compile_pattern(token: str) -> list[str]:
    """Compile a single user token into glob patterns.

    - `docker` and `env` (any case) expand to their fixed shortcut lists.
    - Tokens containing `*` or `/` are globs already and pass through verbatim.
    - Anything else is an extension: `rs` becomes `**/*.rs`.

    A leading `!` is kept on every pattern the rest of the token expands to.

    Args:
        token: A trimmed, non-empty token.

    Returns:
        The glob patterns for this token.
    """
    if token.startswith("!"):
        return [f"!{pattern}" for pattern in compile_pattern(token[1:])]

    shortcut = PATTERN_SHORTCUTS.get(token.lower())
    if shortcut is not None:
        return list(shortcut)

    if "*" in token or "/" in token:
        return [token]

    return [f"**/*.{token}"]


def compile_patterns(value: str | None) -> list[str]:
    """Compile a comma-separated option value into glob patterns.

    The compiler is shared by both sides; the ignore engine adds negation for excludes.

    Args:
        value: Raw option value, or None.

    Returns:
        Glob patterns in the order the tokens were given.
    """
    patterns: list[str] = []
    for token in parse_csv(value):
        patterns.extend(compile_pattern(token))
    return patterns
