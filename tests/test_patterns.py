"""Tests for the patterns module."""

from code2prompt.config import PATTERN_SHORTCUTS
from code2prompt.patterns import compile_pattern, compile_patterns, parse_csv


class TestParseCsv:
    """Tests for parse_csv."""

    def test_empty_values(self):
        """Test that missing and blank values yield no tokens."""
        assert parse_csv(None) == []
        assert parse_csv("") == []
        assert parse_csv(" , ,") == []

    def test_trims_tokens(self):
        """Test that tokens are trimmed and empty ones dropped."""
        assert parse_csv(" rs , toml,,md ") == ["rs", "toml", "md"]


class TestCompilePattern:
    """Tests for compile_pattern."""

    def test_extension(self):
        """Test that bare tokens become extension globs."""
        assert compile_pattern("rs") == ["**/*.rs"]

    def test_glob_passthrough(self):
        """Test that tokens with * or / are kept verbatim."""
        assert compile_pattern("src/**") == ["src/**"]
        assert compile_pattern("*.md") == ["*.md"]
        assert compile_pattern("docs/readme.txt") == ["docs/readme.txt"]

    def test_shortcuts_case_insensitive(self):
        """Test that docker and env expand regardless of case."""
        assert compile_pattern("docker") == PATTERN_SHORTCUTS["docker"]
        assert compile_pattern("DOCKER") == PATTERN_SHORTCUTS["docker"]
        assert compile_pattern("Env") == PATTERN_SHORTCUTS["env"]

    def test_negation_is_preserved(self):
        """Test that a leading ! survives compilation."""
        assert compile_pattern("!rs") == ["!**/*.rs"]
        assert compile_pattern("!env") == [f"!{p}" for p in PATTERN_SHORTCUTS["env"]]


class TestCompilePatterns:
    """Tests for compile_patterns."""

    def test_order_preserved(self):
        """Test that patterns follow token order."""
        assert compile_patterns("rs,src/**,toml") == ["**/*.rs", "src/**", "**/*.toml"]

    def test_none(self):
        """Test that no value compiles to no patterns."""
        assert compile_patterns(None) == []
