"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from code2prompt import __version__, cli
from code2prompt.cli import app, expand_sample_rate_flag
from code2prompt.clipboard import ClipboardError

runner = CliRunner()


@pytest.fixture(autouse=True)
def offline_tokenizer(monkeypatch):
    """Count whitespace-separated words instead of loading a tokenizer."""
    monkeypatch.setattr(cli, "count_tokens", lambda text, encoding=None: len(text.split()))


@pytest.fixture
def copied(monkeypatch):
    """Capture clipboard writes."""
    calls = []
    monkeypatch.setattr(cli, "copy_to_clipboard", lambda text, append=False: calls.append((text, append)))
    return calls


@pytest.fixture
def project(tmp_path):
    """Create a small project."""
    root = tmp_path / "proj"
    root.mkdir()
    (root / "a.py").write_text("print('a')\n")
    (root / "b.txt").write_text("notes\n")
    (root / "node_modules").mkdir()
    (root / "node_modules" / "x.js").write_text("module.exports = 1;\n")
    return root


class TestExpandSampleRateFlag:
    """Tests for expand_sample_rate_flag."""

    def test_bare_flag_gets_default(self):
        """Test that -s without a number gets the default rate."""
        assert expand_sample_rate_flag(["-s", "."]) == ["-s", "10.0", "."]
        assert expand_sample_rate_flag([".", "--sample-rate"]) == [".", "--sample-rate", "10.0"]

    def test_explicit_value_kept(self):
        """Test that an explicit rate is left alone."""
        assert expand_sample_rate_flag(["-s", "25", "."]) == ["-s", "25", "."]
        assert expand_sample_rate_flag(["-s", "0.5"]) == ["-s", "0.5"]

    def test_stops_at_double_dash(self):
        """Test that arguments after -- are untouched."""
        assert expand_sample_rate_flag(["--", "-s"]) == ["--", "-s"]


class TestMainCommand:
    """Tests for the main command."""

    def test_version(self):
        """Test --version output."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_writes_output_file(self, project, tmp_path):
        """Test rendering a root to a file."""
        output = tmp_path / "prompt.md"

        result = runner.invoke(app, [str(project), "--no-clipboard", "-o", str(output)])

        assert result.exit_code == 0, result.output
        prompt = output.read_text(encoding="utf-8")
        assert prompt.startswith("Project Path: proj\n\nSource Tree:")
        assert "a.py" in prompt
        assert "b.txt" in prompt
        assert "node_modules" not in prompt
        assert "Token count:" in result.stdout

    def test_include_filter(self, project, tmp_path):
        """Test that --include narrows the files but not the shallow tree."""
        output = tmp_path / "prompt.md"

        result = runner.invoke(app, [str(project), "-i", "py", "--no-clipboard", "-o", str(output)])

        assert result.exit_code == 0, result.output
        prompt = output.read_text(encoding="utf-8")
        assert "print('a')" in prompt
        assert "notes" not in prompt
        assert "└── b.txt" in prompt

    def test_copies_to_clipboard(self, project, copied):
        """Test that the prompt goes to the clipboard by default."""
        result = runner.invoke(app, [str(project)])

        assert result.exit_code == 0, result.output
        assert len(copied) == 1
        assert copied[0][0].startswith("Project Path: proj")
        assert copied[0][1] is False
        assert "Copied to clipboard" in result.stdout

    def test_append_to_clipboard(self, project, copied):
        """Test that --append is passed to the clipboard sink."""
        result = runner.invoke(app, [str(project), "--append"])

        assert result.exit_code == 0, result.output
        assert copied[0][1] is True

    def test_clipboard_failure_prints_prompt(self, project, monkeypatch):
        """Test that a failing clipboard falls back to stdout."""

        def fail(text, append=False):
            raise ClipboardError("no clipboard")

        monkeypatch.setattr(cli, "copy_to_clipboard", fail)

        result = runner.invoke(app, [str(project)])

        assert result.exit_code == 0
        assert "Project Path: proj" in result.stdout

    def test_json_output(self, project, copied):
        """Test the JSON summary."""
        result = runner.invoke(app, [str(project), "--json", "--relative-paths"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["directory_name"] == "proj"
        assert data["files"] == ["proj/a.py", "proj/b.txt"]
        assert data["token_count"] == len(data["prompt"].split())
        assert data["model_info"] == "ChatGPT models, text-embedding-ada-002"
        assert copied == []

    def test_multiple_roots(self, tmp_path):
        """Test that several roots are framed in a context envelope."""
        for name in ("p1", "p2"):
            (tmp_path / name).mkdir()
            (tmp_path / name / "main.py").write_text(f"print('{name}')\n")
        output = tmp_path / "prompt.md"

        result = runner.invoke(
            app, [str(tmp_path / "p1"), str(tmp_path / "p2"), "--no-clipboard", "-o", str(output)]
        )

        assert result.exit_code == 0, result.output
        prompt = output.read_text(encoding="utf-8")
        assert prompt.startswith("<context>\n<p1>\n  Project Path: p1\n")
        assert "\n</p1>\n\n<p2>\n  Project Path: p2\n" in prompt
        assert prompt.endswith("\n</p2>\n</context>")

    def test_custom_template_with_variable(self, project, tmp_path):
        """Test that undefined variables resolve to empty strings without a terminal."""
        template = tmp_path / "custom.j2"
        template.write_text("Name: [{{ project_name }}] Files: {{ files | length }}")
        output = tmp_path / "prompt.md"

        result = runner.invoke(
            app, [str(project), "-t", str(template), "--no-clipboard", "-o", str(output)]
        )

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8") == "Name: [] Files: 2"

    def test_sample_rate_zero(self, project, tmp_path):
        """Test that a zero sample rate keeps no files."""
        template = tmp_path / "custom.j2"
        template.write_text("Files: {{ files | length }}")
        output = tmp_path / "prompt.md"

        result = runner.invoke(
            app, [str(project), "-s", "0", "-t", str(template), "--no-clipboard", "-o", str(output)]
        )

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8") == "Files: 0"

    def test_read_roots_from_clipboard(self, project, tmp_path, monkeypatch):
        """Test that --read takes roots from the clipboard."""
        monkeypatch.setattr(cli, "read_paths_from_clipboard", lambda: [project])
        output = tmp_path / "prompt.md"

        result = runner.invoke(app, ["--read", "--no-clipboard", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8").startswith("Project Path: proj")


class TestMainCommandErrors:
    """Tests for error handling in the main command."""

    def test_missing_path(self, tmp_path):
        """Test that a missing root exits with an error."""
        result = runner.invoke(app, [str(tmp_path / "missing"), "--no-clipboard"])

        assert result.exit_code == 1
        assert "Path does not exist" in result.output

    def test_no_paths(self):
        """Test that a root is required without --read."""
        result = runner.invoke(app, ["--no-clipboard"])

        assert result.exit_code == 1

    def test_unknown_encoding(self, project):
        """Test that an unknown tokenizer is rejected."""
        result = runner.invoke(app, [str(project), "-c", "o200k", "--no-clipboard"])

        assert result.exit_code == 1
        assert "Unknown encoding" in result.output

    def test_bad_branch_pair(self, project):
        """Test that branch options need two names."""
        result = runner.invoke(app, [str(project), "--git-diff-branch", "main", "--no-clipboard"])

        assert result.exit_code == 1

    def test_json_with_multiple_roots(self, project, tmp_path):
        """Test that --json only supports a single root."""
        result = runner.invoke(app, [str(project), str(tmp_path), "--json"])

        assert result.exit_code == 1

    def test_missing_template(self, project, tmp_path):
        """Test that an unreadable template exits with an error."""
        result = runner.invoke(app, [str(project), "-t", str(tmp_path / "missing.j2"), "--no-clipboard"])

        assert result.exit_code == 1

    def test_unreadable_clipboard_paths(self, monkeypatch):
        """Test that --read fails cleanly without valid paths."""

        def fail():
            raise ClipboardError("No valid paths found in clipboard")

        monkeypatch.setattr(cli, "read_paths_from_clipboard", fail)

        result = runner.invoke(app, ["--read"])

        assert result.exit_code == 1

    def test_multi_root_skips_missing(self, project, tmp_path):
        """Test that a missing root among several is reported and skipped."""
        output = tmp_path / "prompt.md"

        result = runner.invoke(
            app,
            [str(project), str(tmp_path / "missing"), "--relative-paths", "--no-clipboard", "-o", str(output)],
        )

        assert result.exit_code == 0, result.output
        prompt = Path(output).read_text(encoding="utf-8")
        assert prompt.startswith("<context>\n<proj>\n")
        assert "missing" not in prompt
