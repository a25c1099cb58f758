"""
Clipboard and file output for code2prompt.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from pathlib import Path

import pyperclip

logger = logging.getLogger(__name__)

APPEND_SEPARATOR = "\n\n----------\n\n"


class ClipboardError(Exception):
    """Error while reading from or writing to the system clipboard."""

    pass


class ClipboardSink:
    """Plain-text access to the system clipboard."""

    def read_text(self) -> str | None:
        """
        Read the clipboard.

        Returns:
            The clipboard text, or None if it is empty or cannot be read
        """
        try:
            text = pyperclip.paste()
        except pyperclip.PyperclipException as e:
            logger.debug("Cannot read clipboard: %s", e)
            return None
        return text or None

    def write_text(self, text: str, append: bool = False) -> None:
        """
        Copy text to the clipboard.

        In append mode the existing clipboard text is kept and the new text follows a
        separator. An empty or unreadable clipboard falls back to overwriting.

        Raises:
            ClipboardError: If the clipboard cannot be written
        """
        if append:
            existing = self.read_text()
            if existing is not None:
                text = f"{existing}{APPEND_SEPARATOR}{text}"

        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"Failed to copy to clipboard: {e}") from e

    def write_file_reference(self, path: Path) -> None:
        """
        Copy a file as a file reference where the platform supports it.

        Uses `osascript` on macOS and `wl-copy`/`xclip` with a `text/uri-list` target on
        Linux. Elsewhere, or when no utility is available, the file's text is copied.

        Raises:
            ClipboardError: If neither the reference nor the text can be copied
        """
        abs_path = Path(path).resolve()

        if sys.platform == "darwin":
            escaped = str(abs_path).replace("\\", "\\\\").replace('"', '\\"')
            script = f'tell application "Finder" to set the clipboard to (POSIX file "{escaped}")'
            if self._run(["osascript", "-e", script]):
                return
        elif sys.platform.startswith("linux"):
            uri = abs_path.as_uri()
            if self._run(["wl-copy", "--type", "text/uri-list", uri]):
                return
            if self._run(["xclip", "-selection", "clipboard", "-t", "text/uri-list"], stdin=uri):
                return

        try:
            contents = abs_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ClipboardError(f"Failed to read context file {abs_path}: {e}") from e
        self.write_text(contents)

    @staticmethod
    def _run(command: list[str], stdin: str | None = None) -> bool:
        if shutil.which(command[0]) is None:
            return False
        try:
            result = subprocess.run(command, input=stdin, text=True, capture_output=True, check=False)
        except OSError as e:
            logger.debug("%s failed: %s", command[0], e)
            return False
        return result.returncode == 0


def copy_to_clipboard(rendered: str, append: bool = False, sink: ClipboardSink | None = None) -> None:
    """
    Copy or append the rendered prompt to the clipboard.

    Raises:
        ClipboardError: If the clipboard cannot be written
    """
    (sink or ClipboardSink()).write_text(rendered, append=append)


def parse_paths_from_clipboard(content: str) -> list[Path]:
    """
    Parse whitespace-separated paths, keeping only those that exist.

    Raises:
        ClipboardError: If no listed path exists
    """
    paths = [Path(token) for token in content.split()]
    existing = [p for p in paths if p.exists()]
    if not existing:
        raise ClipboardError("No valid paths found in clipboard")
    return existing


def read_paths_from_clipboard(sink: ClipboardSink | None = None) -> list[Path]:
    """
    Read root paths from the clipboard.

    Raises:
        ClipboardError: If the clipboard is empty or lists no existing path
    """
    content = (sink or ClipboardSink()).read_text()
    if content is None:
        raise ClipboardError("Failed to get text from clipboard")
    return parse_paths_from_clipboard(content)


def write_to_file(output_path: Path, rendered: str) -> None:
    """
    Write the rendered prompt to a file, replacing any existing content.

    Raises:
        OSError: If the file cannot be written
    """
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(rendered)
