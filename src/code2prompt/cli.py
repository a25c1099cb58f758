"""
CLI entry point for code2prompt.

Provides a command-line interface for turning one or more codebases into a single LLM prompt.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .clipboard import ClipboardError, copy_to_clipboard, read_paths_from_clipboard, write_to_file
from .config import (
    DEFAULT_ENCODING,
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_SAMPLE_RATE,
    Config,
    FileRecord,
    ScanStats,
    parse_branches,
)
from .git_context import get_git_diff, get_git_diff_between_branches, get_git_log
from .patterns import compile_patterns
from .renderer import (
    CONTEXT_KEYS,
    TemplateError,
    VariableResolver,
    build_context,
    empty_resolver,
    frame_roots,
    load_template,
    render_template,
    resolve_variables,
    wrap_root,
)
from .sampler import sample_files
from .scanner import traverse_directory
from .utils import count_tokens, get_model_info, label

# Initialize CLI app
app = typer.Typer(
    name="code2prompt",
    help="Convert a codebase into a single LLM prompt with a source tree and file contents.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "CODE2PROMPT_LOG"


def _badge(symbol: str, color: str) -> str:
    return f"[bold white]\\[[/bold white][bold {color}]{symbol}[/bold {color}][bold white]][/bold white]"


def configure_logging(verbose: bool = False) -> None:
    """Send package logs to stderr through rich.

    The level is DEBUG with `--verbose`, otherwise taken from `CODE2PROMPT_LOG`
    (default WARNING).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
        level = getattr(logging, level_name, logging.WARNING)
        if not isinstance(level, int):
            level = logging.WARNING

    package_logger = logging.getLogger("code2prompt")
    package_logger.handlers = [RichHandler(console=err_console, show_path=False)]
    package_logger.setLevel(level)
    package_logger.propagate = False


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"code2prompt version {__version__}")
        raise typer.Exit()


def prompt_resolver(name: str) -> str:
    """Ask the user for the value of a template variable; cancelling yields ''."""
    try:
        return typer.prompt(f"Enter value for '{name}'", default="", show_default=False, err=True)
    except typer.Abort:
        return ""


def select_resolver() -> VariableResolver:
    """Prompt interactively on a terminal, otherwise resolve variables to ''."""
    return prompt_resolver if sys.stdin.isatty() else empty_resolver


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def expand_sample_rate_flag(argv: list[str]) -> list[str]:
    """Give `-s` / `--sample-rate` its default value when used as a bare flag."""
    expanded: list[str] = []
    for i, arg in enumerate(argv):
        if arg == "--":
            expanded.extend(argv[i:])
            break
        expanded.append(arg)
        if arg in ("-s", "--sample-rate"):
            following = argv[i + 1] if i + 1 < len(argv) else None
            if following is None or not _is_number(following):
                expanded.append(str(DEFAULT_SAMPLE_RATE))
    return expanded


@dataclass
class RootResult:
    """Rendered prompt and selection for one root."""

    label: str
    rendered: str
    files: list[FileRecord] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)


def process_root(
    root: Path,
    config: Config,
    template_source: str,
    variables: dict[str, str] | None = None,
) -> RootResult:
    """
    Run the selection and rendering pipeline for one root.

    Args:
        root: Directory or file to render
        config: Run configuration
        template_source: Template text
        variables: Values for user-defined template variables

    Returns:
        The rendered prompt with the records and stats behind it

    Raises:
        FileNotFoundError: If the root does not exist
        TemplateError: If rendering fails
    """
    canonical_root = root.resolve()
    root_label = label(canonical_root)

    tree, files, stats = traverse_directory(
        canonical_root,
        include_patterns=compile_patterns(config.include),
        exclude_patterns=compile_patterns(config.exclude),
        line_number=config.line_number,
        relative_paths=config.relative_paths,
        exclude_from_tree=config.exclude_from_tree,
        no_codeblock=config.no_codeblock,
        max_file_bytes=config.max_file_bytes,
    )
    logger.debug("Scan statistics for %s: %s", root_label, stats.to_dict())

    if config.sample_rate is not None:
        files, sampled_tree = sample_files(
            files,
            tree,
            config.sample_rate,
            root_label,
            count_tokens=lambda text: count_tokens(text, config.encoding),
        )
        tree = "" if config.exclude_from_tree else sampled_tree

    git_diff = git_diff_branch = git_log_branch = ""
    if canonical_root.is_dir():
        if config.diff:
            git_diff = get_git_diff(canonical_root)
        if config.git_diff_branch:
            git_diff_branch = get_git_diff_between_branches(canonical_root, *config.git_diff_branch)
        if config.git_log_branch:
            git_log_branch = get_git_log(canonical_root, *config.git_log_branch)

    context = build_context(
        root_label,
        tree,
        files,
        git_diff=git_diff,
        git_diff_branch=git_diff_branch,
        git_log_branch=git_log_branch,
    )
    for name, value in (variables or {}).items():
        context.setdefault(name, value)

    rendered = render_template(template_source, context)
    return RootResult(label=root_label, rendered=rendered, files=files, stats=stats)


def _print_stats(result: RootResult) -> None:
    stats = result.stats
    err_console.print(f"[cyan]Statistics for {result.label}:[/cyan]")
    err_console.print(f"  Files scanned: {stats.files_scanned}")
    err_console.print(f"  Files included: {stats.files_included}")
    err_console.print(f"  Entries skipped (ignore rules): {stats.files_skipped_ignore}")
    err_console.print(f"  Files skipped (include filter): {stats.files_skipped_include}")
    err_console.print(f"  Files skipped (size): {stats.files_skipped_size}")
    err_console.print(f"  Files skipped (empty): {stats.files_skipped_empty}")
    err_console.print(f"  Total bytes: {stats.total_bytes_included:,}")


@app.command()
def main_command(
    paths: Optional[list[Path]] = typer.Argument(
        None,
        help="Paths to the codebase directories or files.",
        show_default=False,
    ),
    # Filter options
    include: Optional[str] = typer.Option(
        None,
        "--include", "-i",
        help="Comma-separated patterns or extensions to include (e.g. 'rs,toml' or 'src/**').",
    ),
    exclude: Optional[str] = typer.Option(
        None,
        "--exclude",
        help="Comma-separated patterns or extensions to exclude.",
    ),
    include_priority: bool = typer.Option(
        False,
        "--include-priority",
        help="Accepted for compatibility; includes only ever narrow the selection.",
    ),
    exclude_from_tree: bool = typer.Option(
        False,
        "--exclude-from-tree",
        help="Leave the source tree out of the prompt.",
    ),
    max_file_bytes: int = typer.Option(
        DEFAULT_MAX_FILE_BYTES,
        "--max-file-bytes",
        help="Skip files larger than this many bytes.",
    ),
    # Tokenizer
    encoding: str = typer.Option(
        DEFAULT_ENCODING,
        "--encoding", "-c",
        help="Tokenizer for token counts: cl100k, p50k, p50k_edit, r50k or gpt2.",
    ),
    # Git options
    diff: bool = typer.Option(
        False,
        "--diff", "-d",
        help="Include the git diff of the working tree.",
    ),
    git_diff_branch: Optional[str] = typer.Option(
        None,
        "--git-diff-branch",
        metavar="BRANCHES",
        help="Include the git diff between two branches (e.g. 'main,feature').",
    ),
    git_log_branch: Optional[str] = typer.Option(
        None,
        "--git-log-branch",
        metavar="BRANCHES",
        help="Include the git log between two branches (e.g. 'main,feature').",
    ),
    # Content options
    line_number: bool = typer.Option(
        False,
        "--line-number", "-l",
        help="Add line numbers to file content.",
    ),
    no_codeblock: bool = typer.Option(
        False,
        "--no-codeblock",
        help="Do not wrap file content in markdown code blocks.",
    ),
    relative_paths: bool = typer.Option(
        False,
        "--relative-paths",
        help="Show file paths relative to the root, prefixed with the root name.",
    ),
    sample_rate: Optional[float] = typer.Option(
        None,
        "--sample-rate", "-s",
        help=f"Keep about this percentage of tokens by sampling files (bare flag: {DEFAULT_SAMPLE_RATE:g}).",
    ),
    # Output options
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Write the prompt to this file.",
    ),
    no_clipboard: bool = typer.Option(
        False,
        "--no-clipboard",
        help="Do not copy the prompt to the clipboard.",
    ),
    append: bool = typer.Option(
        False,
        "--append", "-a",
        help="Append to the clipboard instead of overwriting it.",
    ),
    template: Optional[Path] = typer.Option(
        None,
        "--template", "-t",
        help="Path to a custom Jinja2 template.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print a JSON object with the prompt and its metadata.",
    ),
    read: bool = typer.Option(
        False,
        "--read",
        help="Read whitespace-separated paths from the clipboard.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Log skipped entries and print scan statistics.",
    ),
    # Version
    version: bool = typer.Option(
        False,
        "--version", "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """
    Generate an LLM prompt from a codebase.

    Examples:

        # Prompt for the current directory
        code2prompt .

        # Only Rust and TOML files, with line numbers
        code2prompt ./repo --include "rs,toml" -l

        # Several roots, written to a file
        code2prompt ./api ./web -o prompt.md --no-clipboard

        # Keep roughly 20% of the tokens
        code2prompt ./repo -s 20
    """
    configure_logging(verbose)

    try:
        config = Config(
            paths=list(paths or []),
            include=include,
            exclude=exclude,
            include_priority=include_priority,
            exclude_from_tree=exclude_from_tree,
            encoding=encoding,
            output=output,
            diff=diff,
            git_diff_branch=parse_branches(git_diff_branch, "--git-diff-branch"),
            git_log_branch=parse_branches(git_log_branch, "--git-log-branch"),
            line_number=line_number,
            no_codeblock=no_codeblock,
            relative_paths=relative_paths,
            no_clipboard=no_clipboard,
            append=append,
            template=template,
            json_output=json_output,
            read=read,
            sample_rate=sample_rate,
            max_file_bytes=max_file_bytes,
        )
    except ValueError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    try:
        template_source, template_name = load_template(config.template)
    except TemplateError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    logger.debug("Using %s template", template_name)

    if config.read:
        try:
            roots = read_paths_from_clipboard()
        except ClipboardError as e:
            err_console.print(f"{_badge('!', 'red')} [red]Failed to read paths from clipboard: {e}[/red]")
            raise typer.Exit(1)
    else:
        roots = config.paths

    multi_root = len(roots) > 1
    if multi_root and config.json_output:
        err_console.print("[red]Error: --json supports a single path only.[/red]")
        raise typer.Exit(1)

    if not multi_root and not roots[0].exists():
        err_console.print(f"[red]Error: Path does not exist: {roots[0]}[/red]")
        raise typer.Exit(1)

    variables = resolve_variables(template_source, CONTEXT_KEYS, select_resolver())

    results: list[RootResult] = []
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True,
        disable=config.json_output,
    ) as progress:
        for root in roots:
            task = progress.add_task(f"Processing {root}...", total=None)
            try:
                results.append(process_root(root, config, template_source, variables))
            except (OSError, TemplateError) as e:
                if not multi_root:
                    err_console.print(f"[red]Error: {e}[/red]")
                    raise typer.Exit(1)
                err_console.print(f"{_badge('!', 'red')} [red]Failed to process {root}: {e}[/red]")
            finally:
                progress.remove_task(task)

    if not results:
        err_console.print("[red]Error: No path could be processed.[/red]")
        raise typer.Exit(1)

    if multi_root:
        prompt = frame_roots([wrap_root(r.label, r.rendered) for r in results])
    else:
        prompt = results[0].rendered

    if verbose:
        for result in results:
            _print_stats(result)

    token_count = count_tokens(prompt, config.encoding)
    model_info = get_model_info(config.encoding)

    if config.json_output:
        json_output_data = {
            "prompt": prompt,
            "directory_name": results[0].label,
            "token_count": token_count,
            "model_info": model_info,
            "files": [f.path for f in results[0].files],
        }
        typer.echo(json.dumps(json_output_data, indent=2, ensure_ascii=False))
        if config.output is not None:
            _write_output(config.output, prompt, quiet=True)
        return

    console.print(
        f"{_badge('i', 'blue')} Token count: [bold yellow]{token_count:,}[/bold yellow], "
        f"Model info: {model_info}"
    )

    if not config.no_clipboard:
        try:
            copy_to_clipboard(prompt, append=config.append)
        except ClipboardError as e:
            err_console.print(f"{_badge('!', 'red')} [red]{e}[/red]")
            if config.output is None:
                typer.echo(prompt)
        else:
            message = "Appended to clipboard successfully." if config.append else "Copied to clipboard successfully."
            console.print(f"{_badge('✓', 'green')} [green]{message}[/green]")

    if config.output is not None:
        _write_output(config.output, prompt)


def _write_output(output: Path, prompt: str, quiet: bool = False) -> None:
    try:
        write_to_file(output, prompt)
    except OSError as e:
        err_console.print(f"[red]Error: Failed to write {output}: {e}[/red]")
        raise typer.Exit(1)
    if not quiet:
        console.print(f"{_badge('✓', 'green')} [green]Prompt written to file: {output}[/green]")


def main() -> None:
    """Entry point for the CLI."""
    app(args=expand_sample_rate_flag(sys.argv[1:]), prog_name="code2prompt")


if __name__ == "__main__":
    main()
