"""
Template rendering for code2prompt.

Binds the source tree, file records and git context to a Jinja2 template, resolves
variables the template uses but the context does not provide, and frames per-root
results when several roots are rendered together.
"""

from __future__ import annotations

import logging
import re
import textwrap
from collections.abc import Callable, Iterable, Mapping, Sequence
from importlib import resources
from pathlib import Path
from typing import Any

import jinja2
from jinja2 import meta

from .config import FileRecord

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "default"
CUSTOM_TEMPLATE_NAME = "custom"

# Identifiers of the form {{ name }}
TEMPLATE_VARIABLE_PATTERN = re.compile(r"\{\{\s*(?P<var>[a-zA-Z_][a-zA-Z_0-9]*)\s*\}\}")

# Names never prompted for, even when the context lacks them
RESERVED_VARIABLES = frozenset({"path", "code", "git_diff"})

# Keys every render context provides
CONTEXT_KEYS = frozenset(
    {"absolute_code_path", "source_tree", "files", "git_diff", "git_diff_branch", "git_log_branch"}
)

VariableResolver = Callable[[str], str]


class TemplateError(Exception):
    """Error while loading, parsing or rendering a template."""

    pass


def empty_resolver(name: str) -> str:
    """Resolve every undefined template variable to an empty string."""
    return ""


def load_template(template_path: Path | None = None) -> tuple[str, str]:
    """
    Load the template source.

    Args:
        template_path: Custom template file, or None for the built-in template

    Returns:
        Tuple of (template source, template name)

    Raises:
        TemplateError: If the custom template cannot be read
    """
    if template_path is None:
        source = resources.files("code2prompt").joinpath("templates", "default.j2").read_text(encoding="utf-8")
        return source, DEFAULT_TEMPLATE_NAME

    try:
        return Path(template_path).read_text(encoding="utf-8"), CUSTOM_TEMPLATE_NAME
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateError(f"Failed to read custom template file {template_path}: {e}") from e


def create_environment() -> jinja2.Environment:
    """Create a Jinja2 environment that emits values verbatim."""
    return jinja2.Environment(
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def extract_undefined_variables(template_source: str, env: jinja2.Environment | None = None) -> list[str]:
    """
    Find user-defined variables referenced as `{{ name }}`.

    Reserved names are skipped, and so are names the template binds itself (loop
    variables, `set` targets).

    Args:
        template_source: Template text
        env: Environment used to parse the template

    Returns:
        Variable names in order of first appearance, without duplicates
    """
    names = [m.group("var") for m in TEMPLATE_VARIABLE_PATTERN.finditer(template_source)]
    names = [n for n in dict.fromkeys(names) if n not in RESERVED_VARIABLES]
    if not names:
        return []

    env = env or create_environment()
    try:
        undeclared = meta.find_undeclared_variables(env.parse(template_source))
    except jinja2.TemplateSyntaxError:
        return names
    return [n for n in names if n in undeclared]


def resolve_variables(
    template_source: str,
    known: Iterable[str],
    resolver: VariableResolver = empty_resolver,
) -> dict[str, str]:
    """
    Resolve the template variables that are not already known.

    Args:
        template_source: Template text
        known: Names the render context already provides
        resolver: Called once per missing variable name

    Returns:
        Mapping of each missing variable to its resolved value
    """
    known = set(known)
    values: dict[str, str] = {}
    for name in extract_undefined_variables(template_source):
        if name in known:
            continue
        values[name] = resolver(name)
        logger.debug("Resolved template variable %s", name)
    return values


def handle_undefined_variables(
    context: dict[str, Any],
    template_source: str,
    resolver: VariableResolver = empty_resolver,
) -> dict[str, Any]:
    """
    Fill in template variables missing from the context.

    Args:
        context: Render context, updated in place
        template_source: Template text
        resolver: Called once per missing variable name

    Returns:
        The updated context
    """
    context.update(resolve_variables(template_source, context, resolver))
    return context


def build_context(
    absolute_code_path: str,
    source_tree: str,
    files: Sequence[FileRecord],
    git_diff: str = "",
    git_diff_branch: str = "",
    git_log_branch: str = "",
) -> dict[str, Any]:
    """Assemble the render context for one root."""
    return {
        "absolute_code_path": absolute_code_path,
        "source_tree": source_tree,
        "files": [f.to_dict() for f in files],
        "git_diff": git_diff,
        "git_diff_branch": git_diff_branch,
        "git_log_branch": git_log_branch,
    }


def render_template(
    template_source: str,
    context: Mapping[str, Any],
    env: jinja2.Environment | None = None,
) -> str:
    """
    Render a template.

    Args:
        template_source: Template text
        context: Render context
        env: Environment to render with

    Returns:
        Rendered text with surrounding whitespace removed

    Raises:
        TemplateError: If the template fails to parse or render
    """
    env = env or create_environment()
    try:
        rendered = env.from_string(template_source).render(**context)
    except jinja2.TemplateError as e:
        raise TemplateError(f"Failed to render template: {e}") from e
    return rendered.strip()


def wrap_root(root_label: str, rendered: str) -> str:
    """Wrap one root's rendered prompt in a `<label>` envelope, indented by two spaces."""
    return f"<{root_label}>\n{textwrap.indent(rendered, '  ')}\n</{root_label}>"


def frame_roots(blocks: Sequence[str]) -> str:
    """Compose wrapped per-root blocks under a `<context>` envelope."""
    return "<context>\n" + "\n\n".join(blocks) + "\n</context>"
