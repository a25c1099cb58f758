"""
code2prompt: Turn a codebase into a single LLM prompt.

Walks one or more roots, applies ignore rules and include filters, and renders a
source tree plus file contents through a template:
- Output to the clipboard, a file, or JSON on stdout
- Optional git diff/log context and token-budget sampling
"""

__version__ = "2.0.1"
__all__ = ["__version__"]
