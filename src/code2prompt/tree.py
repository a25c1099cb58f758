"""
Source tree model and ASCII rendering.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


class TreeNode:
    """A labeled node with ordered children; sibling labels are unique."""

    def __init__(self, name: str):
        self.name = name
        self.children: list[TreeNode] = []

    def child(self, name: str) -> TreeNode:
        """Return the child with `name`, appending a new one if it does not exist yet."""
        for existing in self.children:
            if existing.name == name:
                return existing
        node = TreeNode(name)
        self.children.append(node)
        return node

    def add_path(self, parts: Iterable[str]) -> TreeNode:
        """
        Insert a path below this node, coalescing shared prefixes.

        Args:
            parts: Path components relative to this node.

        Returns:
            The node for the last component.
        """
        node = self
        for part in parts:
            if part:
                node = node.child(part)
        return node

    def add_relative_path(self, rel_path: str) -> TreeNode:
        """Insert a forward-slash separated relative path."""
        return self.add_path(rel_path.split("/"))

    def leaves(self) -> Iterator[str]:
        """Yield the slash-joined path of every leaf below this node."""
        for node in self.children:
            if not node.children:
                yield node.name
            else:
                for sub in node.leaves():
                    yield f"{node.name}/{sub}"

    def render(self) -> str:
        """
        Render the tree using box-drawing connectors.

        Returns:
            The root label followed by one line per descendant, without a trailing
            newline.
        """
        lines = [self.name]

        def _walk(node: TreeNode, prefix: str) -> None:
            for i, child in enumerate(node.children):
                is_last = i == len(node.children) - 1
                connector = LAST_BRANCH if is_last else BRANCH
                lines.append(f"{prefix}{connector}{child.name}")
                _walk(child, prefix + (SPACE if is_last else PIPE))

        _walk(self, "")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"TreeNode({self.name!r}, children={len(self.children)})"


def build_tree(root_label: str, rel_paths: Iterable[str]) -> TreeNode:
    """Build a tree from relative paths, in the order given."""
    root = TreeNode(root_label)
    for rel_path in rel_paths:
        root.add_relative_path(rel_path)
    return root
