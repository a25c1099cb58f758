"""Tests for the tree module."""

from code2prompt.tree import TreeNode, build_tree


class TestTreeNode:
    """Tests for TreeNode."""

    def test_coalesces_shared_prefixes(self):
        """Test that common directories appear once."""
        root = build_tree("proj", ["src/a.py", "src/b.py", "README.md"])

        assert [c.name for c in root.children] == ["src", "README.md"]
        assert [c.name for c in root.children[0].children] == ["a.py", "b.py"]

    def test_render(self):
        """Test box-drawing output."""
        root = build_tree("proj", ["src/a.py", "src/lib/b.py", "README.md"])

        assert root.render() == (
            "proj\n"
            "├── src\n"
            "│   ├── a.py\n"
            "│   └── lib\n"
            "│       └── b.py\n"
            "└── README.md"
        )

    def test_render_root_only(self):
        """Test that an empty tree renders just the label."""
        assert TreeNode("proj").render() == "proj"
        assert str(TreeNode("proj")) == "proj"

    def test_leaves(self):
        """Test leaf path enumeration."""
        root = build_tree("proj", ["src/a.py", "src/lib/b.py", "README.md"])

        assert list(root.leaves()) == ["src/a.py", "src/lib/b.py", "README.md"]

    def test_add_path_skips_empty_parts(self):
        """Test that empty components do not create nodes."""
        root = TreeNode("proj")
        node = root.add_path(["", "src", "", "a.py"])

        assert node.name == "a.py"
        assert list(root.leaves()) == ["src/a.py"]
