"""Tests for node row formatting."""

from __future__ import annotations

import unittest
from pathlib import Path

from sidetree.git_status import GitStatus
from sidetree.tree_model import Node, NodeKind, NodeState, TagLocator, format_node, format_status_badge


class FormatNodeTests(unittest.TestCase):
    def test_plain_rows_show_markers_and_indentation(self) -> None:
        directory = Node(Path("/root/src"), 1, NodeKind.DIRECTORY, NodeState.OPEN)
        closed = Node(Path("/root/docs"), 1, NodeKind.DIRECTORY)
        file_node = Node(Path("/root/src/app.py"), 2, NodeKind.FILE)

        self.assertEqual(format_node(directory, color=False), "  ▾ src/")
        self.assertEqual(format_node(closed, color=False), "  ▸ docs/")
        self.assertEqual(format_node(file_node, color=False), "      app.py")

    def test_tag_rows_show_one_based_line(self) -> None:
        tag = Node(
            Path("/root/app.py"),
            2,
            NodeKind.TAG,
            NodeState.LEAF,
            tag=TagLocator(Path("/root/app.py"), ("main",)),
            display="main",
            line=9,
        )
        self.assertEqual(format_node(tag, color=False), "      main L10")

    def test_collapsed_chain_uses_display_label(self) -> None:
        chained = Node(Path("/root/a/b/c"), 1, NodeKind.DIRECTORY, logical_parent=Path("/root"), display="a/b/c")
        self.assertEqual(format_node(chained, color=False), "  ▸ a/b/c/")

    def test_status_badges(self) -> None:
        modified = Node(Path("/root/x.txt"), 1, NodeKind.FILE, status=GitStatus.MODIFIED)
        self.assertEqual(format_node(modified, color=False), "    x.txt [M]")
        self.assertEqual(format_status_badge(GitStatus.UNMODIFIED), "")
        self.assertIn("[?]", format_status_badge(GitStatus.UNTRACKED, color=True))
        self.assertIn("\033[", format_node(modified, color=True))


if __name__ == "__main__":
    unittest.main()
