"""Command-line front door for sidetree.

Materializes a tree for a directory with the same engine the side panel
uses and prints its rows.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .logging_config import setup_logging
from .runtime import TreeViewer, load_viewer_config
from .tree_model import NodeKind, NodeState, format_node


def _nonnegative_int(value: str) -> int:
    """argparse type for non-negative integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def render_tree(viewer: TreeViewer, color: bool) -> str:
    return "".join(format_node(node, color=color) + "\n" for node in viewer.nodes_in())


def _expand_paths(viewer: TreeViewer, paths: list[Path]) -> None:
    """Open each path, opening closed ancestors first."""
    for raw_path in paths:
        target = raw_path.resolve()
        root = viewer.root
        if root is None or not target.is_relative_to(root):
            raise SystemExit(f"Path is outside the tree root: {raw_path}")
        chain = [target, *[parent for parent in target.parents if parent.is_relative_to(root)]]
        for path in reversed(chain):
            index = viewer.sequence.find(path)
            if index is None:
                continue
            node = viewer.sequence[index]
            if node.state is NodeState.CLOSED and node.kind is not NodeKind.TAG:
                viewer.push(node)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and print the tree for a directory."""
    parser = argparse.ArgumentParser(description="Print a directory tree with git status badges.")
    parser.add_argument("path", nargs="?", default=None, help="Tree root. Defaults to current directory.")
    parser.add_argument("--expand-all", action="store_true", help="Recursively expand every directory.")
    parser.add_argument(
        "--expand",
        action="append",
        default=[],
        metavar="PATH",
        help="Expand PATH (a directory, or a file to list its tags). Repeatable.",
    )
    parser.add_argument("--hidden", action="store_true", help="Show dot-files.")
    parser.add_argument("--no-git", action="store_true", help="Skip git status badges.")
    parser.add_argument("--collapse", type=_nonnegative_int, default=None, help="Merge single-child directory chains up to N levels.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    args = parser.parse_args(argv)

    setup_logging(args.log_level.upper())

    root = Path(args.path) if args.path is not None else Path.cwd()
    if not root.is_dir():
        raise SystemExit(f"Not a directory: {root}")

    config = load_viewer_config()
    overrides: dict[str, object] = {}
    if args.hidden:
        overrides["show_hidden"] = True
    if args.no_git:
        overrides["git_enabled"] = False
    if args.collapse is not None:
        overrides["collapse_depth"] = args.collapse
    config = replace(config, **overrides)

    viewer = TreeViewer(config)
    try:
        viewer.initialize(root)
        if args.expand_all:
            root_node = viewer.sequence[0]
            if root_node.state is NodeState.OPEN:
                viewer.push(root_node)
            viewer.push(root_node, recursive=True)
        _expand_paths(viewer, [Path(item) for item in args.expand])
        color = not args.no_color and sys.stdout.isatty()
        sys.stdout.write(render_tree(viewer, color))
    finally:
        viewer.close()


if __name__ == "__main__":
    main()
