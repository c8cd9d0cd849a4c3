"""Plain-text and ANSI formatting for node rows."""

from __future__ import annotations

from ..git_status import GitStatus
from .types import Node, NodeKind, NodeState

RESET = "\033[0m"
DIR_COLOR = "\033[1;34m"
FILE_COLOR = "\033[38;5;252m"
TAG_COLOR = "\033[38;5;250m"
MARKER_COLOR = "\033[38;5;44m"

_STATUS_BADGES: dict[GitStatus, tuple[str, str]] = {
    GitStatus.MODIFIED: ("M", "\033[38;5;214m"),
    GitStatus.CONFLICTED: ("U", "\033[38;5;196m"),
    GitStatus.UNTRACKED: ("?", "\033[38;5;42m"),
    GitStatus.IGNORED: ("!", "\033[38;5;244m"),
    GitStatus.ADDED: ("A", "\033[38;5;42m"),
}


def format_status_badge(status: GitStatus, color: bool = True) -> str:
    badge = _STATUS_BADGES.get(status)
    if badge is None:
        return ""
    letter, ansi = badge
    if not color:
        return f" [{letter}]"
    return f" {ansi}[{letter}]{RESET}"


def _marker(node: Node) -> str:
    if node.state is NodeState.OPEN:
        return "▾ "
    if node.state is NodeState.CLOSED and node.kind is not NodeKind.FILE:
        return "▸ "
    return "  "


def format_node(node: Node, color: bool = True) -> str:
    """Render one node as an indented row."""
    indent = "  " * node.depth
    name = node.label
    if node.kind is NodeKind.DIRECTORY:
        name += "/"
        name_color = DIR_COLOR
    elif node.kind is NodeKind.FILE:
        name_color = FILE_COLOR
    else:
        name_color = TAG_COLOR
        if node.line is not None:
            name = f"{name} L{node.line + 1}"
    marker = _marker(node)
    badge = format_status_badge(node.status, color) if node.kind is not NodeKind.TAG else ""
    if not color:
        return f"{indent}{marker}{name}{badge}"
    return f"{indent}{MARKER_COLOR}{marker}{RESET}{name_color}{name}{RESET}{badge}"


__all__ = ["format_node", "format_status_badge"]
