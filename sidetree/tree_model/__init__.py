"""Tree-model datatypes, the node sequence, and row formatting.

Defines ``Node`` and the pre-order ``NodeSequence`` whose traversal works on
positions and depths alone.
"""

from __future__ import annotations

from .rendering import format_node, format_status_badge
from .sequence import NodeSequence
from .types import Node, NodeKind, NodeState, TagLocator

__all__ = [
    "Node",
    "NodeKind",
    "NodeState",
    "TagLocator",
    "NodeSequence",
    "format_node",
    "format_status_badge",
]
