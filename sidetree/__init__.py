"""Public package surface for sidetree.

Exports ``TreeViewer`` plus the node types hosts render, and ``main`` for
programmatic CLI invocation.
"""

from __future__ import annotations

from .runtime import TreeViewer, ViewerConfig
from .tree_model import Node, NodeKind, NodeState, TagLocator


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = ["main", "TreeViewer", "ViewerConfig", "Node", "NodeKind", "NodeState", "TagLocator"]
