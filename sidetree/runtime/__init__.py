"""Viewer runtime: owned state, expand/collapse engine, refresh, and rename.

``TreeViewer`` is the entry point; the other classes are exposed for hosts
that wire their own collaborators.
"""

from __future__ import annotations

from .buffers import BufferRegistry, EditorBuffers, RecentFiles
from .config import ViewerConfig, load_viewer_config, save_viewer_config
from .engine import EngineDeps, ExpandCollapseEngine
from .open_dirs import OpenDirectoryCache
from .refresh import RefreshController, RefreshScheduler, ResumePoint
from .rename import RenamePropagator
from .state import ViewerContext
from .viewer import TreeViewer

__all__ = [
    "BufferRegistry",
    "EditorBuffers",
    "RecentFiles",
    "ViewerConfig",
    "load_viewer_config",
    "save_viewer_config",
    "EngineDeps",
    "ExpandCollapseEngine",
    "OpenDirectoryCache",
    "RefreshController",
    "RefreshScheduler",
    "ResumePoint",
    "RenamePropagator",
    "ViewerContext",
    "TreeViewer",
]
