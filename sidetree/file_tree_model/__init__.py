"""Filesystem collaborators for the tree engine.

- directory listing with hidden/ignored filtering
- detection of single-child directory chains merged into one row
"""

from __future__ import annotations

from .collapse import detect_collapsed_chains, spawn_collapse_detection
from .fs import DirectoryChild, list_directory_children

__all__ = [
    "DirectoryChild",
    "list_directory_children",
    "detect_collapsed_chains",
    "spawn_collapse_detection",
]
