"""Detection of single-child directory chains shown as one merged row."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor
from pathlib import Path

from ..tasks import FutureTask
from .fs import list_directory_children


def detect_collapsed_chains(
    directory: Path,
    max_depth: int,
    show_hidden: bool,
    is_ignored: Callable[[str], bool] | None = None,
) -> dict[Path, tuple[Path, ...]]:
    """Return merge chains for the child directories of ``directory``.

    A chain starts at a child directory whose only visible entry is itself a
    directory and follows at most ``max_depth`` such links. The mapping key is
    the first directory of the chain; the tuple lists every directory in the
    chain, first to last. Visibility uses the same hidden and ``is_ignored``
    filters as the tree listing.
    """
    if max_depth <= 0:
        return {}
    children, scan_error = list_directory_children(directory, show_hidden, is_ignored)
    if scan_error is not None:
        return {}

    chains: dict[Path, tuple[Path, ...]] = {}
    for child in children:
        if not child.is_dir:
            continue
        chain = [child.path]
        current = child.path
        while len(chain) <= max_depth:
            grandchildren, error = list_directory_children(current, show_hidden, is_ignored)
            if error is not None or len(grandchildren) != 1 or not grandchildren[0].is_dir:
                break
            current = grandchildren[0].path
            chain.append(current)
        if len(chain) > 1:
            chains[child.path] = tuple(chain)
    return chains


def spawn_collapse_detection(
    executor: Executor,
    directory: Path,
    max_depth: int,
    show_hidden: bool,
    is_ignored: Callable[[str], bool] | None = None,
) -> FutureTask[dict[Path, tuple[Path, ...]]]:
    """Run ``detect_collapsed_chains`` on ``executor`` and return its task."""
    return FutureTask(executor.submit(detect_collapsed_chains, directory, max_depth, show_hidden, is_ignored))


__all__ = ["detect_collapsed_chains", "spawn_collapse_detection"]
