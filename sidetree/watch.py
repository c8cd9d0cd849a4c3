"""Poll-based filesystem watch for expanded directories.

Each watched directory keeps a cheap digest of its entries. ``poll`` recomputes
the digests and invokes the callbacks of directories whose contents changed.
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Callable
from pathlib import Path

WatchCallback = Callable[[Path], None]


def _update_digest(digest, token: str) -> None:
    """Append a token plus separator byte to a hash digest."""
    digest.update(token.encode("utf-8", errors="surrogateescape"))
    digest.update(b"\0")


def directory_signature(directory: Path, show_hidden: bool) -> str:
    """Build a digest over ``directory``'s visible children and their stats."""
    digest = hashlib.blake2b(digest_size=20)
    _update_digest(digest, f"dir:{directory}")
    _update_digest(digest, f"show_hidden:{1 if show_hidden else 0}")

    children: list[tuple[str, bool, int, int]] = []
    try:
        with os.scandir(directory) as entries:
            for child in entries:
                name = child.name
                if not show_hidden and name.startswith("."):
                    continue
                try:
                    is_dir = child.is_dir(follow_symlinks=False)
                except OSError:
                    is_dir = False
                try:
                    st = child.stat(follow_symlinks=False)
                    mtime_ns = st.st_mtime_ns
                    size = st.st_size
                except OSError:
                    mtime_ns = 0
                    size = 0
                children.append((name, is_dir, mtime_ns, size))
    except FileNotFoundError:
        _update_digest(digest, "children:missing")
        return digest.hexdigest()
    except OSError:
        _update_digest(digest, "children:error")
        return digest.hexdigest()

    children.sort(key=lambda item: item[0])
    for name, is_dir, mtime_ns, size in children:
        # Directory sizes/mtimes change with their contents, which are watched separately.
        if is_dir:
            _update_digest(digest, f"child:{name}:1")
        else:
            _update_digest(digest, f"child:{name}:0:{mtime_ns}:{size}")
    return digest.hexdigest()


class PollingWatcher:
    """Directory watch registry driven by explicit ``poll`` calls.

    ``poll`` runs on the thread that owns the tree, so callbacks never race
    with tree mutation.
    """

    def __init__(self, show_hidden: bool = False) -> None:
        self.show_hidden = show_hidden
        self._watches: dict[Path, tuple[str, WatchCallback]] = {}

    def __contains__(self, path: Path) -> bool:
        return path in self._watches

    def __len__(self) -> int:
        return len(self._watches)

    def watched_paths(self) -> list[Path]:
        return sorted(self._watches, key=str)

    def watch(self, path: Path, callback: WatchCallback) -> None:
        self._watches[path] = (directory_signature(path, self.show_hidden), callback)

    def unwatch(self, path: Path) -> None:
        self._watches.pop(path, None)

    def clear(self) -> None:
        self._watches.clear()

    def poll(self) -> list[Path]:
        """Invoke callbacks for changed directories and return their paths."""
        changed: list[tuple[Path, WatchCallback]] = []
        for path, (signature, callback) in list(self._watches.items()):
            current = directory_signature(path, self.show_hidden)
            if current == signature:
                continue
            self._watches[path] = (current, callback)
            changed.append((path, callback))
        for path, callback in changed:
            callback(path)
        return [path for path, _callback in changed]


__all__ = ["PollingWatcher", "WatchCallback", "directory_signature"]
