"""Editor buffer binding contracts and an in-memory registry."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class EditorBuffers(Protocol):
    def bound_paths(self) -> list[Path]: ...

    def close(self, path: Path) -> None: ...

    def open(self, path: Path) -> None:
        """Bind ``path`` to a view; raises ``OSError`` when it cannot be opened."""
        ...


class RecentFiles(Protocol):
    def remove(self, path: Path) -> None: ...

    def add(self, path: Path) -> None: ...


class BufferRegistry:
    """Bookkeeping-only host binding: open paths plus a recent-files list."""

    def __init__(self, max_recent: int = 50) -> None:
        self.max_recent = max_recent
        self._bound: list[Path] = []
        self.recent: list[Path] = []

    def bound_paths(self) -> list[Path]:
        return list(self._bound)

    def close(self, path: Path) -> None:
        if path in self._bound:
            self._bound.remove(path)

    def open(self, path: Path) -> None:
        if not path.is_file():
            raise FileNotFoundError(path)
        if path not in self._bound:
            self._bound.append(path)
        self.add(path)

    def remove(self, path: Path) -> None:
        if path in self.recent:
            self.recent.remove(path)

    def add(self, path: Path) -> None:
        self.remove(path)
        self.recent.insert(0, path)
        del self.recent[self.max_recent :]


__all__ = ["BufferRegistry", "EditorBuffers", "RecentFiles"]
