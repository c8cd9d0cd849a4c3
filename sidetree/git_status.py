"""Asynchronous git status queries for tree nodes.

A fetch spawns ``git rev-parse`` and ``git status`` side by side and returns a
``StatusTask`` that is joined once the tree needs the result. Any failure
degrades to an empty status map.
"""

from __future__ import annotations

import logging
import subprocess
from enum import Enum
from pathlib import Path

from .errors import StatusFetchFailure

logger = logging.getLogger(__name__)

DEFAULT_STATUS_TIMEOUT_SECONDS = 2.0


class GitStatus(Enum):
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    CONFLICTED = "conflicted"
    UNTRACKED = "untracked"
    IGNORED = "ignored"
    ADDED = "added"


_STATUS_BY_FIRST_CHAR: dict[str, GitStatus] = {
    "M": GitStatus.MODIFIED,
    "U": GitStatus.CONFLICTED,
    "?": GitStatus.UNTRACKED,
    "!": GitStatus.IGNORED,
    "A": GitStatus.ADDED,
}


def status_for_code(code: str | None) -> GitStatus:
    """Map a two-character porcelain code to its presentation status.

    The first non-blank character decides, so worktree-only changes such as
    ``" M"`` count the same as staged ones.
    """
    letter = (code or "").lstrip()[:1]
    return _STATUS_BY_FIRST_CHAR.get(letter, GitStatus.UNMODIFIED)


def status_for_path(status_map: dict[Path, str], path: Path) -> GitStatus:
    return status_for_code(status_map.get(path))


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return text[1:-1]
    return text


def parse_git_status_output(output: str, repo_root: Path) -> dict[Path, str]:
    """Parse ``git status --porcelain=v1`` output into absolute-path codes.

    Porcelain paths are relative to the repository root regardless of the
    directory the command ran in, so they are resolved against ``repo_root``.
    """
    status_map: dict[Path, str] = {}
    for line in output.splitlines():
        if len(line) < 4:
            continue
        code = line[:2]
        path_text = line[2:].strip()
        # Renames and copies list "source -> destination".
        if " -> " in path_text:
            path_text = path_text.split(" -> ", 1)[1].strip()
        path_text = _strip_quotes(path_text).rstrip("/")
        if not path_text:
            continue
        status_map[repo_root / path_text] = code
    return status_map


def _spawn_git(path: Path, args: list[str]) -> subprocess.Popen[str] | None:
    try:
        return subprocess.Popen(
            ["git", *args],
            cwd=path,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        logger.debug("failed to run git in %s: %s", path, exc)
        return None


class StatusTask:
    """Handle for one in-flight status query scoped to ``path``.

    ``join`` reads both git processes to completion and caches the parsed
    map, so sharing one task across an expansion wave costs a single query.
    Nothing drains the pipes before ``join``; callers that must not block run
    ``join`` on a worker thread.
    """

    def __init__(
        self,
        path: Path,
        recursive: bool,
        root_proc: subprocess.Popen[str] | None,
        status_proc: subprocess.Popen[str] | None,
        timeout_seconds: float = DEFAULT_STATUS_TIMEOUT_SECONDS,
    ) -> None:
        self.path = path
        self.recursive = recursive
        self.repo_root: Path | None = None
        self._root_proc = root_proc
        self._status_proc = status_proc
        self._timeout_seconds = timeout_seconds
        self._result: dict[Path, str] | None = None

    def cancel(self) -> None:
        """Kill and reap git processes that are still running.

        A later ``join`` of a killed query yields ``{}``.
        """
        for proc in (self._root_proc, self._status_proc):
            if proc is None or proc.poll() is not None:
                continue
            proc.kill()
            proc.wait()

    def _communicate(self, proc: subprocess.Popen[str] | None) -> str:
        if proc is None:
            raise StatusFetchFailure("git is not available")
        try:
            stdout, _stderr = proc.communicate(timeout=self._timeout_seconds)
        except subprocess.TimeoutExpired as exc:
            proc.kill()
            proc.communicate()
            raise StatusFetchFailure(f"git timed out after {self._timeout_seconds}s") from exc
        if proc.returncode != 0:
            raise StatusFetchFailure(f"git exited with code {proc.returncode}")
        return stdout

    def _collect(self) -> dict[Path, str]:
        try:
            root_text = self._communicate(self._root_proc).strip()
        except StatusFetchFailure as exc:
            logger.debug("no git repository for %s: %s", self.path, exc)
            root_text = ""
        try:
            status_text = self._communicate(self._status_proc)
        except StatusFetchFailure as exc:
            logger.debug("no git status for %s: %s", self.path, exc)
            return {}
        if not root_text:
            logger.debug("no git repository root for %s", self.path)
            return {}
        if not status_text.strip():
            return {}
        self.repo_root = Path(root_text)
        return parse_git_status_output(status_text, self.repo_root)

    def join(self) -> dict[Path, str]:
        if self._result is None:
            self._result = self._collect()
        return self._result


def fetch_git_status(
    path: Path,
    recursive: bool = False,
    timeout_seconds: float = DEFAULT_STATUS_TIMEOUT_SECONDS,
) -> StatusTask:
    """Start a status query for ``path`` and return its joinable task."""
    untracked = "all" if recursive else "normal"
    root_proc = _spawn_git(path, ["rev-parse", "--show-toplevel"])
    status_proc = _spawn_git(
        path,
        [
            "status",
            "--porcelain=v1",
            "--ignored=matching",
            f"--untracked-files={untracked}",
            "--",
            ".",
        ],
    )
    return StatusTask(path, recursive, root_proc, status_proc, timeout_seconds)


def is_repository_root(path: Path) -> bool:
    """Return whether ``path`` holds its own ``.git`` entry."""
    return (path / ".git").exists()


__all__ = [
    "DEFAULT_STATUS_TIMEOUT_SECONDS",
    "GitStatus",
    "StatusTask",
    "fetch_git_status",
    "is_repository_root",
    "parse_git_status_output",
    "status_for_code",
    "status_for_path",
]
