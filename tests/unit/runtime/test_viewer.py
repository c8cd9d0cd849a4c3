"""Tests for the viewer surface: lifecycle, queries, scheduling, and polling."""

from __future__ import annotations

import tempfile
import threading
import time
import unittest
from pathlib import Path

from sidetree.runtime import BufferRegistry, RefreshScheduler, TreeViewer, ViewerConfig
from sidetree.git_status import GitStatus
from sidetree.tree_model import NodeKind, NodeState
from sidetree.watch import PollingWatcher


def _no_tags(path: Path):
    return ()


class ControlledStatusTask:
    def __init__(self, path: Path, recursive: bool, status_map: dict[Path, str]) -> None:
        self.path = path
        self.recursive = recursive
        self.status_map = status_map
        self.released = threading.Event()
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        self.released.set()

    def join(self) -> dict[Path, str]:
        self.released.wait(5.0)
        return {} if self.cancelled else self.status_map


def _poll_until(viewer: TreeViewer, condition, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            return False
        viewer.poll()
        time.sleep(0.01)
    return True


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class RefreshSchedulerTests(unittest.TestCase):
    def test_requests_coalesce_into_one_refresh(self) -> None:
        runs: list[int] = []
        scheduler = RefreshScheduler(lambda: runs.append(1))
        scheduler.request()
        scheduler.request()
        scheduler.request()
        self.assertTrue(scheduler.pending)

        self.assertEqual(scheduler.process_pending(), 1)
        self.assertEqual(len(runs), 1)
        self.assertFalse(scheduler.pending)
        self.assertEqual(scheduler.process_pending(), 0)

    def test_request_during_refresh_runs_one_follow_up(self) -> None:
        runs: list[int] = []
        nested: list[int] = []

        def refresh() -> None:
            runs.append(1)
            if len(runs) == 1:
                scheduler.request()
                scheduler.request()
                nested.append(scheduler.process_pending())

        scheduler = RefreshScheduler(refresh)
        scheduler.request()

        self.assertEqual(scheduler.process_pending(), 2)
        self.assertEqual(nested, [0])

    def test_requests_from_other_threads(self) -> None:
        runs: list[int] = []
        scheduler = RefreshScheduler(lambda: runs.append(1))
        workers = [threading.Thread(target=scheduler.request) for _ in range(8)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        self.assertEqual(scheduler.process_pending(), 1)


class TreeViewerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        (self.root / "a" / "b").mkdir(parents=True)
        (self.root / "a" / "inner.txt").write_text("x\n", encoding="utf-8")
        (self.root / "top.txt").write_text("x\n", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def make_viewer(self, **kwargs) -> TreeViewer:
        kwargs.setdefault("extract_tags", _no_tags)
        config = kwargs.pop("config", ViewerConfig(git_enabled=False))
        viewer = TreeViewer(config, **kwargs)
        viewer.initialize(self.root)
        return viewer

    def test_initialize_opens_root(self) -> None:
        viewer = self.make_viewer()
        self.assertEqual(viewer.root, self.root)
        self.assertEqual(
            viewer.sequence.paths(),
            [self.root, self.root / "a", self.root / "top.txt"],
        )
        self.assertIs(viewer.selected_node, viewer.sequence[0])

    def test_initialize_with_new_root_discards_caches(self) -> None:
        viewer = self.make_viewer()
        viewer.push(viewer.sequence[viewer.sequence.find(self.root / "a")])

        viewer.initialize(self.root / "a")
        self.assertEqual(viewer.root, self.root / "a")
        self.assertFalse(viewer.context.open_dirs.is_expanded(self.root / "a" / "b"))
        self.assertFalse(viewer.context.open_dirs.is_expanded(self.root))

        viewer.initialize(self.root)
        self.assertFalse(viewer.is_expanded(self.root / "a"))

    def test_initialize_with_same_root_keeps_expansions(self) -> None:
        viewer = self.make_viewer()
        viewer.push(viewer.sequence[viewer.sequence.find(self.root / "a")])

        viewer.initialize(self.root)

        self.assertTrue(viewer.is_expanded(self.root / "a"))

    def test_queries(self) -> None:
        viewer = self.make_viewer()
        a = viewer.sequence[viewer.sequence.find(self.root / "a")]
        viewer.push(a)

        self.assertEqual(viewer.expanded_paths(), {self.root, self.root / "a"})
        self.assertFalse(viewer.is_expanded(self.root / "a" / "b"))
        self.assertFalse(viewer.is_expanded(self.root / "missing"))
        self.assertEqual(
            [node.path for node in viewer.nodes_in(a)],
            [self.root / "a", self.root / "a" / "b", self.root / "a" / "inner.txt"],
        )
        self.assertEqual(viewer.nodes_in(self.root / "a"), viewer.nodes_in(a))
        self.assertEqual(viewer.nodes_in(self.root / "missing"), [])
        self.assertEqual(len(viewer.nodes_in()), 5)

    def test_collapsing_moves_cursor_to_collapsed_node(self) -> None:
        viewer = self.make_viewer()
        a = viewer.sequence[viewer.sequence.find(self.root / "a")]
        viewer.push(a)
        viewer.select(self.root / "a" / "inner.txt")

        viewer.push(a)

        self.assertIs(viewer.selected_node, a)

    def test_cursor_stays_on_node_when_rows_are_inserted_above(self) -> None:
        viewer = self.make_viewer()
        viewer.select(self.root / "top.txt")

        viewer.push(viewer.sequence[viewer.sequence.find(self.root / "a")])

        self.assertEqual(viewer.selected_node.path, self.root / "top.txt")

    def test_push_of_tag_leaf_reports_no_change(self) -> None:
        from sidetree.symbols import Tag

        visited = []
        viewer = self.make_viewer(
            extract_tags=lambda path: (Tag(kind="fn", name="main", line=4, column=0),),
            visit_tag=visited.append,
        )
        top = viewer.sequence[viewer.sequence.find(self.root / "top.txt")]
        self.assertTrue(viewer.push(top))
        leaf = viewer.sequence[viewer.sequence.index_of(top) + 1]
        self.assertIs(leaf.kind, NodeKind.TAG)
        self.assertIs(leaf.state, NodeState.LEAF)

        self.assertFalse(viewer.push(leaf))
        self.assertEqual(visited, [leaf])

    def test_poll_refreshes_after_watched_directory_changes(self) -> None:
        clock = FakeClock()
        watcher = PollingWatcher()
        viewer = self.make_viewer(watcher=watcher, monotonic=clock)
        self.assertIn(self.root, watcher)

        (self.root / "new.txt").write_text("x\n", encoding="utf-8")
        self.assertEqual(viewer.poll(), 1)
        self.assertIsNotNone(viewer.sequence.find(self.root / "new.txt"))

        (self.root / "later.txt").write_text("x\n", encoding="utf-8")
        clock.now += 0.1
        self.assertEqual(viewer.poll(), 0)
        self.assertIsNone(viewer.sequence.find(self.root / "later.txt"))

        clock.now += 1.0
        self.assertEqual(viewer.poll(), 1)
        self.assertIsNotNone(viewer.sequence.find(self.root / "later.txt"))

    def test_request_refresh_runs_on_next_poll(self) -> None:
        viewer = self.make_viewer()
        (self.root / "new.txt").write_text("x\n", encoding="utf-8")
        viewer.request_refresh()
        viewer.request_refresh()

        self.assertEqual(viewer.process_pending_refresh(), 1)
        self.assertIsNotNone(viewer.sequence.find(self.root / "new.txt"))

    def _status_fetcher(self, recursive_map: dict[Path, str]):
        tasks: list[ControlledStatusTask] = []

        def fetch(path: Path, recursive: bool) -> ControlledStatusTask:
            task = ControlledStatusTask(path, recursive, recursive_map if recursive else {})
            if not recursive:
                task.released.set()
            tasks.append(task)
            return task

        return fetch, tasks

    def test_background_status_applies_when_done(self) -> None:
        fetch, tasks = self._status_fetcher({self.root / "top.txt": " M"})
        viewer = self.make_viewer(config=ViewerConfig(), fetch_status=fetch)
        self.addCleanup(viewer.close)
        top = viewer.sequence[viewer.sequence.find(self.root / "top.txt")]
        self.assertIs(top.status, GitStatus.UNMODIFIED)

        viewer.refresh_status()
        self.assertEqual((tasks[-1].path, tasks[-1].recursive), (self.root, True))
        viewer.poll()
        self.assertIs(top.status, GitStatus.UNMODIFIED)

        tasks[-1].released.set()
        self.assertTrue(_poll_until(viewer, lambda: top.status is GitStatus.MODIFIED))

    def test_background_status_ignores_removed_paths(self) -> None:
        fetch, tasks = self._status_fetcher({self.root / "gone.txt": "??"})
        viewer = self.make_viewer(config=ViewerConfig(), fetch_status=fetch)
        self.addCleanup(viewer.close)
        before = [(node.path, node.status) for node in viewer.nodes_in()]

        viewer.refresh_status()
        tasks[-1].released.set()
        self.assertTrue(_poll_until(viewer, lambda: viewer._background_status is None))

        self.assertEqual([(node.path, node.status) for node in viewer.nodes_in()], before)

    def test_new_status_query_cancels_pending_one(self) -> None:
        fetch, tasks = self._status_fetcher({self.root / "top.txt": " M"})
        viewer = self.make_viewer(config=ViewerConfig(), fetch_status=fetch)
        self.addCleanup(viewer.close)
        top = viewer.sequence[viewer.sequence.find(self.root / "top.txt")]

        viewer.refresh_status()
        stale = tasks[-1]
        viewer.refresh_status()
        fresh = tasks[-1]

        self.assertTrue(stale.cancelled)
        self.assertFalse(fresh.cancelled)
        fresh.released.set()
        self.assertTrue(_poll_until(viewer, lambda: top.status is GitStatus.MODIFIED))

    def test_close_cancels_pending_status_query(self) -> None:
        fetch, tasks = self._status_fetcher({self.root / "top.txt": " M"})
        viewer = self.make_viewer(config=ViewerConfig(), fetch_status=fetch)
        viewer.refresh_status()
        viewer.close()
        self.assertTrue(tasks[-1].cancelled)

    def test_collapsed_chains_skip_ignored_directories(self) -> None:
        (self.root / "pkg" / "__pycache__").mkdir(parents=True)
        (self.root / "pkg" / "__pycache__" / "m.pyc").write_text("x\n", encoding="utf-8")
        (self.root / "src" / "lib").mkdir(parents=True)
        viewer = self.make_viewer(
            config=ViewerConfig(git_enabled=False, collapse_depth=3, ignored_patterns=("__pycache__",))
        )
        self.addCleanup(viewer.close)

        pkg = viewer.sequence[viewer.sequence.find(self.root / "pkg")]
        self.assertEqual(pkg.label, "pkg")
        self.assertIsNone(viewer.sequence.find(self.root / "pkg" / "__pycache__"))
        self.assertIsNotNone(viewer.sequence.find(self.root / "src" / "lib"))

    def test_default_buffer_registry_uses_recent_limit(self) -> None:
        viewer = TreeViewer(ViewerConfig(git_enabled=False, max_recent_files=2), extract_tags=_no_tags)
        self.assertIsInstance(viewer.buffers, BufferRegistry)
        self.assertIs(viewer.recent, viewer.buffers)
        for name in ("a.txt", "b.txt", "c.txt"):
            viewer.recent.add(self.root / name)
        self.assertEqual(viewer.recent.recent, [self.root / "c.txt", self.root / "b.txt"])

    def test_close_clears_watches(self) -> None:
        watcher = PollingWatcher()
        viewer = self.make_viewer(watcher=watcher)
        viewer.close()
        self.assertEqual(len(watcher), 0)


if __name__ == "__main__":
    unittest.main()
