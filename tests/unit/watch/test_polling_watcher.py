"""Tests for directory signatures and the polling watcher."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from sidetree.watch import PollingWatcher, directory_signature


class DirectorySignatureTests(unittest.TestCase):
    def test_signature_changes_when_visible_entries_change(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            before = directory_signature(root, show_hidden=False)
            (root / "new.txt").write_text("x", encoding="utf-8")
            self.assertNotEqual(directory_signature(root, show_hidden=False), before)

    def test_hidden_entries_ignored_unless_shown(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            before = directory_signature(root, show_hidden=False)
            (root / ".secret").write_text("x", encoding="utf-8")
            self.assertEqual(directory_signature(root, show_hidden=False), before)

    def test_nested_directory_contents_do_not_affect_parent(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / "sub").mkdir()
            before = directory_signature(root, show_hidden=False)
            (root / "sub" / "deep.txt").write_text("x", encoding="utf-8")
            self.assertEqual(directory_signature(root, show_hidden=False), before)

    def test_missing_directory_has_stable_signature(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp).resolve() / "missing"
            self.assertEqual(
                directory_signature(missing, show_hidden=False),
                directory_signature(missing, show_hidden=False),
            )


class PollingWatcherTests(unittest.TestCase):
    def test_poll_invokes_callback_once_per_change(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / "sub").mkdir()
            seen: list[Path] = []
            watcher = PollingWatcher()
            watcher.watch(root, seen.append)
            watcher.watch(root / "sub", seen.append)

            self.assertEqual(watcher.poll(), [])
            (root / "sub" / "file.txt").write_text("x", encoding="utf-8")

            self.assertEqual(watcher.poll(), [root / "sub"])
            self.assertEqual(seen, [root / "sub"])
            self.assertEqual(watcher.poll(), [])

    def test_unwatch_and_clear(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            seen: list[Path] = []
            watcher = PollingWatcher()
            watcher.watch(root, seen.append)
            self.assertIn(root, watcher)

            watcher.unwatch(root)
            (root / "file.txt").write_text("x", encoding="utf-8")
            self.assertEqual(watcher.poll(), [])
            self.assertEqual(seen, [])

            watcher.watch(root, seen.append)
            watcher.clear()
            self.assertEqual(len(watcher), 0)
            self.assertEqual(watcher.watched_paths(), [])


if __name__ == "__main__":
    unittest.main()
