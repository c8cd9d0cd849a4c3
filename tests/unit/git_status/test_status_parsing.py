"""Tests for porcelain parsing and the status task lifecycle."""

from __future__ import annotations

import subprocess
import unittest
from pathlib import Path
from unittest import mock

from sidetree.git_status import (
    GitStatus,
    StatusTask,
    parse_git_status_output,
    status_for_code,
    status_for_path,
)

REPO = Path("/repo")


class ParseGitStatusOutputTests(unittest.TestCase):
    def test_parses_modified_and_untracked_entries(self) -> None:
        status_map = parse_git_status_output(" M file1.txt\n?? file2.txt\n", REPO)
        self.assertEqual(
            status_map,
            {
                Path("/repo/file1.txt"): " M",
                Path("/repo/file2.txt"): "??",
            },
        )

    def test_empty_output_yields_empty_map(self) -> None:
        self.assertEqual(parse_git_status_output("", REPO), {})

    def test_rename_uses_destination_path(self) -> None:
        status_map = parse_git_status_output("R  old.txt -> new/name.txt\n", REPO)
        self.assertEqual(status_map, {Path("/repo/new/name.txt"): "R "})

    def test_quoted_paths_and_ignored_directories(self) -> None:
        status_map = parse_git_status_output('?? "with space.txt"\n!! build/\n', REPO)
        self.assertEqual(
            status_map,
            {
                Path("/repo/with space.txt"): "??",
                Path("/repo/build"): "!!",
            },
        )

    def test_short_lines_are_skipped(self) -> None:
        self.assertEqual(parse_git_status_output("M\n??\n", REPO), {})


class StatusPresentationTests(unittest.TestCase):
    def test_first_character_selects_presentation(self) -> None:
        self.assertIs(status_for_code(" M"), GitStatus.MODIFIED)
        self.assertIs(status_for_code("M "), GitStatus.MODIFIED)
        self.assertIs(status_for_code("UU"), GitStatus.CONFLICTED)
        self.assertIs(status_for_code("??"), GitStatus.UNTRACKED)
        self.assertIs(status_for_code("!!"), GitStatus.IGNORED)
        self.assertIs(status_for_code("A "), GitStatus.ADDED)

    def test_unknown_or_missing_codes_are_unmodified(self) -> None:
        self.assertIs(status_for_code(None), GitStatus.UNMODIFIED)
        self.assertIs(status_for_code(""), GitStatus.UNMODIFIED)
        self.assertIs(status_for_code("D "), GitStatus.UNMODIFIED)

    def test_status_for_path_without_entry(self) -> None:
        self.assertIs(status_for_path({}, Path("/repo/x")), GitStatus.UNMODIFIED)


def _proc(stdout: str, returncode: int = 0) -> mock.Mock:
    proc = mock.Mock()
    proc.communicate.return_value = (stdout, "")
    proc.returncode = returncode
    proc.poll.return_value = returncode
    return proc


class StatusTaskTests(unittest.TestCase):
    def test_join_parses_against_repository_root(self) -> None:
        task = StatusTask(REPO / "sub", False, _proc("/repo\n"), _proc("?? sub/new.txt\n"))
        self.assertEqual(task.join(), {Path("/repo/sub/new.txt"): "??"})
        self.assertEqual(task.repo_root, REPO)

    def test_join_caches_result(self) -> None:
        status_proc = _proc(" M a.txt\n")
        task = StatusTask(REPO, True, _proc("/repo\n"), status_proc)
        first = task.join()
        second = task.join()
        self.assertIs(first, second)
        status_proc.communicate.assert_called_once()

    def test_failures_degrade_to_empty_map(self) -> None:
        not_a_repo = StatusTask(REPO, False, _proc("", returncode=128), _proc("", returncode=128))
        self.assertEqual(not_a_repo.join(), {})

        missing_git = StatusTask(REPO, False, None, None)
        self.assertEqual(missing_git.join(), {})

    def test_timeout_kills_process_and_degrades(self) -> None:
        slow = mock.Mock()
        slow.communicate.side_effect = [subprocess.TimeoutExpired(["git"], 0.1), ("", "")]
        task = StatusTask(REPO, False, _proc("/repo\n"), slow, timeout_seconds=0.1)
        self.assertEqual(task.join(), {})
        slow.kill.assert_called_once()

    def test_cancel_kills_running_processes_only(self) -> None:
        finished = _proc("/repo\n")
        running = _proc("")
        running.poll.return_value = None
        task = StatusTask(REPO, True, finished, running)
        task.cancel()
        running.kill.assert_called_once()
        running.wait.assert_called_once()
        finished.kill.assert_not_called()

    def test_cancel_without_processes_is_a_no_op(self) -> None:
        task = StatusTask(REPO, False, None, None)
        task.cancel()
        self.assertEqual(task.join(), {})


if __name__ == "__main__":
    unittest.main()
