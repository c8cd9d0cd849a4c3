"""CLI argument handling and printed tree output.

Verifies how ``sidetree.cli.main`` picks its root and which rows it expands.
"""

from __future__ import annotations

import io
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from sidetree import cli
from sidetree.runtime import ViewerConfig


class CliTreeOutputTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        (self.root / "pkg" / "sub").mkdir(parents=True)
        (self.root / "pkg" / "sub" / "deep.txt").write_text("x\n", encoding="utf-8")
        (self.root / "pkg" / "mod.txt").write_text("x\n", encoding="utf-8")
        (self.root / ".hidden").write_text("x\n", encoding="utf-8")
        (self.root / "top.txt").write_text("x\n", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> list[str]:
        stdout = io.StringIO()
        with (
            mock.patch("sidetree.cli.load_viewer_config", return_value=ViewerConfig(git_enabled=False)),
            mock.patch("sidetree.cli.setup_logging"),
            mock.patch.object(sys, "stdout", stdout),
        ):
            cli.main(list(argv))
        return stdout.getvalue().splitlines()

    def test_prints_first_level_by_default(self) -> None:
        rows = self.run_cli(str(self.root))
        self.assertEqual(rows, [f"▾ {self.root.name}/", "  ▸ pkg/", "    top.txt"])

    def test_defaults_to_current_working_directory(self) -> None:
        previous_cwd = Path.cwd()
        try:
            os.chdir(self.root)
            rows = self.run_cli()
        finally:
            os.chdir(previous_cwd)
        self.assertEqual(rows[0], f"▾ {self.root.name}/")

    def test_hidden_flag_shows_dot_files(self) -> None:
        rows = self.run_cli(str(self.root), "--hidden")
        self.assertIn("    .hidden", rows)

    def test_expand_opens_ancestors(self) -> None:
        rows = self.run_cli(str(self.root), "--expand", str(self.root / "pkg" / "sub"))
        self.assertEqual(
            rows,
            [
                f"▾ {self.root.name}/",
                "  ▾ pkg/",
                "    ▾ sub/",
                "        deep.txt",
                "      mod.txt",
                "    top.txt",
            ],
        )

    def test_expand_all_opens_every_directory(self) -> None:
        rows = self.run_cli(str(self.root), "--expand-all")
        self.assertIn("        deep.txt", rows)
        self.assertEqual(len(rows), 6)

    def test_collapse_merges_single_child_chains(self) -> None:
        (self.root / "pkg" / "mod.txt").unlink()
        rows = self.run_cli(str(self.root), "--collapse", "2")
        self.assertIn("  ▸ pkg/sub/", rows)

    def test_rejects_non_directory_and_outside_paths(self) -> None:
        with self.assertRaises(SystemExit):
            self.run_cli(str(self.root / "top.txt"))
        with self.assertRaises(SystemExit):
            self.run_cli(str(self.root / "pkg"), "--expand", str(self.root / "top.txt"))
        with self.assertRaises(SystemExit):
            self.run_cli(str(self.root), "--collapse", "-1")


if __name__ == "__main__":
    unittest.main()
