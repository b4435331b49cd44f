"""Tests for SniffPass and FileBatch."""

import threading
from pathlib import Path
from unittest.mock import MagicMock

from phpsniff.domain.context import FileIdentity
from phpsniff.domain.dispatcher import SniffRegistry
from phpsniff.domain.sniffs.php import StrictTypesSniff
from phpsniff.infrastructure.gateways.php_tokenizer import PhpTokenizer
from phpsniff.use_cases.sniff_pass import FileBatch, SniffPass


class TestSniffPass:
    def test_check_pass_has_no_fixer(self) -> None:
        result = SniffPass(PhpTokenizer()).run(FileIdentity("a.php"), "<?php\n", SniffRegistry([StrictTypesSniff()]))
        assert result.fixer is None
        assert [d.code for d in result.diagnostics] == ["MissingStrictTypes"]

    def test_fix_pass_collects_edits(self) -> None:
        result = SniffPass(PhpTokenizer()).run(
            FileIdentity("a.php"), "<?php\n", SniffRegistry([StrictTypesSniff()]), fixing=True
        )
        assert result.fixer is not None
        assert result.fixer.edit_count == 1
        assert result.store.source == "<?php\n"


class TestFileBatch:
    def test_map_in_order_serial(self) -> None:
        assert FileBatch.map_in_order(str.upper, ["a", "b"]) == ["A", "B"]

    def test_map_in_order_threads_keep_input_order(self) -> None:
        release = threading.Event()

        def task(item: int) -> int:
            # The first item finishes last.
            if item == 0:
                release.wait(timeout=2)
            elif item == 5:
                release.set()
            return item * 10

        assert FileBatch.map_in_order(task, range(6), jobs=3) == [0, 10, 20, 30, 40, 50]

    def test_collect_delegates_to_filesystem(self) -> None:
        filesystem = MagicMock()
        filesystem.glob_source_files.return_value = ["x.php"]
        assert FileBatch(filesystem).collect("src", ("php",)) == ["x.php"]

    def test_rel_path(self) -> None:
        inside = str(Path.cwd() / "src" / "a.php")
        assert FileBatch.rel_path(inside) == str(Path("src") / "a.php")
        assert FileBatch.rel_path("/elsewhere/a.php") == "/elsewhere/a.php"
