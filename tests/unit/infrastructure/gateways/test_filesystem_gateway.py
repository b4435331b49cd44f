"""Tests for FileSystemGateway."""

from pathlib import Path

from phpsniff.infrastructure.gateways.filesystem_gateway import FileSystemGateway


class TestFileSystemGateway:
    def test_glob_filters_by_extension_and_sorts(self, tmp_path: Path) -> None:
        (tmp_path / "b.php").write_text("<?php\n")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "a.INC").write_text("<?php\n")
        (tmp_path / "readme.md").write_text("# x\n")

        found = FileSystemGateway().glob_source_files(str(tmp_path), ("php", ".inc"))
        root = tmp_path.resolve()
        assert found == [str(root / "b.php"), str(root / "sub" / "a.INC")]

    def test_named_file_is_returned_whatever_its_extension(self, tmp_path: Path) -> None:
        target = tmp_path / "template.phtml"
        target.write_text("<?php\n")
        assert FileSystemGateway().glob_source_files(str(target), ("php",)) == [str(target.resolve())]

    def test_missing_path_yields_nothing(self, tmp_path: Path) -> None:
        assert FileSystemGateway().glob_source_files(str(tmp_path / "nope"), ("php",)) == []

    def test_line_endings_survive_a_round_trip(self, tmp_path: Path) -> None:
        gateway = FileSystemGateway()
        target = str(tmp_path / "crlf.php")
        gateway.write_text(target, "<?php\r\necho 1;\r\n")
        assert gateway.read_text(target) == "<?php\r\necho 1;\r\n"
        assert (tmp_path / "crlf.php").read_bytes() == b"<?php\r\necho 1;\r\n"

    def test_exists(self, tmp_path: Path) -> None:
        gateway = FileSystemGateway()
        assert gateway.exists(str(tmp_path))
        assert not gateway.exists(str(tmp_path / "nope"))
