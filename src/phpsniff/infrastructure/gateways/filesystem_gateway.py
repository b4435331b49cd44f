"""Filesystem Gateway - Infrastructure implementation of FileSystemProtocol."""

from pathlib import Path
from typing import List

from phpsniff.domain.protocols import FileSystemProtocol


class FileSystemGateway(FileSystemProtocol):
    """Infrastructure implementation of FileSystemProtocol using pathlib."""

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def glob_source_files(self, path: str, extensions: tuple[str, ...]) -> List[str]:
        """Get all source files in path (recursive if directory), sorted.

        A file named directly is returned even when its extension is not listed.
        """
        path_obj = Path(path).resolve()
        if not path_obj.is_dir():
            return [str(path_obj)] if path_obj.is_file() else []
        suffixes = {"." + ext.lstrip(".").lower() for ext in extensions}
        return sorted(
            str(p) for p in path_obj.glob("**/*")
            if p.is_file() and p.suffix.lower() in suffixes
        )

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read text content from a file, keeping its line endings."""
        with open(path, encoding=encoding, newline="") as f:
            return f.read()

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file, keeping its line endings."""
        with open(path, "w", encoding=encoding, newline="") as f:
            f.write(content)
