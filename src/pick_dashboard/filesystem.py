"""
FileSystem abstraction for Pick Dashboard.

PURPOSE: Injectable file system interface for testability.
AI CONTEXT: Lets the CLI export command be tested without temp directories.

DESIGN:
- Protocol defines the interface
- RealFileSystem uses actual os/pathlib operations
- MockFileSystem in tests/conftest.py stores data in memory for tests

USAGE:
    # Production
    run_export(query, mode, output_dir, filesystem=RealFileSystem())

    # Tests (MockFileSystem from conftest.py)
    run_export(query, mode, "/out", filesystem=mock_fs)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol

__all__ = ["FileSystem", "RealFileSystem"]


class FileSystem(Protocol):
    """
    Protocol for the file system operations used by CSV export.

    All paths are strings. Implementations include RealFileSystem for
    production and MockFileSystem for testing.
    """

    def exists(self, path: str) -> bool:
        """
        Check if path exists (file or directory).

        Args:
            path: Path to check for existence.

        Returns:
            True if the path exists, False otherwise. Never raises.
        """
        ...

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create directory and all parent directories.

        Args:
            path: Path of directory to create.
            exist_ok: If True, don't raise if directory exists.

        Raises:
            OSError: If directory exists and exist_ok is False.
        """
        ...

    def write_bytes(self, path: str, content: bytes) -> None:
        """
        Write binary content to a file, replacing any existing content.

        Business context: CSV exports are written as bytes so the leading
        byte-order marker is preserved exactly.

        Args:
            path: Destination file path.
            content: Bytes to write.

        Raises:
            OSError: If the file cannot be written.
        """
        ...


class RealFileSystem:
    """
    Production FileSystem backed by os and pathlib.

    Thin wrappers; all errors propagate to the caller.
    """

    def exists(self, path: str) -> bool:  # pragma: no cover
        """Check if path exists using os.path.exists()."""
        return os.path.exists(path)

    def makedirs(self, path: str, exist_ok: bool = False) -> None:  # pragma: no cover
        """Create directories using os.makedirs()."""
        os.makedirs(path, exist_ok=exist_ok)

    def write_bytes(self, path: str, content: bytes) -> None:  # pragma: no cover
        """Write bytes using Path.write_bytes()."""
        Path(path).write_bytes(content)
