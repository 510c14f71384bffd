from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__: list[str] = [
    "FileMissingError",
    "FileUtils",
    "FileUtilsError",
    "UnsupportedFileFormatError",
]


class FileUtils:
    """Path helpers for the files named in the INI configuration (log file, providers file)."""

    @staticmethod
    def resolve_path(path: str | Path, *, base_dir: Path | None = None) -> Path:
        """Turn a configured path into an absolute one.

        Environment variables ($HOME, %APPDATA%) and ~ are expanded first. A path that is still
        relative is taken relative to base_dir, or to the current working directory when no
        base directory is given.

        Args:
            path (str | Path): Path as written in the configuration.
            base_dir (Path | None): Directory that relative paths are anchored to.

        Returns:
            Path: The absolute path. It does not have to exist.
        """
        expanded = Path(os.path.expandvars(str(path))).expanduser()
        if not expanded.is_absolute():
            expanded = (base_dir if base_dir is not None else Path.cwd()) / expanded
        return expanded.resolve()

    @staticmethod
    def require_file(path: Path, suffixes: Iterable[str]) -> Path:
        """Check that path names an existing regular file with one of the given suffixes.

        Args:
            path (Path): File to check.
            suffixes (Iterable[str]): Accepted suffixes, compared case-insensitively (e.g. [".json"]).

        Returns:
            Path: The same path, for chaining.

        Raises:
            FileMissingError: If there is no regular file at path.
            UnsupportedFileFormatError: If the suffix is not accepted.
        """
        accepted: list[str] = [suffix.lower() for suffix in suffixes]
        if not path.is_file():
            msg = f"File does not exist: {path}"
            raise FileMissingError(msg)
        if path.suffix.lower() not in accepted:
            msg = f"Unsupported file format: '{path.suffix}'. Supported formats are: {', '.join(accepted)}"
            raise UnsupportedFileFormatError(msg)
        return path


class FileUtilsError(Exception):
    """Base class for FileUtils errors."""


class FileMissingError(FileUtilsError):
    """Raised when a required file does not exist."""


class UnsupportedFileFormatError(FileUtilsError):
    """Raised when a file has a suffix that is not accepted."""
