"""Destinations that rendered template files are written to."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from draftkit.osutil import ensure_directory as _ensure_directory

_DEFAULT_WRITE_MODE = 0o644


class TemplateWriter(ABC):
    """Somewhere to write files and create directories."""

    @abstractmethod
    def write_file(self, path: str, data: bytes) -> None:
        """Write ``data`` to ``path``."""

    @abstractmethod
    def ensure_directory(self, path: str) -> None:
        """Make sure ``path`` exists as a directory."""


@dataclass
class FileMapWriter(TemplateWriter):
    """Collects written files in memory, keyed by path."""

    file_map: dict[str, bytes] = field(default_factory=dict)

    def write_file(self, path: str, data: bytes) -> None:
        self.file_map[path] = data

    def ensure_directory(self, path: str) -> None:
        return None


@dataclass
class LocalFSWriter(TemplateWriter):
    """Writes files to the local filesystem; a write mode of 0 means 0o644."""

    write_mode: int = 0

    def write_file(self, path: str, data: bytes) -> None:
        mode = self.write_mode or _DEFAULT_WRITE_MODE
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)

    def ensure_directory(self, path: str) -> None:
        _ensure_directory(path)