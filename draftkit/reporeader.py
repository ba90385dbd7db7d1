"""Read-only views of a repository's files."""

from __future__ import annotations

import fnmatch
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

log = logging.getLogger(__name__)


class RepoReader(ABC):
    """Access to the files of a repository."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return whether ``path`` exists in the repository."""

    @abstractmethod
    def read_file(self, path: str) -> bytes:
        """Return the contents of ``path``."""

    @abstractmethod
    def find_files(self, path: str, patterns: list[str], max_depth: int) -> list[str]:
        """Return files matching any of ``patterns`` at most ``max_depth`` directories deep.

        A ``max_depth`` of 0 limits the search to the root directory.
        """

    @abstractmethod
    def get_repo_name(self) -> str:
        """Return the repository's name."""


class VariableExtractor(ABC):
    """Extracts default variable values from a repository's files."""

    @abstractmethod
    def read_defaults(self, reader: RepoReader) -> dict[str, str]:
        """Return variable defaults found through ``reader``."""

    @abstractmethod
    def matches_language(self, lowerlang: str) -> bool:
        """Return whether this extractor handles the lower-cased language name."""

    @abstractmethod
    def get_name(self) -> str:
        """Return the extractor's name."""


def _matches(pattern: str, path: str) -> bool:
    return fnmatch.fnmatchcase(os.path.basename(path), pattern)


@dataclass
class FakeRepoReader(RepoReader):
    """An in-memory repository built from relative paths and their contents."""

    files: dict[str, bytes] | None = None

    def get_repo_name(self) -> str:
        return "test-repo"

    def exists(self, path: str) -> bool:
        return self.files is not None and path in self.files

    def read_file(self, path: str) -> bytes:
        if self.files is None:
            return b""
        return self.files.get(path, b"")

    def find_files(self, path: str, patterns: list[str], max_depth: int) -> list[str]:
        if self.files is None:
            return []
        found = []
        for file in sorted(self.files):
            for pattern in patterns:
                if _matches(pattern, file) and len(file.split(os.sep)) - 1 <= max_depth:
                    found.append(file)
        return found


class LocalFSReader(RepoReader):
    """Reads a repository from the local filesystem."""

    def get_repo_name(self) -> str:
        """Return the current directory's name, taken as the repository name."""
        try:
            cwd = os.getcwd()
        except OSError as err:
            raise OSError(f"unable to get working directory: {err}") from err
        return os.path.basename(cwd)

    def exists(self, path: str) -> bool:
        try:
            os.stat(path)
        except FileNotFoundError:
            return False
        except OSError:
            return True
        return True

    def read_file(self, path: str) -> bytes:
        with open(path, "rb") as handle:
            return handle.read()

    def find_files(self, path: str, patterns: list[str], max_depth: int) -> list[str]:
        # Depth is judged by separators in the whole path, so it is relative to
        # how the root is written, not to the root itself.
        found: list[str] = []

        def walk(directory: str) -> None:
            if directory.count(os.sep) > max_depth:
                log.debug("skip %s", directory)
                return
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
            for entry in entries:
                child = os.path.normpath(os.path.join(directory, entry.name))
                if entry.is_dir(follow_symlinks=False):
                    walk(child)
                    continue
                found.extend(child for pattern in patterns if _matches(pattern, child))

        root = os.path.normpath(path)
        if not os.path.isdir(root):
            os.stat(root)
            found.extend(root for pattern in patterns if _matches(pattern, root))
            return found
        walk(root)
        return found