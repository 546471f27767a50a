"""Watch registry: directory -> file names whose changes trigger a reload."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path


class WatchRegistry:
    """Directories and file names of interest.

    Paths are stored fully resolved so they compare equal to what the OS
    reports in change events. The first registration of a directory calls
    on_new_directory exactly once, under the registry lock.
    """

    def __init__(self, on_new_directory: Callable[[Path], None] | None = None) -> None:
        self._dirs: dict[Path, frozenset[str]] = {}
        self._lock = threading.Lock()
        self._on_new_directory = on_new_directory

    def register(self, path: Path) -> bool:
        """Register a file. Returns True if its directory was not watched before."""
        directory = path.parent.resolve()
        with self._lock:
            files = self._dirs.get(directory)
            self._dirs[directory] = (files or frozenset()) | {path.name}
            if files is not None:
                return False
            if self._on_new_directory is not None:
                self._on_new_directory(directory)
            return True

    def matches(self, path: Path) -> bool:
        """True if path is a registered file in a registered directory."""
        directory = path.parent.resolve()
        with self._lock:
            return path.name in self._dirs.get(directory, frozenset())

    def directories(self) -> list[Path]:
        with self._lock:
            return list(self._dirs)

    def files(self, directory: Path) -> frozenset[str]:
        with self._lock:
            return self._dirs.get(directory.resolve(), frozenset())

    def is_empty(self) -> bool:
        with self._lock:
            return not self._dirs

    def clear(self) -> None:
        with self._lock:
            self._dirs.clear()
