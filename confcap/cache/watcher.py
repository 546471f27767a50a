"""Watch coordinator: one background thread turning file changes into reloads.

The thread blocks in watchfiles.watch() over a snapshot of the registered
directories. Subscribing a new directory sets the restart event, which ends
the current wait so the next iteration watches the enlarged set.

Only directories that currently exist are watched. The wait wakes every
rescan_ms to check whether one has vanished or reappeared, so a deleted
directory never blocks reloads for the others.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

import structlog
from watchfiles import Change, watch

from confcap.cache.registry import WatchRegistry
from confcap.config.settings import ConfcapSettings

logger = structlog.get_logger()

_RELOAD_CHANGES = frozenset({Change.modified, Change.added})


class WatchCoordinator:
    """Owns the watch thread. start() is idempotent; stop() is permanent."""

    def __init__(
        self,
        registry: WatchRegistry,
        on_change: Callable[[], object],
        settings: ConfcapSettings,
    ) -> None:
        self._registry = registry
        self._on_change = on_change
        self._settings = settings
        self._stop = threading.Event()
        self._restart = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._missing: frozenset[Path] = frozenset()
        self.reload_passes = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self._stop.is_set() or self.running:
                return
            self._thread = threading.Thread(
                target=self._run, name="confcap-watch", daemon=True,
            )
            self._thread.start()

    def subscribe(self, directory: Path) -> None:
        """Make the loop pick up a newly registered directory."""
        logger.info("watch_directory_subscribed", directory=str(directory))
        self._restart.set()
        self.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        self._restart.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        while not self._stop.is_set():
            # Clear before the snapshot so a concurrent subscribe is never lost.
            self._restart.clear()
            directories = self._registry.directories()
            present = self._present(directories)
            if not present:
                self._stop.wait(self._settings.idle_sleep_s)
                continue
            try:
                self._watch(directories, present)
            except Exception:
                logger.exception("watch_loop_error", directories=[str(d) for d in present])
                self._stop.wait(self._settings.error_backoff_s)
        logger.debug("watch_loop_stopped")

    def _present(self, directories: list[Path]) -> list[Path]:
        """Registered directories that exist now; the rest are reported once per change."""
        present = [d for d in directories if d.is_dir()]
        missing = frozenset(directories).difference(present)
        if missing != self._missing:
            if missing:
                logger.warning(
                    "watch_directory_missing", directories=sorted(str(d) for d in missing),
                )
            self._missing = missing
        return present

    def _watch(self, directories: list[Path], present: list[Path]) -> None:
        for changes in watch(
            *present,
            watch_filter=None,
            debounce=self._settings.debounce_ms,
            step=self._settings.step_ms,
            stop_event=self._restart,
            rust_timeout=self._settings.rescan_ms,
            yield_on_timeout=True,
            recursive=False,
            force_polling=self._settings.force_polling,
            raise_interrupt=False,
        ):
            if self._stop.is_set():
                return
            if changes:
                self._handle_batch(changes)
            if [d for d in directories if d.is_dir()] != present:
                # A directory vanished or reappeared: re-snapshot.
                return

    def _handle_batch(self, changes: set[tuple[Change, str]]) -> None:
        relevant = sorted(
            {path for change, path in changes
             if change in _RELOAD_CHANGES and self._registry.matches(Path(path))}
        )
        if not relevant:
            return
        for path in relevant:
            logger.info("watched_file_changed", path=path)
        # One pass per batch, however many files changed.
        try:
            self._on_change()
        except Exception:
            logger.exception("reload_pass_failed")
        finally:
            self.reload_passes += 1
