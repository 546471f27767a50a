"""ConfigManager: the explicit lifecycle object tying resolver, cache and
watch loop together, plus the process-default get()/shutdown() surface.

    @configurable(file_path="app.properties")
    class AppConfig(ABC):
        @config_value(key="app.debug", default="false")
        @abstractmethod
        def debug(self) -> bool: ...

    config = confcap.get(AppConfig)
    config.debug()
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from pathlib import Path
from typing import TypeVar

import structlog

from confcap.cache.registry import WatchRegistry
from confcap.cache.reload_cache import CacheEntry, ReloadCache
from confcap.cache.watcher import WatchCoordinator
from confcap.classgen.factory import ClassFileFactory, InstanceFactory
from confcap.config.settings import ConfcapSettings, get_settings
from confcap.contracts.resolver import ContractResolver
from confcap.infra.errors import DeclarationError, ManagerClosedError

logger = structlog.get_logger()

T = TypeVar("T")


class ConfigManager:
    """Builds and caches contract instances and keeps them current.

    The watch thread starts when the first configuration directory is
    registered and stops on shutdown().
    """

    def __init__(
        self,
        settings: ConfcapSettings | None = None,
        *,
        factory: InstanceFactory | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._registry = WatchRegistry(on_new_directory=self._subscribe)
        self._resolver = ContractResolver(self._registry, environ)
        self._cache = ReloadCache(
            self._resolver, factory or ClassFileFactory(dump_dir=self._settings.dump_dir),
        )
        self._watcher = WatchCoordinator(self._registry, self._cache.reload_all, self._settings)
        self._closed = False

    def _subscribe(self, directory: Path) -> None:
        if not self._closed:
            self._watcher.subscribe(directory)

    @property
    def settings(self) -> ConfcapSettings:
        return self._settings

    @property
    def registry(self) -> WatchRegistry:
        return self._registry

    @property
    def watcher(self) -> WatchCoordinator:
        return self._watcher

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, contract: type[T]) -> T:
        """Return the live instance implementing contract.

        Built on first use, then cached until its resolved values change.
        """
        if self._closed:
            raise ManagerClosedError()
        if not isinstance(contract, type):
            raise DeclarationError(f"{contract!r} is not a contract class")
        return self._cache.get(contract)

    def invalidate(self, contract: type) -> bool:
        """Force the next get() to rebuild contract even if nothing changed."""
        return self._cache.invalidate(contract)

    def reload_all(self) -> int:
        """Run one reload pass now. Returns the number of replaced instances."""
        return self._cache.reload_all()

    def entry(self, contract: type) -> CacheEntry | None:
        return self._cache.peek(contract)

    def cached_types(self) -> list[type]:
        return self._cache.cached_types()

    def shutdown(self) -> None:
        """Clear all state and stop the watch loop. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._cache.clear()
        self._registry.clear()
        self._watcher.stop()
        logger.info("manager_shutdown")

    def __enter__(self) -> ConfigManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


_default: ConfigManager | None = None
_default_lock = threading.Lock()


def default_manager() -> ConfigManager:
    """The process-wide manager used by get()/shutdown(), created on first use."""
    global _default
    manager = _default
    if manager is not None:
        return manager
    with _default_lock:
        if _default is None:
            _default = ConfigManager()
        return _default


def get(contract: type[T]) -> T:
    """Return the live instance for contract from the process-default manager."""
    return default_manager().get(contract)


def shutdown() -> None:
    """Shut the process-default manager down. A later get() starts a fresh one."""
    global _default
    with _default_lock:
        manager, _default = _default, None
    if manager is not None:
        manager.shutdown()
