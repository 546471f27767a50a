"""Reload cache, watch registry and the background watch loop."""

from confcap.cache.registry import WatchRegistry
from confcap.cache.reload_cache import CacheEntry, ReloadCache
from confcap.cache.watcher import WatchCoordinator

__all__ = ["CacheEntry", "ReloadCache", "WatchCoordinator", "WatchRegistry"]
