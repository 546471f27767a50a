"""Reload cache: one live instance per contract type, rebuilt only when the
resolved values actually change.

Lookups never take a lock. Misses resolve and build outside any lock; the
install is insert-if-absent, so racing builders converge on the first
installed instance and the rest discard theirs.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TypeVar, cast

import structlog

from confcap.classgen.factory import InstanceFactory
from confcap.contracts.models import ResolvedBinding
from confcap.contracts.resolver import ContractResolver

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry:
    type_id: type
    instance: object
    fingerprint: str
    watchable: bool


def _contract_name(contract: type) -> str:
    return f"{contract.__module__}.{contract.__qualname__}"


class ReloadCache:
    """Maps contract type -> CacheEntry and owns the build-or-reuse decision."""

    def __init__(self, resolver: ContractResolver, factory: InstanceFactory) -> None:
        self._resolver = resolver
        self._factory = factory
        self._entries: dict[type, CacheEntry] = {}
        # Guards install/replace/remove only; never held while resolving or building.
        self._lock = threading.Lock()

    def get(self, contract: type[T]) -> T:
        """Return the live instance for contract, building it on first use.

        Raises DeclarationError, ConversionError, ModuleBuildError or
        ActivationError; failures are never cached.
        """
        entry = self._entries.get(contract)
        if entry is not None:
            return cast(T, entry.instance)

        built = self._create_entry(self._resolver.resolve(contract))
        with self._lock:
            winner = self._entries.setdefault(contract, built)
        if winner is built:
            logger.info(
                "contract_built", contract=_contract_name(contract), watchable=built.watchable,
            )
        else:
            logger.debug("contract_install_lost_race", contract=_contract_name(contract))
        return cast(T, winner.instance)

    def _create_entry(self, binding: ResolvedBinding) -> CacheEntry:
        return CacheEntry(
            type_id=binding.type_id,
            instance=self._factory.create(binding),
            fingerprint=binding.fingerprint,
            watchable=binding.watchable,
        )

    def reload_all(self) -> int:
        """Re-resolve every cached watchable contract; replace those whose values changed.

        A failure for one contract is logged and the pass continues. Every
        contract is re-checked on any change, not only those backed by the
        changed file. Returns the number of replaced instances.
        """
        snapshot = [entry for entry in list(self._entries.values()) if entry.watchable]
        logger.info("reload_pass_started", contracts=len(snapshot))
        replaced = 0
        for entry in snapshot:
            try:
                if self._reload(entry):
                    replaced += 1
            except Exception:
                logger.exception("reload_contract_failed", contract=_contract_name(entry.type_id))
        return replaced

    def _reload(self, current: CacheEntry) -> bool:
        contract = current.type_id
        binding = self._resolver.resolve(contract)
        if binding.fingerprint == current.fingerprint:
            logger.debug("contract_reused", contract=_contract_name(contract))
            return False

        fresh = self._create_entry(binding)
        with self._lock:
            if self._entries.get(contract) is not current:
                # Invalidated or replaced while we were building.
                logger.debug("contract_reload_superseded", contract=_contract_name(contract))
                return False
            self._entries[contract] = fresh
        logger.warning(
            "contract_replaced", contract=_contract_name(contract), source=binding.source_path,
        )
        return True

    def invalidate(self, contract: type) -> bool:
        """Drop the entry so the next get() rebuilds. Returns True if one existed."""
        with self._lock:
            removed = self._entries.pop(contract, None)
        if removed is not None:
            logger.info("contract_invalidated", contract=_contract_name(contract))
        return removed is not None

    def peek(self, contract: type) -> CacheEntry | None:
        return self._entries.get(contract)

    def cached_types(self) -> list[type]:
        return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
