"""Instance factories: the narrow seam between the cache and code generation.

The cache only needs "binding in, instance out"; ClassFileFactory does that
by emitting, optionally dumping and activating a class-file module.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import structlog

from confcap.classgen.activator import ModuleActivator, synthesize_type_name
from confcap.classgen.builder import build_module, dump_module, interface_name
from confcap.contracts.models import ResolvedBinding

logger = structlog.get_logger()


class InstanceFactory(Protocol):
    def create(self, binding: ResolvedBinding) -> object:
        """Produce a live instance of binding.type_id returning binding's values."""
        ...


class ClassFileFactory:
    """Builds one uniquely named module per call and activates it."""

    def __init__(
        self,
        activator: ModuleActivator | None = None,
        dump_dir: Path | None = None,
    ) -> None:
        self._activator = activator or ModuleActivator()
        self._dump_dir = dump_dir

    def create(self, binding: ResolvedBinding) -> object:
        contract = binding.type_id
        module = build_module(
            synthesize_type_name(contract), interface_name(contract), binding.triples,
        )
        if self._dump_dir is not None:
            try:
                dump_module(module, self._dump_dir)
            except OSError as exc:
                logger.warning("module_dump_failed", this_type=module.this_type, error=str(exc))
        instance = self._activator.load(module, contract)
        logger.debug(
            "module_activated",
            this_type=module.this_type,
            size=len(module.data),
            accessors=len(binding.triples),
        )
        return instance
