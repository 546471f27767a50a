"""Contract resolver: descriptor + configuration source -> ResolvedBinding."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

import structlog

from confcap.contracts.codec import convert
from confcap.contracts.declaration import describe_contract
from confcap.contracts.models import (
    ContractDescriptor,
    ResolvedBinding,
    ResolvedTriple,
    make_fingerprint,
)
from confcap.contracts.source import load_source, resolve_locator
from confcap.infra.errors import ConversionError

if TYPE_CHECKING:
    from confcap.cache.registry import WatchRegistry

logger = structlog.get_logger()


class ContractResolver:
    """Resolves every accessor of a contract to its current value.

    Overrides from the configuration source win over declared defaults.
    The source file is registered with the watch registry as a side effect.
    """

    def __init__(
        self,
        registry: WatchRegistry | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._registry = registry
        self._environ = environ

    def resolve(self, contract: type) -> ResolvedBinding:
        """Resolve a contract class.

        Raises DeclarationError for malformed contracts and ConversionError
        (naming key, value, kind and contract) for unparseable values.
        """
        return self.resolve_descriptor(describe_contract(contract))

    def resolve_descriptor(self, descriptor: ContractDescriptor) -> ResolvedBinding:
        path = resolve_locator(descriptor.source_locator, self._environ)
        overrides: dict[str, str] = {}
        if path is not None:
            overrides = load_source(path)
            if self._registry is not None and path.parent.is_dir():
                self._registry.register(path)
        elif not descriptor.source_locator:
            logger.debug("contract_without_source", contract=descriptor.name)

        pairs: list[tuple[str, str]] = []
        triples: list[ResolvedTriple] = []
        for accessor in descriptor.accessors:
            text = overrides.get(accessor.config_key, accessor.default_value)
            pairs.append((accessor.config_key, text))
            try:
                value = convert(text, accessor.kind)
            except ConversionError as exc:
                raise exc.with_context(
                    key=accessor.config_key, contract=descriptor.name,
                ) from exc
            triples.append(ResolvedTriple(name=accessor.name, kind=accessor.kind, value=value))

        return ResolvedBinding(
            type_id=descriptor.type_id,
            triples=tuple(triples),
            fingerprint=make_fingerprint(pairs),
            watchable=path is not None,
            source_path=str(path) if path is not None else None,
        )
