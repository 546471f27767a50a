"""Contract-side data model shared by the resolver, builder and cache.

All types are immutable; a ResolvedBinding is rebuilt on every resolution.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from confcap.contracts.codec import ScalarValue
from confcap.contracts.kinds import ScalarKind


@dataclass(frozen=True)
class AccessorSpec:
    """One zero-argument accessor: method name, scalar kind, key and default."""

    name: str
    kind: ScalarKind
    config_key: str
    default_value: str


@dataclass(frozen=True)
class ContractDescriptor:
    """Everything needed to resolve one contract type.

    type_id is the contract class itself; source_locator may be empty (no
    backing file) or an @NAME@ indirection.
    """

    type_id: type
    source_locator: str
    accessors: tuple[AccessorSpec, ...]

    @property
    def name(self) -> str:
        return f"{self.type_id.__module__}.{self.type_id.__qualname__}"


@dataclass(frozen=True)
class ResolvedTriple:
    name: str
    kind: ScalarKind
    value: ScalarValue


@dataclass(frozen=True)
class ResolvedBinding:
    """Resolved values of one contract plus the fingerprint they produce."""

    type_id: type
    triples: tuple[ResolvedTriple, ...]
    fingerprint: str
    watchable: bool = False
    source_path: str | None = field(default=None, compare=False)


def make_fingerprint(pairs: list[tuple[str, str]]) -> str:
    """Deterministic serialization of (key, resolved text) in declaration order."""
    return json.dumps(pairs, ensure_ascii=False, separators=(",", ":"))
