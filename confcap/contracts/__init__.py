"""Contracts: declaration, scalar conversion, configuration sources and resolution."""

from confcap.contracts.codec import convert
from confcap.contracts.declaration import config_value, configurable, describe_contract
from confcap.contracts.kinds import Byte, Char, Float32, Long, ScalarKind, Short
from confcap.contracts.models import (
    AccessorSpec,
    ContractDescriptor,
    ResolvedBinding,
    ResolvedTriple,
)
from confcap.contracts.resolver import ContractResolver

__all__ = [
    "AccessorSpec",
    "Byte",
    "Char",
    "ContractDescriptor",
    "ContractResolver",
    "Float32",
    "Long",
    "ResolvedBinding",
    "ResolvedTriple",
    "ScalarKind",
    "Short",
    "config_value",
    "configurable",
    "convert",
    "describe_contract",
]
