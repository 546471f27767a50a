"""confcap: typed configuration contracts backed by hot-reloaded .properties files."""

from confcap.contracts.declaration import config_value, configurable
from confcap.contracts.kinds import Byte, Char, Float32, Long, ScalarKind, Short
from confcap.infra.errors import (
    ActivationError,
    ConfcapError,
    ConversionError,
    DeclarationError,
    ManagerClosedError,
    ModuleBuildError,
)
from confcap.manager import ConfigManager, default_manager, get, shutdown

__all__ = [
    "ActivationError",
    "Byte",
    "Char",
    "ConfcapError",
    "ConfigManager",
    "ConversionError",
    "DeclarationError",
    "Float32",
    "Long",
    "ManagerClosedError",
    "ModuleBuildError",
    "ScalarKind",
    "Short",
    "config_value",
    "configurable",
    "default_manager",
    "get",
    "shutdown",
]
