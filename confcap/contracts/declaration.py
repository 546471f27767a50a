"""Declarative contract metadata: the decorators and the reader that turns a
decorated class into a ContractDescriptor.

A contract is an abstract class whose public methods are all zero-argument
accessors:

    @configurable(file_path="@APP_CONFIG@")
    class AppConfig(ABC):
        @config_value(key="app.debug", default="false")
        @abstractmethod
        def debug(self) -> bool: ...
"""

from __future__ import annotations

import inspect
import typing
import weakref
from abc import ABC
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from confcap.contracts.kinds import kind_for_annotation
from confcap.contracts.models import AccessorSpec, ContractDescriptor
from confcap.infra.errors import DeclarationError

T = TypeVar("T")

_SOURCE_ATTR = "__confcap_source__"
_VALUE_ATTR = "__confcap_value__"
_SELF_KINDS = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
_VARIADIC_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
_SKIPPED_BASES: tuple[type, ...] = (object, ABC, typing.Generic)

_descriptors: weakref.WeakKeyDictionary[type, ContractDescriptor] = weakref.WeakKeyDictionary()


@dataclass(frozen=True)
class ValueDeclaration:
    key: str
    default: str


def configurable(file_path: str = "") -> Callable[[type[T]], type[T]]:
    """Mark a class as a configuration contract backed by file_path.

    file_path may be empty (defaults only) or "@NAME@" to read the real path
    from the environment variable NAME.
    """
    if not isinstance(file_path, str):
        raise DeclarationError(f"file_path must be a string, got {type(file_path).__name__}")

    def decorate(cls: type[T]) -> type[T]:
        if not isinstance(cls, type):
            raise DeclarationError(f"@configurable target {cls!r} is not a class")
        setattr(cls, _SOURCE_ATTR, file_path)
        return cls

    return decorate


def config_value(*, key: str, default: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Bind an accessor to a configuration key and its textual default."""
    if not isinstance(key, str) or not key:
        raise DeclarationError(f"config_value key must be a non-empty string, got {key!r}")
    if not isinstance(default, str):
        raise DeclarationError(
            f"config_value default for '{key}' must be a string, got {type(default).__name__}"
        )

    def decorate(func: Callable[..., T]) -> Callable[..., T]:
        setattr(func, _VALUE_ATTR, ValueDeclaration(key=key, default=default))
        return func

    return decorate


def is_contract(cls: object) -> bool:
    return isinstance(cls, type) and _SOURCE_ATTR in cls.__dict__


def describe_contract(cls: Any) -> ContractDescriptor:
    """Read the contract metadata off a decorated class.

    Successful results are memoised per class; failures are not, so every
    call re-validates a broken contract.

    Raises DeclarationError for anything that is not a well-formed contract.
    """
    if isinstance(cls, type):
        cached = _descriptors.get(cls)
        if cached is not None:
            return cached

    descriptor = _read_descriptor(cls)
    _descriptors[cls] = descriptor
    return descriptor


def _read_descriptor(cls: Any) -> ContractDescriptor:
    if not isinstance(cls, type):
        raise DeclarationError(f"{cls!r} is not a class")
    if not is_contract(cls):
        raise DeclarationError(f"Contract: {cls.__qualname__} not decorated with @configurable")
    if cls.__init__ is not object.__init__:
        raise DeclarationError(
            f"Contract: {cls.__qualname__} defines __init__; contracts must be stateless"
        )

    members: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass in _SKIPPED_BASES:
            continue
        for name, value in vars(klass).items():
            if name.startswith("_"):
                continue
            if isinstance(value, (staticmethod, classmethod, property)):
                raise DeclarationError(
                    f"Method: {cls.__qualname__}.{name} is not a plain accessor method"
                )
            if inspect.isfunction(value):
                members[name] = value

    accessors = tuple(_read_accessor(cls, name, func) for name, func in members.items())
    if not accessors:
        raise DeclarationError(f"Contract: {cls.__qualname__} declares no accessors")

    return ContractDescriptor(
        type_id=cls,
        source_locator=cls.__dict__[_SOURCE_ATTR],
        accessors=accessors,
    )


def _read_accessor(cls: type, name: str, func: Callable[..., Any]) -> AccessorSpec:
    qualified = f"{cls.__qualname__}.{name}"
    declaration = getattr(func, _VALUE_ATTR, None)
    if not isinstance(declaration, ValueDeclaration):
        raise DeclarationError(f"Method: {qualified} has no config_value declaration")

    params = list(inspect.signature(func).parameters.values())
    if any(p.kind in _VARIADIC_KINDS for p in params):
        raise DeclarationError(f"Method: {qualified} has parameters")
    if not params or params[0].kind not in _SELF_KINDS:
        raise DeclarationError(f"Method: {qualified} must accept self")
    if len(params) > 1:
        raise DeclarationError(f"Method: {qualified} has parameters")

    try:
        hints = typing.get_type_hints(func)
    except Exception as exc:
        raise DeclarationError(
            f"Method: {qualified} has an unresolvable return annotation: {exc}"
        ) from exc
    if "return" not in hints:
        raise DeclarationError(f"Method: {qualified} has no return annotation")

    kind = kind_for_annotation(hints["return"])
    if kind is None:
        raise DeclarationError(f"Method: {qualified} wrong return type: {hints['return']!r}")

    return AccessorSpec(
        name=name,
        kind=kind,
        config_key=declaration.key,
        default_value=declaration.default,
    )
