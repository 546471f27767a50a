"""Binary module builder: resolved accessor values -> class-file bytes.

The emitted module is a final class extending the base type and
implementing the contract interface. Each accessor method pushes its baked
constant and returns it; booleans need no pool entry.

Emission is two-phase: every constant is registered first, then method
bodies are generated against the final pool layout. The initializer's
Methodref index is only known at that point and is patched into its
placeholder bytes.
"""

from __future__ import annotations

import struct
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

import structlog

from confcap.classgen.pool import ConstantPool
from confcap.constants import BASE_TYPE
from confcap.contracts.kinds import DESCRIPTORS, ScalarKind
from confcap.contracts.models import ResolvedTriple
from confcap.infra.errors import ModuleBuildError

logger = structlog.get_logger()

MAGIC = 0xCAFEBABE
MINOR_VERSION = 0
MAJOR_VERSION = 52  # Java 8
ACC_PUBLIC = 0x0001
ACC_FINAL = 0x0010

# Opcodes
ICONST_0 = 0x03
ICONST_1 = 0x04
LDC = 0x12
LDC_W = 0x13
LDC2_W = 0x14
IRETURN = 0xAC
LRETURN = 0xAD
FRETURN = 0xAE
DRETURN = 0xAF
ARETURN = 0xB0
RETURN = 0xB1
ALOAD_0 = 0x2A
INVOKESPECIAL = 0xB7

RETURN_OPCODES: dict[ScalarKind, int] = {
    ScalarKind.string: ARETURN,
    ScalarKind.bool: IRETURN,
    ScalarKind.int32: IRETURN,
    ScalarKind.int16: IRETURN,
    ScalarKind.byte: IRETURN,
    ScalarKind.char: IRETURN,
    ScalarKind.int64: LRETURN,
    ScalarKind.float32: FRETURN,
    ScalarKind.float64: DRETURN,
}

WIDE_KINDS = frozenset({ScalarKind.int64, ScalarKind.float64})

INIT_NAME = "<init>"
INIT_DESCRIPTOR = "()V"
CODE_ATTRIBUTE = "Code"

# aload_0; invokespecial #<patched>; return
_INIT_CODE = bytes([ALOAD_0, INVOKESPECIAL, 0xFF, 0xFF, RETURN])
_INIT_PATCH_OFFSET = 2


@dataclass(frozen=True)
class BinaryModule:
    """An emitted module. this_type and interface use '/' separators."""

    this_type: str
    interface: str
    data: bytes


@dataclass
class _MethodInfo:
    name: str
    descriptor: str
    code: Callable[[ConstantPool], bytes]
    max_stack: int = 1
    max_locals: int = 1
    access_flags: int = ACC_PUBLIC


def interface_name(contract: type) -> str:
    """Binary name of a contract class: dotted qualified name with '/'."""
    return f"{contract.__module__}.{contract.__qualname__}".replace(".", "/")


def _load_constant(index: int) -> bytes:
    if index <= 0xFF:
        return bytes([LDC, index])
    return bytes([LDC_W]) + struct.pack(">H", index)


def _load_wide_constant(index: int) -> bytes:
    return bytes([LDC2_W]) + struct.pack(">H", index)


class ModuleBuilder:
    """Lays out one module. Use build_module() for the one-shot path."""

    def __init__(self, this_type: str, interface: str = "") -> None:
        self._this_type = this_type
        self._interface = interface
        self._pool = ConstantPool()
        self._methods: dict[str, _MethodInfo] = {}

        self._pool.add_utf8(CODE_ATTRIBUTE)
        self._pool.add_class(this_type)
        self._pool.add_class(BASE_TYPE)
        if interface:
            self._pool.add_class(interface)
        self._add_method(INIT_NAME, INIT_DESCRIPTOR, lambda pool: _INIT_CODE)

    def _add_method(
        self, name: str, descriptor: str, code: Callable[[ConstantPool], bytes], max_stack: int = 1,
    ) -> None:
        if name in self._methods:
            raise ModuleBuildError(f"duplicate method '{name}' in {self._this_type}")
        self._pool.add_utf8(name)
        self._pool.add_utf8(descriptor)
        self._methods[name] = _MethodInfo(name, descriptor, code, max_stack=max_stack)

    def add_accessor(self, triple: ResolvedTriple) -> None:
        """Register an accessor returning triple.value and the constants it needs."""
        kind = triple.kind
        value = triple.value
        descriptor = DESCRIPTORS[kind]
        ret = RETURN_OPCODES[kind]

        if kind is ScalarKind.bool:
            push = ICONST_1 if value else ICONST_0
            self._add_method(triple.name, descriptor, lambda pool: bytes([push, ret]))
        elif kind is ScalarKind.string:
            self._pool.add_string(value)
            self._add_method(
                triple.name, descriptor,
                lambda pool: _load_constant(pool.string_index(value)) + bytes([ret]),
            )
        elif kind is ScalarKind.char:
            code_point = ord(value)
            if code_point > 0xFFFF:
                raise ModuleBuildError(
                    f"char accessor '{triple.name}' needs a single UTF-16 unit, "
                    f"got U+{code_point:X}"
                )
            self._pool.add_int(code_point)
            self._add_method(
                triple.name, descriptor,
                lambda pool: _load_constant(pool.int_index(code_point)) + bytes([ret]),
            )
        elif kind in (ScalarKind.int32, ScalarKind.int16, ScalarKind.byte):
            self._pool.add_int(value)
            self._add_method(
                triple.name, descriptor,
                lambda pool: _load_constant(pool.int_index(value)) + bytes([ret]),
            )
        elif kind is ScalarKind.float32:
            self._pool.add_float(value)
            self._add_method(
                triple.name, descriptor,
                lambda pool: _load_constant(pool.float_index(value)) + bytes([ret]),
            )
        elif kind is ScalarKind.float64:
            self._pool.add_double(value)
            self._add_method(
                triple.name, descriptor,
                lambda pool: _load_wide_constant(pool.double_index(value)) + bytes([ret]),
                max_stack=2,
            )
        elif kind is ScalarKind.int64:
            self._pool.add_long(value)
            self._add_method(
                triple.name, descriptor,
                lambda pool: _load_wide_constant(pool.long_index(value)) + bytes([ret]),
                max_stack=2,
            )
        else:
            raise ModuleBuildError(f"no instruction selection for kind {kind}")

    def to_bytes(self) -> bytes:
        pool = self._pool
        out = bytearray()
        out += struct.pack(">IHH", MAGIC, MINOR_VERSION, MAJOR_VERSION)
        pool.write(out, BASE_TYPE)

        out += struct.pack(">HHH", ACC_PUBLIC | ACC_FINAL, pool.class_index(self._this_type),
                           pool.class_index(BASE_TYPE))
        if self._interface:
            out += struct.pack(">HH", 1, pool.class_index(self._interface))
        else:
            out += struct.pack(">H", 0)
        out += struct.pack(">H", 0)  # fields

        out += struct.pack(">H", len(self._methods))
        code_name = pool.utf8_index(CODE_ATTRIBUTE)
        for method in self._methods.values():
            code = bytearray(method.code(pool))
            if method.name == INIT_NAME:
                struct.pack_into(">H", code, _INIT_PATCH_OFFSET, pool.method_ref_index)
            out += struct.pack(
                ">HHHH", method.access_flags, pool.utf8_index(method.name),
                pool.utf8_index(method.descriptor), 1,
            )
            out += struct.pack(">HI", code_name, len(code) + 12)
            out += struct.pack(">HHI", method.max_stack, method.max_locals, len(code))
            out += code
            out += struct.pack(">HH", 0, 0)  # exception table, attributes
        out += struct.pack(">H", 0)  # class attributes
        return bytes(out)


def build_module(
    this_type: str, interface: str, triples: Iterable[ResolvedTriple],
) -> BinaryModule:
    """Emit a module whose accessors return the given resolved values."""
    builder = ModuleBuilder(this_type, interface)
    for triple in triples:
        builder.add_accessor(triple)
    return BinaryModule(this_type=this_type, interface=interface, data=builder.to_bytes())


def dump_module(module: BinaryModule, directory: Path) -> Path:
    """Write module bytes to <directory>/<dotted this_type>.class for inspection."""
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{module.this_type.replace('/', '.')}.class"
    target.write_bytes(module.data)
    logger.info("module_dumped", path=str(target), size=len(module.data))
    return target
