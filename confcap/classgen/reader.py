"""Independent reader for emitted modules.

Parses only what the builder emits: the tags listed in classgen.pool, no
fields, and methods with a single Code attribute.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from confcap.classgen import mutf8
from confcap.classgen.builder import MAGIC
from confcap.classgen.pool import (
    TAG_CLASS,
    TAG_DOUBLE,
    TAG_FLOAT,
    TAG_INTEGER,
    TAG_LONG,
    TAG_METHODREF,
    TAG_NAME_AND_TYPE,
    TAG_STRING,
    TAG_UTF8,
)
from confcap.infra.errors import ActivationError

_FIXED_ENTRIES: dict[int, str] = {
    TAG_CLASS: ">H",
    TAG_STRING: ">H",
    TAG_INTEGER: ">i",
    TAG_FLOAT: ">f",
    TAG_LONG: ">q",
    TAG_DOUBLE: ">d",
    TAG_NAME_AND_TYPE: ">HH",
    TAG_METHODREF: ">HH",
}


@dataclass(frozen=True)
class PoolEntry:
    tag: int
    value: object


@dataclass(frozen=True)
class MethodCode:
    name: str
    descriptor: str
    access_flags: int
    max_stack: int
    max_locals: int
    code: bytes


@dataclass(frozen=True)
class ParsedModule:
    minor_version: int
    major_version: int
    pool: dict[int, PoolEntry]
    access_flags: int
    this_type: str
    super_type: str
    interfaces: tuple[str, ...]
    methods: tuple[MethodCode, ...]

    def entry(self, index: int, *tags: int) -> PoolEntry:
        entry = self.pool.get(index)
        if entry is None:
            raise ActivationError(f"constant pool index {index} is not a valid entry")
        if tags and entry.tag not in tags:
            raise ActivationError(
                f"constant pool index {index} has tag {entry.tag}, expected one of {tags}"
            )
        return entry

    def utf8(self, index: int) -> str:
        return self.entry(index, TAG_UTF8).value

    def class_name(self, index: int) -> str:
        return self.utf8(self.entry(index, TAG_CLASS).value)


class _Cursor:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    def unpack(self, fmt: str) -> tuple:
        values = struct.unpack_from(fmt, self._data, self._offset)
        self._offset += struct.calcsize(fmt)
        return values

    def u1(self) -> int:
        return self.unpack(">B")[0]

    def u2(self) -> int:
        return self.unpack(">H")[0]

    def u4(self) -> int:
        return self.unpack(">I")[0]

    def take(self, size: int) -> bytes:
        if self._offset + size > len(self._data):
            raise ActivationError("module truncated")
        chunk = self._data[self._offset:self._offset + size]
        self._offset += size
        return chunk

    @property
    def exhausted(self) -> bool:
        return self._offset == len(self._data)


def read_module(data: bytes) -> ParsedModule:
    """Parse module bytes. Raises ActivationError on malformed input."""
    try:
        return _read(_Cursor(data))
    except ActivationError:
        raise
    except (struct.error, ValueError, KeyError, TypeError) as exc:
        raise ActivationError(f"malformed module: {exc}") from exc


def _read(cursor: _Cursor) -> ParsedModule:
    magic, minor, major = cursor.unpack(">IHH")
    if magic != MAGIC:
        raise ActivationError(f"bad magic 0x{magic:08X}")

    pool: dict[int, PoolEntry] = {}
    count = cursor.u2()
    index = 1
    while index < count:
        tag = cursor.u1()
        if tag == TAG_UTF8:
            pool[index] = PoolEntry(tag, mutf8.decode(cursor.take(cursor.u2())))
        elif tag in _FIXED_ENTRIES:
            values = cursor.unpack(_FIXED_ENTRIES[tag])
            pool[index] = PoolEntry(tag, values if len(values) > 1 else values[0])
        else:
            raise ActivationError(f"unknown constant tag {tag} at index {index}")
        index += 2 if tag in (TAG_LONG, TAG_DOUBLE) else 1

    module = ParsedModule(
        minor_version=minor, major_version=major, pool=pool,
        access_flags=0, this_type="", super_type="", interfaces=(), methods=(),
    )
    access_flags, this_index, super_index = cursor.unpack(">HHH")
    interfaces = tuple(module.class_name(cursor.u2()) for _ in range(cursor.u2()))
    if cursor.u2() != 0:
        raise ActivationError("modules with fields are not supported")

    methods = []
    for _ in range(cursor.u2()):
        flags, name_index, descriptor_index, attribute_count = cursor.unpack(">HHHH")
        code: MethodCode | None = None
        for _ in range(attribute_count):
            attribute_name = module.utf8(cursor.u2())
            body = cursor.take(cursor.u4())
            if attribute_name == "Code":
                code = _read_code(
                    module.utf8(name_index), module.utf8(descriptor_index), flags, body,
                )
        if code is None:
            raise ActivationError(f"method {module.utf8(name_index)} has no Code attribute")
        methods.append(code)

    if cursor.u2() != 0:
        raise ActivationError("module-level attributes are not supported")
    if not cursor.exhausted:
        raise ActivationError("trailing bytes after module")

    return ParsedModule(
        minor_version=minor,
        major_version=major,
        pool=pool,
        access_flags=access_flags,
        this_type=module.class_name(this_index),
        super_type=module.class_name(super_index),
        interfaces=interfaces,
        methods=tuple(methods),
    )


def _read_code(name: str, descriptor: str, flags: int, body: bytes) -> MethodCode:
    cursor = _Cursor(body)
    max_stack, max_locals, length = cursor.unpack(">HHI")
    code = cursor.take(length)
    exception_table_length, attribute_count = cursor.unpack(">HH")
    if exception_table_length or attribute_count:
        raise ActivationError(f"method {name}: exception tables and code attributes unsupported")
    if not cursor.exhausted:
        raise ActivationError(f"method {name}: Code attribute length mismatch")
    return MethodCode(
        name=name, descriptor=descriptor, access_flags=flags,
        max_stack=max_stack, max_locals=max_locals, code=code,
    )
