"""Constant pool with a fixed section layout.

Sections are written in this order, each in first-seen order:

    Utf8 | Class | String | Integer | Float | Double (2 slots) | Long (2 slots)

followed by the NameAndType and Methodref of the base initializer. An
entry's index depends on the size of every section before it, so indices
are only valid once all constants have been added.
"""

from __future__ import annotations

import struct

from confcap.classgen import mutf8
from confcap.infra.errors import ModuleBuildError

TAG_UTF8 = 1
TAG_INTEGER = 3
TAG_FLOAT = 4
TAG_LONG = 5
TAG_DOUBLE = 6
TAG_CLASS = 7
TAG_STRING = 8
TAG_METHODREF = 10
TAG_NAME_AND_TYPE = 12

MAX_POOL_COUNT = 0xFFFF
MAX_UTF8_BYTES = 0xFFFF


def _double_bits(value: float) -> bytes:
    return struct.pack(">d", value)


def _float_bits(value: float) -> bytes:
    return struct.pack(">f", value)


class ConstantPool:
    """Collects deduplicated constants and computes their final indices."""

    def __init__(self) -> None:
        self._utf8: dict[str, int] = {}  # text -> 1-based position in the Utf8 section
        self._classes: dict[str, int] = {}  # name -> Utf8 index
        self._strings: dict[str, int] = {}  # literal -> Utf8 index
        self._ints: dict[int, None] = {}
        self._floats: dict[bytes, float] = {}
        self._doubles: dict[bytes, float] = {}
        self._longs: dict[int, None] = {}

    # -- registration ------------------------------------------------------

    def add_utf8(self, text: str) -> int:
        if text not in self._utf8:
            if len(mutf8.encode(text)) > MAX_UTF8_BYTES:
                raise ModuleBuildError(
                    f"Utf8 constant too long ({len(text)} chars, max {MAX_UTF8_BYTES} bytes)"
                )
            self._utf8[text] = len(self._utf8) + 1
        return self._utf8[text]

    def add_class(self, name: str) -> None:
        utf8_index = self.add_utf8(name)
        self._classes.setdefault(name, utf8_index)

    def add_string(self, text: str) -> None:
        utf8_index = self.add_utf8(text)
        self._strings.setdefault(text, utf8_index)

    def add_int(self, value: int) -> None:
        self._ints.setdefault(value, None)

    def add_float(self, value: float) -> None:
        self._floats.setdefault(_float_bits(value), value)

    def add_double(self, value: float) -> None:
        self._doubles.setdefault(_double_bits(value), value)

    def add_long(self, value: int) -> None:
        self._longs.setdefault(value, None)

    # -- layout ------------------------------------------------------------

    @property
    def _class_base(self) -> int:
        return len(self._utf8)

    @property
    def _string_base(self) -> int:
        return self._class_base + len(self._classes)

    @property
    def _int_base(self) -> int:
        return self._string_base + len(self._strings)

    @property
    def _float_base(self) -> int:
        return self._int_base + len(self._ints)

    @property
    def _double_base(self) -> int:
        return self._float_base + len(self._floats)

    @property
    def _long_base(self) -> int:
        return self._double_base + 2 * len(self._doubles)

    @property
    def slot_count(self) -> int:
        """Slots used by the collected constants, excluding the two trailing entries."""
        return self._long_base + 2 * len(self._longs)

    @property
    def name_and_type_index(self) -> int:
        return self.slot_count + 1

    @property
    def method_ref_index(self) -> int:
        return self.slot_count + 2

    @property
    def count(self) -> int:
        """The constant_pool_count field: highest index + 1."""
        return self.slot_count + 3

    def utf8_index(self, text: str) -> int:
        return self._utf8[text]

    def class_index(self, name: str) -> int:
        return self._class_base + _position(self._classes, name)

    def string_index(self, text: str) -> int:
        return self._string_base + _position(self._strings, text)

    def int_index(self, value: int) -> int:
        return self._int_base + _position(self._ints, value)

    def float_index(self, value: float) -> int:
        return self._float_base + _position(self._floats, _float_bits(value))

    def double_index(self, value: float) -> int:
        return self._double_base + 2 * _position(self._doubles, _double_bits(value)) - 1

    def long_index(self, value: int) -> int:
        return self._long_base + 2 * _position(self._longs, value) - 1

    # -- serialization -----------------------------------------------------

    def write(self, out: bytearray, super_type: str) -> None:
        """Write constant_pool_count and every entry, including the initializer refs."""
        if self.count > MAX_POOL_COUNT:
            raise ModuleBuildError(f"constant pool too large ({self.count} > {MAX_POOL_COUNT})")
        out += struct.pack(">H", self.count)
        for text in self._utf8:
            encoded = mutf8.encode(text)
            out += struct.pack(">BH", TAG_UTF8, len(encoded))
            out += encoded
        for utf8_index in self._classes.values():
            out += struct.pack(">BH", TAG_CLASS, utf8_index)
        for utf8_index in self._strings.values():
            out += struct.pack(">BH", TAG_STRING, utf8_index)
        for value in self._ints:
            out += struct.pack(">Bi", TAG_INTEGER, value)
        for value in self._floats.values():
            out += struct.pack(">Bf", TAG_FLOAT, value)
        for value in self._doubles.values():
            out += struct.pack(">Bd", TAG_DOUBLE, value)
        for value in self._longs:
            out += struct.pack(">Bq", TAG_LONG, value)
        # NameAndType  "<init>":()V
        out += struct.pack(
            ">BHH", TAG_NAME_AND_TYPE, self.utf8_index("<init>"), self.utf8_index("()V"),
        )
        # Methodref    <super>."<init>":()V
        out += struct.pack(
            ">BHH", TAG_METHODREF, self.class_index(super_type), self.name_and_type_index,
        )


def _position(section: dict, key: object) -> int:
    """1-based position of key in an insertion-ordered section (first match wins)."""
    for position, candidate in enumerate(section, start=1):
        if candidate == key:
            return position
    raise KeyError(key)
