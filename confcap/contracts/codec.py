"""Scalar codec: raw configuration text -> typed value.

Pure and stateless. Integer widths and the lenient boolean parse follow the
Java primitive semantics the emitted modules use.
"""

from __future__ import annotations

import math
import re
import struct
from collections.abc import Callable

from confcap.contracts.kinds import ScalarKind
from confcap.infra.errors import ConversionError

ScalarValue = str | bool | int | float

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(NaN|Infinity|([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?[fFdD]?)"
)

_INT_RANGES: dict[ScalarKind, tuple[int, int]] = {
    ScalarKind.byte: (-(2**7), 2**7 - 1),
    ScalarKind.int16: (-(2**15), 2**15 - 1),
    ScalarKind.int32: (-(2**31), 2**31 - 1),
    ScalarKind.int64: (-(2**63), 2**63 - 1),
}


def _to_integer(text: str, kind: ScalarKind) -> int:
    if not _INTEGER_RE.fullmatch(text):
        raise ConversionError(text, kind, reason="not an integer")
    value = int(text)
    low, high = _INT_RANGES[kind]
    if not low <= value <= high:
        raise ConversionError(text, kind, reason=f"out of range [{low}, {high}]")
    return value


def _to_float64(text: str, kind: ScalarKind = ScalarKind.float64) -> float:
    stripped = text.strip()
    if not _FLOAT_RE.fullmatch(stripped):
        raise ConversionError(text, kind, reason="not a floating point number")
    if stripped[-1] in "fFdD":
        stripped = stripped[:-1]
    return float(stripped.replace("Infinity", "inf"))


def to_float32(value: float) -> float:
    """Round a double to the nearest IEEE-754 single, saturating to infinity."""
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack(">f", struct.pack(">f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _to_float32(text: str) -> float:
    return to_float32(_to_float64(text, ScalarKind.float32))


def _to_bool(text: str) -> bool:
    return text.lower() == "true"


def _to_char(text: str) -> str:
    if not text:
        raise ConversionError(text, ScalarKind.char, reason="empty text has no character")
    if ord(text[0]) > 0xFFFF:
        # A char is one UTF-16 unit.
        raise ConversionError(text, ScalarKind.char, reason="character outside U+0000..U+FFFF")
    return text[0]


_CONVERTERS: dict[ScalarKind, Callable[[str], ScalarValue]] = {
    ScalarKind.string: lambda text: text,
    ScalarKind.bool: _to_bool,
    ScalarKind.int32: lambda text: _to_integer(text, ScalarKind.int32),
    ScalarKind.int64: lambda text: _to_integer(text, ScalarKind.int64),
    ScalarKind.int16: lambda text: _to_integer(text, ScalarKind.int16),
    ScalarKind.byte: lambda text: _to_integer(text, ScalarKind.byte),
    ScalarKind.float64: _to_float64,
    ScalarKind.float32: _to_float32,
    ScalarKind.char: _to_char,
}


def convert(text: str, kind: ScalarKind) -> ScalarValue:
    """Convert configuration text to a value of the given scalar kind.

    Raises ConversionError if the text does not parse as that kind.
    """
    converter = _CONVERTERS.get(kind)
    if converter is None:
        raise ConversionError(text, str(kind), reason="no converter defined")
    return converter(text)
