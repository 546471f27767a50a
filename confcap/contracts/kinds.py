"""Scalar kinds an accessor may return, and how Python annotations map to them.

Python has one int and one float type, so the narrower widths are spelled
with NewType markers. Type checkers see them as plain int/float/str.
"""

from __future__ import annotations

from enum import StrEnum
from typing import NewType

Long = NewType("Long", int)
Short = NewType("Short", int)
Byte = NewType("Byte", int)
Char = NewType("Char", str)
Float32 = NewType("Float32", float)


class ScalarKind(StrEnum):
    string = "String"
    bool = "Bool"
    int32 = "Int32"
    int64 = "Int64"
    float64 = "Float64"
    float32 = "Float32"
    int16 = "Int16"
    char = "Char"
    byte = "Byte"


ANNOTATION_KINDS: dict[object, ScalarKind] = {
    str: ScalarKind.string,
    bool: ScalarKind.bool,
    int: ScalarKind.int32,
    float: ScalarKind.float64,
    Long: ScalarKind.int64,
    Short: ScalarKind.int16,
    Byte: ScalarKind.byte,
    Char: ScalarKind.char,
    Float32: ScalarKind.float32,
}

# Method descriptors used in the emitted module. Adding a kind means adding
# a row here and an instruction in classgen.builder.
DESCRIPTORS: dict[ScalarKind, str] = {
    ScalarKind.string: "()Ljava/lang/String;",
    ScalarKind.bool: "()Z",
    ScalarKind.int32: "()I",
    ScalarKind.int64: "()J",
    ScalarKind.float64: "()D",
    ScalarKind.float32: "()F",
    ScalarKind.int16: "()S",
    ScalarKind.char: "()C",
    ScalarKind.byte: "()B",
}

KINDS_BY_DESCRIPTOR: dict[str, ScalarKind] = {v: k for k, v in DESCRIPTORS.items()}


def kind_for_annotation(annotation: object) -> ScalarKind | None:
    """Map a return annotation to its scalar kind. None if unsupported."""
    try:
        return ANNOTATION_KINDS.get(annotation)
    except TypeError:  # unhashable annotations such as list[int] aliases
        return None
