"""Modified UTF-8 as used by class-file Utf8 constants.

Differences from standard UTF-8: U+0000 is the overlong pair C0 80, and code
points above U+FFFF are written as a UTF-16 surrogate pair, 3 bytes each.
"""

from __future__ import annotations


def _encode_unit(unit: int, out: bytearray) -> None:
    if 0x0001 <= unit <= 0x007F:
        out.append(unit)
    elif unit <= 0x07FF:
        # includes U+0000 -> C0 80
        out.append(0xC0 | (unit >> 6))
        out.append(0x80 | (unit & 0x3F))
    else:
        out.append(0xE0 | (unit >> 12))
        out.append(0x80 | ((unit >> 6) & 0x3F))
        out.append(0x80 | (unit & 0x3F))


def encode(text: str) -> bytes:
    out = bytearray()
    for char in text:
        code = ord(char)
        if code > 0xFFFF:
            code -= 0x10000
            _encode_unit(0xD800 | (code >> 10), out)
            _encode_unit(0xDC00 | (code & 0x3FF), out)
        else:
            _encode_unit(code, out)
    return bytes(out)


def decode(data: bytes) -> str:
    """Decode modified UTF-8. Raises ValueError on malformed input."""
    units: list[int] = []
    i = 0
    size = len(data)
    while i < size:
        first = data[i]
        if first == 0 or first >= 0xF0 or 0x80 <= first < 0xC0:
            raise ValueError(f"invalid modified UTF-8 lead byte 0x{first:02X} at {i}")
        if first < 0x80:
            units.append(first)
            i += 1
            continue
        width = 2 if first < 0xE0 else 3
        if i + width > size:
            raise ValueError(f"truncated modified UTF-8 sequence at {i}")
        tail = data[i + 1:i + width]
        if any(b & 0xC0 != 0x80 for b in tail):
            raise ValueError(f"invalid modified UTF-8 continuation at {i}")
        if width == 2:
            units.append(((first & 0x1F) << 6) | (tail[0] & 0x3F))
        else:
            units.append(((first & 0x0F) << 12) | ((tail[0] & 0x3F) << 6) | (tail[1] & 0x3F))
        i += width

    chars: list[str] = []
    j = 0
    while j < len(units):
        unit = units[j]
        if 0xD800 <= unit <= 0xDBFF and j + 1 < len(units) and 0xDC00 <= units[j + 1] <= 0xDFFF:
            chars.append(chr(0x10000 + ((unit - 0xD800) << 10) + (units[j + 1] - 0xDC00)))
            j += 2
        else:
            chars.append(chr(unit))
            j += 1
    return "".join(chars)
