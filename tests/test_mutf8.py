"""Tests for the modified UTF-8 codec used by Utf8 pool entries."""

from __future__ import annotations

import pytest

from confcap.classgen import mutf8


class TestEncode:
    def test_ascii_is_unchanged(self) -> None:
        assert mutf8.encode("Code") == b"Code"

    def test_null_is_two_byte_overlong(self) -> None:
        assert mutf8.encode("a\x00b") == b"a\xc0\x80b"

    def test_two_and_three_byte_sequences(self) -> None:
        assert mutf8.encode("ö") == "ö".encode()
        assert mutf8.encode("€") == "€".encode()

    def test_supplementary_is_surrogate_pair(self) -> None:
        encoded = mutf8.encode("\U0001F600")
        assert encoded == b"\xed\xa0\xbd\xed\xb8\x80"
        assert len(encoded) == 6


class TestDecode:
    @pytest.mark.parametrize("text", ["", "F@€...-Döich!", "a\x00b", "x\U0001F600y"])
    def test_inverts_encode(self, text: str) -> None:
        assert mutf8.decode(mutf8.encode(text)) == text

    @pytest.mark.parametrize(
        "data",
        [b"\x00", b"\x80", b"\xc3", b"\xe2\x82", b"\xc3\x28", b"\xf0\x9f\x98\x80"],
    )
    def test_rejects_malformed_input(self, data: bytes) -> None:
        with pytest.raises(ValueError):
            mutf8.decode(data)
