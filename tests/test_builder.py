"""Tests for the binary module builder's byte layout."""

from __future__ import annotations

from pathlib import Path

import pytest

from confcap.classgen.builder import (
    ARETURN,
    IRETURN,
    LDC,
    LDC2_W,
    LDC_W,
    LRETURN,
    build_module,
    dump_module,
    interface_name,
)
from confcap.classgen.reader import read_module
from confcap.contracts.kinds import ScalarKind
from confcap.contracts.models import ResolvedTriple
from confcap.infra.errors import ModuleBuildError


def _methods(data: bytes) -> dict[str, bytes]:
    return {m.name: m.code for m in read_module(data).methods}


class TestHeader:
    def test_magic_version_and_pool_count(self) -> None:
        module = build_module("Gen", "Iface", [ResolvedTriple("flag", ScalarKind.bool, True)])
        assert module.data[:4] == bytes.fromhex("CAFEBABE")
        assert module.data[4:8] == bytes.fromhex("00000034")
        # Utf8 x8, Class x3, then NameAndType and Methodref
        assert int.from_bytes(module.data[8:10]) == 14

    def test_class_references(self) -> None:
        module = build_module("pkg/Gen", "pkg/Iface", [])
        parsed = read_module(module.data)
        assert parsed.this_type == "pkg/Gen"
        assert parsed.super_type == "java/lang/Object"
        assert parsed.interfaces == ("pkg/Iface",)
        assert parsed.access_flags == 0x0011

    def test_interface_is_optional(self) -> None:
        parsed = read_module(build_module("Gen", "", []).data)
        assert parsed.interfaces == ()


class TestInitializer:
    def test_method_ref_index_is_patched_in(self) -> None:
        module = build_module("Gen", "Iface", [ResolvedTriple("flag", ScalarKind.bool, True)])
        assert _methods(module.data)["<init>"] == bytes([0x2A, 0xB7, 0x00, 13, 0xB1])

    def test_patch_tracks_pool_growth(self) -> None:
        triples = [ResolvedTriple(f"s{i}", ScalarKind.string, f"value-{i}") for i in range(3)]
        module = build_module("Gen", "Iface", triples)
        parsed = read_module(module.data)
        init = _methods(module.data)["<init>"]
        assert int.from_bytes(init[2:4]) == max(parsed.pool)


class TestInstructionSelection:
    def test_booleans_need_no_pool_entry(self) -> None:
        with_true = build_module("Gen", "I", [ResolvedTriple("flag", ScalarKind.bool, True)])
        with_false = build_module("Gen", "I", [ResolvedTriple("flag", ScalarKind.bool, False)])
        assert _methods(with_true.data)["flag"] == bytes([0x04, IRETURN])
        assert _methods(with_false.data)["flag"] == bytes([0x03, IRETURN])
        assert len(with_true.data) == len(with_false.data)

    def test_small_index_uses_ldc(self) -> None:
        module = build_module("Gen", "I", [ResolvedTriple("name", ScalarKind.string, "x")])
        code = _methods(module.data)["name"]
        assert code[0] == LDC
        assert code[-1] == ARETURN
        assert len(code) == 3

    def test_large_index_uses_ldc_w(self) -> None:
        triples = [ResolvedTriple(f"s{i}", ScalarKind.string, f"v{i}") for i in range(200)]
        methods = _methods(build_module("Gen", "I", triples).data)
        assert methods["s0"][0] == LDC_W
        assert len(methods["s0"]) == 4

    def test_wide_kinds_use_ldc2_w(self) -> None:
        module = build_module("Gen", "I", [ResolvedTriple("big", ScalarKind.int64, 2**40)])
        code = _methods(module.data)["big"]
        assert code[0] == LDC2_W
        assert code[-1] == LRETURN

    def test_equal_literals_share_an_entry(self) -> None:
        module = build_module(
            "Gen", "I",
            [
                ResolvedTriple("a", ScalarKind.float64, 123456.4444444),
                ResolvedTriple("b", ScalarKind.float64, 123456.4444444),
            ],
        )
        methods = _methods(module.data)
        assert methods["a"] == methods["b"]

    def test_duplicate_accessor_names_are_rejected(self) -> None:
        with pytest.raises(ModuleBuildError, match="duplicate method"):
            build_module(
                "Gen", "I",
                [ResolvedTriple("a", ScalarKind.int32, 1), ResolvedTriple("a", ScalarKind.int32, 2)],
            )

    def test_supplementary_char_is_rejected(self) -> None:
        with pytest.raises(ModuleBuildError, match="single UTF-16 unit"):
            build_module("Gen", "I", [ResolvedTriple("c", ScalarKind.char, "\U0001F600")])


class TestHelpers:
    def test_interface_name_uses_slashes(self) -> None:
        class Local:
            pass

        assert interface_name(Local) == (
            "test_builder/TestHelpers/test_interface_name_uses_slashes/<locals>/Local"
        )

    def test_dump_module_writes_dotted_class_file(self, tmp_path: Path) -> None:
        module = build_module("pkg/Gen$CG1", "pkg/I", [])
        target = dump_module(module, tmp_path / "dump")
        assert target.name == "pkg.Gen$CG1.class"
        assert target.read_bytes() == module.data
