"""Module activator: emitted bytes -> live contract instance.

The module is parsed back, each accessor body is interpreted once to
recover its constant, and a fresh subclass of the contract whose methods
return those constants is instantiated.
"""

from __future__ import annotations

import inspect
import itertools
import time
import types
from collections.abc import Callable

from confcap.classgen.builder import (
    ALOAD_0,
    ICONST_0,
    ICONST_1,
    INIT_DESCRIPTOR,
    INIT_NAME,
    INVOKESPECIAL,
    LDC,
    LDC2_W,
    LDC_W,
    RETURN,
    RETURN_OPCODES,
    WIDE_KINDS,
    BinaryModule,
    interface_name,
)
from confcap.classgen.pool import (
    TAG_CLASS,
    TAG_DOUBLE,
    TAG_FLOAT,
    TAG_INTEGER,
    TAG_LONG,
    TAG_METHODREF,
    TAG_NAME_AND_TYPE,
    TAG_STRING,
)
from confcap.classgen.reader import MethodCode, ParsedModule, read_module
from confcap.constants import BASE_TYPE, GENERATED_SUFFIX
from confcap.contracts.codec import ScalarValue
from confcap.contracts.declaration import describe_contract
from confcap.contracts.kinds import KINDS_BY_DESCRIPTOR, ScalarKind
from confcap.infra.errors import ActivationError

_CONSTANT_TAGS: dict[ScalarKind, int] = {
    ScalarKind.string: TAG_STRING,
    ScalarKind.bool: TAG_INTEGER,
    ScalarKind.int32: TAG_INTEGER,
    ScalarKind.int16: TAG_INTEGER,
    ScalarKind.byte: TAG_INTEGER,
    ScalarKind.char: TAG_INTEGER,
    ScalarKind.float32: TAG_FLOAT,
    ScalarKind.float64: TAG_DOUBLE,
    ScalarKind.int64: TAG_LONG,
}

_sequence = itertools.count(1)


def synthesize_type_name(contract: type) -> str:
    """A binary type name no earlier call has returned: <Contract>$CG<time>$<n>."""
    return f"{interface_name(contract)}{GENERATED_SUFFIX}{time.time_ns()}${next(_sequence)}"


def _check_initializer(module: ParsedModule, method: MethodCode) -> None:
    code = method.code
    if len(code) != 5 or code[0] != ALOAD_0 or code[1] != INVOKESPECIAL or code[4] != RETURN:
        raise ActivationError(f"{module.this_type}: unexpected initializer body {code.hex()}")
    class_index, nat_index = module.entry(int.from_bytes(code[2:4]), TAG_METHODREF).value
    name_index, descriptor_index = module.entry(nat_index, TAG_NAME_AND_TYPE).value
    target = (
        module.class_name(class_index), module.utf8(name_index), module.utf8(descriptor_index),
    )
    if target != (module.super_type, INIT_NAME, INIT_DESCRIPTOR):
        raise ActivationError(f"{module.this_type}: initializer does not call super: {target}")


def _evaluate(module: ParsedModule, method: MethodCode, kind: ScalarKind) -> ScalarValue:
    """Interpret a constant-returning accessor body and return its value."""
    code = method.code
    opcode = code[0] if code else None
    if opcode in (ICONST_0, ICONST_1):
        raw: object = opcode - ICONST_0
        rest = code[1:]
    else:
        if opcode == LDC and kind not in WIDE_KINDS:
            index, rest = code[1], code[2:]
        elif opcode == LDC_W and kind not in WIDE_KINDS:
            index, rest = int.from_bytes(code[1:3]), code[3:]
        elif opcode == LDC2_W and kind in WIDE_KINDS:
            index, rest = int.from_bytes(code[1:3]), code[3:]
        else:
            raise ActivationError(
                f"{module.this_type}.{method.name}: unsupported instruction sequence {code.hex()}"
            )
        entry = module.entry(index, _CONSTANT_TAGS[kind])
        raw = module.utf8(entry.value) if entry.tag == TAG_STRING else entry.value

    if rest != bytes([RETURN_OPCODES[kind]]):
        raise ActivationError(
            f"{module.this_type}.{method.name}: expected a single return for {kind}, got {rest.hex()}"
        )
    if kind is ScalarKind.string:
        return raw
    if kind is ScalarKind.bool:
        return bool(raw)
    if kind is ScalarKind.char:
        return chr(raw)
    if kind in (ScalarKind.float32, ScalarKind.float64):
        return float(raw)
    return int(raw)


def _constant_accessor(name: str, value: ScalarValue) -> Callable[[object], ScalarValue]:
    def accessor(self: object) -> ScalarValue:
        return value

    accessor.__name__ = name
    return accessor


class ModuleActivator:
    """Loads emitted modules into instances of their contract."""

    def load(self, module: BinaryModule, contract: type) -> object:
        """Activate a module for contract.

        Raises ActivationError if the module is malformed, does not implement
        contract, or leaves any accessor unimplemented.
        """
        parsed = read_module(module.data)
        expected = interface_name(contract)
        if parsed.interfaces != (expected,):
            raise ActivationError(
                f"{parsed.this_type} implements {parsed.interfaces}, expected {expected}"
            )
        if parsed.super_type != BASE_TYPE:
            raise ActivationError(f"{parsed.this_type} extends {parsed.super_type}")
        if parsed.this_type != module.this_type:
            raise ActivationError(
                f"module declares {parsed.this_type}, expected {module.this_type}"
            )

        constants: dict[str, ScalarValue] = {}
        has_initializer = False
        for method in parsed.methods:
            if method.name == INIT_NAME and method.descriptor == INIT_DESCRIPTOR:
                _check_initializer(parsed, method)
                has_initializer = True
                continue
            kind = KINDS_BY_DESCRIPTOR.get(method.descriptor)
            if kind is None:
                raise ActivationError(
                    f"{parsed.this_type}.{method.name}: unsupported descriptor {method.descriptor}"
                )
            constants[method.name] = _evaluate(parsed, method, kind)
        if not has_initializer:
            raise ActivationError(f"{parsed.this_type} has no initializer")

        for accessor in describe_contract(contract).accessors:
            if accessor.name not in constants:
                raise ActivationError(
                    f"{parsed.this_type} does not implement {expected}.{accessor.name}"
                )

        simple_name = parsed.this_type.rsplit("/", 1)[-1]
        namespace: dict[str, object] = {
            "__module__": contract.__module__,
            "__qualname__": contract.__qualname__ + simple_name[len(contract.__name__):],
            "__confcap_type__": parsed.this_type,
        }
        for name, value in constants.items():
            namespace[name] = _constant_accessor(name, value)

        generated = types.new_class(
            simple_name, (contract,), exec_body=lambda ns: ns.update(namespace),
        )
        if inspect.isabstract(generated):
            raise ActivationError(
                f"{parsed.this_type} leaves abstract methods: "
                f"{sorted(generated.__abstractmethods__)}"
            )
        return generated()
