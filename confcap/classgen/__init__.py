"""Class-file generation: constant pool, builder, reader and activator."""

from confcap.classgen.activator import ModuleActivator, synthesize_type_name
from confcap.classgen.builder import BinaryModule, ModuleBuilder, build_module, dump_module
from confcap.classgen.factory import ClassFileFactory, InstanceFactory
from confcap.classgen.reader import ParsedModule, read_module

__all__ = [
    "BinaryModule",
    "ClassFileFactory",
    "InstanceFactory",
    "ModuleActivator",
    "ModuleBuilder",
    "ParsedModule",
    "build_module",
    "dump_module",
    "read_module",
    "synthesize_type_name",
]
