"""Value-to-source serialization."""

from emit.custom import emittable
from emit.descriptors import EmitAs
from emit.registry import Capability, Registry, default_registry, register
from emit.serializer import Emitter, Fragment, emit, emit_array

__all__ = [
    "Capability",
    "EmitAs",
    "Emitter",
    "Fragment",
    "Registry",
    "default_registry",
    "emit",
    "emit_array",
    "emittable",
    "register",
]
