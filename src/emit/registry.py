"""Emit-capability registry.

A capability knows how to turn values of one declared type into a source
fragment, and how to spell that type in an annotation. Capabilities are
registered per type key; a type is emittable only if its key was registered
explicitly. Subclasses of registered classes are not found by inheritance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from contract.errors import UnsupportedTypeError
from emit.descriptors import type_key, type_name

if TYPE_CHECKING:
    from emit.serializer import Emitter


class Capability(Protocol):
    def matches(self, emitter: Emitter, value: Any, tp: Any) -> bool:
        """Return True when ``value`` has the outer shape ``tp`` requires."""
        ...

    def emit(self, emitter: Emitter, value: Any, tp: Any) -> str:
        """Return the source fragment reconstructing ``value``."""
        ...

    def annotation(self, emitter: Emitter, tp: Any) -> str:
        """Return the annotation text for ``tp`` in the generated unit."""
        ...


class Registry:
    """Maps type keys to their emit capabilities."""

    def __init__(self, capabilities: dict[Any, Capability] | None = None) -> None:
        self._capabilities: dict[Any, Capability] = dict(capabilities or {})

    def register(
        self, key: Any, capability: Capability, *, replace: bool = False
    ) -> None:
        if key in self._capabilities and not replace:
            msg = f"An emit capability is already registered for '{type_name(key)}'"
            raise ValueError(msg)
        self._capabilities[key] = capability

    def lookup(self, tp: Any) -> Capability:
        """Return the capability for a declared type.

        Raises:
            UnsupportedTypeError: If nothing is registered for the type's key.
        """
        try:
            return self._capabilities[type_key(tp)]
        except (KeyError, TypeError):
            raise UnsupportedTypeError(type_name(tp)) from None

    def __contains__(self, tp: Any) -> bool:
        try:
            return type_key(tp) in self._capabilities
        except TypeError:
            return False

    def copy(self) -> Registry:
        return Registry(self._capabilities)


_default_registry: Registry | None = None


def default_registry() -> Registry:
    """Return the process-wide registry, with built-in capabilities installed."""
    global _default_registry
    if _default_registry is None:
        from emit.builtins import install_builtins
        from perfect_hash.capabilities import install_collections

        registry = Registry()
        install_builtins(registry)
        install_collections(registry)
        _default_registry = registry
    return _default_registry


def register(
    key: Any,
    capability: Capability,
    *,
    registry: Registry | None = None,
    replace: bool = False,
) -> None:
    """Register a hand-written capability for ``key``."""
    target = registry if registry is not None else default_registry()
    target.register(key, capability, replace=replace)


__all__ = ["Capability", "Registry", "default_registry", "register"]
