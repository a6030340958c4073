"""Per-run aggregation of declarations.

One generation run owns exactly one ``Artifact``. It is append-only while the
run lasts and is closed by the flush that materializes it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.artifacts import check_identifier
from contract.errors import ArtifactClosedError, InvalidNameError, NameCollisionError
from emit.serializer import Emitter
from logs import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from artifacts.models.declaration import Declaration
    from emit.registry import Registry
    from rules.config import HashSettings

logger = get_logger("artifacts")


class Artifact:
    """The ordered declarations of one generation run."""

    def __init__(
        self,
        *,
        registry: Registry | None = None,
        hash_settings: HashSettings | None = None,
    ) -> None:
        self.registry = registry
        self.hash_settings = hash_settings
        self._declarations: dict[str, Declaration] = {}
        self._groups: dict[str, tuple[str, ...]] = {}
        self._closed = False

    def emitter(self) -> Emitter:
        """A fresh emitter bound to this run's registry and hash settings."""
        return Emitter(self.registry, self.hash_settings)

    def _check_open(self) -> None:
        if self._closed:
            msg = "Artifact was already flushed; start a new run to declare more"
            raise ArtifactClosedError(msg)

    def _check_name(self, name: str, taken: set[str] | None = None) -> None:
        reason = check_identifier(name)
        if reason is not None:
            raise InvalidNameError(name, reason)
        if name in self._declarations or name in self._groups:
            raise NameCollisionError(name)
        if taken is not None:
            if name in taken:
                raise NameCollisionError(name)
            taken.add(name)

    def register(self, declaration: Declaration) -> Declaration:
        """Append a declaration.

        Raises:
            NameCollisionError: If the name is already declared in this run.
            InvalidNameError: If the name can't be bound in a Python module.
            ArtifactClosedError: If the artifact was already flushed.
        """
        self._check_open()
        self._check_name(declaration.name)
        self._declarations[declaration.name] = declaration
        logger.debug(
            "Declared %s %s: %s", declaration.kind, declaration.name, declaration.type_text
        )
        return declaration

    def register_group(
        self, group: str, declarations: Sequence[Declaration]
    ) -> tuple[Declaration, ...]:
        """Append several declarations under a group alias, all or none."""
        self._check_open()
        taken: set[str] = set()
        self._check_name(group, taken)
        for declaration in declarations:
            self._check_name(declaration.name, taken)
        for declaration in declarations:
            self._declarations[declaration.name] = declaration
        self._groups[group] = tuple(d.name for d in declarations)
        logger.debug("Declared group %s with %d members", group, len(declarations))
        return tuple(declarations)

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def declarations(self) -> tuple[Declaration, ...]:
        return tuple(self._declarations.values())

    @property
    def groups(self) -> dict[str, tuple[str, ...]]:
        return dict(self._groups)

    def get(self, name: str) -> Declaration | None:
        return self._declarations.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._declarations or name in self._groups

    def __iter__(self) -> Iterator[Declaration]:
        return iter(self._declarations.values())

    def __len__(self) -> int:
        return len(self._declarations)


__all__ = ["Artifact"]
