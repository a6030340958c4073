"""Unit contract definitions.

This module defines the stable boundary between the generation phase that
writes a unit and the consumers that import symbols from it.
"""

from __future__ import annotations

import hashlib
import keyword
from typing import Literal

# Unit schema version (unit-v1).
UNIT_SCHEMA_VERSION = 1

# Reserved module-level names written into every unit.
SCHEMA_VERSION_NAME = "__schema_version__"
DECLARATIONS_NAME = "__declarations__"
GROUPS_NAME = "__groups__"
ALL_NAME = "__all__"

UNIT_HEADER = "# Generated by bakeconst. Do not edit by hand."
DIGEST_PREFIX = "# digest: "

# Module name the generation script runs under. Classes defined there can't be
# imported back by the unit.
SCRIPT_RUN_NAME = "__bakeconst_script__"

BindingKind = Literal["const", "static", "fn", "type"]

BINDING_KINDS: tuple[BindingKind, ...] = ("const", "static", "fn", "type")


def check_identifier(name: str) -> str | None:
    """Return why ``name`` can't be bound in a unit, or None when it can."""
    if not name.isidentifier():
        return "not a valid Python identifier"
    if keyword.iskeyword(name):
        return "is a Python keyword"
    if name.startswith("__") and name.endswith("__"):
        return "dunder names are reserved for the unit"
    return None


def body_digest(body: str) -> str:
    """Digest recorded in a unit's header, over everything below the header."""
    return hashlib.sha256(body.encode("utf-8")).hexdigest()
