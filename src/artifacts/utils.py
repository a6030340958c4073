"""Utility functions for artifact reporting."""

from __future__ import annotations

import orjson


def _to_dict(obj: object) -> object:
    model_dump = getattr(obj, "model_dump", None)
    if callable(model_dump):
        return model_dump(mode="json")
    msg = f"Type is not JSON serializable: {type(obj).__qualname__}"
    raise TypeError(msg)


def dump_json(obj: object) -> bytes:
    """Stable JSON for reports: sorted keys, two-space indent."""
    opts = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2
    return orjson.dumps(obj, default=_to_dict, option=opts)


__all__ = ["dump_json"]
