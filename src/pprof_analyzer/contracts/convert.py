"""Contract/domain conversion utilities using `cattrs`.

Provides the shared converter used to (un)structure payload schemas with
camelCase keys, to dump flame trees, and to build decoded profiles from plain
mappings.
"""

from __future__ import annotations

import json
from typing import Any

import attrs
from cattrs import Converter
from cattrs.gen import make_dict_structure_fn, make_dict_unstructure_fn, override

from pprof_analyzer.contracts.models import (
    AllocationSiteEntry,
    ErrorPayload,
    FunctionEntry,
    GoroutineReport,
    GoroutineStackEntry,
    StructuredReport,
    TypeEntry,
)
from pprof_analyzer.data.models import FlameNode
from pprof_analyzer.data.profile import LabelMap, to_label_map

# Public converter instance; register hooks as needed.
converter = Converter()

_PAYLOAD_TYPES: tuple[type, ...] = (
    ErrorPayload,
    FunctionEntry,
    AllocationSiteEntry,
    TypeEntry,
    StructuredReport,
    GoroutineStackEntry,
    GoroutineReport,
)


def camel_case(name: str) -> str:
    """Return ``name`` converted from snake_case to camelCase.

    Examples
    --------
    >>> camel_case("total_value_formatted")
    'totalValueFormatted'
    """

    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _renames(cls: type) -> dict[str, Any]:
    return {a.name: override(rename=camel_case(a.name)) for a in attrs.fields(cls)}


def _unstructure_overrides(cls: type) -> dict[str, Any]:
    # only optional (None-default) fields are dropped when unset
    return {
        a.name: override(rename=camel_case(a.name), omit_if_default=a.default is None)
        for a in attrs.fields(cls)
    }


def unstructure_flame_node(node: FlameNode) -> dict[str, Any]:
    """Return the JSON view of a flame tree (``None`` fields and empty children omitted)."""

    out: dict[str, Any] = {"name": node.name, "value": node.value}
    if node.self_value:
        out["selfValue"] = node.self_value
    if node.value_formatted is not None:
        out["valueFormatted"] = node.value_formatted
    if node.object_count is not None:
        out["objectCount"] = node.object_count
    if node.avg_size is not None:
        out["avgSize"] = node.avg_size
    if node.avg_size_formatted is not None:
        out["avgSizeFormatted"] = node.avg_size_formatted
    if node.type is not None:
        out["type"] = node.type
    if node.file_path is not None:
        out["filePath"] = node.file_path
    if node.line_number is not None:
        out["lineNum"] = node.line_number
    if node.children:
        out["children"] = [unstructure_flame_node(c) for c in node.children]
    return out


def register_payload_hooks(conv: Converter) -> None:
    """Register camelCase (un)structure hooks for the payload schemas.

    Optional fields equal to their default (``None``) are omitted on output,
    matching the ``omitempty`` convention of the consumers of these payloads.
    """

    def _is_payload(cls: Any) -> bool:
        return isinstance(cls, type) and cls in _PAYLOAD_TYPES

    conv.register_unstructure_hook_factory(
        _is_payload,
        lambda cls: make_dict_unstructure_fn(cls, conv, **_unstructure_overrides(cls)),
    )
    conv.register_structure_hook_factory(
        _is_payload,
        lambda cls: make_dict_structure_fn(cls, conv, **_renames(cls)),
    )
    conv.register_unstructure_hook(FlameNode, unstructure_flame_node)


def register_profile_hooks(conv: Converter) -> None:
    """Register structure hooks for decoded-profile input.

    Sample labels go through :func:`to_label_map` so a bare string value
    becomes a one-element tuple instead of a tuple of characters.
    """

    conv.register_structure_hook_func(lambda t: t == LabelMap, lambda value, _t: to_label_map(value))


def to_json(obj: Any, *, indent: int | None = 2) -> str:
    """Serialize a payload or flame tree to JSON via the shared converter."""

    return json.dumps(converter.unstructure(obj), indent=indent, ensure_ascii=False)


# Configure the shared converter on import so downstream callers can rely on it.
register_payload_hooks(converter)
register_profile_hooks(converter)
