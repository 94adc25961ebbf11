"""Flame (call) tree construction.

Every sample with a non-zero selected value is folded into one rooted tree.
Stacks are walked caller to callee and nodes are keyed by function identity,
so two different call sites of the same function under the same parent share
one node. Nodes carry the value charged directly to them (``self_value``) and
their cumulative value; children are sorted by cumulative value once the tree
is complete.

Functions
---------
build_flame_tree
    Build the tree for a value index.
"""

from __future__ import annotations

import logging
from typing import Hashable

from pprof_analyzer.data.models import FlameNode
from pprof_analyzer.data.profile import Function, Location, Profile
from pprof_analyzer.profiling.aggregate import type_label
from pprof_analyzer.profiling.errors import InvalidValueIndexError
from pprof_analyzer.profiling.formatting import format_bytes, format_sample_value
from pprof_analyzer.profiling.metrics import MetricFamily, is_memory_metric, resolve_object_count_index

logger = logging.getLogger(__name__)

ROOT_NAME = "root"


class _BuildNode:
    """Mutable scaffolding node used while samples are folded in."""

    __slots__ = ("name", "file_path", "line_number", "self_value", "object_count", "object_type", "children")

    def __init__(self, name: str, file_path: str = "", line_number: int = 0) -> None:
        self.name = name
        self.file_path = file_path
        self.line_number = line_number
        self.self_value = 0
        self.object_count = 0
        self.object_type = ""
        self.children: dict[Hashable, _BuildNode] = {}


def _frame_function(loc: Location) -> tuple[Function, int] | None:
    """Return the function and line number of a location's first line."""

    if not loc.lines:
        return None
    line = loc.lines[0]
    fn = line.function
    if fn is None:
        fn = Function(id=0, name=f"unknown @ 0x{loc.address:x}")
    return fn, line.line


def _identity(fn: Function) -> Hashable:
    # Decoders that do not assign ids leave them at 0; fall back to the name.
    if fn.id:
        return ("id", fn.id)
    return ("name", fn.name)


def _finalize(node: _BuildNode, memory: bool, unit: str) -> FlameNode | None:
    """Convert scaffolding to a FlameNode bottom-up; ``None`` when zero-valued."""

    children: list[FlameNode] = []
    total = node.self_value
    for child in node.children.values():
        out = _finalize(child, memory, unit)
        if out is None:
            continue
        children.append(out)
        total += out.value
    if total == 0:
        return None

    children.sort(key=lambda c: c.value, reverse=True)
    flame = FlameNode(
        name=node.name,
        value=total,
        self_value=node.self_value,
        file_path=node.file_path or None,
        line_number=node.line_number if node.line_number > 0 else None,
        children=children,
    )
    if memory:
        flame.value_formatted = format_bytes(total)
        if node.object_count > 0:
            flame.object_count = node.object_count
            flame.avg_size = total // node.object_count
            flame.avg_size_formatted = format_bytes(flame.avg_size)
        if node.object_type:
            flame.type = node.object_type
    elif unit == "nanoseconds":
        flame.value_formatted = format_sample_value(total, unit)
    return flame


def build_flame_tree(profile: Profile, value_index: int) -> FlameNode:
    """Fold every non-zero sample of ``profile`` into a flame tree.

    Parameters
    ----------
    profile : Profile
        Decoded profile.
    value_index : int
        Sample value position to use.

    Returns
    -------
    FlameNode
        Root node named ``"root"``; its value is the sum of all non-zero
        sample values. For memory metrics (``inuse_space``/``alloc_space``
        in bytes) nodes also carry object counts, average sizes and the first
        type label seen for the node.

    Raises
    ------
    InvalidValueIndexError
        If ``value_index`` is outside the declared sample types.
    """

    if value_index < 0 or value_index >= len(profile.sample_types):
        raise InvalidValueIndexError(value_index, len(profile.sample_types))

    selected = profile.sample_types[value_index]
    memory = is_memory_metric(selected)
    objects_index = None
    if memory:
        # in-use bytes pair with inuse_objects, every allocation flavour with alloc_objects
        family = MetricFamily.HEAP_INUSE if selected.type == "inuse_space" else MetricFamily.ALLOC_SPACE
        objects_index = resolve_object_count_index(profile.sample_types, family)

    root = _BuildNode(ROOT_NAME)
    total_value = 0
    total_objects = 0

    for sample in profile.samples:
        if len(sample.values) <= value_index:
            continue
        value = sample.values[value_index]
        if value == 0:
            continue
        total_value += value

        objects = 0
        if objects_index is not None and len(sample.values) > objects_index:
            objects = sample.values[objects_index]
            total_objects += objects
        type_name = (type_label(sample, default=None) or "") if memory else ""

        current = root
        for loc in reversed(sample.locations):
            frame = _frame_function(loc)
            if frame is None:
                continue
            fn, line_no = frame
            key = _identity(fn)
            child = current.children.get(key)
            if child is None:
                child = _BuildNode(fn.name, fn.filename, line_no)
                current.children[key] = child
            current = child

        # The innermost usable frame owns the sample; the root only when no frame had lines.
        current.self_value += value
        if memory and objects > 0 and current is not root:
            current.object_count += objects
            if type_name and not current.object_type:
                current.object_type = type_name

    tree = _finalize(root, memory, selected.unit)
    if tree is None:
        logger.warning("Flame tree for %s/%s is empty (all samples zero)", selected.type, selected.unit)
        tree = FlameNode(name=ROOT_NAME)

    if memory:
        tree.value_formatted = format_bytes(tree.value)
        tree.object_count = None
        tree.avg_size = None
        tree.avg_size_formatted = None
        if total_objects > 0:
            tree.object_count = total_objects
            tree.avg_size = tree.value // total_objects
            tree.avg_size_formatted = format_bytes(tree.avg_size)
    elif selected.unit == "nanoseconds":
        tree.value_formatted = format_sample_value(tree.value, selected.unit)
    logger.info("Built flame tree for %s/%s: total=%d", selected.type, selected.unit, total_value)
    return tree
