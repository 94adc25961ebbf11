"""Domain models produced by the analysis engine.

This module defines `attrs`-based result models. They are internal
representations; the JSON payloads callers receive are shaped by the contract
schemas and the ``cattrs`` converter in :mod:`pprof_analyzer.contracts`.

Classes
-------
AggregateStat
    Accumulated value and object count for one attribution key.
FlameNode
    Node of the flame (call) tree.
LeakCandidate
    Per-type growth between two heap snapshots.
GoroutineStack
    Goroutines sharing an identical stack.
FlatSummary
    Ranked flat-profile view consumed by the formatters.
"""

from __future__ import annotations

from typing import Iterator

from attrs import define, field
from attrs.validators import instance_of


@define(kw_only=True)
class AggregateStat:
    """Accumulated totals for one attribution key.

    Parameters
    ----------
    key : str
        Function name, allocation site (``"fn at file:line"``) or type label.
    value : int, default=0
        Sum of the selected metric over contributing samples.
    object_count : int, default=0
        Sum of the companion object-count metric (0 when unavailable).
    """

    key: str = field(validator=[instance_of(str)])
    value: int = field(default=0)
    object_count: int = field(default=0)

    @property
    def avg_size(self) -> int | None:
        """Integer average value per object, or ``None`` without objects."""

        if self.object_count <= 0:
            return None
        return self.value // self.object_count


@define(kw_only=True)
class FlameNode:
    """Flame tree node; ``value`` is cumulative (self + descendants)."""

    name: str = field(validator=[instance_of(str)])
    value: int = field(default=0)
    self_value: int = field(default=0)
    value_formatted: str | None = field(default=None)
    object_count: int | None = field(default=None)
    avg_size: int | None = field(default=None)
    avg_size_formatted: str | None = field(default=None)
    type: str | None = field(default=None)
    file_path: str | None = field(default=None)
    line_number: int | None = field(default=None)
    children: list["FlameNode"] = field(factory=list)

    def walk(self) -> Iterator["FlameNode"]:
        """Yield this node and every descendant, depth first."""

        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find_child(self, name: str) -> "FlameNode | None":
        """Return the direct child called ``name``, if any."""

        for child in self.children:
            if child.name == name:
                return child
        return None


@define(kw_only=True)
class LeakCandidate:
    """Growth of one type between an old and a new heap snapshot."""

    type_name: str = field(validator=[instance_of(str)])
    old_value: int = field()
    new_value: int = field()
    growth: int = field()
    growth_percent: float = field(validator=[instance_of(float)])
    old_count: int = field(default=0)
    new_count: int = field(default=0)
    count_growth: int = field(default=0)
    count_growth_percent: float = field(default=0.0, validator=[instance_of(float)])


@define(kw_only=True)
class GoroutineStack:
    """Goroutines sharing one stack; ``frames`` are innermost first."""

    count: int = field()
    frames: list[str] = field(factory=list)


@define(kw_only=True)
class FlatSummary:
    """Ranked flat-profile view handed to the presentation formatters.

    Parameters
    ----------
    profile_type : str
        Profile kind (``cpu``, ``heap``, ``allocs``, ``mutex``, ``block``).
    value_type, value_unit : str
        Selected sample type.
    total_value : int
        Grand total of the selected metric.
    requested_top_n : int
        Row limit the caller asked for; sections may hold fewer rows.
    functions : list[AggregateStat]
        Ranked and truncated by-function rows.
    allocation_sites, types : list[AggregateStat] or None
        Optional extra ranked sections.
    total_objects : int
        Grand total of the companion object count (0 when unavailable).
    duration_nanos : int
        Profile duration (0 when unknown).
    """

    profile_type: str = field(validator=[instance_of(str)])
    value_type: str = field(validator=[instance_of(str)])
    value_unit: str = field(validator=[instance_of(str)])
    total_value: int = field()
    requested_top_n: int = field()
    functions: list[AggregateStat] = field(factory=list)
    allocation_sites: list[AggregateStat] | None = field(default=None)
    types: list[AggregateStat] | None = field(default=None)
    total_objects: int = field(default=0)
    duration_nanos: int = field(default=0)
