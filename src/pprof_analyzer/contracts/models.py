"""Contract models (attrs-based JSON payload schemas).

These classes describe the machine-readable payloads returned by
:class:`pprof_analyzer.profiling.analyzer.ProfileAnalyzer`. Field names are
snake_case here and camelCase on the wire; the renaming lives in
:mod:`pprof_analyzer.contracts.convert`.

Notes
-----
- Optional fields default to ``None`` and are omitted from the JSON output.
- Flame trees are serialized straight from
  :class:`pprof_analyzer.data.models.FlameNode` through a dedicated hook.
"""

from __future__ import annotations

from attrs import define, field
from attrs.validators import instance_of


@define(kw_only=True)
class ErrorPayload:
    """Error-shaped payload returned in place of a failed JSON rendering."""

    error: str = field(validator=[instance_of(str)])
    top_n: int | None = field(default=None)


@define(kw_only=True)
class FunctionEntry:
    """One ranked function row."""

    function_name: str = field(validator=[instance_of(str)])
    value: int = field()
    value_formatted: str = field(validator=[instance_of(str)])
    percentage: float = field(validator=[instance_of(float)])
    object_count: int | None = field(default=None)


@define(kw_only=True)
class AllocationSiteEntry:
    """One ranked allocation-site row (``function at file:line``)."""

    site: str = field(validator=[instance_of(str)])
    value: int = field()
    value_formatted: str = field(validator=[instance_of(str)])
    percentage: float = field(validator=[instance_of(float)])
    object_count: int | None = field(default=None)
    avg_size: int | None = field(default=None)
    avg_size_formatted: str | None = field(default=None)


@define(kw_only=True)
class TypeEntry:
    """One ranked type-label row."""

    type_name: str = field(validator=[instance_of(str)])
    value: int = field()
    value_formatted: str = field(validator=[instance_of(str)])
    percentage: float = field(validator=[instance_of(float)])
    object_count: int | None = field(default=None)
    avg_size: int | None = field(default=None)
    avg_size_formatted: str | None = field(default=None)


@define(kw_only=True)
class StructuredReport:
    """Ranked flat-profile report for external consumption."""

    profile_type: str = field(
        validator=[instance_of(str)],
        metadata={"help": "Profile kind (cpu, heap, allocs, mutex, block)"},
    )
    value_type: str = field(validator=[instance_of(str)])
    value_unit: str = field(validator=[instance_of(str)])
    total_value: int = field()
    total_value_formatted: str = field(validator=[instance_of(str)])
    total_duration_nanos: int | None = field(
        default=None,
        metadata={"help": "Profile duration; estimated from samples for nanosecond metrics when absent"},
    )
    total_objects: int | None = field(default=None)
    top_n: int = field(metadata={"help": "Number of function rows actually returned"})
    functions: list[FunctionEntry] = field()
    allocation_sites: list[AllocationSiteEntry] | None = field(default=None)
    types: list[TypeEntry] | None = field(default=None)


@define(kw_only=True)
class GoroutineStackEntry:
    """Goroutines sharing one stack trace."""

    count: int = field()
    stack_trace: list[str] = field()


@define(kw_only=True)
class GoroutineReport:
    """Goroutine profile report for external consumption."""

    profile_type: str = field(default="goroutine", validator=[instance_of(str)])
    total_goroutines: int = field()
    top_n: int = field()
    stacks: list[GoroutineStackEntry] = field()
