"""Flat aggregation of profile samples by attribution key.

One parameterized aggregator serves every metric family: callers resolve the
value index (see :mod:`pprof_analyzer.profiling.metrics`), pick one or more
granularities, and receive per-key totals computed in a single traversal.

Functions
---------
aggregate_profile
    Sum the selected metric per attribution key for each requested granularity.
top_n
    Prefix of a ranked stat list (never padded).
type_label
    Type label of a sample using the label policy below.
"""

from __future__ import annotations

import enum
import logging
from typing import Iterable, Sequence

from attrs import define, field

from pprof_analyzer.data.models import AggregateStat
from pprof_analyzer.data.profile import Function, Line, Profile, Sample

logger = logging.getLogger(__name__)

#: Labels consulted for a sample's type name, first present wins.
TYPE_LABEL_KEYS: tuple[str, ...] = ("type", "object")

#: Type name used when a sample carries none of :data:`TYPE_LABEL_KEYS`.
UNKNOWN_TYPE = "unknown"


class Granularity(str, enum.Enum):
    """Attribution key granularity."""

    FUNCTION = "function"
    ALLOCATION_SITE = "allocation_site"
    TYPE = "type"


def type_label(sample: Sample, default: str | None = UNKNOWN_TYPE) -> str | None:
    """Return the sample's type label (first value of the first present key)."""

    for key in TYPE_LABEL_KEYS:
        value = sample.label(key)
        if value is not None:
            return value
    return default


def allocation_site_key(function: Function, line: Line) -> str:
    """Return ``"<function> at <file>:<line>"``."""

    return f"{function.name} at {function.filename}:{line.line}"


def leaf_line(sample: Sample) -> Line | None:
    """Return the first line with a function in the innermost location."""

    if not sample.locations:
        return None
    for line in sample.locations[0].lines:
        if line.function is not None:
            return line
    return None


@define(kw_only=True)
class AggregationResult:
    """Per-granularity totals from one aggregation pass.

    Attributes
    ----------
    value_index : int
        Sample value position that was summed.
    object_index : int or None
        Companion object-count position, if any.
    total_value : int
        Sum of the metric over every sample with a stack, attributed or not.
    total_objects : int
        Sum of the object counts over the same samples.
    stats : dict
        ``Granularity -> {key: AggregateStat}`` in first-seen key order.
    """

    value_index: int
    object_index: int | None = None
    total_value: int = 0
    total_objects: int = 0
    stats: dict[Granularity, dict[str, AggregateStat]] = field(factory=dict)

    def ranked(self, granularity: Granularity | str) -> list[AggregateStat]:
        """Return stats descending by value; ties keep first-seen order."""

        bucket = self.stats.get(Granularity(granularity), {})
        return sorted(bucket.values(), key=lambda s: s.value, reverse=True)

    def attributed_value(self, granularity: Granularity | str) -> int:
        """Return the total charged to keys of ``granularity``."""

        bucket = self.stats.get(Granularity(granularity), {})
        return sum(s.value for s in bucket.values())


def _charge(bucket: dict[str, AggregateStat], key: str, value: int, objects: int) -> None:
    stat = bucket.get(key)
    if stat is None:
        stat = AggregateStat(key=key)
        bucket[key] = stat
    stat.value += value
    stat.object_count += objects


def aggregate_profile(
    profile: Profile,
    value_index: int,
    *,
    object_index: int | None = None,
    granularities: Iterable[Granularity | str] = (Granularity.FUNCTION,),
) -> AggregationResult:
    """Aggregate ``profile`` samples by attribution key.

    Parameters
    ----------
    profile : Profile
        Decoded profile.
    value_index : int
        Position of the metric to sum in each sample.
    object_index : int or None, optional
        Position of a companion object count; ignored when ``None``.
    granularities : iterable of Granularity
        Views computed in the same traversal.

    Returns
    -------
    AggregationResult
        Totals per key plus the grand total.

    Notes
    -----
    Samples with an empty stack or too short a value vector are ignored.
    Samples whose innermost frame has no function still count toward the grand
    total but are not charged to function or allocation-site keys.
    """

    wanted: Sequence[Granularity] = [Granularity(g) for g in granularities]
    result = AggregationResult(value_index=value_index, object_index=object_index)
    for g in wanted:
        result.stats[g] = {}

    for sample in profile.samples:
        if not sample.locations or len(sample.values) <= value_index:
            continue
        v = sample.values[value_index]
        result.total_value += v

        objects = 0
        if object_index is not None and len(sample.values) > object_index:
            objects = sample.values[object_index]
            result.total_objects += objects

        if Granularity.TYPE in result.stats:
            _charge(result.stats[Granularity.TYPE], type_label(sample) or UNKNOWN_TYPE, v, objects)

        line = leaf_line(sample)
        if line is None or line.function is None:
            continue
        if Granularity.FUNCTION in result.stats:
            _charge(result.stats[Granularity.FUNCTION], line.function.name, v, objects)
        if Granularity.ALLOCATION_SITE in result.stats:
            _charge(result.stats[Granularity.ALLOCATION_SITE], allocation_site_key(line.function, line), v, objects)

    if result.total_value == 0:
        logger.warning("Total value for sample index %d is zero", value_index)
    return result


def top_n(stats: Sequence[AggregateStat], n: int) -> list[AggregateStat]:
    """Return the first ``n`` entries of a ranked stat list.

    Examples
    --------
    >>> top_n([AggregateStat(key="a", value=2)], n=5)
    [AggregateStat(key='a', value=2, object_count=0)]
    """

    return list(stats[: max(int(n), 0)])
