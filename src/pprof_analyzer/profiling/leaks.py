"""Memory-leak candidates from two heap snapshots.

Both snapshots are aggregated by type label on ``inuse_space`` bytes (plus
``inuse_objects`` when declared); types present in the newer snapshot are
compared against the older one and ranked by absolute growth.

Functions
---------
diff_snapshots
    Compute ranked :class:`LeakCandidate` entries above a growth threshold.
"""

from __future__ import annotations

import logging

from attrs import define, field

from pprof_analyzer.data.models import LeakCandidate
from pprof_analyzer.data.profile import Profile
from pprof_analyzer.profiling.aggregate import AggregationResult, Granularity, aggregate_profile
from pprof_analyzer.profiling.errors import MissingBasisMetricError
from pprof_analyzer.profiling.metrics import find_sample_type

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.10
DEFAULT_LIMIT = 10


@define(kw_only=True)
class LeakDiff:
    """Result of a snapshot diff.

    Attributes
    ----------
    threshold : float
        Growth fraction used for filtering (``0.10`` = 10%).
    match_count : int
        Number of types at or above the threshold before truncation.
    candidates : list[LeakCandidate]
        Top candidates, descending by absolute growth.
    """

    threshold: float
    match_count: int = 0
    candidates: list[LeakCandidate] = field(factory=list)


def growth_percent(old: int, new: int) -> float:
    """Return percentage growth from ``old`` to ``new``.

    A type that did not exist before (``old == 0``) and now holds memory
    counts as 100% growth.

    Examples
    --------
    >>> growth_percent(1000, 2000)
    100.0
    >>> growth_percent(0, 10)
    100.0
    >>> growth_percent(0, 0)
    0.0
    """

    growth = new - old
    if old > 0:
        return (float(growth) / float(old)) * 100.0
    if growth > 0:
        return 100.0
    return 0.0


def _aggregate_by_type(profile: Profile, which: str) -> AggregationResult:
    value_index = find_sample_type(profile.sample_types, ["inuse_space"], "bytes")
    if value_index is None:
        raise MissingBasisMetricError(f"could not find inuse_space sample type in the {which} profile")
    object_index = find_sample_type(profile.sample_types, ["inuse_objects"], "count")
    return aggregate_profile(
        profile,
        value_index,
        object_index=object_index,
        granularities=(Granularity.TYPE,),
    )


def diff_snapshots(
    old: Profile,
    new: Profile,
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_LIMIT,
) -> LeakDiff:
    """Compare two heap snapshots and return types whose footprint grew.

    Parameters
    ----------
    old, new : Profile
        Earlier and later heap snapshots; both must declare ``inuse_space``.
    threshold : float, default=0.10
        Minimum growth as a fraction; ``growth_percent >= threshold * 100``
        is kept. Zero or negative thresholds keep every type.
    limit : int, default=10
        Maximum candidates returned; non-positive values use the default.

    Raises
    ------
    MissingBasisMetricError
        If either snapshot lacks an ``inuse_space``/``bytes`` sample type.
    """

    if limit <= 0:
        limit = DEFAULT_LIMIT

    old_stats = _aggregate_by_type(old, "old").stats[Granularity.TYPE]
    new_stats = _aggregate_by_type(new, "new").stats[Granularity.TYPE]

    matches: list[LeakCandidate] = []
    for type_name, new_stat in new_stats.items():
        old_stat = old_stats.get(type_name)
        old_value = old_stat.value if old_stat is not None else 0
        old_count = old_stat.object_count if old_stat is not None else 0
        pct = growth_percent(old_value, new_stat.value)
        if pct < threshold * 100.0:
            continue
        matches.append(
            LeakCandidate(
                type_name=type_name,
                old_value=old_value,
                new_value=new_stat.value,
                growth=new_stat.value - old_value,
                growth_percent=pct,
                old_count=old_count,
                new_count=new_stat.object_count,
                count_growth=new_stat.object_count - old_count,
                count_growth_percent=growth_percent(old_count, new_stat.object_count),
            )
        )

    matches.sort(key=lambda c: c.growth, reverse=True)
    logger.info(
        "Snapshot diff: %d of %d types grew by at least %.1f%%",
        len(matches),
        len(new_stats),
        threshold * 100.0,
    )
    return LeakDiff(threshold=threshold, match_count=len(matches), candidates=matches[:limit])
