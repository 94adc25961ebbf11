"""Value-index resolution for profile sample types.

A decoded profile declares an ordered list of sample types and every sample
carries one value per declared type. The helpers here pick the position that
holds a requested metric family, falling back to documented heuristics when
the exact ``type/unit`` pair is absent.

Functions
---------
resolve_value_index
    Index of the primary metric for a :class:`MetricFamily`.
resolve_object_count_index
    Index of the companion object-count metric (heap/allocs only).
find_sample_type
    Index of the first exact ``type/unit`` match, or ``None``.
is_memory_metric
    Whether a sample type is a memory-class (allocation / in-use bytes) metric.
"""

from __future__ import annotations

import enum
import logging
from typing import Iterable, Sequence

from pprof_analyzer.data.profile import ValueType
from pprof_analyzer.profiling.errors import UnresolvableMetricError

logger = logging.getLogger(__name__)

#: Sample-type names that mark a memory-class metric when the unit is bytes.
MEMORY_VALUE_TYPES: frozenset[str] = frozenset({"inuse_space", "alloc_space", "alloc", "allocation"})

class MetricFamily(str, enum.Enum):
    """Metric families understood by the resolver."""

    CPU = "cpu"
    HEAP_INUSE = "heap_inuse"
    ALLOC_SPACE = "alloc_space"
    GOROUTINES = "goroutines"
    CONTENTION = "contention"


def find_sample_type(sample_types: Sequence[ValueType], names: Iterable[str], unit: str) -> int | None:
    """Return the index of the first sample type named in ``names`` with ``unit``."""

    wanted = set(names)
    for i, st in enumerate(sample_types):
        if st.type in wanted and st.unit == unit:
            return i
    return None


def _describe(sample_types: Sequence[ValueType], index: int) -> str:
    st = sample_types[index]
    return f"{st.type}/{st.unit}"


def _resolve_cpu(sample_types: Sequence[ValueType]) -> int:
    idx = find_sample_type(sample_types, ["cpu"], "nanoseconds")
    if idx is None:
        idx = find_sample_type(sample_types, ["samples"], "count")
    if idx is not None:
        return idx
    if len(sample_types) == 1:
        logger.warning("Only one sample type found, using index 0: %s", _describe(sample_types, 0))
        return 0
    # Heuristic: most CPU profiles declare samples/count first and the time metric second.
    logger.warning(
        "Could not definitively identify CPU time value type, defaulting to index 1: %s",
        _describe(sample_types, 1),
    )
    return 1


def _resolve_heap_inuse(sample_types: Sequence[ValueType]) -> int:
    idx = find_sample_type(sample_types, ["inuse_space"], "bytes")
    if idx is not None:
        return idx
    idx = find_sample_type(sample_types, ["alloc_space"], "bytes")
    if idx is not None:
        logger.warning("'inuse_space' not found, falling back to 'alloc_space'")
        return idx
    idx = len(sample_types) - 1
    logger.warning(
        "Could not find 'inuse_space' or 'alloc_space', defaulting to last sample type index %d: %s",
        idx,
        _describe(sample_types, idx),
    )
    return idx


def _resolve_alloc_space(sample_types: Sequence[ValueType]) -> int:
    idx = find_sample_type(sample_types, ["alloc_space"], "bytes")
    if idx is not None:
        return idx
    idx = find_sample_type(sample_types, ["alloc", "allocation"], "bytes")
    if idx is not None:
        logger.warning("'alloc_space' not found, using '%s' instead", _describe(sample_types, idx))
        return idx
    logger.warning(
        "Could not find allocation space sample type, defaulting to index 0: %s",
        _describe(sample_types, 0),
    )
    return 0


def _resolve_goroutines(sample_types: Sequence[ValueType]) -> int:
    if sample_types[0].type != "goroutines":
        logger.warning(
            "Expected 'goroutines' sample type, found %s. Using index 0.",
            [_describe(sample_types, i) for i in range(len(sample_types))],
        )
    return 0


def _resolve_contention(sample_types: Sequence[ValueType]) -> int:
    idx = find_sample_type(sample_types, ["delay"], "nanoseconds")
    if idx is None:
        idx = find_sample_type(sample_types, ["contentions"], "count")
    if idx is not None:
        return idx
    logger.warning(
        "Could not find 'delay' or 'contentions' sample type, defaulting to index 0: %s",
        _describe(sample_types, 0),
    )
    return 0


_RESOLVERS = {
    MetricFamily.CPU: _resolve_cpu,
    MetricFamily.HEAP_INUSE: _resolve_heap_inuse,
    MetricFamily.ALLOC_SPACE: _resolve_alloc_space,
    MetricFamily.GOROUTINES: _resolve_goroutines,
    MetricFamily.CONTENTION: _resolve_contention,
}


def resolve_value_index(sample_types: Sequence[ValueType], family: MetricFamily | str) -> int:
    """Return the value index holding ``family`` in each sample.

    Parameters
    ----------
    sample_types : Sequence[ValueType]
        The profile's declared sample types, in order.
    family : MetricFamily or str
        Requested metric family.

    Returns
    -------
    int
        Position within every sample's value vector.

    Raises
    ------
    UnresolvableMetricError
        If ``sample_types`` is empty (no heuristic can apply).

    Examples
    --------
    >>> types = [ValueType(type="samples", unit="count"), ValueType(type="cpu", unit="nanoseconds")]
    >>> resolve_value_index(types, MetricFamily.CPU)
    1
    """

    fam = MetricFamily(family)
    if not sample_types:
        raise UnresolvableMetricError(f"could not determine {fam.value} value type: profile declares no sample types")
    idx = _RESOLVERS[fam](sample_types)
    logger.info("Using index %d (%s) for %s analysis", idx, _describe(sample_types, idx), fam.value)
    return idx


def resolve_object_count_index(sample_types: Sequence[ValueType], family: MetricFamily | str) -> int | None:
    """Return the companion object-count index, or ``None`` when unavailable.

    Only heap in-use (``inuse_objects``) and allocation (``alloc_objects``)
    families carry object counts.
    """

    fam = MetricFamily(family)
    if fam is MetricFamily.HEAP_INUSE:
        return find_sample_type(sample_types, ["inuse_objects"], "count")
    if fam is MetricFamily.ALLOC_SPACE:
        return find_sample_type(sample_types, ["alloc_objects"], "count")
    return None


def is_memory_metric(sample_type: ValueType) -> bool:
    """Return True for byte-valued allocation / in-use metrics."""

    return sample_type.unit == "bytes" and sample_type.type in MEMORY_VALUE_TYPES
