import pytest

from pprof_analyzer.data.profile import ValueType
from pprof_analyzer.profiling.errors import UnresolvableMetricError
from pprof_analyzer.profiling.metrics import (
    MetricFamily,
    find_sample_type,
    is_memory_metric,
    resolve_object_count_index,
    resolve_value_index,
)


def _types(*pairs: str) -> list[ValueType]:
    out = []
    for p in pairs:
        t, u = p.split("/")
        out.append(ValueType(type=t, unit=u))
    return out


def test_cpu_prefers_cpu_nanoseconds():
    types = _types("samples/count", "cpu/nanoseconds")
    assert resolve_value_index(types, MetricFamily.CPU) == 1


def test_cpu_falls_back_to_samples_count():
    types = _types("foo/bar", "samples/count")
    assert resolve_value_index(types, "cpu") == 1


def test_cpu_single_type_uses_index_zero():
    assert resolve_value_index(_types("wall/seconds"), MetricFamily.CPU) == 0


def test_cpu_heuristic_defaults_to_second_type():
    types = _types("a/x", "b/y", "c/z")
    assert resolve_value_index(types, MetricFamily.CPU) == 1


def test_heap_inuse_and_fallbacks():
    heap = _types("alloc_objects/count", "alloc_space/bytes", "inuse_objects/count", "inuse_space/bytes")
    assert resolve_value_index(heap, MetricFamily.HEAP_INUSE) == 3
    assert resolve_value_index(heap[:2], MetricFamily.HEAP_INUSE) == 1
    assert resolve_value_index(_types("a/x", "b/y"), MetricFamily.HEAP_INUSE) == 1


def test_alloc_space_and_fallbacks():
    heap = _types("alloc_objects/count", "alloc_space/bytes", "inuse_objects/count", "inuse_space/bytes")
    assert resolve_value_index(heap, MetricFamily.ALLOC_SPACE) == 1
    assert resolve_value_index(_types("x/count", "allocation/bytes"), MetricFamily.ALLOC_SPACE) == 1
    assert resolve_value_index(_types("x/count", "y/count"), MetricFamily.ALLOC_SPACE) == 0


def test_goroutines_always_index_zero(caplog):
    assert resolve_value_index(_types("goroutine/count"), MetricFamily.GOROUTINES) == 0
    assert "Expected 'goroutines'" in caplog.text


def test_contention_prefers_delay():
    types = _types("contentions/count", "delay/nanoseconds")
    assert resolve_value_index(types, MetricFamily.CONTENTION) == 1
    assert resolve_value_index(types[:1], MetricFamily.CONTENTION) == 0


def test_empty_sample_types_is_unresolvable():
    with pytest.raises(UnresolvableMetricError, match="no sample types"):
        resolve_value_index([], MetricFamily.CPU)
    # also a ValueError for callers that do not know the package hierarchy
    with pytest.raises(ValueError):
        resolve_value_index([], MetricFamily.HEAP_INUSE)


def test_object_count_index_per_family():
    heap = _types("alloc_objects/count", "alloc_space/bytes", "inuse_objects/count", "inuse_space/bytes")
    assert resolve_object_count_index(heap, MetricFamily.HEAP_INUSE) == 2
    assert resolve_object_count_index(heap, MetricFamily.ALLOC_SPACE) == 0
    assert resolve_object_count_index(heap, MetricFamily.CPU) is None


def test_find_sample_type_requires_unit_match():
    types = _types("inuse_space/count", "inuse_space/bytes")
    assert find_sample_type(types, ["inuse_space"], "bytes") == 1
    assert find_sample_type(types, ["missing"], "bytes") is None


def test_is_memory_metric():
    assert is_memory_metric(ValueType(type="inuse_space", unit="bytes"))
    assert is_memory_metric(ValueType(type="alloc_space", unit="bytes"))
    assert not is_memory_metric(ValueType(type="inuse_space", unit="count"))
    assert not is_memory_metric(ValueType(type="cpu", unit="nanoseconds"))
