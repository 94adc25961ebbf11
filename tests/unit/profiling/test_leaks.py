import pytest

from pprof_analyzer.data.profile import Function, Line, Location, Profile, Sample, ValueType
from pprof_analyzer.profiling.errors import MissingBasisMetricError
from pprof_analyzer.profiling.leaks import diff_snapshots, growth_percent

_STACK = [Location(id=1, lines=[Line(function=Function(id=1, name="alloc", filename="a.go"), line=5)])]


def _heap(sizes: dict[str, tuple[int, int]]) -> Profile:
    """Snapshot with one sample per type: ``{type: (bytes, objects)}``."""

    return Profile(
        sample_types=[ValueType(type="inuse_space", unit="bytes"), ValueType(type="inuse_objects", unit="count")],
        samples=[Sample(values=[b, n], locations=_STACK, labels={"type": [t]}) for t, (b, n) in sizes.items()],
    )


OLD = _heap({"T1": (1000, 10), "T2": (1000, 10)})
NEW = _heap({"T1": (1050, 10), "T2": (3000, 30), "T3": (500, 5)})


def test_default_threshold_keeps_growing_and_new_types():
    diff = diff_snapshots(OLD, NEW, threshold=0.10)
    assert diff.match_count == 2
    assert [c.type_name for c in diff.candidates] == ["T2", "T3"]
    t2, t3 = diff.candidates
    assert (t2.old_value, t2.new_value, t2.growth) == (1000, 3000, 2000)
    assert t2.growth_percent == 200.0
    assert (t2.old_count, t2.new_count, t2.count_growth) == (10, 30, 20)
    assert t3.old_value == 0
    assert t3.growth_percent == 100.0


def test_threshold_is_inclusive():
    diff = diff_snapshots(OLD, NEW, threshold=2.00)
    assert [c.type_name for c in diff.candidates] == ["T2"]


def test_limit_truncates_but_match_count_does_not():
    diff = diff_snapshots(OLD, NEW, threshold=0.0, limit=2)
    assert diff.match_count == 3
    assert len(diff.candidates) == 2


def test_non_positive_limit_uses_default():
    diff = diff_snapshots(OLD, NEW, threshold=0.0, limit=0)
    assert len(diff.candidates) == 3


def test_shrinking_type_is_not_reported():
    diff = diff_snapshots(NEW, OLD, threshold=0.10)
    assert diff.candidates == []


def test_missing_inuse_space_is_an_error():
    cpu = Profile(sample_types=[ValueType(type="cpu", unit="nanoseconds")], samples=[])
    with pytest.raises(MissingBasisMetricError, match="old profile"):
        diff_snapshots(cpu, NEW)
    with pytest.raises(MissingBasisMetricError, match="new profile"):
        diff_snapshots(OLD, cpu)


def test_growth_percent_edges():
    assert growth_percent(0, 0) == 0.0
    assert growth_percent(0, 1) == 100.0
    assert growth_percent(200, 100) == -50.0


def test_doubling_type_against_both_thresholds():
    old, new = _heap({"T": (1000, 10)}), _heap({"T": (2000, 20)})
    diff = diff_snapshots(old, new, threshold=0.10)
    assert len(diff.candidates) == 1
    assert diff.candidates[0].growth == 1000
    assert diff.candidates[0].growth_percent == 100.0
    assert diff.candidates[0].count_growth_percent == 100.0
    assert diff_snapshots(old, new, threshold=2.00).candidates == []


def test_unchanged_type_listed_only_without_threshold():
    old, new = _heap({"T": (1000, 10)}), _heap({"T": (1000, 10)})
    assert diff_snapshots(old, new, threshold=0.10).candidates == []
    diff = diff_snapshots(old, new, threshold=0.0)
    assert len(diff.candidates) == 1
    assert diff.candidates[0].growth == 0
    assert diff.candidates[0].growth_percent == 0.0
