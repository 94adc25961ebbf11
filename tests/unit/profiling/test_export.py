import json
from pathlib import Path

from pprof_analyzer.contracts.convert import converter
from pprof_analyzer.contracts.models import StructuredReport
from pprof_analyzer.data.models import AggregateStat, FlatSummary, GoroutineStack, LeakCandidate
from pprof_analyzer.profiling.export import (
    build_goroutine_report,
    build_structured_report,
    render_flat_markdown,
    render_flat_text,
    render_goroutine_text,
    render_leak_text,
    write_json,
    write_report_markdown,
)
from pprof_analyzer.profiling.goroutine import GoroutineSummary
from pprof_analyzer.profiling.leaks import LeakDiff


def _cpu_summary() -> FlatSummary:
    return FlatSummary(
        profile_type="cpu",
        value_type="cpu",
        value_unit="nanoseconds",
        total_value=1000,
        requested_top_n=5,
        functions=[AggregateStat(key="A", value=600), AggregateStat(key="B", value=400)],
    )


def _heap_summary() -> FlatSummary:
    return FlatSummary(
        profile_type="heap",
        value_type="inuse_space",
        value_unit="bytes",
        total_value=3072,
        requested_top_n=5,
        functions=[AggregateStat(key="B", value=2048, object_count=20), AggregateStat(key="A", value=1024)],
        types=[AggregateStat(key="T2", value=2048, object_count=20)],
        total_objects=20,
    )


def test_render_flat_text_cpu():
    text = render_flat_text(_cpu_summary())
    lines = text.splitlines()
    assert lines[0] == "CPU Profile Analysis (Top 5 Functions by Flat Time)"
    assert lines[1] == "Total Samples/Time (nanoseconds): 1.00us"
    assert "Total Duration: 1.00us" in lines
    assert f"{'600ns':<15} {'60.00':<15} A" in lines
    assert "===" not in text


def test_render_flat_text_heap_sections_and_objects():
    text = render_flat_text(_heap_summary())
    assert text.startswith("Heap Profile Analysis (Top 5 Functions by inuse_space)")
    assert "=== By Function ===" in text
    assert "=== By Type ===" in text
    assert "B (20 objects)" in text
    assert "Total Objects: 20" in text


def test_render_flat_markdown_contains_rows():
    md = render_flat_markdown(_cpu_summary())
    assert "CPU Profile Analysis" in md
    assert "600ns" in md and "60.00" in md
    assert "By Function" in md


def test_structured_report_round_trip():
    report = build_structured_report(_cpu_summary())
    assert report.top_n == 2
    assert report.total_duration_nanos == 1000
    data = json.loads(json.dumps(converter.unstructure(report)))
    assert data["totalValueFormatted"] == "1.00us"
    assert data["functions"][0]["functionName"] == "A"
    assert "objectCount" not in data["functions"][0]
    assert "allocationSites" not in data
    again = converter.structure(data, StructuredReport)
    assert again == report


def test_structured_report_heap_types():
    report = build_structured_report(_heap_summary())
    assert report.total_duration_nanos is None
    assert report.types[0].avg_size == 102
    assert report.types[0].avg_size_formatted == "102 B"
    assert report.functions[0].object_count == 20
    assert report.functions[1].object_count is None


def test_write_report_markdown_creates_file(tmp_path: Path):
    out_md = tmp_path / "cpu.md"
    write_report_markdown(_cpu_summary(), str(out_md))
    assert out_md.exists(), f"Expected file at {out_md}"
    assert "CPU Profile Analysis" in out_md.read_text(encoding="utf-8")


def test_write_json(tmp_path: Path):
    out = tmp_path / "report.json"
    write_json(build_structured_report(_cpu_summary()), out)
    assert json.loads(out.read_text(encoding="utf-8"))["profileType"] == "cpu"


def test_goroutine_views():
    summary = GoroutineSummary(
        value_type="goroutine",
        value_unit="count",
        total=9,
        stacks=[GoroutineStack(count=7, frames=["main.worker\n\tmain.go:2"]), GoroutineStack(count=2, frames=["f"])],
    )
    text = render_goroutine_text(summary, 1)
    assert "Total Goroutines (goroutine/count): 9" in text
    assert "7 goroutines with stack:" in text
    assert "2 goroutines" not in text
    report = build_goroutine_report(summary, 5)
    data = converter.unstructure(report)
    assert data["profileType"] == "goroutine"
    assert data["topN"] == 2
    assert data["stacks"][0]["stackTrace"] == ["main.worker\n\tmain.go:2"]


def test_leak_report_text():
    diff = LeakDiff(
        threshold=0.1,
        match_count=1,
        candidates=[
            LeakCandidate(
                type_name="T2",
                old_value=1024,
                new_value=3072,
                growth=2048,
                growth_percent=200.0,
                old_count=10,
                new_count=30,
                count_growth=20,
                count_growth_percent=200.0,
            )
        ],
    )
    text = render_leak_text(diff)
    assert "Found 1 types with significant memory growth (threshold: 10.0%)" in text
    assert "T2" in text and "2.00 KB" in text and "200.00%" in text
    assert "Objects: 10 → 30, +20" in text
    assert "Recommendations:" in text


def test_leak_report_without_candidates():
    text = render_leak_text(LeakDiff(threshold=0.1))
    assert "No significant memory growth detected." in text
    assert "Recommendations" not in text


def test_duration_is_estimated_for_cpu_only():
    mutex = FlatSummary(
        profile_type="mutex",
        value_type="delay",
        value_unit="nanoseconds",
        total_value=2_000_000,
        requested_top_n=5,
        functions=[AggregateStat(key="lock", value=2_000_000)],
    )
    assert "Total Duration" not in render_flat_text(mutex)
    assert "Total Duration" not in render_flat_markdown(mutex)
    assert build_structured_report(mutex).total_duration_nanos is None

    recorded = FlatSummary(
        profile_type="mutex",
        value_type="delay",
        value_unit="nanoseconds",
        total_value=2_000_000,
        requested_top_n=5,
        duration_nanos=30_000_000_000,
    )
    assert "Total Duration: 30.00s" in render_flat_text(recorded)


def test_leak_report_signs_shrinking_object_count():
    diff = LeakDiff(
        threshold=0.1,
        match_count=1,
        candidates=[
            LeakCandidate(
                type_name="T",
                old_value=1024,
                new_value=4096,
                growth=3072,
                growth_percent=300.0,
                old_count=10,
                new_count=5,
                count_growth=-5,
                count_growth_percent=-50.0,
            )
        ],
    )
    assert "Objects: 10 → 5, -5, -50.00%" in render_leak_text(diff)
