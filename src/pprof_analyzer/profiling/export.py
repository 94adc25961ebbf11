"""Presentation formatters for flat, goroutine and leak reports.

All ``render_*``/``build_*`` helpers are pure: they turn already-aggregated
data into a string or a contract payload. ``write_*`` helpers persist the
same views to disk.

Functions
---------
build_structured_report
    Convert a :class:`FlatSummary` into the JSON contract payload.
render_flat_text
    Fixed-width text table for a :class:`FlatSummary`.
render_flat_markdown
    Markdown tables (via mdutils) for a :class:`FlatSummary`.
render_goroutine_text / render_goroutine_markdown / build_goroutine_report
    Views over a :class:`GoroutineSummary`.
render_leak_text
    Text report for a :class:`LeakDiff`.
write_report_markdown / write_json
    File writers.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from mdutils.mdutils import MdUtils  # type: ignore[import-untyped]

from pprof_analyzer.contracts.convert import to_json
from pprof_analyzer.contracts.models import (
    AllocationSiteEntry,
    FunctionEntry,
    GoroutineReport,
    GoroutineStackEntry,
    StructuredReport,
    TypeEntry,
)
from pprof_analyzer.data.models import AggregateStat, FlatSummary
from pprof_analyzer.profiling.formatting import format_bytes, format_percent, format_sample_value, format_value
from pprof_analyzer.profiling.goroutine import GoroutineSummary
from pprof_analyzer.profiling.leaks import LeakDiff

SEPARATOR = "-" * 50

_TITLES = {
    "cpu": "CPU Profile Analysis",
    "heap": "Heap Profile Analysis",
    "allocs": "Allocation Profile Analysis",
    "mutex": "Mutex Profile Analysis",
    "block": "Block Profile Analysis",
}

_LEAK_RECOMMENDATIONS = [
    "Focus on types with both high absolute growth and high percentage growth",
    "Look for objects that grow in count but not significantly in size (may indicate collection leaks)",
    "Compare multiple snapshots over time to confirm consistent growth patterns",
]


def _metric_label(summary: FlatSummary) -> str:
    return "Flat Time" if summary.profile_type == "cpu" else summary.value_type


def _title(summary: FlatSummary) -> str:
    base = _TITLES.get(summary.profile_type, f"{summary.profile_type.capitalize()} Profile Analysis")
    return f"{base} (Top {summary.requested_top_n} Functions by {_metric_label(summary)})"


def _total_line(summary: FlatSummary) -> str:
    formatted = format_value(summary.total_value, summary.value_unit)
    if summary.profile_type == "cpu":
        return f"Total Samples/Time ({summary.value_unit}): {formatted}"
    return f"Total {summary.value_type} ({summary.value_unit}): {formatted}"


def _sections(summary: FlatSummary) -> list[tuple[str, str, list[AggregateStat]]]:
    """Return ``(section title, name column, rows)`` for each present section."""

    out = [("By Function", "Function Name", summary.functions)]
    if summary.allocation_sites is not None:
        out.append(("By Allocation Site", "Allocation Site", summary.allocation_sites))
    if summary.types is not None:
        out.append(("By Type", "Type", summary.types))
    return out


def _object_suffix(stat: AggregateStat) -> str:
    return f" ({stat.object_count} objects)" if stat.object_count > 0 else ""


def estimated_duration_nanos(summary: FlatSummary) -> int:
    """Return the profile duration; CPU profiles without one fall back to the sampled time."""

    if summary.duration_nanos > 0:
        return summary.duration_nanos
    if summary.profile_type == "cpu" and summary.total_value > 0 and summary.value_unit == "nanoseconds":
        return summary.total_value
    return 0


def render_flat_text(summary: FlatSummary) -> str:
    """Render a flat summary as a fixed-width text report.

    Examples
    --------
    >>> s = FlatSummary(profile_type="heap", value_type="inuse_space", value_unit="bytes",
    ...                 total_value=0, requested_top_n=5)
    >>> render_flat_text(s).splitlines()[0]
    'Heap Profile Analysis (Top 5 Functions by inuse_space)'
    """

    lines = [_title(summary), _total_line(summary)]
    duration = estimated_duration_nanos(summary)
    if duration > 0:
        lines.append(f"Total Duration: {format_sample_value(duration, 'nanoseconds')}")
    if summary.total_objects > 0:
        lines.append(f"Total Objects: {summary.total_objects}")

    sections = _sections(summary)
    for section, name_col, rows in sections:
        if len(sections) > 1:
            lines.append("")
            lines.append(f"=== {section} ===")
        lines.append(SEPARATOR)
        lines.append(f"{_metric_label(summary):<15} {'%':<15} {name_col}")
        lines.append(SEPARATOR)
        for stat in rows:
            pct = format_percent(stat.value, summary.total_value)
            value = format_value(stat.value, summary.value_unit)
            lines.append(f"{value:<15} {pct:<15.2f} {stat.key}{_object_suffix(stat)}")
    return "\n".join(lines) + "\n"


def render_flat_markdown(summary: FlatSummary) -> str:
    """Render a flat summary as Markdown tables using mdutils."""

    md = MdUtils(file_name="")
    _fill_flat_markdown(md, summary)
    return md.get_md_text().strip() + "\n"


def _fill_flat_markdown(md: MdUtils, summary: FlatSummary) -> None:
    md.new_header(level=1, title=_title(summary))
    items = [_total_line(summary)]
    duration = estimated_duration_nanos(summary)
    if duration > 0:
        items.append(f"Total Duration: {format_sample_value(duration, 'nanoseconds')}")
    if summary.total_objects > 0:
        items.append(f"Total Objects: {summary.total_objects}")
    md.new_list(items=items)

    for section, name_col, rows in _sections(summary):
        md.new_header(level=2, title=section)
        if not rows:
            md.new_paragraph("No entries.")
            continue
        # mdutils expects a flattened list row-wise (including header)
        table_data: list[str] = [_metric_label(summary), "%", name_col, "Objects"]
        for stat in rows:
            table_data.extend(
                [
                    format_value(stat.value, summary.value_unit),
                    f"{format_percent(stat.value, summary.total_value):.2f}",
                    stat.key,
                    str(stat.object_count) if stat.object_count > 0 else "",
                ]
            )
        md.new_table(columns=4, rows=len(rows) + 1, text=table_data, text_align="left")


def _avg(stat: AggregateStat) -> tuple[int | None, str | None]:
    avg = stat.avg_size
    if avg is None:
        return None, None
    return avg, format_bytes(avg)


def build_structured_report(summary: FlatSummary) -> StructuredReport:
    """Convert a flat summary into the machine-readable report payload."""

    total = summary.total_value
    unit = summary.value_unit
    functions = [
        FunctionEntry(
            function_name=s.key,
            value=s.value,
            value_formatted=format_value(s.value, unit),
            percentage=format_percent(s.value, total),
            object_count=s.object_count if s.object_count > 0 else None,
        )
        for s in summary.functions
    ]

    sites: list[AllocationSiteEntry] | None = None
    if summary.allocation_sites is not None:
        sites = []
        for s in summary.allocation_sites:
            avg, avg_fmt = _avg(s)
            sites.append(
                AllocationSiteEntry(
                    site=s.key,
                    value=s.value,
                    value_formatted=format_value(s.value, unit),
                    percentage=format_percent(s.value, total),
                    object_count=s.object_count if s.object_count > 0 else None,
                    avg_size=avg,
                    avg_size_formatted=avg_fmt,
                )
            )

    types: list[TypeEntry] | None = None
    if summary.types is not None:
        types = []
        for s in summary.types:
            avg, avg_fmt = _avg(s)
            types.append(
                TypeEntry(
                    type_name=s.key,
                    value=s.value,
                    value_formatted=format_value(s.value, unit),
                    percentage=format_percent(s.value, total),
                    object_count=s.object_count if s.object_count > 0 else None,
                    avg_size=avg,
                    avg_size_formatted=avg_fmt,
                )
            )

    duration = estimated_duration_nanos(summary) if summary.profile_type == "cpu" else 0
    return StructuredReport(
        profile_type=summary.profile_type,
        value_type=summary.value_type,
        value_unit=unit,
        total_value=total,
        total_value_formatted=format_value(total, unit),
        total_duration_nanos=duration or None,
        total_objects=summary.total_objects or None,
        top_n=len(functions),
        functions=functions,
        allocation_sites=sites,
        types=types,
    )


def render_goroutine_text(summary: GoroutineSummary, top_n: int) -> str:
    """Render the top goroutine stacks as text."""

    lines = [
        f"Goroutine Profile Analysis (Top {top_n} Stacks by Count)",
        f"Total Goroutines ({summary.value_type}/{summary.value_unit}): {summary.total}",
        SEPARATOR,
    ]
    for stack in summary.stacks[: max(top_n, 0)]:
        lines.append("")
        lines.append(f"{stack.count} goroutines with stack:")
        lines.extend(f"  {frame}" for frame in stack.frames)
        lines.append(SEPARATOR)
    return "\n".join(lines) + "\n"


def render_goroutine_markdown(summary: GoroutineSummary, top_n: int) -> str:
    """Render the top goroutine stacks as Markdown using mdutils."""

    md = MdUtils(file_name="")
    md.new_header(level=1, title=f"Goroutine Profile Analysis (Top {top_n} Stacks by Count)")
    md.new_paragraph(f"Total Goroutines ({summary.value_type}/{summary.value_unit}): {summary.total}")
    for i, stack in enumerate(summary.stacks[: max(top_n, 0)], start=1):
        md.new_header(level=2, title=f"Stack {i}: {stack.count} goroutines")
        md.insert_code("\n".join(stack.frames), language="text")
    return md.get_md_text().strip() + "\n"


def build_goroutine_report(summary: GoroutineSummary, top_n: int) -> GoroutineReport:
    """Convert a goroutine summary into its JSON payload."""

    rows = summary.stacks[: max(top_n, 0)]
    return GoroutineReport(
        total_goroutines=summary.total,
        top_n=len(rows),
        stacks=[GoroutineStackEntry(count=s.count, stack_trace=list(s.frames)) for s in rows],
    )


def render_leak_text(diff: LeakDiff) -> str:
    """Render a snapshot diff as the leak-detection text report."""

    lines = ["Memory Leak Detection Report", "==========================", ""]
    if not diff.candidates:
        lines.append("No significant memory growth detected.")
        return "\n".join(lines) + "\n"

    lines.append(
        f"Found {diff.match_count} types with significant memory growth (threshold: {diff.threshold * 100:.1f}%)"
    )
    lines.append("")
    lines.append("Top Potential Memory Leaks:")
    lines.append(SEPARATOR)
    lines.append(f"{'Type':<20} {'Old Size':<15} {'New Size':<15} {'Growth':<15} Growth %")
    lines.append(SEPARATOR)
    for c in diff.candidates:
        row = (
            f"{c.type_name:<20} {format_bytes(c.old_value):<15} {format_bytes(c.new_value):<15} "
            f"{format_bytes(c.growth):<15} {c.growth_percent:.2f}%"
        )
        if c.old_count > 0 or c.new_count > 0:
            row += (
                f" (Objects: {c.old_count} → {c.new_count}, {c.count_growth:+d}, "
                f"{c.count_growth_percent:.2f}%)"
            )
        lines.append(row)

    lines.append("")
    lines.append("Recommendations:")
    lines.extend(f"{i}. {text}" for i, text in enumerate(_LEAK_RECOMMENDATIONS, start=1))
    return "\n".join(lines) + "\n"


def write_report_markdown(summary: FlatSummary, path: str) -> None:
    """Write a flat summary as Markdown using mdutils.

    Parameters
    ----------
    summary : FlatSummary
        Ranked flat-profile view.
    path : str
        Destination file path (created/overwritten). Accepts ``.md`` suffix; it is stripped
        to satisfy mdutils' file naming (which appends ``.md`` automatically).
    """

    file_base = path[:-3] if path.endswith(".md") else path
    md = MdUtils(file_name=file_base)
    _fill_flat_markdown(md, summary)
    md.create_md_file()


def write_json(payload: Any, output_path: Path) -> None:
    """Write a contract payload or flame tree as indented JSON."""

    Path(output_path).write_text(to_json(payload, indent=2), encoding="utf-8")
