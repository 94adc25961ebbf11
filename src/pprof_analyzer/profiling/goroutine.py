"""Goroutine profile aggregation by full stack."""

from __future__ import annotations

import logging

from attrs import define, field

from pprof_analyzer.data.models import GoroutineStack
from pprof_analyzer.data.profile import Profile

logger = logging.getLogger(__name__)


@define(kw_only=True)
class GoroutineSummary:
    """Goroutine counts grouped by identical stacks (descending by count)."""

    value_type: str
    value_unit: str
    total: int = 0
    stacks: list[GoroutineStack] = field(factory=list)


def summarize_goroutines(profile: Profile, value_index: int = 0) -> GoroutineSummary:
    """Group goroutine samples by stack identity.

    A stack's identity is the sequence of ``function;file;line`` of the first
    line of every location that has a function. Samples whose stack yields no
    frame are counted in the total but not listed.
    """

    st = profile.sample_types[value_index]
    summary = GoroutineSummary(value_type=st.type, value_unit=st.unit)
    by_stack: dict[tuple[str, ...], GoroutineStack] = {}

    for sample in profile.samples:
        if len(sample.values) <= value_index:
            continue
        count = sample.values[value_index]
        summary.total += count

        key: list[str] = []
        frames: list[str] = []
        for loc in sample.locations:
            if not loc.lines or loc.lines[0].function is None:
                continue
            line = loc.lines[0]
            fn = line.function
            key.append(f"{fn.name};{fn.filename};{line.line}")
            frames.append(f"{fn.name}\n\t{fn.filename}:{line.line}")
        if not key:
            continue

        entry = by_stack.get(tuple(key))
        if entry is None:
            by_stack[tuple(key)] = GoroutineStack(count=count, frames=frames)
        else:
            entry.count += count

    summary.stacks = sorted(by_stack.values(), key=lambda s: s.count, reverse=True)
    logger.info("Goroutine summary: total=%d unique_stacks=%d", summary.total, len(summary.stacks))
    return summary
