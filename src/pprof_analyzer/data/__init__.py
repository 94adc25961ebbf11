"""Data models for ``pprof_analyzer``.

This package hosts the read-only decoded-profile model consumed by the
analyzers and the attrs-based result models they produce.
"""

from __future__ import annotations

from .models import AggregateStat, FlameNode, FlatSummary, GoroutineStack, LeakCandidate
from .profile import Function, Line, Location, Profile, Sample, ValueType

__all__ = [
    # Decoded profile (input)
    "ValueType",
    "Function",
    "Line",
    "Location",
    "Sample",
    "Profile",
    # Analysis results
    "AggregateStat",
    "FlameNode",
    "LeakCandidate",
    "FlatSummary",
    "GoroutineStack",
]
