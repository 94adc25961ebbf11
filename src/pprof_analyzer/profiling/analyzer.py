"""Profile analysis facade.

:class:`ProfileAnalyzer` ties the resolver, the aggregators and the
formatters together: given a decoded profile, a profile kind and an output
format it returns the rendered report. It also renders the snapshot-diff leak
report.

Classes
-------
ProfileAnalyzer
    Configurable entry point (see :meth:`ProfileAnalyzer.from_config`).

Functions
---------
analyze_profile
    One-shot analysis with default settings.
detect_memory_leaks
    One-shot leak report with default settings.
"""

from __future__ import annotations

import logging
from typing import Type, TypeVar

from attrs import define

from pprof_analyzer.config import OUTPUT_FORMATS, AnalyzerConfig
from pprof_analyzer.contracts.convert import to_json
from pprof_analyzer.contracts.models import ErrorPayload
from pprof_analyzer.data.models import FlameNode, FlatSummary
from pprof_analyzer.data.profile import Profile
from pprof_analyzer.profiling.aggregate import Granularity, aggregate_profile, top_n, type_label
from pprof_analyzer.profiling.errors import (
    ProfileAnalysisError,
    UnresolvableMetricError,
    UnsupportedFormatError,
    UnsupportedProfileTypeError,
)
from pprof_analyzer.profiling.export import (
    build_goroutine_report,
    build_structured_report,
    render_flat_markdown,
    render_flat_text,
    render_goroutine_markdown,
    render_goroutine_text,
    render_leak_text,
)
from pprof_analyzer.profiling.flamegraph import build_flame_tree
from pprof_analyzer.profiling.goroutine import summarize_goroutines
from pprof_analyzer.profiling.leaks import LeakDiff, diff_snapshots
from pprof_analyzer.profiling.metrics import MetricFamily, resolve_object_count_index, resolve_value_index

T = TypeVar("T", bound="ProfileAnalyzer")


@define(frozen=True)
class _FlatKind:
    """How a flat profile kind is resolved and which sections it reports."""

    family: MetricFamily
    granularities: tuple[Granularity, ...]
    label_types: bool = False


FLAT_KINDS: dict[str, _FlatKind] = {
    "cpu": _FlatKind(MetricFamily.CPU, (Granularity.FUNCTION,)),
    "heap": _FlatKind(MetricFamily.HEAP_INUSE, (Granularity.FUNCTION,), label_types=True),
    "allocs": _FlatKind(MetricFamily.ALLOC_SPACE, (Granularity.FUNCTION, Granularity.ALLOCATION_SITE)),
    "mutex": _FlatKind(MetricFamily.CONTENTION, (Granularity.FUNCTION,)),
    "block": _FlatKind(MetricFamily.CONTENTION, (Granularity.FUNCTION,)),
}

PROFILE_TYPES: tuple[str, ...] = (*FLAT_KINDS, "goroutine")


class ProfileAnalyzer:
    """Analyze decoded profiles and render reports.

    The constructor takes no arguments and applies the default
    :class:`AnalyzerConfig`; use :meth:`from_config` or :meth:`set_config` to
    change settings.

    Usage
    -----
    >>> analyzer = ProfileAnalyzer()
    >>> text = analyzer.analyze(profile, "cpu", top_n=10)  # doctest: +SKIP

    Attributes
    ----------
    m_config : AnalyzerConfig
        Active configuration.
    m_logger : logging.Logger
        Logger instance for this analyzer.
    """

    def __init__(self) -> None:
        self.m_config = AnalyzerConfig()
        self.m_logger = logging.getLogger(__name__)

    @property
    def config(self) -> AnalyzerConfig:
        """Active configuration (read-only)."""

        return self.m_config

    def set_config(self, cfg: AnalyzerConfig) -> None:
        """Replace the active configuration."""

        self.m_config = cfg

    @classmethod
    def from_config(cls: Type[T], cfg: AnalyzerConfig) -> T:
        """Factory that returns an analyzer using ``cfg``."""

        obj = cls()
        obj.set_config(cfg)
        return obj

    # ------------------------------------------------------------------
    # Flat profiles
    # ------------------------------------------------------------------

    def _top_n(self, top_n_value: int | None) -> int:
        if top_n_value is None or top_n_value <= 0:
            return self.m_config.top_n
        return int(top_n_value)

    def summarize(self, profile: Profile, profile_type: str, top_n_value: int | None = None) -> FlatSummary:
        """Aggregate ``profile`` for a flat profile kind and rank each section.

        Raises
        ------
        UnsupportedProfileTypeError
            If ``profile_type`` is not a flat kind.
        UnresolvableMetricError
            If the profile declares no sample types.
        """

        kind = FLAT_KINDS.get(profile_type)
        if kind is None:
            raise UnsupportedProfileTypeError(f"unsupported profile type: {profile_type!r}")
        n = self._top_n(top_n_value)

        value_index = resolve_value_index(profile.sample_types, kind.family)
        object_index = resolve_object_count_index(profile.sample_types, kind.family)
        granularities = list(kind.granularities)
        if kind.label_types and any(type_label(s, default=None) is not None for s in profile.samples):
            granularities.append(Granularity.TYPE)

        result = aggregate_profile(profile, value_index, object_index=object_index, granularities=granularities)
        st = profile.sample_types[value_index]
        return FlatSummary(
            profile_type=profile_type,
            value_type=st.type,
            value_unit=st.unit,
            total_value=result.total_value,
            requested_top_n=n,
            functions=top_n(result.ranked(Granularity.FUNCTION), n),
            allocation_sites=(
                top_n(result.ranked(Granularity.ALLOCATION_SITE), n)
                if Granularity.ALLOCATION_SITE in granularities
                else None
            ),
            types=top_n(result.ranked(Granularity.TYPE), n) if Granularity.TYPE in granularities else None,
            total_objects=result.total_objects,
            duration_nanos=profile.duration_nanos,
        )

    def flame_tree(self, profile: Profile, profile_type: str) -> FlameNode:
        """Build the flame tree for the metric a flat profile kind selects.

        Raises
        ------
        UnsupportedFormatError
            If ``profile_type`` has no flame graph view (goroutine, unknown kinds).
        UnresolvableMetricError
            If the profile declares no sample types.
        """

        kind = FLAT_KINDS.get(profile_type)
        if kind is None:
            raise UnsupportedFormatError(f"flame graph output is not supported for {profile_type!r} profiles")
        value_index = resolve_value_index(profile.sample_types, kind.family)
        self.m_logger.info("Building flame tree for %s profile using value index %d", profile_type, value_index)
        return build_flame_tree(profile, value_index)

    def analyze(
        self,
        profile: Profile,
        profile_type: str,
        *,
        top_n: int | None = None,
        output_format: str | None = None,
    ) -> str:
        """Analyze ``profile`` and return the rendered report.

        Parameters
        ----------
        profile : Profile
            Decoded profile.
        profile_type : str
            One of ``cpu``, ``heap``, ``allocs``, ``goroutine``, ``mutex``, ``block``.
        top_n : int, optional
            Rows per section; non-positive or ``None`` uses the configured value.
        output_format : str, optional
            ``text``, ``markdown``, ``json`` or ``flamegraph-json``; defaults
            to the configured format.

        Returns
        -------
        str
            Rendered report. JSON outputs degrade to ``{"error": ...}`` when
            building or serializing the payload fails.

        Raises
        ------
        UnsupportedProfileTypeError
            Unknown ``profile_type``.
        UnsupportedFormatError
            Unknown ``output_format`` (or flame graph for goroutine profiles).
        UnresolvableMetricError
            The profile declares no sample types.
        """

        fmt = output_format or self.m_config.output_format
        n = self._top_n(top_n)
        self.m_logger.info("Analyzing %s profile (Top %d, Format: %s)", profile_type, n, fmt)
        if profile_type not in PROFILE_TYPES:
            raise UnsupportedProfileTypeError(f"unsupported profile type: {profile_type!r}")
        if fmt not in OUTPUT_FORMATS:
            raise UnsupportedFormatError(f"unsupported output format: {fmt}")

        if profile_type == "goroutine":
            return self._analyze_goroutines(profile, n, fmt)

        if fmt == "flamegraph-json":
            try:
                return to_json(self.flame_tree(profile, profile_type), indent=None)
            except UnresolvableMetricError:
                raise
            except (ProfileAnalysisError, TypeError, ValueError) as exc:
                self.m_logger.error("Error building flame graph tree: %s", exc)
                return to_json(ErrorPayload(error=f"Failed to build flame graph tree: {exc}"), indent=None)

        summary = self.summarize(profile, profile_type, n)
        if fmt == "text":
            return render_flat_text(summary)
        if fmt == "markdown":
            return render_flat_markdown(summary)
        try:
            return to_json(build_structured_report(summary), indent=2)
        except (TypeError, ValueError) as exc:
            self.m_logger.error("Error marshaling %s analysis to JSON: %s", profile_type, exc)
            return to_json(ErrorPayload(error=f"Failed to marshal result to JSON: {exc}"), indent=None)

    def _analyze_goroutines(self, profile: Profile, n: int, fmt: str) -> str:
        value_index = resolve_value_index(profile.sample_types, MetricFamily.GOROUTINES)
        summary = summarize_goroutines(profile, value_index)
        if fmt == "text":
            return render_goroutine_text(summary, n)
        if fmt == "markdown":
            return render_goroutine_markdown(summary, n)
        if fmt == "json":
            try:
                return to_json(build_goroutine_report(summary, n), indent=2)
            except (TypeError, ValueError) as exc:
                self.m_logger.error("Error marshaling goroutine analysis to JSON: %s", exc)
                return to_json(ErrorPayload(error=f"Failed to marshal result to JSON: {exc}"), indent=None)
        raise UnsupportedFormatError(f"unsupported output format for goroutine profiles: {fmt}")

    # ------------------------------------------------------------------
    # Snapshot diff
    # ------------------------------------------------------------------

    def diff(
        self,
        old: Profile,
        new: Profile,
        threshold: float | None = None,
        limit: int | None = None,
    ) -> LeakDiff:
        """Diff two heap snapshots using configured defaults for unset arguments."""

        th = self.m_config.leak.threshold if threshold is None else threshold
        lim = self.m_config.leak.limit if limit is None or limit <= 0 else limit
        return diff_snapshots(old, new, threshold=th, limit=lim)

    def detect_leaks(
        self,
        old: Profile,
        new: Profile,
        threshold: float | None = None,
        limit: int | None = None,
    ) -> str:
        """Return the leak-detection text report for two heap snapshots.

        Raises
        ------
        MissingBasisMetricError
            If either snapshot lacks ``inuse_space`` bytes.
        """

        return render_leak_text(self.diff(old, new, threshold, limit))


def analyze_profile(profile: Profile, profile_type: str, top_n: int = 5, output_format: str = "text") -> str:
    """Analyze ``profile`` with a default :class:`ProfileAnalyzer`."""

    return ProfileAnalyzer().analyze(profile, profile_type, top_n=top_n, output_format=output_format)


def detect_memory_leaks(old: Profile, new: Profile, threshold: float = 0.1, limit: int = 10) -> str:
    """Render the leak report for two heap snapshots with default settings."""

    return ProfileAnalyzer().detect_leaks(old, new, threshold=threshold, limit=limit)
