"""Read-only sample model for decoded profiles.

The analysis engine never touches the pprof wire format. An external decoder
produces a :class:`Profile` (or a plain mapping that :meth:`Profile.from_dict`
structures through the shared ``cattrs`` converter) and the analyzers only read
it.

Classes
-------
ValueType
    Sample-type descriptor (``type`` name plus ``unit``).
Function
    Function identity with its source file.
Line
    A source line inside a location; carries an optional function.
Location
    One stack frame; several lines only when calls were inlined.
Sample
    Numeric values plus the call stack (innermost first) and labels.
Profile
    Complete decoded profile.
"""

from __future__ import annotations

from typing import Any, Mapping

from attrs import define, field
from attrs.validators import instance_of


#: Label mapping shape: every key maps to its values, first value wins for consumers.
LabelMap = dict[str, tuple[str, ...]]


def to_label_map(value: Mapping[str, Any] | None) -> LabelMap:
    """Normalize labels so every key maps to a tuple of string values."""

    if not value:
        return {}
    out: LabelMap = {}
    for key, vals in value.items():
        if isinstance(vals, str):
            out[str(key)] = (vals,)
        else:
            out[str(key)] = tuple(str(v) for v in vals)
    return out


@define(frozen=True, kw_only=True)
class ValueType:
    """Sample-type descriptor, e.g. ``ValueType(type="cpu", unit="nanoseconds")``."""

    type: str = field(validator=[instance_of(str)])
    unit: str = field(validator=[instance_of(str)])


@define(frozen=True, kw_only=True)
class Function:
    """A profiled function."""

    id: int = field(default=0)
    name: str = field(default="", validator=[instance_of(str)])
    filename: str = field(default="", validator=[instance_of(str)])


@define(frozen=True, kw_only=True)
class Line:
    """Source line within a location."""

    function: Function | None = field(default=None)
    line: int = field(default=0)


@define(frozen=True, kw_only=True)
class Location:
    """A single stack frame."""

    id: int = field(default=0)
    address: int = field(default=0)
    lines: tuple[Line, ...] = field(factory=tuple, converter=tuple)


@define(frozen=True, kw_only=True)
class Sample:
    """One recorded observation.

    Parameters
    ----------
    values : tuple[int, ...]
        One value per declared sample type.
    locations : tuple[Location, ...]
        Call stack, innermost frame first.
    labels : dict[str, tuple[str, ...]]
        String labels; multi-valued labels keep every value but consumers only
        read the first one.
    """

    values: tuple[int, ...] = field(factory=tuple, converter=tuple)
    locations: tuple[Location, ...] = field(factory=tuple, converter=tuple)
    labels: LabelMap = field(factory=dict, converter=to_label_map)

    def label(self, key: str) -> str | None:
        """Return the first value of label ``key`` or ``None`` when absent."""

        vals = self.labels.get(key)
        if not vals:
            return None
        return vals[0]


@define(frozen=True, kw_only=True)
class Profile:
    """Decoded profile handed over by an external decoder.

    Parameters
    ----------
    sample_types : tuple[ValueType, ...]
        Ordered sample-type descriptors; sample values are indexed by position.
    samples : tuple[Sample, ...]
        Recorded samples.
    duration_nanos : int, default=0
        Total profile duration; ``0`` when the decoder did not provide one.

    Examples
    --------
    >>> p = Profile.from_dict({"sample_types": [{"type": "cpu", "unit": "nanoseconds"}], "samples": []})
    >>> p.sample_types[0].unit
    'nanoseconds'
    """

    sample_types: tuple[ValueType, ...] = field(factory=tuple, converter=tuple)
    samples: tuple[Sample, ...] = field(factory=tuple, converter=tuple)
    duration_nanos: int = field(default=0, validator=[instance_of(int)])

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Profile":
        """Structure a plain mapping into a :class:`Profile` using ``cattrs``."""

        from pprof_analyzer.contracts.convert import converter

        return converter.structure(dict(payload), cls)

    def to_dict(self) -> dict[str, Any]:
        """Unstructure this profile into plain Python containers."""

        from pprof_analyzer.contracts.convert import converter

        return converter.unstructure(self)

    def sample_type_names(self) -> list[str]:
        """Return ``type/unit`` strings for logging."""

        return [f"{st.type}/{st.unit}" for st in self.sample_types]
