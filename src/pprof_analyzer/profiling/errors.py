"""Exceptions raised by the profile analysis engine.

Every error derives from :class:`ProfileAnalysisError` and from the built-in
exception a caller would naturally catch for the same failure (``ValueError``
for bad input, ``IndexError`` for an out-of-range value index).
"""

from __future__ import annotations


class ProfileAnalysisError(Exception):
    """Base class for analysis failures."""


class UnresolvableMetricError(ProfileAnalysisError, ValueError):
    """No sample type matches the requested metric family."""


class InvalidValueIndexError(ProfileAnalysisError, IndexError):
    """A value index lies outside the declared sample-type range."""

    def __init__(self, index: int, count: int) -> None:
        super().__init__(f"invalid value index {index} for profile with {count} sample types")
        self.index = index
        self.count = count


class MissingBasisMetricError(ProfileAnalysisError, ValueError):
    """A snapshot lacks the ``inuse_space`` metric needed for diffing."""


class UnsupportedFormatError(ProfileAnalysisError, ValueError):
    """The requested output format is not supported for this profile kind."""


class UnsupportedProfileTypeError(ProfileAnalysisError, ValueError):
    """The requested profile kind is unknown."""
