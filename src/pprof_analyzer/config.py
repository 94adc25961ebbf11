"""Analyzer configuration (Hydra compose + attrs schema).

Defaults live in ``conf/config.yaml`` next to this module. :func:`load_config`
composes them with Hydra (dot-list overrides such as ``"leak.threshold=0.2"``)
and structures the result into :class:`AnalyzerConfig` through ``cattrs``.

Classes
-------
LeakConfig
    Snapshot-diff defaults (growth threshold and row limit).
LoggingConfig
    Level and format applied by :func:`configure_logging`.
AnalyzerConfig
    Top-level configuration consumed by ``ProfileAnalyzer.from_config``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from attrs import define, field
from attrs.validators import in_, instance_of
from cattrs import Converter
from hydra import compose, initialize_config_dir
from omegaconf import DictConfig, OmegaConf  # type: ignore[import-untyped]

CONFIG_DIR = Path(__file__).resolve().parent / "conf"
CONFIG_NAME = "config"

OUTPUT_FORMATS = ("text", "markdown", "json", "flamegraph-json")


def _validate_positive_int(_instance: object, attribute: object, value: int) -> None:
    """Ensure an integer setting is at least 1."""

    if value < 1:
        name = getattr(attribute, "name", "value")
        raise ValueError(f"{name} must be >= 1, got {value!r}")


@define(kw_only=True)
class LeakConfig:
    """Snapshot-diff defaults."""

    threshold: float = field(default=0.1, converter=float)
    limit: int = field(default=10, validator=[instance_of(int), _validate_positive_int])


@define(kw_only=True)
class LoggingConfig:
    """Logging setup for hosts that let the package configure logging."""

    level: str = field(default="INFO", validator=[instance_of(str)])
    format: str = field(default="%(asctime)s %(levelname)s %(name)s: %(message)s")


@define(kw_only=True)
class AnalyzerConfig:
    """Top-level analyzer configuration.

    Parameters
    ----------
    top_n : int, default=5
        Rows per ranked section.
    output_format : str, default='text'
        One of ``text``, ``markdown``, ``json``, ``flamegraph-json``.
    leak : LeakConfig
        Snapshot-diff defaults.
    logging : LoggingConfig
        Logging setup.
    """

    top_n: int = field(default=5, validator=[instance_of(int), _validate_positive_int])
    output_format: str = field(default="text", validator=[in_(OUTPUT_FORMATS)])
    leak: LeakConfig = field(factory=LeakConfig)
    logging: LoggingConfig = field(factory=LoggingConfig)


_converter = Converter()


def from_dictconfig(cfg: DictConfig) -> AnalyzerConfig:
    """Structure a composed OmegaConf config into :class:`AnalyzerConfig`."""

    container = OmegaConf.to_container(cfg, resolve=True)
    return _converter.structure(container, AnalyzerConfig)


def load_config(overrides: Sequence[str] | None = None, config_dir: str | Path | None = None) -> AnalyzerConfig:
    """Compose the analyzer configuration with Hydra.

    Parameters
    ----------
    overrides : sequence of str, optional
        Hydra dot-list overrides, e.g. ``["top_n=10", "output_format=json"]``.
    config_dir : str or Path, optional
        Directory holding ``config.yaml``; defaults to the packaged ``conf/``.

    Examples
    --------
    >>> load_config(["top_n=10"]).top_n  # doctest: +SKIP
    10
    """

    conf_dir = Path(config_dir).resolve() if config_dir is not None else CONFIG_DIR
    with initialize_config_dir(version_base=None, config_dir=str(conf_dir)):
        cfg = compose(config_name=CONFIG_NAME, overrides=list(overrides or []))
    return from_dictconfig(cfg)


def configure_logging(cfg: AnalyzerConfig) -> None:
    """Attach a stream handler to the package logger using ``cfg.logging``.

    Repeated calls only update the level; a logger that already has a
    handler keeps it.
    """

    pkg_logger = logging.getLogger("pprof_analyzer")
    pkg_logger.setLevel(cfg.logging.level.upper())
    if pkg_logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(cfg.logging.format))
    pkg_logger.addHandler(handler)
