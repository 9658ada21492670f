"""Runtime configuration helpers for acquisition and feature extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional

import yaml

from .acquisition import AcquisitionConfig

if TYPE_CHECKING:  # pragma: no cover
    from ..analysis.features import SpectralFeatureExtractor

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AcquisitionSettings:
    """
    Tuning knobs for one acquisition session.

    The defaults assume a 512 Hz biosignal analysed in 512-sample blocks, so
    each FFT bin is exactly 1 Hz wide.
    """

    sample_rate: int = 512
    sample_size: int = 512
    window: str = "hann"
    signal_breadth: Optional[float] = None
    filter_order: int = 4

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "AcquisitionSettings":
        """
        Construct settings from a mapping such as a parsed YAML file.

        Supported shape::

            acquisition:
              sample_rate: 512
              sample_size: 512
              window: hann
              signal_breadth: 4096
              filter_order: 4

        A flat mapping without the ``acquisition`` block is accepted too.
        Unknown keys are ignored and values that cannot be coerced fall back
        to their defaults.
        """
        payload: Mapping[str, Any] = mapping or {}
        block = payload.get("acquisition") if isinstance(payload, Mapping) else None
        if not isinstance(block, Mapping):
            block = payload if isinstance(payload, Mapping) else {}

        defaults = cls()
        coercers: Dict[str, Callable[[Any], Any]] = {
            "sample_rate": int,
            "sample_size": int,
            "window": lambda v: str(v).strip(),
            "signal_breadth": lambda v: None if v is None else float(v),
            "filter_order": int,
        }
        values: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in block:
                continue
            raw = block[f.name]
            try:
                values[f.name] = coercers[f.name](raw)
            except (TypeError, ValueError):
                logger.warning(
                    "Ignoring bad %s value %r; using %r",
                    f.name,
                    raw,
                    getattr(defaults, f.name),
                )
        return cls(**values)

    def to_mapping(self) -> dict:
        """Serialize the settings back into a mapping suitable for YAML."""
        return {
            "acquisition": {
                "sample_rate": int(self.sample_rate),
                "sample_size": int(self.sample_size),
                "window": self.window,
                "signal_breadth": self.signal_breadth,
                "filter_order": int(self.filter_order),
            }
        }

    def build_config(self) -> AcquisitionConfig:
        """Return a validated :class:`AcquisitionConfig` for these settings."""
        return AcquisitionConfig(self.sample_rate, self.sample_size)


def load_settings(path: str | Path | None) -> AcquisitionSettings:
    """
    Load settings from ``path``.

    Missing files fall back to default :class:`AcquisitionSettings`.
    """
    if path is None:
        return AcquisitionSettings()
    cfg_path = Path(path)
    if not cfg_path.exists():
        logger.info("No settings file at %s; using defaults", cfg_path)
        return AcquisitionSettings()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return AcquisitionSettings.from_mapping(raw)


def save_settings(path: str | Path, settings: AcquisitionSettings) -> None:
    """Persist ``settings`` as YAML, creating parent folders as needed."""
    cfg_path = Path(path)
    if cfg_path.parent and not cfg_path.parent.exists():
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(
            settings.to_mapping(),
            fh,
            default_flow_style=False,
            sort_keys=False,
        )


def build_extractor(settings: AcquisitionSettings) -> "SpectralFeatureExtractor":
    """Create an extractor bound to a fresh config built from ``settings``."""
    from ..analysis.features import SpectralFeatureExtractor

    return SpectralFeatureExtractor(
        settings.build_config(),
        window=settings.window,
        signal_breadth=settings.signal_breadth,
    )


__all__ = ["AcquisitionSettings", "build_extractor", "load_settings", "save_settings"]
