"""Acquisition parameters and their persisted settings.

:mod:`acquisition` holds the live sample rate / sample size state that the
analysis code listens to, while :mod:`runtime` loads and saves the YAML
settings used to build it.
"""

from .acquisition import AcquisitionConfig, DSPValueListener, ListenerHandle, TimeUnit
from .runtime import AcquisitionSettings, build_extractor, load_settings, save_settings

__all__ = [
    "AcquisitionConfig",
    "AcquisitionSettings",
    "DSPValueListener",
    "ListenerHandle",
    "TimeUnit",
    "build_extractor",
    "load_settings",
    "save_settings",
]
