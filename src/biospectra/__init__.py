"""biospectra: spectral feature extraction for sampled biosignals."""

from .config.acquisition import AcquisitionConfig, TimeUnit
from .analysis.features import SpectralFeatureExtractor
from .errors import InvalidArgument

__version__ = "0.1.0"

__all__ = ["AcquisitionConfig", "InvalidArgument", "SpectralFeatureExtractor", "TimeUnit"]
