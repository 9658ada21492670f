"""Signal analysis utilities (FFT, filtering, and feature extraction).

Modules here operate on NumPy arrays of samples or spectra and stay free of
I/O so they can be reused in command-line scripts, automated tests, or
streaming services alike.
"""

from .features import SpectralFeatureExtractor, triangular_weights
from .fft import SpectrumTransform, compute_fft
from .filters import FilterSpec, PassFilter

__all__ = [
    "FilterSpec",
    "PassFilter",
    "SpectralFeatureExtractor",
    "SpectrumTransform",
    "compute_fft",
    "triangular_weights",
]
