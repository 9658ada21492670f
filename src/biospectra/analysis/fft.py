"""FFT helpers and the windowed transform used by feature extraction."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike
from scipy import signal

from ..errors import InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = "hann"
_WINDOW_ALIASES = {
    "none": "boxcar",
    "rectangular": "boxcar",
    "hanning": "hann",
}


def resolve_window(name: str, size: int) -> np.ndarray:
    """Return the ``size``-point window called ``name`` (scipy naming)."""
    key = str(name).strip().lower()
    key = _WINDOW_ALIASES.get(key, key)
    try:
        return signal.get_window(key, size)
    except ValueError as exc:
        raise InvalidArgument(f"Unknown window function {name!r}: {exc}") from exc


class SpectrumTransform:
    """
    Fixed-size windowed FFT.

    ``forward`` stores the result on the instance and the accessors read it
    back, so one instance must not be shared by concurrent callers. The bin
    spacing is ``sample_rate / size`` Hz; bin index equals Hz when the two
    are equal.
    """

    def __init__(self, size: int, sample_rate: int, window: str = DEFAULT_WINDOW) -> None:
        if size <= 0:
            raise InvalidArgument(f"Transform size must be positive, got {size}")
        if sample_rate <= 0:
            raise InvalidArgument(f"Sample rate must be positive, got {sample_rate}")
        self.size = int(size)
        self.sample_rate = int(sample_rate)
        self._window_name = window
        self._window = resolve_window(window, self.size)
        self._spectrum: Optional[np.ndarray] = None

    @property
    def window(self) -> str:
        return self._window_name

    def set_window(self, window: str) -> None:
        self._window = resolve_window(window, self.size)
        self._window_name = window

    @property
    def bin_width_hz(self) -> float:
        return self.sample_rate / self.size

    def forward(self, sample: ArrayLike) -> None:
        arr = np.asarray(sample, dtype=float)
        if arr.ndim != 1 or arr.shape[0] != self.size:
            raise InvalidArgument(
                f"sample must be 1-D with {self.size} values, got shape {arr.shape}"
            )
        self._spectrum = np.fft.fft(arr * self._window)

    def _require_spectrum(self) -> np.ndarray:
        if self._spectrum is None:
            raise RuntimeError("forward() must be called before reading the spectrum")
        return self._spectrum

    def spectrum_real(self) -> np.ndarray:
        return self._require_spectrum().real.copy()

    def log_power_spectrum(self) -> np.ndarray:
        """Natural log of |X|^2 per bin; empty bins are ``-inf``."""
        power = np.abs(self._require_spectrum()) ** 2
        with np.errstate(divide="ignore"):
            return np.log(power)

    def __repr__(self) -> str:
        return (
            f"SpectrumTransform(size={self.size}, sample_rate={self.sample_rate}, "
            f"window={self._window_name!r})"
        )


def compute_fft(
    signal_data: ArrayLike,
    sample_rate_hz: float,
    *,
    window: str = "none",
    axis: int = -1,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    One-sided magnitude spectrum of a whole real-valued recording.

    Unlike :class:`SpectrumTransform` the length is not fixed, so this suits
    summaries over an entire signal. ``window`` is resolved like the
    transform's window and tapers the data along ``axis``.

    Returns ``(freqs, magnitude)`` where ``freqs`` is in Hz.
    """
    if sample_rate_hz <= 0:
        raise InvalidArgument(f"sample_rate_hz must be > 0, got {sample_rate_hz}")

    arr = np.asarray(signal_data, dtype=float)
    if arr.size == 0:
        raise InvalidArgument("signal must contain at least one sample")

    n_samples = arr.shape[axis]
    taper_shape = [1] * arr.ndim
    taper_shape[axis] = n_samples
    taper = resolve_window(window, n_samples).reshape(taper_shape)

    magnitude = np.abs(np.fft.rfft(arr * taper, axis=axis))
    freqs = np.fft.rfftfreq(n_samples, d=1.0 / float(sample_rate_hz))
    return freqs, magnitude


__all__ = ["DEFAULT_WINDOW", "SpectrumTransform", "compute_fft", "resolve_window"]
