"""Filter specifications and their Butterworth realisation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np
from numpy.typing import ArrayLike
from scipy import signal

from ..errors import InvalidArgument


class PassFilter(Enum):
    LOW_PASS = "low_pass"
    HIGH_PASS = "high_pass"
    BAND_PASS = "band_pass"
    NO_PASS_FILTER = "no_pass_filter"


_BTYPES = {
    PassFilter.LOW_PASS: "lowpass",
    PassFilter.HIGH_PASS: "highpass",
    PassFilter.BAND_PASS: "bandpass",
}
_CUTOFF_COUNTS = {
    PassFilter.LOW_PASS: 1,
    PassFilter.HIGH_PASS: 1,
    PassFilter.BAND_PASS: 2,
    PassFilter.NO_PASS_FILTER: 0,
}


@dataclass(frozen=True)
class FilterSpec:
    """
    Cutoff(s) expressed as fractions of the sample rate.

    A fraction of 0.5 is the Nyquist frequency, so every cutoff must lie in
    the open interval (0, 0.5).
    """

    kind: PassFilter
    cutoffs: Tuple[float, ...]
    sample_rate: int

    def __post_init__(self) -> None:
        expected = _CUTOFF_COUNTS[self.kind]
        if len(self.cutoffs) != expected:
            raise InvalidArgument(
                f"{self.kind.value} needs {expected} cutoff(s), got {len(self.cutoffs)}"
            )
        for fraction in self.cutoffs:
            if not 0.0 < fraction < 0.5:
                raise InvalidArgument(
                    f"Normalized cutoff must be in (0, 0.5), got {fraction}"
                )
        if self.kind is PassFilter.BAND_PASS and self.cutoffs[0] >= self.cutoffs[1]:
            raise InvalidArgument(
                f"Band-pass lower cutoff must be below upper cutoff: {self.cutoffs}"
            )

    @classmethod
    def passthrough(cls, sample_rate: int) -> "FilterSpec":
        return cls(PassFilter.NO_PASS_FILTER, (), sample_rate)

    def cutoffs_hz(self) -> Tuple[float, ...]:
        return tuple(fraction * self.sample_rate for fraction in self.cutoffs)

    def design(self, order: int = 4) -> Tuple[np.ndarray, np.ndarray]:
        """Return Butterworth ``(b, a)`` coefficients for this spec."""
        if self.kind is PassFilter.NO_PASS_FILTER:
            raise InvalidArgument("A pass-through spec has no filter coefficients")
        if order <= 0:
            raise InvalidArgument(f"Filter order must be positive, got {order}")
        # scipy normalizes to Nyquist rather than to the sample rate
        wn = [2.0 * fraction for fraction in self.cutoffs]
        b, a = signal.butter(
            order,
            wn[0] if len(wn) == 1 else wn,
            btype=_BTYPES[self.kind],
            analog=False,
        )
        return b, a

    def apply(self, data: ArrayLike, order: int = 4, *, axis: int = -1) -> np.ndarray:
        """
        Apply the filter with zero phase using ``filtfilt``.

        Pass-through specs return a float copy of ``data``.
        """
        data_arr = np.asarray(data, dtype=float)
        if self.kind is PassFilter.NO_PASS_FILTER:
            return data_arr.copy()
        b, a = self.design(order)
        return signal.filtfilt(b, a, data_arr, axis=axis)


_DETREND_KINDS = ("linear", "constant")


def detrend(block: ArrayLike, kind: str = "linear") -> np.ndarray:
    """
    Remove the least-squares line (``"linear"``) or the mean (``"constant"``)
    from a sample block before it is transformed.
    """
    if kind not in _DETREND_KINDS:
        raise InvalidArgument(f"kind must be one of {_DETREND_KINDS}, got {kind!r}")
    arr = np.asarray(block, dtype=float)
    if arr.ndim != 1 or arr.size < 2:
        raise InvalidArgument(f"block must be 1-D with at least 2 samples, got shape {arr.shape}")
    return signal.detrend(arr, type=kind)


__all__ = ["FilterSpec", "PassFilter", "detrend"]
