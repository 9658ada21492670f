"""Feature extraction over frequency-domain power arrays.

:class:`SpectralFeatureExtractor` owns a :class:`~biospectra.analysis.fft.SpectrumTransform`
sized from an :class:`~biospectra.config.acquisition.AcquisitionConfig` and
derives scalar and vector features from the spectra it produces. Rounded
results use half-up decimal arithmetic (see :mod:`biospectra.decimal_math`).

Numeric degeneracies such as infinite log powers or zero divisors are absorbed
into fallback values; precondition
violations raise :class:`~biospectra.errors.InvalidArgument` before any work.
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal, localcontext
from typing import Dict, Optional, Union

import numpy as np
from numpy.typing import ArrayLike

from ..config.acquisition import AcquisitionConfig, ListenerHandle
from ..errors import InvalidArgument
from ..decimal_math import DECIMAL_CONTEXT, divide, divide_decimal, to_decimal
from .fft import DEFAULT_WINDOW, SpectrumTransform
from .filters import FilterSpec, PassFilter

logger = logging.getLogger(__name__)

Number = Union[int, float]

FEATURE_PLACES = 10
NORMALIZED_PLACES = 3
ESP_LOW_PASS_MARGIN_HZ = 0.1


def _to_1d_array(values: ArrayLike, name: str = "values") -> np.ndarray:
    """Convert input to a 1D float64 numpy array."""
    if values is None:
        raise InvalidArgument(f"{name} must not be None")
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise InvalidArgument(f"{name} must be 1-D, got shape {arr.shape}")
    if arr.size == 0:
        raise InvalidArgument(f"{name} must contain at least one value")
    return arr


def _is_integral(value: Number) -> bool:
    return float(value).is_integer()


def _require_bins(*bounds: Number) -> None:
    for bound in bounds:
        if isinstance(bound, bool) or not _is_integral(bound):
            raise InvalidArgument(f"Bin bounds must be whole Hz values, got {bound!r}")


def triangular_weights(span: int) -> np.ndarray:
    """
    Weights rising by one from each end towards the centre of ``span`` bins.

    >>> triangular_weights(4).tolist()
    [1, 2, 2, 1]
    >>> triangular_weights(5).tolist()
    [1, 2, 3, 2, 1]
    """
    k = np.arange(span)
    return np.minimum(k, k[::-1]) + 1


class SpectralFeatureExtractor:
    """
    Frequency-domain feature library bound to an acquisition config.

    The extractor registers itself as a listener on ``config`` and replaces
    its transform whenever the sample rate or size changes, before the
    config's setter returns.

    The forward methods mutate the owned transform, so an instance must not
    be used from several threads at once; give each thread its own extractor
    or serialize the calls.

    Parameters
    ----------
    config:
        Source of sample rate and FFT size.
    window:
        Window function name passed to :func:`scipy.signal.get_window`.
    signal_breadth:
        Max minus min of the device's raw representable range, used by
        :meth:`normalize_signal`.
    """

    def __init__(
        self,
        config: AcquisitionConfig,
        window: str = DEFAULT_WINDOW,
        signal_breadth: Optional[Number] = None,
    ) -> None:
        if signal_breadth is not None and not signal_breadth > 0:
            raise InvalidArgument(f"signal_breadth must be > 0, got {signal_breadth}")
        self._config = config
        self._window = window
        self._signal_breadth = None if signal_breadth is None else to_decimal(signal_breadth)
        self._transform = self._create_transform()
        self._handle: Optional[ListenerHandle] = config.add_listener(self)

    # ------------------------------------------------------------ lifecycle
    def _create_transform(self) -> SpectrumTransform:
        return SpectrumTransform(
            self._config.sample_size, self._config.sample_rate, self._window
        )

    def _rebuild_transform(self) -> None:
        self._transform = self._create_transform()
        logger.debug("Rebuilt transform: %r", self._transform)

    def on_sample_rate_changed(self) -> None:
        self._rebuild_transform()

    def on_sample_size_changed(self) -> None:
        self._rebuild_transform()

    def detach(self) -> None:
        """Stop following config changes; the current transform is kept."""
        if self._handle is not None:
            self._config.remove_listener(self._handle)
            self._handle = None

    @property
    def config(self) -> AcquisitionConfig:
        return self._config

    @property
    def transform(self) -> SpectrumTransform:
        return self._transform

    @property
    def window(self) -> str:
        return self._window

    def set_window(self, window: str) -> None:
        self._transform.set_window(window)
        self._window = window

    @property
    def upper_measurable_frequency(self) -> float:
        return self._config.upper_measurable_frequency

    # -------------------------------------------------------------- spectra
    def forward_spectrum(self, sample: ArrayLike) -> np.ndarray:
        """Real components of the transform of ``sample``. Not thread safe."""
        arr = _to_1d_array(sample, "sample")
        self._transform.forward(arr)
        return self._transform.spectrum_real()

    def forward_log_power_spectrum(self, sample: ArrayLike) -> np.ndarray:
        """Per-bin log power of ``sample``. Not thread safe."""
        arr = _to_1d_array(sample, "sample")
        self._transform.forward(arr)
        return self._transform.log_power_spectrum()

    # ---------------------------------------------------------- log powers
    def log_power_at(self, log_powers: ArrayLike, frequency_hz: Number) -> float:
        """
        Log power at ``frequency_hz``, interpolated between the surrounding
        bins when the frequency is not integral.

        Valid for ``1 <= frequency_hz <= nyquist - 1``. Returns 0 if either
        neighbouring bin is infinite.
        """
        powers = _to_1d_array(log_powers, "log_powers")
        nyquist = self.upper_measurable_frequency
        if not 1 <= frequency_hz <= nyquist - 1:
            raise InvalidArgument(
                f"frequency_hz must be in [1, {nyquist - 1}], got {frequency_hz}"
            )
        if math.ceil(frequency_hz) >= powers.size:
            raise InvalidArgument(
                f"log_powers has {powers.size} bins, too few for {frequency_hz} Hz"
            )
        return self._resolve(powers, frequency_hz)

    def _resolve(self, powers: np.ndarray, frequency_hz: Number) -> float:
        if _is_integral(frequency_hz):
            return float(powers[int(frequency_hz)])
        return self._interpolate(powers, float(frequency_hz))

    @staticmethod
    def _interpolate(powers: np.ndarray, frequency_hz: float) -> float:
        lower = int(math.floor(frequency_hz))
        upper = lower + 1

        pow_lower = float(powers[lower])
        pow_upper = float(powers[upper])
        if math.isinf(pow_lower) or math.isinf(pow_upper):
            return 0.0

        low_frac = frequency_hz - lower
        high_frac = upper - frequency_hz
        weight = divide_decimal(low_frac, high_frac, FEATURE_PLACES)

        with localcontext(DECIMAL_CONTEXT):
            combined = to_decimal(pow_lower) + to_decimal(pow_upper) * weight
            denominator = Decimal(1) + weight
        return divide(combined, denominator, FEATURE_PLACES)

    def band_log_power(self, log_powers: ArrayLike, lower_hz: int, upper_hz: int) -> float:
        """
        Triangularly weighted mean of the bins ``lower_hz..upper_hz`` inclusive.

        The weights rise from 1 at each edge towards the centre, e.g. 1,2,2,1
        for four bins and 1,2,3,2,1 for five.
        """
        _require_bins(lower_hz, upper_hz)
        powers = _to_1d_array(log_powers, "log_powers")
        nyquist = self.upper_measurable_frequency
        if not 0 < lower_hz <= upper_hz < nyquist:
            raise InvalidArgument(
                f"Expected 0 < lower_hz <= upper_hz < {nyquist}, "
                f"got lower_hz={lower_hz}, upper_hz={upper_hz}"
            )
        if upper_hz >= powers.size:
            raise InvalidArgument(
                f"log_powers has {powers.size} bins, too few for {upper_hz} Hz"
            )

        band = powers[int(lower_hz) : int(upper_hz) + 1]
        weights = triangular_weights(band.size)
        with np.errstate(invalid="ignore"):
            total = float(np.dot(band, weights))
        return divide(total, int(weights.sum()), FEATURE_PLACES)

    def log_powers_for(self, sample: ArrayLike, *frequencies: Number) -> Dict[Number, float]:
        """
        Transform ``sample`` once and resolve each requested frequency.

        Returns a mapping of frequency to log power. Not thread safe.
        """
        if not frequencies:
            raise InvalidArgument("At least one frequency is required")
        nyquist = self.upper_measurable_frequency
        for frequency in frequencies:
            if not 1 <= frequency < nyquist:
                raise InvalidArgument(
                    f"frequency must be in [1, {nyquist}), got {frequency}"
                )
            if math.ceil(frequency) >= self._transform.size:
                raise InvalidArgument(
                    f"{frequency} Hz is beyond the {self._transform.size}-bin transform"
                )

        powers = self.forward_log_power_spectrum(sample)
        return {frequency: self._resolve(powers, frequency) for frequency in frequencies}

    # ----------------------------------------------------------- aggregates
    def rms(self, lower_hz: int, upper_hz: int, *values: Number) -> float:
        """
        Root mean square of ``values[lower_hz..upper_hz]``.

        The mean divides by ``len(values)``, not by the width of the range,
        so callers should pass only the values belonging to the range.
        """
        _require_bins(lower_hz, upper_hz)
        arr = _to_1d_array(values, "values")
        nyquist = self.upper_measurable_frequency
        if not 1 <= lower_hz < upper_hz < nyquist:
            raise InvalidArgument(
                f"Expected 1 <= lower_hz < upper_hz < {nyquist}, "
                f"got lower_hz={lower_hz}, upper_hz={upper_hz}"
            )
        if upper_hz >= arr.size:
            raise InvalidArgument(
                f"values has {arr.size} entries, too few for index {upper_hz}"
            )

        squares = float(np.sum(np.square(arr[int(lower_hz) : int(upper_hz) + 1])))
        return math.sqrt(divide(squares, arr.size, FEATURE_PLACES))

    def weighted_moving_average(self, *values: Number) -> float:
        """
        Linearly weighted mean; the first (oldest) value has weight 1 and
        each following value one more.

        Returns 0 when the weighted total is not finite.
        """
        arr = _to_1d_array(values, "values")
        weights = np.arange(1, arr.size + 1)
        divisor = int(weights.sum())
        with np.errstate(invalid="ignore", over="ignore"):
            total = float(np.dot(arr, weights))
        if divisor == 0 or not math.isfinite(total):
            return 0.0
        return divide(total, divisor, FEATURE_PLACES)

    # -------------------------------------------------------- normalization
    def normalize(
        self, values: ArrayLike, lower_cutoff_hz: int, upper_cutoff_hz: int
    ) -> np.ndarray:
        """
        Rescale ``values[lower..upper]`` into [0, 1], zeroing everything else.

        Results are rounded half-up to three places. If the range contains an
        infinite value its entries are copied through unscaled; a flat range
        maps to 0.
        """
        _require_bins(lower_cutoff_hz, upper_cutoff_hz)
        arr = _to_1d_array(values, "values")
        nyquist = self.upper_measurable_frequency
        if not 1 <= lower_cutoff_hz < upper_cutoff_hz < nyquist:
            raise InvalidArgument(
                f"Expected 1 <= lower_cutoff_hz < upper_cutoff_hz < {nyquist}, "
                f"got {lower_cutoff_hz}, {upper_cutoff_hz}"
            )
        if arr.size <= upper_cutoff_hz:
            raise InvalidArgument(
                f"values must be longer than {upper_cutoff_hz}, got {arr.size}"
            )

        lo, hi = int(lower_cutoff_hz), int(upper_cutoff_hz) + 1
        band = arr[lo:hi]
        normalized = np.zeros_like(arr)

        low = float(np.min(band))
        high = float(np.max(band))
        if math.isinf(low) or math.isinf(high):
            normalized[lo:hi] = band
            return normalized

        breadth = high - low
        if breadth == 0:
            return normalized

        normalized[lo:hi] = [divide(float(v) - low, breadth, NORMALIZED_PLACES) for v in band]
        return normalized

    def normalize_signal(self, sample: ArrayLike, scale: Number = 1) -> np.ndarray:
        """Map raw device units onto ``[0, scale]`` using the signal breadth."""
        arr = _to_1d_array(sample, "sample")
        if not math.isfinite(scale) or scale == 0:
            raise InvalidArgument(f"scale must be finite and non-zero, got {scale}")
        if self._signal_breadth is None:
            raise InvalidArgument("signal_breadth is not configured for this extractor")

        factor = to_decimal(scale)
        with localcontext(DECIMAL_CONTEXT):
            scaled = [to_decimal(float(v)) * factor for v in arr]
        return np.array([divide(v, self._signal_breadth, FEATURE_PLACES) for v in scaled])

    @staticmethod
    def absolute_values(array: ArrayLike) -> np.ndarray:
        if array is None:
            raise InvalidArgument("array must not be None")
        return np.abs(np.asarray(array, dtype=float))

    # -------------------------------------------------------------- filters
    def _check_cutoff(self, cutoff_hz: Number, name: str = "cutoff_hz") -> None:
        nyquist = self.upper_measurable_frequency
        if not 0 < cutoff_hz < nyquist:
            raise InvalidArgument(f"{name} must be in (0, {nyquist}), got {cutoff_hz}")

    def design_band_pass_filter(self, lower_hz: Number, upper_hz: Number) -> FilterSpec:
        self._check_cutoff(lower_hz, "lower_hz")
        self._check_cutoff(upper_hz, "upper_hz")
        if not lower_hz < upper_hz:
            raise InvalidArgument(
                f"lower_hz must be below upper_hz, got {lower_hz} >= {upper_hz}"
            )
        rate = self._config.sample_rate
        return FilterSpec(PassFilter.BAND_PASS, (lower_hz / rate, upper_hz / rate), rate)

    def design_high_pass_filter(self, cutoff_hz: Number) -> FilterSpec:
        self._check_cutoff(cutoff_hz)
        rate = self._config.sample_rate
        return FilterSpec(PassFilter.HIGH_PASS, (cutoff_hz / rate,), rate)

    def design_low_pass_filter(self, cutoff_hz: Number) -> FilterSpec:
        self._check_cutoff(cutoff_hz)
        rate = self._config.sample_rate
        return FilterSpec(PassFilter.LOW_PASS, (cutoff_hz / rate,), rate)

    def esp_low_pass_filter(self) -> FilterSpec:
        """Low-pass just under Nyquist to suppress content at or above it."""
        return self.design_low_pass_filter(
            self.upper_measurable_frequency - ESP_LOW_PASS_MARGIN_HZ
        )

    def design_filter(
        self,
        kind: PassFilter,
        lower_hz: Optional[Number] = None,
        upper_hz: Optional[Number] = None,
    ) -> FilterSpec:
        """Dispatch on ``kind``; low-pass uses ``upper_hz``, high-pass ``lower_hz``."""
        if kind is PassFilter.NO_PASS_FILTER:
            return FilterSpec.passthrough(self._config.sample_rate)
        if kind is PassFilter.BAND_PASS:
            if lower_hz is None or upper_hz is None:
                raise InvalidArgument("band-pass needs lower_hz and upper_hz")
            return self.design_band_pass_filter(lower_hz, upper_hz)
        if kind is PassFilter.LOW_PASS:
            if upper_hz is None:
                raise InvalidArgument("low-pass needs upper_hz")
            return self.design_low_pass_filter(upper_hz)
        if lower_hz is None:
            raise InvalidArgument("high-pass needs lower_hz")
        return self.design_high_pass_filter(lower_hz)

    def __repr__(self) -> str:
        return (
            f"SpectralFeatureExtractor(config={self._config!r}, window={self._window!r})"
        )


__all__ = [
    "SpectralFeatureExtractor",
    "triangular_weights",
    "FEATURE_PLACES",
    "NORMALIZED_PLACES",
]
