from __future__ import annotations

import numpy as np
import pytest

from biospectra.analysis.fft import SpectrumTransform, compute_fft, resolve_window
from biospectra.errors import InvalidArgument


def test_compute_fft_frequency_axis() -> None:
    t = np.arange(200) / 100.0
    freqs, magnitude = compute_fft(np.sin(2 * np.pi * 5.0 * t), 100.0)
    assert freqs.shape == magnitude.shape == (101,)
    assert freqs[-1] == pytest.approx(50.0)
    assert freqs[int(np.argmax(magnitude))] == pytest.approx(5.0)


def test_compute_fft_window_tapers_leakage() -> None:
    t = np.arange(200) / 100.0
    tone = np.sin(2 * np.pi * 5.25 * t)
    freqs, plain = compute_fft(tone, 100.0)
    _, tapered = compute_fft(tone, 100.0, window="hann")
    far = freqs > 20.0
    assert tapered[far].max() < plain[far].max()


def test_compute_fft_window_along_axis() -> None:
    t = np.arange(64) / 64.0
    rows = np.vstack([np.sin(2 * np.pi * 4.0 * t), np.sin(2 * np.pi * 9.0 * t)])
    freqs, magnitude = compute_fft(rows, 64.0, window="hann", axis=1)
    assert magnitude.shape == (2, 33)
    assert freqs[np.argmax(magnitude, axis=1)].tolist() == [4.0, 9.0]
    with pytest.raises(InvalidArgument):
        compute_fft(rows, 64.0, window="no-such-window")


def test_compute_fft_validates_input() -> None:
    with pytest.raises(InvalidArgument):
        compute_fft([1.0, 2.0], 0)
    with pytest.raises(InvalidArgument):
        compute_fft([], 100.0)


def test_window_aliases() -> None:
    np.testing.assert_array_equal(resolve_window("none", 8), np.ones(8))
    np.testing.assert_array_equal(resolve_window("Rectangular", 8), np.ones(8))
    np.testing.assert_allclose(resolve_window("hanning", 8), resolve_window("hann", 8))


def test_transform_output_lengths_match_size() -> None:
    transform = SpectrumTransform(64, 64, window="none")
    transform.forward(np.random.default_rng(1).normal(size=64))
    assert transform.spectrum_real().shape == (64,)
    assert transform.log_power_spectrum().shape == (64,)
    assert transform.bin_width_hz == 1.0


def test_log_power_of_silence_is_negative_infinity() -> None:
    transform = SpectrumTransform(16, 16)
    transform.forward(np.zeros(16))
    powers = transform.log_power_spectrum()
    assert np.all(np.isneginf(powers))


def test_log_power_matches_squared_magnitude() -> None:
    sample = np.arange(8, dtype=float)
    transform = SpectrumTransform(8, 8, window="boxcar")
    transform.forward(sample)
    expected = np.log(np.abs(np.fft.fft(sample)) ** 2)
    np.testing.assert_allclose(transform.log_power_spectrum()[1:], expected[1:])


def test_accessors_require_forward_call() -> None:
    transform = SpectrumTransform(8, 8)
    with pytest.raises(RuntimeError):
        transform.spectrum_real()


def test_set_window_and_validation() -> None:
    transform = SpectrumTransform(8, 8)
    transform.set_window("hamming")
    assert transform.window == "hamming"
    with pytest.raises(InvalidArgument):
        transform.set_window("not-a-window")
    assert transform.window == "hamming"
    with pytest.raises(InvalidArgument):
        SpectrumTransform(0, 8)
    with pytest.raises(InvalidArgument):
        transform.forward(np.zeros((2, 4)))
