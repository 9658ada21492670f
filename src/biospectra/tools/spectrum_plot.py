"""Matplotlib rendering of log-power spectra."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes
from matplotlib.figure import Figure


def plot_log_power(
    log_powers: np.ndarray,
    sample_rate: int,
    *,
    band: Optional[Tuple[float, float]] = None,
    markers: Sequence[float] = (),
    ax: Optional[Axes] = None,
    title: Optional[str] = None,
) -> Figure:
    """
    Plot ``log_powers`` from 0 Hz up to Nyquist.

    ``band`` is shaded and each frequency in ``markers`` gets a dashed line.
    Bins with infinite power are left as gaps.
    """
    powers = np.asarray(log_powers, dtype=float)
    bin_width = sample_rate / powers.size
    n_bins = powers.size // 2 + 1
    freqs = np.arange(n_bins) * bin_width
    visible = np.where(np.isfinite(powers[:n_bins]), powers[:n_bins], np.nan)

    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 4))
    else:
        fig = ax.figure

    ax.plot(freqs, visible, lw=1.0, label="log power")
    if band is not None:
        ax.axvspan(band[0], band[1], alpha=0.2, color="tab:orange", label="band")
    for freq in markers:
        ax.axvline(freq, ls="--", lw=0.8, color="tab:red")

    ax.set_xlim(0, freqs[-1])
    ax.set_xlabel("Frequency [Hz]")
    ax.set_ylabel("ln |X|²")
    ax.set_title(title or f"Log-power spectrum ({sample_rate} Hz)")
    ax.grid(True)
    ax.legend(loc="upper right")
    return fig


def show() -> None:
    plt.show()


__all__ = ["plot_log_power", "show"]
