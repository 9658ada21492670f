"""Command-line feature report for a recorded or synthetic biosignal."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np

# Make sure the 'src' directory is on sys.path so 'biospectra' can be imported
REPO_ROOT = Path(__file__).resolve().parent
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from biospectra.analysis.features import SpectralFeatureExtractor
from biospectra.analysis.fft import compute_fft
from biospectra.analysis.filters import detrend
from biospectra.config.runtime import AcquisitionSettings, build_extractor, load_settings
from biospectra.dataio.sample_loader import iter_blocks, load_samples
from biospectra.errors import InvalidArgument

logger = logging.getLogger("biospectra.cli")


def synthetic_signal(
    n_samples: int,
    sample_rate: int,
    freqs_hz: Sequence[float] = (10.0, 22.0),
    noise: float = 0.2,
    seed: Optional[int] = 0,
) -> np.ndarray:
    """Sum of unit sines at ``freqs_hz`` plus Gaussian noise."""
    rand = np.random.default_rng(seed)
    t = np.arange(n_samples, dtype=float) / float(sample_rate)
    signal = np.zeros(n_samples)
    for freq in freqs_hz:
        signal += np.sin(2.0 * np.pi * freq * t)
    return signal + noise * rand.standard_normal(n_samples)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="biospectra feature report")
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional YAML file describing acquisition settings",
    )
    parser.add_argument(
        "--csv",
        type=Path,
        help="Recorded signal (CSV). A synthetic signal is used when omitted.",
    )
    parser.add_argument(
        "--column",
        type=int,
        default=0,
        help="CSV column holding the samples (default: 0)",
    )
    parser.add_argument(
        "--sample-rate",
        type=int,
        help="Override sample_rate without editing the YAML",
    )
    parser.add_argument(
        "--sample-size",
        type=int,
        help="Override sample_size (power of two) without editing the YAML",
    )
    parser.add_argument(
        "--frequencies",
        type=float,
        nargs="+",
        default=[10.0, 22.0],
        help="Frequencies (Hz) whose log power is reported per block",
    )
    parser.add_argument(
        "--band",
        type=int,
        nargs=2,
        metavar=("LOW", "HIGH"),
        default=[8, 12],
        help="Band (Hz, inclusive) to average (default: 8 12)",
    )
    parser.add_argument(
        "--band-pass",
        type=float,
        nargs=2,
        metavar=("LOW", "HIGH"),
        help="Butterworth band-pass (Hz) applied to each block; order comes from filter_order",
    )
    parser.add_argument(
        "--detrend",
        action="store_true",
        help="Remove a linear trend from each block before the FFT",
    )
    parser.add_argument(
        "--plot",
        action="store_true",
        help="Show the last block's spectrum (requires matplotlib)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def _resolve_settings(args: argparse.Namespace) -> AcquisitionSettings:
    settings = load_settings(args.config)
    if args.sample_rate is not None:
        settings.sample_rate = int(args.sample_rate)
    if args.sample_size is not None:
        settings.sample_size = int(args.sample_size)
    return settings


def report_blocks(
    extractor: SpectralFeatureExtractor,
    samples: np.ndarray,
    frequencies: Sequence[float],
    band: Sequence[int],
    *,
    use_detrend: bool = False,
    band_pass: Optional[Tuple[float, float]] = None,
    filter_order: int = 4,
) -> List[np.ndarray]:
    """Print per-block features and return each block's log-power spectrum."""
    lower, upper = int(band[0]), int(band[1])
    pass_filter = None
    if band_pass is not None:
        pass_filter = extractor.design_band_pass_filter(band_pass[0], band_pass[1])
        logger.info("Band-pass %s Hz, order %d", pass_filter.cutoffs_hz(), filter_order)
    band_powers: List[float] = []
    spectra: List[np.ndarray] = []

    for index, block in enumerate(iter_blocks(samples, extractor.config.sample_size)):
        if use_detrend:
            block = detrend(block)
        if pass_filter is not None:
            block = pass_filter.apply(block, order=filter_order)
        log_powers = extractor.forward_log_power_spectrum(block)
        spectra.append(log_powers)

        by_freq = {f: extractor.log_power_at(log_powers, f) for f in frequencies}
        band_power = extractor.band_log_power(log_powers, lower, upper)
        band_rms = extractor.rms(lower, upper, *log_powers[: upper + 1])
        band_powers.append(band_power)

        cells = "  ".join(f"{f:g}Hz={p:.4f}" for f, p in by_freq.items())
        print(f"block {index:4d}  {cells}  band={band_power:.4f}  rms={band_rms:.4f}")

    if band_powers:
        trend = extractor.weighted_moving_average(*band_powers)
        print(f"weighted band trend over {len(band_powers)} blocks: {trend:.4f}")

        freqs, magnitude = compute_fft(
            samples, extractor.config.sample_rate, window=extractor.window
        )
        peak = int(np.argmax(magnitude[1:])) + 1 if magnitude.size > 1 else 0
        print(f"dominant frequency: {freqs[peak]:.2f} Hz")
    return spectra


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = _resolve_settings(args)
        extractor = build_extractor(settings)
    except InvalidArgument as exc:
        parser.error(str(exc))

    config = extractor.config
    logger.info(
        "Acquisition: %d Hz, %d-sample blocks, sleep %d %s ticks",
        config.sample_rate,
        config.sample_size,
        config.get_sleep_interval(),
        config.time_unit.name.lower(),
    )

    if args.csv is not None:
        csv_path = args.csv.expanduser().resolve()
        if not csv_path.exists():
            parser.error(f"Signal file not found: {csv_path}")
        samples = load_samples(csv_path, args.column)
    else:
        samples = synthetic_signal(config.sample_size * 4, config.sample_rate)

    try:
        spectra = report_blocks(
            extractor,
            samples,
            args.frequencies,
            args.band,
            use_detrend=args.detrend,
            band_pass=args.band_pass,
            filter_order=settings.filter_order,
        )
    except InvalidArgument as exc:
        parser.error(str(exc))

    if not spectra:
        print(f"Not enough samples for one {config.sample_size}-sample block")
        return 1

    if args.plot:
        from biospectra.tools.spectrum_plot import plot_log_power, show

        plot_log_power(
            spectra[-1],
            config.sample_rate,
            band=(args.band[0], args.band[1]),
            markers=args.frequencies,
        )
        show()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
