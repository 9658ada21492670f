"""Utilities for loading recorded signal CSVs and cutting them into blocks."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Iterator

import numpy as np


def _looks_numeric_csv_line(line: str) -> bool:
    """Heuristically decide if a CSV line is numeric-only (no header)."""
    stripped = line.strip()
    if not stripped:
        return False
    tokens = [t for t in stripped.split(",") if t]
    if not tokens:
        return False
    try:
        for t in tokens:
            float(t)
        return True
    except ValueError:
        return False


def load_csv(path: Path) -> np.ndarray:
    """
    Load a CSV file containing numeric data.

    The file may optionally include a single header row, which will be
    skipped automatically. The result is always 2-D (rows x columns).
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        first_line = f.readline()
        rest = f.read()

    if _looks_numeric_csv_line(first_line):
        buffer = io.StringIO(first_line + rest)
    else:
        buffer = io.StringIO(rest)

    return np.loadtxt(buffer, delimiter=",", ndmin=2)


def load_samples(path: Path, column: int = 0) -> np.ndarray:
    """Return one column of a recorded CSV as a 1-D float array."""
    data = load_csv(path)
    if data.size == 0:
        return np.empty(0)
    if not -data.shape[1] <= column < data.shape[1]:
        raise ValueError(
            f"column {column} out of range for {data.shape[1]}-column file {path}"
        )
    return np.asarray(data[:, column], dtype=float)


def iter_blocks(samples: np.ndarray, block_size: int) -> Iterator[np.ndarray]:
    """
    Yield consecutive full blocks of ``block_size`` samples.

    A trailing partial block is dropped, since the transform only accepts
    blocks of exactly the configured size.
    """
    if block_size <= 0:
        raise ValueError(f"block_size must be a positive integer, got {block_size}")

    total = samples.shape[0]
    for start in range(0, total - block_size + 1, block_size):
        yield samples[start : start + block_size]


__all__ = ["iter_blocks", "load_csv", "load_samples"]
