"""Helpers for reading recorded signals from disk."""

from .sample_loader import iter_blocks, load_csv, load_samples

__all__ = ["iter_blocks", "load_csv", "load_samples"]
