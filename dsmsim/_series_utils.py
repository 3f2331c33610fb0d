"""Shared array helpers used by the simulation and binning modules."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def as_rng(rng: np.random.Generator | int | None = None) -> np.random.Generator:
    """Return a numpy Generator from a seed, an existing Generator or None."""
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def series_arrays(
    x: Sequence[float] | np.ndarray, y: Sequence[float] | np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Return x and y as matching 1-D float arrays."""
    x_arr = np.asarray(x, dtype=float).reshape(-1)
    y_arr = np.asarray(y, dtype=float).reshape(-1)
    if x_arr.shape != y_arr.shape:
        raise ValueError(
            f"Expected x and y with the same shape, got {x_arr.shape} and {y_arr.shape}."
        )
    return x_arr, y_arr


def clamp_to_floor(values, floor: float) -> np.ndarray:
    """Replace NaN, infinite and sub-floor entries by the floor value."""
    arr = np.asarray(values, dtype=float)
    return np.where(np.isfinite(arr) & (arr >= floor), arr, floor)
