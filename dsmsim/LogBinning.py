"""Log-space binning of long cost series for log-log plots."""

from __future__ import annotations

import numpy as np
from scipy.stats import gmean

from dsmsim.CostSimulation import FLOOR_EPS, CostSeries

BINNING_STRATEGIES = ("adaptive", "fixed", "raw")

DEFAULT_SPLIT = 1e3
DEFAULT_BINS_EARLY = 30
DEFAULT_BINS_LATE = 12


def geometric_mean(values) -> float:
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        raise ValueError("Geometric mean of an empty sequence is undefined.")
    # rounding in exp(mean(log)) must not push the mean out of [min, max]
    return float(np.clip(gmean(values), values.min(), values.max()))


def build_edges(start: float, stop: float, bins_per_decade: float) -> np.ndarray:
    """Multiplicative bin edges from ``start`` to ``stop``.

    Consecutive edges differ by a factor ``10 ** (1 / bins_per_decade)`` and
    the last edge is exactly ``stop``.
    """
    if bins_per_decade <= 0:
        raise ValueError(f"bins_per_decade must be positive, got {bins_per_decade}.")
    start = max(1.0, float(start))
    end = max(start, float(stop))
    factor = 10 ** (1 / bins_per_decade)

    n_bins = int(np.ceil(np.log10(end / start) * bins_per_decade - 1e-9))
    edges = start * factor ** np.arange(n_bins + 1)
    edges[-1] = end
    return edges


def bin_edges(
    x_max: float,
    split: float = DEFAULT_SPLIT,
    bins_early: float = DEFAULT_BINS_EARLY,
    bins_late: float = DEFAULT_BINS_LATE,
    strategy: str = "adaptive",
) -> np.ndarray:
    """Bin edges between 1 and ``x_max``.

    The adaptive schedule is dense (``bins_early`` per decade) below ``split``
    and coarser (``bins_late`` per decade) above it. The fixed schedule uses
    ``bins_early`` everywhere.
    """
    if strategy == "fixed":
        return build_edges(1, x_max, bins_early)
    if strategy != "adaptive":
        raise ValueError(f"No bin edges for strategy '{strategy}'.")

    early = build_edges(1, min(split, x_max), bins_early)
    if x_max <= split:
        return early
    late = build_edges(split, x_max, bins_late)
    return np.concatenate([early, late[1:]])


def compress(
    series: CostSeries,
    x_max: float | None = None,
    split: float = DEFAULT_SPLIT,
    bins_early: float = DEFAULT_BINS_EARLY,
    bins_late: float = DEFAULT_BINS_LATE,
    strategy: str = "adaptive",
    edges: np.ndarray | None = None,
    floor: float = FLOOR_EPS,
) -> CostSeries:
    """Compress a cost series into one geometric-mean point per log bin.

    The first point of the clipped series and the end point are kept
    exactly and only the points between them are binned. The end point is
    ``(x_max, last y)``, or the last raw point when it already sits at
    ``x_max``. A bin holding points contributes the geometric mean of their
    x and y values; an empty bin whose midpoint lies past the first point
    contributes ``(sqrt(left * right), y)`` with the cost in effect at the
    midpoint, so the curve stays continuous up to ``x_max``.

    Every bin holds at most one output point, so compressing the output
    again with the same edges gives the same points.

    The first bin is closed on both sides, later bins are ``(left, right]``.
    """
    if strategy not in BINNING_STRATEGIES:
        raise ValueError(
            f"Unknown binning strategy '{strategy}', expected one of {BINNING_STRATEGIES}."
        )
    if x_max is None:
        x_max = series.last[0] if len(series) else 1.0

    clipped = series.clip(x_max)
    if len(clipped) == 0:
        return clipped
    x, y = clipped.x, clipped.y

    if strategy == "raw":
        return CostSeries(x, np.maximum(y, floor))

    if edges is None:
        edges = bin_edges(x_max, split, bins_early, bins_late, strategy)
    edges = np.asarray(edges, dtype=float)

    if x[-1] < x_max:
        end = (float(x_max), y[-1])
        inner = slice(1, x.size)
    else:
        end = (x[-1], y[-1]) if x.size > 1 else None
        inner = slice(1, max(1, x.size - 1))
    xi, yi = x[inner], y[inner]

    out_x, out_y = [x[0]], [y[0]]
    if edges.size > 1:
        starts = np.searchsorted(xi, edges[:-1], side="right")
        starts[0] = np.searchsorted(xi, edges[0], side="left")
        stops = np.searchsorted(xi, edges[1:], side="right")

        for left, right, lo, hi in zip(edges[:-1], edges[1:], starts, stops):
            if hi > lo:
                out_x.append(geometric_mean(xi[lo:hi]))
                out_y.append(geometric_mean(yi[lo:hi]))
                continue
            mid = np.sqrt(left * right)
            if mid > x[0]:
                out_x.append(mid)
                out_y.append(y[np.searchsorted(x, mid, side="right") - 1])

    if end is not None:
        out_x.append(end[0])
        out_y.append(end[1])

    return CostSeries(np.asarray(out_x), np.maximum(np.asarray(out_y), floor))


def interesting_x(series: CostSeries, fraction: float = 0.01) -> float:
    """Attempt count that shows the informative part of a run.

    Finds where all but ``fraction`` of the total cost drop has happened and
    doubles it to keep some of the tail, bounded to ``[10, last x]``.
    """
    _, y0 = series.first
    x_last, y_last = series.last
    if y0 <= 0:
        return x_last

    target = y_last + fraction * (y0 - y_last)
    reached = np.flatnonzero(series.y <= target)
    x_target = series.x[reached[0]] if reached.size else x_last
    return float(max(10.0, min(x_last, 2 * x_target)))


def _log_fit(series: CostSeries, degree: int) -> np.ndarray:
    mask = (series.x > 0) & (series.y > 0)
    log_x = np.log10(series.x[mask])
    log_y = np.log10(series.y[mask])
    if np.unique(log_x).size <= degree:
        raise ValueError(
            f"Need more than {degree} distinct x values for a degree {degree} fit."
        )
    return np.polyfit(log_x, log_y, degree)


def loglog_slope(series: CostSeries) -> float:
    """Least-squares slope of log10(cost) against log10(attempts)."""
    return float(_log_fit(series, 1)[0])


def loglog_curvature(series: CostSeries) -> float:
    """Quadratic coefficient of the log-log fit, near zero for a power law."""
    return float(_log_fit(series, 2)[0])
