# %%
import numpy as np
import pytest

from dsmsim import CostSimulation as cs
from dsmsim import DSMGenerator as dg
from dsmsim import LogBinning as lb
from dsmsim import run_history as rh


@pytest.fixture
def sparse_series():
    x = [1, 3, 7, 20, 55, 150, 400, 1100, 3000, 10_000]
    y = [10.0, 9.0, 7.5, 6.0, 4.0, 3.1, 2.2, 1.5, 1.2, 1.0]
    return cs.CostSeries(x, y)


@pytest.mark.parametrize(
    "start, stop, bins_per_decade",
    [
        (1, 1000, 30),
        (1000, 1e7, 12),
        (1, 7.5, 3),
        (0.2, 50, 10),
    ],
)
def test_build_edges(start, stop, bins_per_decade):
    edges = lb.build_edges(start, stop, bins_per_decade)
    factor = 10 ** (1 / bins_per_decade)
    assert edges[0] == max(1, start)
    assert edges[-1] == stop
    assert np.all(np.diff(edges) > 0), "Edges must be strictly increasing."
    ratios = edges[1:-1] / edges[:-2]
    assert np.allclose(ratios, factor), "Inner edges are spaced by the decade factor."


def test_build_edges_degenerate_range():
    assert lb.build_edges(1, 1, 30).tolist() == [1.0]


def test_adaptive_edges_are_dense_early():
    edges = lb.bin_edges(1e5, split=1e3, bins_early=30, bins_late=12)
    assert np.all(np.diff(edges) > 0), "The split edge must not be duplicated."
    assert 1e3 in edges
    assert np.count_nonzero(edges < 1e3) == 90
    assert np.count_nonzero(edges > 1e3) == 24


def test_fixed_edges():
    edges = lb.bin_edges(1e4, bins_early=10, strategy="fixed")
    assert len(edges) == 41
    assert edges[-1] == 1e4


def test_first_and_last_point_anchored(sparse_series):
    compact = lb.compress(sparse_series, x_max=10_000)
    assert compact.first == sparse_series.first, "The first raw point is kept exactly."
    assert compact.last[0] == 10_000, "The curve reaches the final attempt."
    assert np.all(compact.y > 0)
    assert np.all(np.isfinite(compact.x))


def test_clipping(sparse_series):
    compact = lb.compress(sparse_series, x_max=500)
    assert compact.last == (500.0, 2.2), "The last cost is carried out to x_max."
    assert np.all(compact.x <= 500)
    assert np.all(np.diff(compact.x) > 0)


def test_staircase_reaches_x_max(sparse_series):
    compact = lb.compress(sparse_series, x_max=1000)
    tail = compact.x > 400
    assert np.count_nonzero(tail) > 1, "Empty bins after the last point keep the curve going."
    assert np.all(compact.y[tail] == 2.2)
    assert compact.last == (1000.0, 2.2)


def test_geometric_mean_per_bin():
    series = cs.CostSeries(
        [1, 2, 8, 50, 200, 500, 1000], [8.0, 4.0, 2.0, 1.5, 1.0, 0.5, 0.25]
    )
    compact = lb.compress(series, x_max=1000, edges=np.array([1.0, 10.0, 100.0, 1000.0]))
    assert len(compact) == 5
    assert compact.first == (1.0, 8.0)
    assert np.isclose(compact.x[1], 4), "x is the geometric mean of the bin."
    assert np.isclose(compact.y[1], np.sqrt(8)), "y is the geometric mean of the bin."
    assert compact.x[2] == 50
    assert np.isclose(compact.x[3], np.sqrt(200 * 500))
    assert np.isclose(compact.y[3], np.sqrt(0.5))
    assert compact.last == (1000.0, 0.25), "The final point is kept, not averaged."


def test_empty_bin_continuity():
    series = cs.CostSeries([1, 2, 500, 1000], [10.0, 8.0, 4.0, 2.0])
    edges = np.array([1.0, 10.0, 100.0, 1000.0])
    compact = lb.compress(series, x_max=1000, edges=edges)
    assert np.isclose(compact.x[2], np.sqrt(10 * 100)), "Continuity point sits mid-bin."
    assert compact.y[2] == 8.0, "Continuity point repeats the last real value."
    assert np.all(compact.y > 0)


def test_gap_spanning_several_bins():
    series = cs.CostSeries([1, 3, 5000], [6.0, 5.0, 1.0])
    compact = lb.compress(series, x_max=5000, strategy="fixed", bins_early=4)
    gap = (compact.x > 3) & (compact.x < 5000 / 10 ** 0.25)
    assert np.count_nonzero(gap) >= 8
    assert np.allclose(compact.y[gap], 5.0)


@pytest.mark.parametrize("x_max", [10_000, 500, 20_000])
def test_compression_is_idempotent(sparse_series, x_max):
    once = lb.compress(sparse_series, x_max=x_max)
    twice = lb.compress(once, x_max=x_max)
    assert len(once) == len(twice)
    assert np.allclose(once.x, twice.x, rtol=1e-12)
    assert np.allclose(once.y, twice.y, rtol=1e-12)


@pytest.mark.parametrize(
    "components, dependencies, seed",
    [
        (10, 4, 0),
        (10, 4, 1),
        (10, 4, 2),
        (5, 1, 3),
        (15, 14, 4),
    ],
)
def test_simulated_compression_is_idempotent(components, dependencies, seed):
    run = rh.run_experiment(components, dependencies, attempts=100_000, seed=seed)
    once = lb.compress(run.series)
    twice = lb.compress(once, x_max=once.last[0])
    assert once.first == run.series.first
    assert once.last == run.series.last
    assert len(once) == len(twice), "A second pass must not merge or add points."
    assert np.allclose(once.x, twice.x, rtol=1e-12)
    assert np.allclose(once.y, twice.y, rtol=1e-12)


def test_repeated_first_attempt_is_kept_apart():
    series = cs.CostSeries([1, 1, 2, 40], [4.0, 3.5, 3.0, 2.0])
    once = lb.compress(series)
    assert once.first == (1.0, 4.0), "The starting total is not averaged away."
    twice = lb.compress(once, x_max=once.last[0])
    assert np.allclose(once.y, twice.y, rtol=1e-12)


def test_large_series_is_bounded():
    x = np.arange(1, 10_000_001, dtype=float)
    y = 20.0 * x ** -0.3
    compact = lb.compress(cs.CostSeries(x, y), x_max=10_000, bins_early=30)
    assert len(compact) < 500, "Output size depends on the decades, not the raw length."
    assert compact.last[0] == 10_000


def test_simulated_run_compresses():
    dsm = dg.generate_dsm(10, 3, rng=1)
    series = cs.run_simulation(dsm, attempts=200_000, rng=1)
    compact = lb.compress(series)
    assert compact.first == series.first
    assert compact.last[0] == series.last[0]
    assert np.all(compact.y >= cs.FLOOR_EPS)
    assert np.all(np.diff(compact.x) >= 0)


def test_raw_strategy(sparse_series):
    compact = lb.compress(sparse_series, x_max=1000, strategy="raw")
    assert np.array_equal(compact.x, sparse_series.x[sparse_series.x <= 1000])


def test_empty_clip():
    series = cs.CostSeries([5, 10], [2.0, 1.0])
    assert len(lb.compress(series, x_max=2)) == 0


def test_unknown_strategy(sparse_series):
    with pytest.raises(ValueError):
        lb.compress(sparse_series, strategy="spline")


def test_geometric_mean():
    assert np.isclose(lb.geometric_mean([1, 100]), 10)
    assert lb.geometric_mean([1000.0]) == 1000.0
    assert lb.geometric_mean([3.0, 3.0, 3.0]) == 3.0
    with pytest.raises(ValueError):
        lb.geometric_mean([])


def test_interesting_x():
    series = cs.CostSeries([1, 100, 1000, 1e6], [10.0, 5.0, 1.05, 1.0])
    assert lb.interesting_x(series) == 2000
    flat = cs.CostSeries([1, 5], [3.0, 3.0])
    assert lb.interesting_x(flat) == 10


def test_loglog_fits_power_law():
    x = np.logspace(0, 6, 50)
    series = cs.CostSeries(x, 3 * x ** -0.5)
    assert np.isclose(lb.loglog_slope(series), -0.5)
    assert abs(lb.loglog_curvature(series)) < 1e-8
    with pytest.raises(ValueError):
        lb.loglog_curvature(cs.CostSeries([1, 10], [2.0, 1.0]))


# %%
if __name__ == "__main__":
    x = np.arange(1, 1_000_001, dtype=float)
    compact = lb.compress(cs.CostSeries(x, 10 * x ** -0.2))
    print(len(compact), compact.points()[:3])
# %%
