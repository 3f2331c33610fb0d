"""Monte-Carlo cost improvement over a design structure matrix.

Each attempt picks a component, draws new candidate costs from a power law
whose exponent depends on the size of the component's dependency set, and
accepts them only if they lower the summed cost of that dependency set. The
recorded total is always recomputed over the whole cost vector.
"""

from __future__ import annotations

import warnings
from concurrent.futures import Executor, Future
from dataclasses import dataclass

import numpy as np
import tqdm

from dsmsim import DSMGenerator as dg
from dsmsim._series_utils import as_rng, clamp_to_floor, series_arrays

FLOOR_EPS = 1e-8
MAX_ATTEMPTS = 10_000_000

UPDATE_RULES = ("component", "dependency_set")
INITIAL_COSTS = {
    "unit": 1.0,
    "below_unit": 1.0 - 1e-6,
}


@dataclass(frozen=True, eq=False)
class CostSeries:
    """Ordered (attempt, total cost) observations."""

    x: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        x, y = series_arrays(self.x, self.y)
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    def __len__(self) -> int:
        return int(self.x.size)

    @property
    def first(self) -> tuple[float, float]:
        return float(self.x[0]), float(self.y[0])

    @property
    def last(self) -> tuple[float, float]:
        return float(self.x[-1]), float(self.y[-1])

    def clip(self, x_max: float) -> "CostSeries":
        mask = self.x <= x_max
        return CostSeries(self.x[mask], self.y[mask])

    def points(self) -> list[dict[str, float]]:
        """Points as ``{"x", "y"}`` dicts, the format chart renderers consume."""
        return [{"x": float(a), "y": float(b)} for a, b in zip(self.x, self.y)]


@dataclass(frozen=True)
class SimulationConfig:
    """Model variant of a simulation run.

    ``update_rule="component"`` redraws only the picked component, while
    ``"dependency_set"`` redraws every member of its dependency set at once.
    ``initial_cost`` is a positive float, "unit", "below_unit" or "inverse"
    (1/n per component).
    """

    update_rule: str = "component"
    initial_cost: float | str = "unit"
    floor: float = FLOOR_EPS
    chunk_size: int = 1_000_000

    def __post_init__(self):
        if self.update_rule not in UPDATE_RULES:
            raise ValueError(
                f"Unknown update rule '{self.update_rule}', expected one of {UPDATE_RULES}."
            )
        if not 0 < self.floor < 1:
            raise ValueError(f"floor must be in (0, 1), got {self.floor}.")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {self.chunk_size}.")
        if isinstance(self.initial_cost, str):
            if self.initial_cost != "inverse" and self.initial_cost not in INITIAL_COSTS:
                raise ValueError(f"Unknown initial cost '{self.initial_cost}'.")
        elif not np.isfinite(self.initial_cost) or self.initial_cost <= 0:
            raise ValueError(
                f"initial_cost must be positive and finite, got {self.initial_cost}."
            )

    def initial_costs(self, n: int) -> np.ndarray:
        if self.initial_cost == "inverse":
            value = 1.0 / n
        elif isinstance(self.initial_cost, str):
            value = INITIAL_COSTS[self.initial_cost]
        else:
            value = float(self.initial_cost)
        return np.full(n, max(value, self.floor))


def power_law_sample(u, degree, floor: float = FLOOR_EPS) -> np.ndarray:
    """Map uniform draws to ``u ** (1 / degree)``, clamped to the floor.

    A degree of zero has nothing to improve and yields ``inf``.
    """
    u = np.asarray(u, dtype=float)
    degree = np.asarray(degree, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        samples = clamp_to_floor(u ** (1.0 / degree), floor)
    return np.where(degree > 0, samples, np.inf)


def _check_attempts(attempts) -> int:
    attempts = int(attempts)
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}.")
    if attempts > MAX_ATTEMPTS:
        warnings.warn(
            f"attempts={attempts} exceeds the cap of {MAX_ATTEMPTS}, clamping."
        )
        attempts = MAX_ATTEMPTS
    return attempts


def _component_events(costs, picks, samples):
    """Accepted (offset, component, cost) triples of one chunk in attempt order.

    Under the component rule a component's cost only changes through its own
    draws, so acceptance is a draw beating the running minimum of that
    component's previous draws and its cost at the chunk start.
    """
    offsets, components, values = [], [], []
    for i in range(costs.size):
        idx = np.flatnonzero(picks == i)
        if idx.size == 0:
            continue
        s = samples[idx]
        best_before = np.minimum.accumulate(np.concatenate(([costs[i]], s)))[:-1]
        accepted = s < best_before
        offsets.append(idx[accepted])
        components.append(np.full(np.count_nonzero(accepted), i))
        values.append(s[accepted])

    offsets = np.concatenate(offsets)
    order = np.argsort(offsets, kind="stable")
    return offsets[order], np.concatenate(components)[order], np.concatenate(values)[order]


def run_simulation(dsm, attempts=MAX_ATTEMPTS, rng=None, config=None, progress=False):
    """Run the improvement walk and return the recorded cost series.

    Parameters
    ----------
    dsm: array-like
            Square boolean dependency matrix.
    attempts: int
            Attempt budget, capped at MAX_ATTEMPTS.
    rng: numpy.random.Generator, int or None
            Source of randomness.
    config: SimulationConfig, optional
    progress: bool
            Show a tqdm bar over the processed chunks.

    Returns
    -------
    series: CostSeries
            Starts at attempt 1 with the initial total, records every strict
            decrease of the total and ends at ``attempts``.
    """
    dsm = dg.validate_dsm(dsm)
    config = SimulationConfig() if config is None else config
    attempts = _check_attempts(attempts)
    rng = as_rng(rng)

    n = dsm.shape[0]
    floor = config.floor
    members = dg.dependency_sets(dsm)
    degrees = np.array([m.size for m in members])

    costs = config.initial_costs(n)
    last_total = max(float(costs.sum()), floor * n)
    xs, ys = [1], [last_total]

    def record(t):
        nonlocal last_total
        total = max(float(costs.sum()), floor * n)
        if total < last_total:
            last_total = total
            xs.append(t)
            ys.append(total)

    if config.update_rule == "component":
        chunk = config.chunk_size
    else:
        chunk = max(1, config.chunk_size // n)
    starts = range(0, attempts, chunk)
    if progress:
        starts = tqdm.tqdm(starts, desc=f"{n} components", unit="chunk")

    for start in starts:
        size = min(chunk, attempts - start)
        picks = rng.integers(0, n, size=size)

        if config.update_rule == "component":
            samples = power_law_sample(rng.random(size), degrees[picks], floor)
            for offset, i, value in zip(*_component_events(costs, picks, samples)):
                costs[i] = value
                record(start + int(offset) + 1)
            continue

        # row k holds the candidate block of attempt k in its first |A_i| columns
        samples = power_law_sample(rng.random((size, n)), degrees[picks][:, None], floor)
        for k in range(size):
            dep = members[picks[k]]
            if dep.size == 0:
                continue
            candidate = samples[k, : dep.size]
            if candidate.sum() < costs[dep].sum():
                costs[dep] = candidate
                record(start + k + 1)

    if xs[-1] != attempts:
        xs.append(attempts)
        ys.append(last_total)

    return CostSeries(np.asarray(xs, dtype=float), np.asarray(ys, dtype=float))


def submit_simulation(executor: Executor, dsm, attempts=MAX_ATTEMPTS, **kwargs) -> Future:
    """Run one simulation on ``executor`` so the caller is not blocked."""
    return executor.submit(run_simulation, dsm, attempts, **kwargs)


# %%
if __name__ == "__main__":
    dsm = dg.generate_dsm(10, 3, mode="fixed", rng=42)
    series = run_simulation(dsm, attempts=1_000_000, rng=42, progress=True)
    print(len(series), series.first, series.last)
# %%
