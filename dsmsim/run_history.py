"""Run records, bounded run history and multi-run experiment workflows."""

from __future__ import annotations

from collections import deque
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

import numpy as np
import pandas as pd
import tqdm

from dsmsim import CostSimulation as cs
from dsmsim import DSMGenerator as dg
from dsmsim import LogBinning as lb
from dsmsim._series_utils import as_rng

DEFAULT_HISTORY_SIZE = 3


@dataclass
class SimulationRun:
    """Container for one generate -> simulate pipeline run."""

    dsm: np.ndarray
    components: int
    dependencies: int
    mode: str
    series: cs.CostSeries
    seed: int | None = None

    def label(self, index: int) -> str:
        return f"Run {index}: C={self.components}, D={self.dependencies}"

    @property
    def attempts(self) -> int:
        return int(self.series.last[0])

    @property
    def improvements(self) -> int:
        return int(np.count_nonzero(np.diff(self.series.y) < 0))


class RunHistory:
    """The most recent runs, oldest first, bounded to ``max_runs`` entries."""

    def __init__(self, max_runs: int = DEFAULT_HISTORY_SIZE):
        if max_runs < 1:
            raise ValueError(f"max_runs must be at least 1, got {max_runs}.")
        self._runs: deque[SimulationRun] = deque(maxlen=max_runs)

    @property
    def max_runs(self) -> int:
        return self._runs.maxlen

    def append(self, run: SimulationRun) -> None:
        self._runs.append(run)

    def clear(self) -> None:
        self._runs.clear()

    def __len__(self) -> int:
        return len(self._runs)

    def __iter__(self) -> Iterator[SimulationRun]:
        return iter(self._runs)

    def __getitem__(self, index: int) -> SimulationRun:
        return self._runs[index]


def run_experiment(
    components,
    dependencies,
    mode: str = "fixed",
    attempts: int = cs.MAX_ATTEMPTS,
    rng=None,
    config: cs.SimulationConfig | None = None,
    progress: bool = False,
    seed: int | None = None,
) -> SimulationRun:
    """Clamp the inputs, generate a DSM and simulate it with one random stream."""
    components, dependencies = dg.clamp_parameters(components, dependencies)
    rng = as_rng(seed if rng is None else rng)

    dsm = dg.generate_dsm(components, dependencies, mode=mode, rng=rng)
    series = cs.run_simulation(
        dsm, attempts=attempts, rng=rng, config=config, progress=progress
    )
    return SimulationRun(
        dsm=dsm,
        components=components,
        dependencies=dependencies,
        mode=mode,
        series=series,
        seed=seed,
    )


def _shape_metrics(series: cs.CostSeries) -> tuple[float, float]:
    if np.unique(series.x).size < 3:
        return float("nan"), float("nan")
    return lb.loglog_slope(series), lb.loglog_curvature(series)


def summarize_runs(runs: Iterable[SimulationRun], x_max: float | None = None) -> pd.DataFrame:
    """One row of descriptive metrics per run.

    Slope and curvature are fitted on the compressed curve up to ``x_max``,
    by default the run's own interesting x-extent.
    """
    rows = []
    for index, run in enumerate(runs, start=1):
        run_x_max = lb.interesting_x(run.series) if x_max is None else x_max
        compact = lb.compress(run.series, x_max=run_x_max)
        slope, curvature = _shape_metrics(compact)
        rows.append(
            {
                "label": run.label(index),
                "components": run.components,
                "dependencies": run.dependencies,
                "mode": run.mode,
                "seed": run.seed,
                "attempts": run.attempts,
                "initial_cost": run.series.first[1],
                "final_cost": run.series.last[1],
                "improvements": run.improvements,
                "x_max": float(run_x_max),
                "compressed_points": len(compact),
                "loglog_slope": slope,
                "loglog_curvature": curvature,
            }
        )
    return pd.DataFrame(rows)


def _sweep_task(task) -> SimulationRun:
    components, dependencies, mode, attempts, seed, config = task
    return run_experiment(
        components, dependencies, mode=mode, attempts=attempts, config=config, seed=seed
    )


def dependency_sweep(
    components: int,
    dependency_values: Sequence[int],
    attempts: int = 100_000,
    repeats: int = 4,
    mode: str = "fixed",
    seed: int = 42,
    config: cs.SimulationConfig | None = None,
    max_workers: int | None = 1,
) -> pd.DataFrame:
    """Repeat runs across dependency counts and summarise every run.

    With ``max_workers == 1`` everything runs in-process, otherwise on a
    process pool. Every run gets its own seed spawned from ``seed``.
    """
    if repeats < 1:
        raise ValueError(f"repeats must be at least 1, got {repeats}.")
    if len(dependency_values) == 0:
        raise ValueError("At least one dependency value is required.")

    seeds = np.random.SeedSequence(seed).generate_state(len(dependency_values) * repeats)
    tasks = [
        (components, int(d), mode, attempts, int(seeds[k * repeats + r]), config)
        for k, d in enumerate(dependency_values)
        for r in range(repeats)
    ]

    if max_workers == 1:
        runs = [_sweep_task(task) for task in tqdm.tqdm(tasks, desc="sweep")]
    else:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            runs = list(
                tqdm.tqdm(executor.map(_sweep_task, tasks), total=len(tasks), desc="sweep")
            )

    summary = summarize_runs(runs)
    summary["repeat"] = [r for _ in dependency_values for r in range(repeats)]
    return summary
