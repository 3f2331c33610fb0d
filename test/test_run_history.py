# %%
import numpy as np
import pytest

from dsmsim import CostSimulation as cs
from dsmsim import run_history as rh


@pytest.fixture
def setup_runs():
    def _setup(settings, attempts=5000):
        return [
            rh.run_experiment(c, d, attempts=attempts, seed=seed)
            for seed, (c, d) in enumerate(settings)
        ]

    return _setup


def test_history_is_bounded(setup_runs):
    runs = setup_runs([(4, 1), (5, 2), (6, 3), (7, 4), (8, 5)], attempts=500)
    history = rh.RunHistory(max_runs=3)
    for run in runs:
        history.append(run)
    assert len(history) == 3, "Only the most recent runs are kept."
    assert [run.components for run in history] == [6, 7, 8]
    assert history[-1] is runs[-1]

    history.clear()
    assert len(history) == 0


def test_history_default_size():
    assert rh.RunHistory().max_runs == rh.DEFAULT_HISTORY_SIZE
    with pytest.raises(ValueError):
        rh.RunHistory(max_runs=0)


def test_run_experiment_clamps_inputs():
    run = rh.run_experiment(20, 20, attempts=1000, seed=1)
    assert (run.components, run.dependencies) == (15, 14)
    assert run.dsm.shape == (15, 15)
    assert np.all(run.dsm)
    assert run.label(2) == "Run 2: C=15, D=14"
    assert run.attempts == 1000


def test_run_experiment_rejects_invalid_inputs():
    with pytest.raises(ValueError):
        rh.run_experiment(1, 1, attempts=10)
    with pytest.raises(ValueError):
        rh.run_experiment("many", 2, attempts=10)


def test_run_experiment_is_reproducible():
    a = rh.run_experiment(9, 4, mode="random", attempts=20_000, seed=5)
    b = rh.run_experiment(9, 4, mode="random", attempts=20_000, seed=5)
    assert np.array_equal(a.dsm, b.dsm)
    assert np.array_equal(a.series.y, b.series.y)


def test_run_experiment_with_config():
    config = cs.SimulationConfig(update_rule="dependency_set", initial_cost="inverse")
    run = rh.run_experiment(6, 2, attempts=3000, seed=3, config=config)
    assert np.isclose(run.series.first[1], 1.0)
    assert run.series.last[1] <= 1.0


def test_summarize_runs(setup_runs):
    runs = setup_runs([(5, 1), (10, 6)], attempts=20_000)
    summary = rh.summarize_runs(runs)
    assert len(summary) == 2
    assert summary["label"].tolist() == ["Run 1: C=5, D=1", "Run 2: C=10, D=6"]
    assert np.all(summary["final_cost"] < summary["initial_cost"])
    assert np.all(summary["improvements"] > 0)
    assert np.all(summary["compressed_points"] > 2)
    assert np.all(np.isfinite(summary["loglog_slope"]))


def test_dependency_sweep():
    detail = rh.dependency_sweep(6, [1, 5], attempts=5000, repeats=2, seed=1, max_workers=1)
    assert len(detail) == 4
    assert detail["dependencies"].tolist() == [1, 1, 5, 5]
    assert detail["repeat"].tolist() == [0, 1, 0, 1]
    assert detail["seed"].nunique() == 4, "Every run gets its own seed."


def test_dependency_sweep_rejects_empty_grid():
    with pytest.raises(ValueError):
        rh.dependency_sweep(6, [], attempts=100)
    with pytest.raises(ValueError):
        rh.dependency_sweep(6, [1], attempts=100, repeats=0)


# %%
if __name__ == "__main__":
    print(rh.dependency_sweep(8, [1, 3, 7], attempts=50_000, repeats=2))
# %%
