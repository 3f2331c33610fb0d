# %%
"""DSM and cost-improvement curves for a few component/dependency settings.

Outputs:
- figure with the last DSM and the log-log cost curves of all kept runs,
- CSV with one summary row per run.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import matplotlib.pyplot as plt

# Allow direct execution via `python analysis/<script>.py`.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dsmsim import CostSimulation as cs
from dsmsim import Plotting as pl
from dsmsim import run_history as rh
from dsmsim.figure_style import add_panel_label, apply_publication_style

OUTPUT_FIGURE = "figs/dsm-cost-curves.pdf"
OUTPUT_SUMMARY = "cache/dsm-cost-curves-summary.csv"


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--components", type=int, nargs="+", default=[10, 10, 10],
        help="Number of components of each run (2-15).",
    )
    parser.add_argument(
        "--dependencies", type=int, nargs="+", default=[1, 4, 9],
        help="Dependency bound of each run (1-14).",
    )
    parser.add_argument("--mode", choices=["fixed", "random"], default="fixed")
    parser.add_argument("--attempts", type=int, default=cs.MAX_ATTEMPTS)
    parser.add_argument(
        "--update-rule", choices=list(cs.UPDATE_RULES), default="component"
    )
    parser.add_argument(
        "--strategy", choices=["adaptive", "fixed", "raw"], default="adaptive"
    )
    parser.add_argument("--history-size", type=int, default=rh.DEFAULT_HISTORY_SIZE)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--output-figure", default=OUTPUT_FIGURE)
    parser.add_argument("--output-summary", default=OUTPUT_SUMMARY)
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = _parse_args(argv)
    if len(args.components) != len(args.dependencies):
        raise SystemExit("--components and --dependencies need the same number of values.")

    apply_publication_style(font_size=14)
    config = cs.SimulationConfig(update_rule=args.update_rule)

    history = rh.RunHistory(max_runs=args.history_size)
    for k, (components, dependencies) in enumerate(zip(args.components, args.dependencies)):
        start = time.time()
        run = rh.run_experiment(
            components,
            dependencies,
            mode=args.mode,
            attempts=args.attempts,
            config=config,
            seed=args.seed + k,
            progress=True,
        )
        history.append(run)
        print(
            f"C={run.components}, D={run.dependencies}: {run.improvements} improvements, "
            f"final cost {run.series.last[1]:.3e} ({time.time() - start:.1f}s)"
        )

    fig = plt.figure(figsize=(13, 5), constrained_layout=True)
    gs = fig.add_gridspec(1, 2, width_ratios=[1, 2.2])
    ax_dsm = fig.add_subplot(gs[0, 0])
    ax_cost = fig.add_subplot(gs[0, 1])

    pl.plot_dsm(history[-1].dsm, ax=ax_dsm)
    pl.plot_cost_curves(history, args.attempts, ax=ax_cost, strategy=args.strategy)
    add_panel_label(ax_dsm, "a")
    add_panel_label(ax_cost, "b")

    Path(args.output_figure).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(args.output_figure, bbox_inches="tight")

    summary = rh.summarize_runs(history)
    Path(args.output_summary).parent.mkdir(parents=True, exist_ok=True)
    summary.to_csv(args.output_summary, index=False)
    print(summary.to_string(index=False))


if __name__ == "__main__":
    main()

# %%
