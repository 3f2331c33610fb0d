# %%
"""Log-log shape of the cost curve across dependency counts.

Low dependency counts give convex log-log curves, high ones approach a
straight line. The sweep fits slope and curvature of every compressed run.

Outputs:
- detail CSV with one row per run,
- 2-panel figure of mean slope and curvature against the dependency count.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import matplotlib.pyplot as plt

# Allow direct execution via `python analysis/<script>.py`.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dsmsim import DSMGenerator as dg
from dsmsim import run_history as rh
from dsmsim.figure_style import RUN_COLORS, add_panel_label, apply_publication_style

OUTPUT_FIGURE = "figs/dependency-sweep.pdf"
OUTPUT_DETAIL = "cache/dependency-sweep-detail.csv"


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--components", type=int, default=dg.MAX_COMPONENTS)
    parser.add_argument(
        "--dependencies", type=int, nargs="+", default=None,
        help="Dependency counts to scan, default 1..components-1.",
    )
    parser.add_argument("--mode", choices=["fixed", "random"], default="fixed")
    parser.add_argument("--attempts", type=int, default=1_000_000)
    parser.add_argument("--repeats", type=int, default=8)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--max-workers", type=int, default=None)
    parser.add_argument("--output-figure", default=OUTPUT_FIGURE)
    parser.add_argument("--output-detail", default=OUTPUT_DETAIL)
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = _parse_args(argv)
    components, _ = dg.clamp_parameters(args.components, 1)
    dependencies = args.dependencies or list(range(1, components))

    apply_publication_style(font_size=14)
    detail = rh.dependency_sweep(
        components,
        dependencies,
        attempts=args.attempts,
        repeats=args.repeats,
        mode=args.mode,
        seed=args.seed,
        max_workers=args.max_workers,
    )
    Path(args.output_detail).parent.mkdir(parents=True, exist_ok=True)
    detail.to_csv(args.output_detail, index=False)

    grouped = detail.groupby("dependencies", as_index=False).agg(
        slope_mean=("loglog_slope", "mean"),
        slope_std=("loglog_slope", "std"),
        curvature_mean=("loglog_curvature", "mean"),
        curvature_std=("loglog_curvature", "std"),
    )
    print(grouped.to_string(index=False))

    fig, (ax_slope, ax_curv) = plt.subplots(1, 2, figsize=(11, 4.5), constrained_layout=True)
    ax_slope.errorbar(
        grouped["dependencies"], grouped["slope_mean"], yerr=grouped["slope_std"],
        color=RUN_COLORS[0], marker="o", capsize=3,
    )
    ax_slope.set_xlabel("Dependencies $d$")
    ax_slope.set_ylabel("Log-log slope")

    ax_curv.errorbar(
        grouped["dependencies"], grouped["curvature_mean"], yerr=grouped["curvature_std"],
        color=RUN_COLORS[2], marker="s", capsize=3,
    )
    ax_curv.axhline(0, color="lightgrey", linewidth=1)
    ax_curv.set_xlabel("Dependencies $d$")
    ax_curv.set_ylabel("Log-log curvature")

    add_panel_label(ax_slope, "a")
    add_panel_label(ax_curv, "b")

    Path(args.output_figure).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(args.output_figure, bbox_inches="tight")


if __name__ == "__main__":
    main()

# %%
