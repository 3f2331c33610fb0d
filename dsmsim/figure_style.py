"""Shared styling helpers for DSM and cost-curve figures."""

from __future__ import annotations

import shutil

import matplotlib as mpl
import matplotlib.pyplot as plt

DSM_ACTIVE_COLOR = "#A31F34"
DSM_EMPTY_COLOR = "#fff"
DSM_GRID_COLOR = "#ccc"
AXIS_COLOR = "#333"

RUN_COLORS = ["#A31F34", "#888", "#555", "#ccc"]


def run_color(index: int) -> str:
    """Colour of the ``index``-th run, cycling through RUN_COLORS."""
    return RUN_COLORS[index % len(RUN_COLORS)]


def apply_publication_style(font_size: int = 14, use_latex: bool = False) -> None:
    """Apply matplotlib defaults for cost-curve figures."""
    if use_latex and shutil.which("pdflatex") is None:
        use_latex = False

    params = {
        "axes.titlesize": font_size,
        "axes.labelsize": font_size,
        "axes.edgecolor": AXIS_COLOR,
        "axes.spines.top": False,
        "axes.spines.right": False,
        "font.size": font_size,
        "legend.fontsize": font_size - 2,
        "legend.frameon": False,
        "xtick.labelsize": font_size,
        "ytick.labelsize": font_size,
        "xtick.color": AXIS_COLOR,
        "ytick.color": AXIS_COLOR,
        "lines.linewidth": 2,
        "figure.constrained_layout.use": True,
    }
    if use_latex:
        params.update({"text.usetex": True, "font.family": "sans-serif"})

    mpl.rcParams.update(params)


def add_panel_label(
    ax: plt.Axes,
    label: str,
    x: float = 0.02,
    y: float = 1.04,
    fontsize: int = 18,
) -> None:
    """Add a bold panel label to an axis in axes coordinates."""
    ax.text(
        x,
        y,
        label,
        ha="left",
        va="bottom",
        fontweight="bold",
        transform=ax.transAxes,
        fontsize=fontsize,
    )
