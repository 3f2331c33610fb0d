# %%
import matplotlib as mpl
import matplotlib.pyplot as plt
import networkx as nx
import numpy as np

from dsmsim import DSMGenerator as dg
from dsmsim import LogBinning as lb
from dsmsim.figure_style import (
    AXIS_COLOR,
    DSM_ACTIVE_COLOR,
    DSM_EMPTY_COLOR,
    DSM_GRID_COLOR,
    run_color,
)

Y_FLOOR = 1e-8
Y_CAP = 10.0


def plot_dsm(dsm, ax=None):
    """Draw the DSM as a colour matrix, one cell per component pair."""
    dsm = dg.validate_dsm(dsm)
    n = dsm.shape[0]
    if ax is None:
        fig, ax = plt.subplots(figsize=(4, 4))

    cmap = mpl.colors.ListedColormap([DSM_EMPTY_COLOR, DSM_ACTIVE_COLOR])
    ax.imshow(dsm.astype(int), cmap=cmap, vmin=0, vmax=1)

    ax.set_xticks(np.arange(-0.5, n, 1), minor=True)
    ax.set_yticks(np.arange(-0.5, n, 1), minor=True)
    ax.grid(which="minor", color=DSM_GRID_COLOR, linewidth=1)
    ax.tick_params(which="both", length=0)
    ax.set_xticks([])
    ax.set_yticks([])

    return ax


def plot_dsm_graph(dsm, ax=None, node_size=300, **kwargs):
    """Draw the dependency network of a DSM."""
    G = dg.dsm_graph(dsm)
    if ax is None:
        fig, ax = plt.subplots(figsize=(4, 4))

    pos = nx.get_node_attributes(G, "pos")
    nx.draw_networkx_nodes(
        G,
        pos,
        ax=ax,
        node_color=list(nx.get_node_attributes(G, "color").values()),
        node_size=node_size,
        **kwargs,
    )
    nx.draw_networkx_labels(G, pos, ax=ax)
    nx.draw_networkx_edges(
        G,
        pos,
        ax=ax,
        edge_color=DSM_ACTIVE_COLOR,
        connectionstyle="arc3,rad=0.1",
        arrows=True,
        node_size=node_size,
    )
    ax.axis("off")
    return ax


def chart_limits(runs, attempts, y_floor=Y_FLOOR, y_cap=Y_CAP):
    """Shared axis limits for all runs.

    Returns
    -------
    x_max: float
            Largest interesting x-extent over the runs, at most ``attempts``.
    y_lim: tuple
            20% below the lowest and 10% above the highest cost, within
            ``[y_floor, y_cap]``.
    """
    runs = list(runs)
    if not runs:
        return float(attempts), (y_floor, y_cap)

    x_max = min(float(attempts), max(lb.interesting_x(run.series) for run in runs))

    all_y = np.concatenate([run.series.y for run in runs])
    y_min = max(y_floor, all_y.min() * 0.8)
    y_max = min(y_cap, all_y.max() * 1.1)
    if y_min == y_max:
        y_min = max(y_floor, y_min * 0.5)
        y_max = y_max * 2

    return x_max, (y_min, y_max)


def _decade_label(val, pos=None):
    if val <= 0:
        return ""
    log = np.log10(val)
    if abs(log - round(log)) < 1e-6:
        return rf"$10^{{{int(round(log))}}}$"
    return ""


decade_formatter = mpl.ticker.FuncFormatter(_decade_label)


def plot_cost_curves(
    runs,
    attempts,
    ax=None,
    strategy="adaptive",
    split=lb.DEFAULT_SPLIT,
    bins_early=lb.DEFAULT_BINS_EARLY,
    bins_late=lb.DEFAULT_BINS_LATE,
):
    """Log-log cost vs. attempt curves of all runs, compressed for drawing."""
    runs = list(runs)
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 5))

    x_max, (y_min, y_max) = chart_limits(runs, attempts)
    for idx, run in enumerate(runs):
        compact = lb.compress(
            run.series,
            x_max=x_max,
            split=split,
            bins_early=bins_early,
            bins_late=bins_late,
            strategy=strategy,
            floor=Y_FLOOR,
        )
        ax.plot(
            compact.x,
            compact.y,
            color=run_color(idx),
            label=run.label(idx + 1),
            linewidth=2,
        )

    ax.set_xscale("log")
    ax.set_yscale("log")
    ax.set_xlim(1, x_max)
    ax.set_ylim(y_min, y_max)
    ax.xaxis.set_major_formatter(decade_formatter)
    ax.yaxis.set_major_formatter(decade_formatter)
    ax.xaxis.set_minor_formatter(mpl.ticker.NullFormatter())
    ax.yaxis.set_minor_formatter(mpl.ticker.NullFormatter())
    ax.set_xlabel("# of Improvements Attempts", color=AXIS_COLOR)
    ax.set_ylabel("Cost", color=AXIS_COLOR)
    if runs:
        ax.legend(loc="upper right")

    return ax


# %%
if __name__ == "__main__":
    from dsmsim import run_history as rh

    history = rh.RunHistory()
    for d in (1, 4, 9):
        history.append(rh.run_experiment(10, d, attempts=1_000_000, seed=d))

    fig, (ax_dsm, ax_cost) = plt.subplots(1, 2, figsize=(12, 5))
    plot_dsm(history[-1].dsm, ax=ax_dsm)
    plot_cost_curves(history, 1_000_000, ax=ax_cost)
    plt.show()
# %%
