# %%
import networkx as nx
import numpy as np

from dsmsim._series_utils import as_rng

MIN_COMPONENTS = 2
MAX_COMPONENTS = 15
MIN_DEPENDENCIES = 1
MAX_DEPENDENCIES = MAX_COMPONENTS - 1

DSM_MODES = ("fixed", "random")


def clamp_parameters(components, dependencies):
    """Clamp form input to the supported DSM sizes.

    Components are capped at 15 and dependencies at 14, and the dependency
    count is lowered to ``components - 1`` when it would reach the number of
    components. Non-numeric input or values below the minimum raise a
    ValueError before any simulation work is done.
    """
    try:
        components = int(components)
        dependencies = int(dependencies)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValueError(
            f"Components and dependencies must be integers, got "
            f"{components!r} and {dependencies!r}."
        ) from exc

    components = min(components, MAX_COMPONENTS)
    dependencies = min(dependencies, MAX_DEPENDENCIES)
    if dependencies >= components:
        dependencies = components - 1

    if components < MIN_COMPONENTS or dependencies < MIN_DEPENDENCIES:
        raise ValueError(
            f"Need at least {MIN_COMPONENTS} components and {MIN_DEPENDENCIES} "
            f"dependency, got components={components}, dependencies={dependencies}."
        )
    return components, dependencies


def generate_dsm(n, d, mode="fixed", rng=None):
    """Random design structure matrix with controlled out-degree.

    Parameters
    ----------
    n: int
            Number of components, 2 <= n <= 15.
    d: int
            Off-diagonal out-degree. Every row depends on itself in addition
            to its ``d`` (fixed mode) or ``1..d`` (random mode) other components.
    mode: str
            "fixed" or "random".
    rng: numpy.random.Generator, int or None
            Source of randomness.

    Returns
    -------
    dsm: np.ndarray
            Boolean (n, n) matrix, ``dsm[i, j]`` true if the cost of i
            depends on component j.
    """
    if mode not in DSM_MODES:
        raise ValueError(f"Unknown DSM mode '{mode}', expected one of {DSM_MODES}.")
    try:
        n = int(n)
        d = int(d)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"n and d must be integers, got {n!r} and {d!r}.") from exc
    if not MIN_COMPONENTS <= n <= MAX_COMPONENTS:
        raise ValueError(
            f"Number of components must be in [{MIN_COMPONENTS}, {MAX_COMPONENTS}], got {n}."
        )
    if d < MIN_DEPENDENCIES:
        raise ValueError(f"Dependency bound must be at least {MIN_DEPENDENCIES}, got {d}.")
    d = min(d, n - 1)

    rng = as_rng(rng)
    dsm = np.zeros((n, n), dtype=bool)
    for i in range(n):
        dsm[i, i] = True
        if mode == "fixed":
            out_degree = d
        else:
            out_degree = int(rng.integers(1, d + 1))
        out_degree = max(0, min(out_degree, n - 1))

        targets = np.delete(np.arange(n), i)
        targets = rng.permutation(targets)[:out_degree]
        dsm[i, targets] = True

    return dsm


def validate_dsm(dsm):
    dsm = np.asarray(dsm).astype(bool)
    if dsm.ndim != 2 or dsm.shape[0] != dsm.shape[1] or dsm.shape[0] == 0:
        raise ValueError(f"Expected a non-empty square matrix, got shape {dsm.shape}.")
    return dsm


def out_degrees(dsm):
    """Number of other components each component depends on."""
    dsm = validate_dsm(dsm)
    return dsm.sum(axis=1) - np.diag(dsm).astype(int)


def dependency_sets(dsm):
    """Column indices of every row's dependency set, self included."""
    dsm = validate_dsm(dsm)
    return [np.flatnonzero(row) for row in dsm]


def dsm_graph(dsm):
    """Directed dependency graph of a DSM without self loops."""
    dsm = validate_dsm(dsm)
    G = nx.from_numpy_array(dsm.astype(int), create_using=nx.DiGraph)
    G.remove_edges_from(list(nx.selfloop_edges(G)))

    pos = nx.circular_layout(G)
    nx.set_node_attributes(G, pos, "pos")
    nx.set_node_attributes(G, "lightgrey", "color")
    nx.set_edge_attributes(G, "#A31F34", "color")
    return G


# %%
if __name__ == "__main__":
    components, dependencies = clamp_parameters(8, 3)
    dsm = generate_dsm(components, dependencies, mode="random", rng=42)
    print(dsm.astype(int))
    print(out_degrees(dsm))
    # %%
    G = dsm_graph(dsm)
    print(dict(G.out_degree()))
# %%
