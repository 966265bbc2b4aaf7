"""Ordination helpers: score extraction, NMDS, scree plots and species selection.

Score extraction
~~~~~~~~~~~~~~~~
:func:`site_scores` accepts the ordination outputs found in the Python
ecosystem and returns one axis as a plain vector:

* :class:`~vegtools._results.OrdinationResult` (from :func:`nmds`),
* objects with a ``samples`` table (scikit-bio ``OrdinationResults``),
* fitted scikit-learn estimators with an ``embedding_`` array
  (``MDS``, ``Isomap``, ...),
* plain 2-D arrays or DataFrames of scores.

NMDS
~~~~
:func:`nmds` runs non-metric multidimensional scaling on a
Bray-Curtis (or any ``scipy.spatial.distance`` metric) dissimilarity
matrix through scikit-learn's SMACOF solver and keeps the best of
``trymax`` random starts.  Species scores are weighted averages of the
site scores, as in vegan's ``metaMDS``.

:func:`screeplot_nmds` repeats the scaling for 1..k dimensions and
draws the stress against dimensionality.  Rules of thumb for Kruskal
stress (Clarke 1993): < 0.05 excellent, < 0.1 good, < 0.2 usable,
> 0.2 not interpretable.

Species selection
~~~~~~~~~~~~~~~~~
:func:`ordiselect` reduces crowded ordination diagrams to the species
that are both abundant and well represented by the diagram.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy.spatial.distance import pdist, squareform
from sklearn.manifold import smacof

from ._compat import DataFrameLike, _ensure_pandas_df
from ._config import make_default_renderer
from ._results import OrdinationResult
from .rendering import Renderer

logger = logging.getLogger(__name__)

STRESS_THRESHOLDS = (0.05, 0.1, 0.2)


# ------------------------------------------------------------------ #
# Score extraction
# ------------------------------------------------------------------ #


def _score_table(ordination: Any) -> pd.DataFrame:
    if isinstance(ordination, OrdinationResult):
        return ordination.sites
    samples = getattr(ordination, "samples", None)
    if isinstance(samples, pd.DataFrame):
        return samples
    embedding = getattr(ordination, "embedding_", None)
    if embedding is not None:
        return pd.DataFrame(np.asarray(embedding))
    if isinstance(ordination, pd.DataFrame):
        return ordination
    if isinstance(ordination, np.ndarray) and ordination.ndim == 2:
        return pd.DataFrame(ordination)
    raise TypeError(
        f"Cannot extract site scores from object of type {type(ordination).__name__}."
    )


def site_scores(ordination: Any, axis: int = 1) -> np.ndarray:
    """Site scores of one ordination axis.

    Args:
        ordination: Ordination result (see module docstring for the accepted
            types).
        axis: 1-based axis number.

    Returns:
        Float vector with one score per plot.

    Raises:
        TypeError: If *ordination* is not a recognised ordination output.
        ValueError: If *axis* is not an axis of the ordination.
    """
    table = _score_table(ordination)
    if not 1 <= axis <= table.shape[1]:
        raise ValueError(
            f"Axis {axis} not available; ordination has {table.shape[1]} axes."
        )
    return table.iloc[:, axis - 1].to_numpy(dtype=float)


def species_scores(ordination: Any, choices: Sequence[int] = (1, 2)) -> pd.DataFrame:
    """Species scores on the 1-based axes *choices*.

    Raises:
        ValueError: If the ordination carries no species scores or an
            axis is out of range.
    """
    if isinstance(ordination, OrdinationResult):
        table = ordination.species
    else:
        table = getattr(ordination, "features", None)
    if not isinstance(table, pd.DataFrame):
        raise ValueError("Ordination result carries no species scores.")
    for axis in choices:
        if not 1 <= axis <= table.shape[1]:
            raise ValueError(
                f"Axis {axis} not available; ordination has {table.shape[1]} axes."
            )
    return table.iloc[:, [a - 1 for a in choices]]


def wascores(sites: pd.DataFrame | np.ndarray, matrix: DataFrameLike) -> pd.DataFrame:
    """Weighted-average species scores.

    Each species' score on an axis is the mean of the site scores
    weighted by its abundance.  Species absent from every plot get NaN.
    """
    df = _ensure_pandas_df(matrix, name="matrix")
    weights = df.to_numpy(dtype=float)
    scores = np.asarray(sites, dtype=float)
    totals = weights.sum(axis=0)
    with np.errstate(invalid="ignore", divide="ignore"):
        wa = (weights.T @ scores) / totals[:, np.newaxis]
    columns = sites.columns if isinstance(sites, pd.DataFrame) else None
    return pd.DataFrame(wa, index=df.columns, columns=columns)


# ------------------------------------------------------------------ #
# NMDS
# ------------------------------------------------------------------ #


def _dissimilarities(df: pd.DataFrame, distance: str) -> np.ndarray:
    values = df.to_numpy(dtype=float)
    if distance == "bray":
        if np.any(values.sum(axis=1) == 0):
            raise ValueError("Bray-Curtis distance undefined for empty plots.")
        distance = "braycurtis"
    return squareform(pdist(values, metric=distance))


def _smacof(
    dis: np.ndarray, k: int, n_init: int, random_state: Any
) -> tuple[np.ndarray, float]:
    config, stress = smacof(
        dis,
        metric=False,
        n_components=k,
        n_init=n_init,
        random_state=random_state,
    )
    return config, float(stress)


def nmds(
    matrix: DataFrameLike,
    k: int = 2,
    *,
    distance: str = "bray",
    trymax: int = 20,
    random_state: int | None = None,
) -> OrdinationResult:
    """Non-metric multidimensional scaling of a species table.

    Args:
        matrix: Species table, plots in rows, species in columns.
        k: Number of dimensions.
        distance: ``"bray"`` or any metric name understood by
            :func:`scipy.spatial.distance.pdist`.
        trymax: Number of random starts; the lowest-stress solution is
            kept.
        random_state: Seed for reproducible starts.

    Returns:
        An :class:`OrdinationResult` with site scores ``NMDS1..NMDSk``,
        weighted-average species scores and the final stress.
    """
    if k < 1:
        raise ValueError("k must be at least 1.")
    df = _ensure_pandas_df(matrix, name="matrix")
    dis = _dissimilarities(df, distance)
    config, stress = _smacof(dis, k, trymax, random_state)
    columns = [f"NMDS{i + 1}" for i in range(k)]
    sites = pd.DataFrame(config, index=df.index, columns=columns)
    logger.debug("NMDS k=%d stress=%.4f", k, stress)
    return OrdinationResult(
        sites=sites,
        species=wascores(sites, df),
        stress=stress,
        method="NMDS",
    )


def screeplot_nmds(
    matrix: DataFrameLike,
    *,
    distance: str = "bray",
    k: int = 6,
    trymax: int = 20,
    random_state: int | None = None,
    renderer: Renderer | None = None,
) -> pd.DataFrame:
    """Stress of NMDS solutions with 1..k dimensions.

    For every dimensionality ``trymax`` independent random starts are
    run.  The mean stress is drawn as a line with the min-max range as
    a shaded band, and the usual stress thresholds (0.05, 0.1, 0.2) as
    dashed reference lines.  The stress table is printed and returned.

    Returns:
        DataFrame with columns ``dimensions``, ``mean``, ``min``,
        ``max``.
    """
    if k < 1:
        raise ValueError("k must be at least 1.")
    if trymax < 1:
        raise ValueError("trymax must be at least 1.")
    df = _ensure_pandas_df(matrix, name="matrix")
    dis = _dissimilarities(df, distance)
    rng = np.random.default_rng(random_state)

    rows = []
    for dim in range(1, k + 1):
        seeds = rng.integers(0, 2**31 - 1, size=trymax)
        stresses = np.array([_smacof(dis, dim, 1, int(s))[1] for s in seeds])
        rows.append(
            {
                "dimensions": dim,
                "mean": stresses.mean(),
                "min": stresses.min(),
                "max": stresses.max(),
            }
        )
    table = pd.DataFrame(rows)

    if renderer is None:
        renderer = make_default_renderer()
    dims = table["dimensions"].to_numpy()
    top = max(float(table["max"].max()), STRESS_THRESHOLDS[-1]) * 1.05
    renderer.draw_axes(
        (0.5, k + 0.5), (0.0, top), main="Screeplot NMDS",
        xlab="Number of dimensions", ylab="Stress",
    )
    renderer.draw_band(dims, table["min"].to_numpy(), table["max"].to_numpy())
    renderer.draw_line(dims, table["mean"].to_numpy(), marker="o")
    for threshold, color in zip(STRESS_THRESHOLDS, ("green", "orange", "red")):
        renderer.draw_hline(threshold, color=color, linestyle="dashed")

    print(table.to_string(index=False, float_format=lambda v: f"{v:.4f}"))
    return table


# ------------------------------------------------------------------ #
# Species selection for ordination diagrams
# ------------------------------------------------------------------ #


def _upper_share(values: pd.Series, lim: float) -> pd.Series:
    """Boolean mask of the upper *lim* proportion of *values*."""
    cutoff = np.nanquantile(values.to_numpy(dtype=float), 1.0 - lim)
    return values >= cutoff


def _env_vectors(
    sites: np.ndarray, env: pd.DataFrame, p_max: float
) -> list[np.ndarray]:
    """Unit direction vectors of environmental variables in the diagram.

    Each variable is regressed on the site scores; significant
    variables (overall F-test p ≤ *p_max*) contribute the normalised
    slope vector.
    """
    design = sm.add_constant(sites, has_constant="add")
    vectors = []
    for name in env.columns:
        res = sm.OLS(env[name].to_numpy(dtype=float), design, missing="drop").fit()
        if res.f_pvalue > p_max:
            logger.debug("Environmental variable %s not significant (p=%.3f)", name, res.f_pvalue)
            continue
        slope = np.asarray(res.params)[1:]
        norm = np.linalg.norm(slope)
        if norm > 0:
            vectors.append(slope / norm)
    return vectors


def ordiselect(
    matrix: DataFrameLike,
    ordination: Any,
    *,
    ablim: float = 1.0,
    fitlim: float = 1.0,
    choices: Sequence[int] = (1, 2),
    method: str = "axes",
    env: DataFrameLike | None = None,
    p_max: float = 0.05,
    freq: bool = False,
) -> list[str]:
    """Select species to display in an ordination diagram.

    A species is kept when it is among the upper ``ablim`` proportion
    by abundance (or frequency) **and** among the upper ``fitlim``
    proportion by fit to the diagram.  Fit is measured as

    * ``"axes"``: distance of the species score from the centroid on
      the *choices* axes,
    * ``"vars"``: largest absolute projection of the species score
      onto the significant environmental vectors fitted from *env*.

    Args:
        matrix: Species table used for the ordination.
        ordination: Ordination result carrying species scores.
        ablim: Proportion of species kept by abundance, in (0, 1].
        fitlim: Proportion of species kept by fit, in (0, 1].
        choices: 1-based axes of the diagram.
        method: ``"axes"`` or ``"vars"``.
        env: Environmental table (plots in rows), required for
            ``"vars"``.
        p_max: Significance limit for environmental vectors.
        freq: Rank abundance by occurrence frequency instead of cover.

    Returns:
        Names of the selected species, in column order of *matrix*.
    """
    if method not in ("axes", "vars"):
        raise ValueError(f"Method unknown: '{method}'. Choose 'axes' or 'vars'.")
    for name, lim in (("ablim", ablim), ("fitlim", fitlim)):
        if not 0 < lim <= 1:
            raise ValueError(f"'{name}' must be in (0, 1], got {lim}.")

    df = _ensure_pandas_df(matrix, name="matrix")
    abundance = (df > 0).sum(axis=0) if freq else df.sum(axis=0)
    scores = species_scores(ordination, choices).reindex(df.columns)

    if method == "axes":
        centred = scores - scores.mean(axis=0)
        fit = pd.Series(np.sqrt((centred**2).sum(axis=1, min_count=1)), index=df.columns)
    else:
        if env is None:
            raise ValueError("method='vars' requires an environmental table 'env'.")
        env_df = _ensure_pandas_df(env, name="env")
        sites = np.column_stack([site_scores(ordination, a) for a in choices])
        vectors = _env_vectors(sites, env_df, p_max)
        if not vectors:
            raise ValueError("No significant environmental variables.")
        projections = np.abs(scores.to_numpy(dtype=float) @ np.column_stack(vectors))
        fit = pd.Series(projections.max(axis=1), index=df.columns)

    keep = _upper_share(abundance, ablim) & _upper_share(fit, fitlim)
    selected = [str(c) for c in df.columns[keep.to_numpy()]]
    logger.debug("ordiselect kept %d of %d species", len(selected), df.shape[1])
    return selected
