"""Abundance transforms, cover-abundance scales and rank-abundance curves.

Cover-abundance scales
~~~~~~~~~~~~~~~~~~~~~~
Field releves record species cover as ordinal codes rather than
percentages.  :data:`scale_tabs` holds one conversion table per scale,
each a DataFrame with three columns:

* ``code``: the cover-abundance code (as a string),
* ``cov_mean``: mean percentage cover of the class, used by
  :func:`cov2per`,
* ``cov_max``: upper bound of the class, used by :func:`per2cov`
  (a value is assigned to the first class whose ``cov_max`` is not
  exceeded).

Available scales:

* ``"braun.blanquet"``: Braun-Blanquet (1964), Turboveg defaults
  (Hennekens & Schaminée 2001).
* ``"braun.blanquet2"``: extended Braun-Blanquet (Reichelt & Wilmanns
  1973), Turboveg defaults.
* ``"kohler"``: Kohler (1978), adapted from Lüderitz et al. (2009) and
  Janauer & Heindl (1998).
* ``"kohler.zeltner"``: simplified 3-level Kohler scale (Kohler &
  Zeltner 1974).
* ``"londo"``: decimal scale of Londo (1976).
* ``"pa"``: presence/absence (1/0).
"""

from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd

from ._compat import _ensure_pandas_df, _is_dataframe_like
from ._config import make_default_renderer
from ._typing import ArrayLike
from .rendering import Renderer

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------ #
# Presence/absence
# ------------------------------------------------------------------ #


def decostand_pa(x: ArrayLike) -> ArrayLike:
    """Presence/absence transform: positive values → 1, others → 0.

    Missing values stay missing.  The transform is idempotent and
    returns the same container type it receives (DataFrame, Series or
    ndarray; lists come back as float arrays).
    """
    if _is_dataframe_like(x):
        df = _ensure_pandas_df(x, name="x")
        return df.apply(lambda col: decostand_pa(col))
    if isinstance(x, pd.Series):
        values = pd.to_numeric(x, errors="raise").to_numpy(dtype=float)
        return pd.Series(_pa(values), index=x.index, name=x.name)
    return _pa(np.asarray(x, dtype=float))


def _pa(values: np.ndarray) -> np.ndarray:
    return np.where(np.isnan(values), np.nan, (values > 0).astype(float))


# ------------------------------------------------------------------ #
# Conversion tables
# ------------------------------------------------------------------ #


def _table(codes: list[str], means: list[float], maxima: list[float]) -> pd.DataFrame:
    return pd.DataFrame({"code": codes, "cov_mean": means, "cov_max": maxima})


scale_tabs: dict[str, pd.DataFrame] = {
    "braun.blanquet": _table(
        ["r", "+", "1", "2", "3", "4", "5"],
        [1, 2, 3, 13, 38, 63, 88],
        [1, 2, 5, 25, 50, 75, 100],
    ),
    "braun.blanquet2": _table(
        ["r", "+", "1", "2m", "2a", "2b", "3", "4", "5"],
        [1, 2, 3, 4, 8, 18, 38, 63, 88],
        [1, 2, 3, 5, 15, 25, 50, 75, 100],
    ),
    "kohler": _table(
        ["1", "2", "3", "4", "5"],
        [1, 3, 10, 38, 88],
        [2, 5, 25, 50, 100],
    ),
    "kohler.zeltner": _table(
        ["1", "2", "3"],
        [3, 15, 63],
        [5, 25, 100],
    ),
    "londo": _table(
        [".1", ".2", ".4", "1", "2", "3", "4", "5", "6", "7", "8", "9", "10"],
        [0.5, 2, 4, 10, 20, 30, 40, 50, 60, 70, 80, 90, 97.5],
        [1, 3, 5, 15, 25, 35, 45, 55, 65, 75, 85, 95, 100],
    ),
    "pa": _table(["1"], [1], [100]),
}


def _scale(scale: str) -> pd.DataFrame:
    if scale not in scale_tabs:
        raise ValueError(
            f"Unknown scale '{scale}'. Choose from: {sorted(scale_tabs)}"
        )
    return scale_tabs[scale]


def _code_key(value: object) -> str | None:
    """Normalise a cell to a scale code; ``None`` marks an empty cell."""
    if value is None:
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        if math.isnan(float(value)):
            return None
        if float(value) == 0:
            return "0"
        # 0.1 -> ".1" as written in the Londo scale
        text = f"{float(value):g}"
        return text[1:] if text.startswith("0.") else text
    text = str(value).strip()
    return text or None


def cov2per(matrix: pd.DataFrame | pd.Series, scale: str = "braun.blanquet"):
    """Convert cover-abundance codes to mean percentage cover.

    Args:
        matrix: Species table (or single column) of scale codes.
            ``0`` and empty cells become ``0``; missing values stay
            missing.
        scale: Name of a table in :data:`scale_tabs`.

    Returns:
        A numeric table (or Series) of the same shape.

    Raises:
        ValueError: If *scale* is unknown or a cell holds a code that
            the scale does not define.
    """
    tab = _scale(scale)
    lookup = dict(zip(tab["code"], tab["cov_mean"].astype(float)))

    def convert(value: object) -> float:
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return np.nan
        key = _code_key(value)
        if key is None or key == "0":
            return 0.0
        if key not in lookup:
            raise ValueError(f"Code '{value}' is not defined in scale '{scale}'.")
        return lookup[key]

    if isinstance(matrix, pd.Series):
        return matrix.map(convert).astype(float)
    df = _ensure_pandas_df(matrix, name="matrix")
    return df.apply(lambda col: col.map(convert)).astype(float)


def per2cov(matrix: pd.DataFrame | pd.Series, scale: str = "braun.blanquet"):
    """Convert percentage cover to cover-abundance codes.

    Each value is assigned the first class whose ``cov_max`` it does
    not exceed.  ``0`` becomes ``"0"``; missing values stay missing.

    Raises:
        ValueError: If *scale* is unknown or a value lies outside
            ``[0, 100]``.
    """
    tab = _scale(scale)
    codes = tab["code"].to_numpy()
    maxima = tab["cov_max"].to_numpy(dtype=float)

    def convert(value: object) -> object:
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return np.nan
        v = float(value)
        if v < 0 or v > 100:
            raise ValueError(f"Cover value {value} outside the range 0-100.")
        if v == 0:
            return "0"
        return codes[int(np.searchsorted(maxima, v, side="left"))]

    if isinstance(matrix, pd.Series):
        return matrix.map(convert)
    df = _ensure_pandas_df(matrix, name="matrix")
    return df.apply(lambda col: col.map(convert))


# ------------------------------------------------------------------ #
# Rank-abundance curves
# ------------------------------------------------------------------ #


def racurve(
    matrix: pd.DataFrame,
    *,
    main: str = "Rank-abundance diagram",
    nlab: int = 0,
    ylog: bool = False,
    frequency: bool = False,
    renderer: Renderer | None = None,
) -> pd.Series:
    """Draw a rank-abundance (or rank-frequency) curve.

    Species are ranked by their share of the total abundance of the
    table (or, with ``frequency=True``, by the proportion of plots they
    occur in) and drawn against rank with connected points.  The
    ``nlab`` highest-ranked species are labelled.

    Args:
        matrix: Species table, plots in rows, species in columns.
        main: Plot title.
        nlab: Number of top-ranked species to label.
        ylog: Draw the y-axis on a log scale.
        frequency: Rank by occurrence frequency instead of abundance.
        renderer: Drawing surface; the configured default when ``None``.

    Returns:
        Relative abundance (or frequency) per species, sorted in
        decreasing order.

    Raises:
        ValueError: If the table has no species or no abundance.
    """
    df = _ensure_pandas_df(matrix, name="matrix").apply(pd.to_numeric)
    if df.shape[1] == 0:
        raise ValueError("No species in matrix.")
    if frequency:
        values = (df > 0).sum(axis=0) / df.shape[0]
        ylab = "Frequency"
    else:
        total = df.to_numpy(dtype=float).sum()
        if total <= 0:
            raise ValueError("Species table contains no abundance.")
        values = df.sum(axis=0) / total
        ylab = "Relative abundance"
    values = values.sort_values(ascending=False, kind="stable")
    values = values[values > 0] if ylog else values

    if renderer is None:
        renderer = make_default_renderer()
    ranks = np.arange(1, len(values) + 1)
    top = float(values.iloc[0]) if len(values) else 1.0
    ylim = (float(values.min()), top) if ylog else (0.0, top)
    renderer.draw_axes(
        (0.5, len(values) + 0.5), ylim, main=main, xlab="Species rank",
        ylab=ylab, ylog=ylog,
    )
    renderer.draw_line(ranks, values.to_numpy(), marker="o")
    for rank, (name, value) in zip(ranks[:nlab], values.iloc[:nlab].items()):
        renderer.draw_text(float(rank), float(value), str(name))
    logger.debug("Rank-%s curve over %d species", ylab.lower(), len(values))
    return values
