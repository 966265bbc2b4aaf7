"""Species response curves along environmental gradients or ordination axes.

A species response curve shows the probability of occurrence of a
species as a function of one gradient.  Abundances are reduced to
presence/absence first: cover values carry much noise from factors
unrelated to the gradient, and a logistic model of occurrence is easy
to read as "probability of finding the species here".

Pipeline
~~~~~~~~
For every species (column) in input order:

1. Warn when the species occurs in 5 plots or fewer.  The fit is still
   made and drawn, but its shape should not be trusted.
2. Fit every candidate model of the requested keyword (see
   :mod:`vegtools.models`) and keep the one with the lowest AIC, the
   earliest on ties.
3. Fit the intercept-only baseline and compute

   * deviance explained, ``100 · (1 − D / D₀)``, a pseudo-R²,
   * a p-value: likelihood-ratio χ² test against the baseline for
     GLMs, Wald χ² test of the smoother term for GAMs.

4. Print a one-line summary.
5. Predict the probability along 101 evenly spaced gradient values
   and draw it, optionally with the occurrences as transparent points.

Occurrence points of several species would sit on top of each other at
0 and 1.  Species *i* (1-based) is therefore offset by
``0.015 · (i − 1)``: presences move down, absences move up, and the
first species stays in place.

Drawing goes through an injected :class:`~vegtools.rendering.Renderer`
so the fitting and selection logic can run (and be tested) without a
display.

Example::

    import pandas as pd
    from vegtools import specresponse

    res = specresponse(veg[["ArrElat", "AntOdor"]], env["soil_depth"],
                       model="auto", points=True)
    res["AntOdor"].model.summary()
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from ._compat import _ensure_pandas_df, _is_dataframe_like
from ._config import make_default_renderer
from ._results import ResponseCurve
from ._typing import ArrayLike
from .abundance import decostand_pa
from .display import format_response_line
from .models import ResponseCandidate, fit_null, resolve_model, select_by_aic
from .ordination import site_scores
from .rendering import Renderer, line_style, palette_color, point_marker

logger = logging.getLogger(__name__)

_METHODS = ("env", "ord")
_NA_ACTIONS = ("omit", "fail")

#: Minimum presence count below which a low-occurrence warning is issued.
MIN_OCCURRENCES = 5

#: Number of gradient values the fitted curve is evaluated at.
GRID_SIZE = 101

#: Vertical offset between the occurrence points of successive species.
JITTER_STEP = 0.015

#: Opacity of occurrence points (50 of 255).
POINT_ALPHA = 50 / 255


# ------------------------------------------------------------------ #
# Species input variants
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class SingleSeries:
    """One abundance vector supplied on its own."""

    name: str
    values: pd.Series

    def table(self) -> pd.DataFrame:
        return self.values.to_frame(name=self.name)


@dataclass(frozen=True)
class MultiSeries:
    """A table of abundance vectors, one column per species."""

    data: pd.DataFrame

    def table(self) -> pd.DataFrame:
        return self.data


SpeciesInput = SingleSeries | MultiSeries


def resolve_species(species: Any) -> SpeciesInput:
    """Classify *species* once as a single vector or a species table.

    Raises:
        ValueError: If a table has no columns.
    """
    if _is_dataframe_like(species):
        df = _ensure_pandas_df(species, name="species")
        if df.shape[1] == 0:
            raise ValueError("No species in matrix.")
        df = df.copy()
        df.columns = [str(c) for c in df.columns]
        return MultiSeries(df)
    if isinstance(species, pd.Series):
        name = str(species.name) if species.name is not None else "species"
        return SingleSeries(name, species.rename(name))
    values = np.asarray(species, dtype=float)
    if values.ndim == 2:
        if values.shape[1] == 0:
            raise ValueError("No species in matrix.")
        return MultiSeries(
            pd.DataFrame(values, columns=[f"sp{i + 1}" for i in range(values.shape[1])])
        )
    return SingleSeries("species", pd.Series(values.ravel(), name="species"))


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def jitter_occurrences(values: ArrayLike, index: int) -> np.ndarray:
    """Offset 0/1 occurrences of the *index*-th species (1-based).

    Presences move down and absences move up by
    ``JITTER_STEP · (index − 1)``.
    """
    values = np.asarray(values, dtype=float)
    offset = JITTER_STEP * (index - 1)
    out = values.copy()
    out[values == 1] -= offset
    out[values == 0] += offset
    return out


def _deviance_explained(
    deviance: float, null_deviance: float, constant: bool = False
) -> float:
    # Constant occurrence (all absent or all present): nothing to explain.
    if constant or null_deviance <= 1e-12:
        return 0.0
    return round(100 * (1 - deviance / null_deviance), 1)


def _round_p(p: float) -> float:
    return p if np.isnan(p) else round(p, 3)


def _warn_rare(name: str, n_presences: int) -> None:
    if n_presences <= MIN_OCCURRENCES:
        warnings.warn(
            f"Only {n_presences} occurrences of {name}.",
            UserWarning,
            stacklevel=3,
        )


def _complete_cases(
    x: np.ndarray, y: np.ndarray, name: str, na_action: str
) -> tuple[np.ndarray, np.ndarray]:
    missing = np.isnan(x) | np.isnan(y)
    if not missing.any():
        return x, y
    if na_action == "fail":
        raise ValueError(f"Missing values in data for {name}.")
    logger.debug("Dropping %d incomplete plots for %s", int(missing.sum()), name)
    return x[~missing], y[~missing]


# ------------------------------------------------------------------ #
# Fitting
# ------------------------------------------------------------------ #


def fit_species_response(
    y: ArrayLike,
    x: ArrayLike,
    model: str | Sequence[ResponseCandidate] = "auto",
    *,
    species: str = "species",
) -> ResponseCurve:
    """Fit, select and summarise the response of one species.

    Does not draw, print or warn; :func:`specresponse` wraps it for
    that.  Because species are independent, this is also the function
    to call for a parallel pre-pass over many species.

    Args:
        y: Presence/absence vector (0/1) without missing values.
        x: Gradient values, same length as *y*.
        model: Model keyword (``"auto"``, ``"linear"``, ``"unimodal"``,
            ``"bimodal"``, ``"gam"``) or an explicit ordered candidate
            list.
        species: Name stored on the result.

    Returns:
        The :class:`~vegtools._results.ResponseCurve` of the selected
        model.

    Raises:
        ValueError: If *model* is unknown or *x* and *y* differ in
            length.
    """
    candidates = resolve_model(model) if isinstance(model, str) else list(model)
    y = np.asarray(y, dtype=float)
    x = np.asarray(x, dtype=float)
    if len(x) != len(y):
        raise ValueError(
            f"Gradient has {len(x)} values but {species} has {len(y)}."
        )

    fits = [candidate.fit(x, y) for candidate in candidates]
    best = select_by_aic(fits)
    null = fit_null(y)
    # All absent or all present: no gradient effect to detect.
    constant = bool(np.ptp(y) == 0)
    p_value = 1.0 if constant else _round_p(best.p_value(null))

    grid = np.linspace(x.min(), x.max(), GRID_SIZE)
    curve = ResponseCurve(
        species=species,
        candidate=best.candidate,
        fit=best,
        null_model=null,
        deviance_explained=_deviance_explained(
            best.deviance, float(null.deviance), constant=constant
        ),
        p_value=p_value,
        aic={f.candidate.label: f.aic for f in fits},
        n_presences=int(np.sum(y > 0)),
        n_observations=len(y),
        x_grid=grid,
        predicted=best.predict(grid),
    )
    logger.debug(
        "%s: %s, deviance explained %.1f%%", species, best.candidate.label,
        curve.deviance_explained,
    )
    return curve


# ------------------------------------------------------------------ #
# Public entry point
# ------------------------------------------------------------------ #


def specresponse(
    species: Any,
    var: Any,
    *,
    main: str | None = None,
    xlab: str | None = None,
    model: str = "auto",
    method: str = "env",
    axis: int = 1,
    points: bool = False,
    bw: bool = False,
    lwd: float | None = None,
    na_action: str = "omit",
    renderer: Renderer | None = None,
) -> dict[str, ResponseCurve]:
    """Fit and draw species response curves.

    Logistic regression (binomial GLM, or GAM with a regression
    smoother) of species occurrence on an environmental variable or on
    an ordination axis.  Draws one curve per species on a shared panel,
    prints a summary line per species, and returns the fitted models.

    By default (``model="auto"``) polynomial GLMs of degree 1 to 3 are
    compared by AIC; bimodal responses must be requested explicitly.
    ``model="gam"`` compares smoothers with basis dimension 3 to 6.

    Args:
        species: A single abundance vector (Series, array, list) or a
            species table (plots in rows, species in columns; pandas or
            Polars).
        var: Gradient values per plot (``method="env"``) or an
            ordination result (``method="ord"``).
        main: Plot title.  Defaults to the species name for a single
            vector and ``"Species response curves"`` for a table.
        xlab: x-axis label.  Defaults to the name of *var*, or
            ``"Axis <n> sample scores"`` for ordination axes.
        model: ``"auto"``, ``"linear"``, ``"unimodal"``, ``"bimodal"``
            or ``"gam"``.
        method: ``"env"`` or ``"ord"``.
        axis: 1-based ordination axis (``method="ord"`` only).
        points: Show occurrences as transparent points; the darker a
            point, the more plots share that gradient value.
        bw: Black and white: line types and point shapes instead of
            colours.
        lwd: Line width.
        na_action: ``"omit"`` drops plots with missing values per
            species; ``"fail"`` raises instead.
        renderer: Drawing surface; the configured default when ``None``.

    Returns:
        Ordered mapping of species name to
        :class:`~vegtools._results.ResponseCurve`.

    Raises:
        ValueError: On an unknown *method*, *model* or *na_action*, or
            an empty species table.  Raised before anything is drawn.
    """
    if method not in _METHODS:
        raise ValueError(f"Method unknown: '{method}'. Choose 'env' or 'ord'.")
    candidates = resolve_model(model)
    if na_action not in _NA_ACTIONS:
        raise ValueError(f"Unknown na_action '{na_action}'. Choose 'omit' or 'fail'.")

    spec_input = resolve_species(species)
    table = decostand_pa(spec_input.table())
    if isinstance(spec_input, SingleSeries):
        default_main = spec_input.name
    else:
        default_main = "Species response curves"

    if method == "env":
        x = np.asarray(var, dtype=float).ravel()
        default_xlab = str(var.name) if isinstance(var, pd.Series) and var.name else "var"
    else:
        x = site_scores(var, axis)
        default_xlab = f"Axis {axis} sample scores"
    if len(x) != table.shape[0]:
        raise ValueError(
            f"Gradient has {len(x)} values but species data has {table.shape[0]} plots."
        )

    if renderer is None:
        renderer = make_default_renderer()
    renderer.draw_axes(
        (float(np.nanmin(x)), float(np.nanmax(x))),
        (0.0, 1.0),
        main=main if main is not None else default_main,
        xlab=xlab if xlab is not None else default_xlab,
        ylab="Probability of occurrence",
    )

    results: dict[str, ResponseCurve] = {}
    for i, name in enumerate(table.columns, start=1):
        xi, yi = _complete_cases(x, table[name].to_numpy(dtype=float), name, na_action)
        _warn_rare(name, int(np.sum(yi > 0)))

        curve = fit_species_response(yi, xi, candidates, species=name)
        print(format_response_line(curve))
        results[name] = curve

        if points:
            renderer.draw_points(
                xi,
                jitter_occurrences(yi, i),
                marker=point_marker(i) if bw else "o",
                color="black" if bw else palette_color(i),
                alpha=POINT_ALPHA,
            )
        renderer.draw_line(
            curve.x_grid,
            curve.predicted,
            color="black" if bw else palette_color(i),
            linestyle=line_style(i) if bw else "solid",
            linewidth=lwd,
        )

    n = len(results)
    if n > 1:
        labels = list(results)
        if bw:
            renderer.draw_legend(
                labels,
                colors=["black"] * n,
                linestyles=[line_style(i) for i in range(1, n + 1)],
                markers=[point_marker(i) for i in range(1, n + 1)] if points else None,
            )
        else:
            renderer.draw_legend(
                labels,
                colors=[palette_color(i) for i in range(1, n + 1)],
                linestyles=["solid"] * n,
            )
    return results
