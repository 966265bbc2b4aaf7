"""Candidate response models and AIC-based selection.

Every species response curve is a logistic regression of a 0/1
occurrence vector on a single predictor.  The *shape* of the curve is
what differs between the model keywords exposed by
:func:`~vegtools.response.specresponse`:

=============  ===========================================  ==============
Keyword        Candidates (evaluated in this order)         Selection
=============  ===========================================  ==============
``"linear"``   polynomial GLM, degree 1                      single fit
``"unimodal"`` polynomial GLM, degree 2                      single fit
``"bimodal"``  polynomial GLM, degree 4                      single fit
``"auto"``     polynomial GLM, degrees 1, 2, 3               min AIC
``"gam"``      B-spline GAM, basis dimension 3, 4, 5, 6      min AIC
=============  ===========================================  ==============

Each candidate is a small frozen descriptor that knows how to fit
itself, predict on new predictor values, and test itself against the
intercept-only baseline.  The caller never branches on the model
type: it iterates the ordered candidate list, keeps the fit with the
lowest AIC (the first one on ties, so simpler candidates win), and
asks the winner for its p-value.

Polynomial terms
~~~~~~~~~~~~~~~~
Raw powers ``x, x², x³, x⁴`` become nearly collinear for predictors
far from zero (altitudes, ordination scores around 100).  The
polynomial candidates therefore use an orthogonal polynomial basis
built from a QR decomposition of the centred power matrix, with the
three-term recurrence coefficients stored so that prediction grids
can be projected onto the same basis.  The fitted probabilities and
AIC are identical to a raw-power fit; only the conditioning differs.

Smoothers
~~~~~~~~~
The GAM candidates fit a B-spline basis of dimension ``k`` through
``statsmodels.gam.GLMGam``.  As with a thin-plate basis of dimension
``k``, one column is absorbed by the intercept, so the smooth term has
``k − 1`` coefficients; ``k`` is an upper limit on flexibility.  The
splines are cubic where the basis is large enough, and quadratic for
``k = 3``.  The penalty weight on the second derivative is chosen per
candidate by minimising AIC (``GLMGam.select_penweight``), so the
effective degrees of freedom of each fit adapt to the data.  AIC of
the penalised fits uses effective degrees of freedom, which makes the
candidates comparable.  Significance of the smooth term is a Wald χ²
test with effective degrees of freedom (``test_significance``).
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import numpy as np
import statsmodels.api as sm
from scipy import stats
from statsmodels.gam.api import BSplines, GLMGam
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning as SmConvergenceWarning,
)
from statsmodels.tools.sm_exceptions import (
    PerfectSeparationError,
    PerfectSeparationWarning,
)

logger = logging.getLogger(__name__)

# Nelder-Mead iterations of the penalty-weight search.
_PENWEIGHT_MAXITER = 200

# PIRLS iterations for a GAM whose smoother separates the data.
_SEPARATION_MAXITER = 10


def _quiet_fit(fit: Callable[[], Any]) -> Any:
    """Run *fit* with the usual logistic-regression warnings silenced.

    Small vegetation samples routinely produce quasi-separation; the
    fit is still drawn, so these warnings carry no information for the
    user.  Exceptions propagate unchanged.
    """
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", category=RuntimeWarning)
        warnings.filterwarnings("ignore", category=SmConvergenceWarning)
        warnings.filterwarnings("ignore", category=PerfectSeparationWarning)
        return fit()


# ------------------------------------------------------------------ #
# Orthogonal polynomial basis
# ------------------------------------------------------------------ #


class OrthoPoly:
    """Orthogonal polynomial basis of a single predictor.

    Columns are orthonormal over the training values and exclude the
    constant term, so the basis is used alongside an explicit
    intercept.

    Args:
        degree: Highest polynomial degree (number of basis columns).

    Attributes:
        alpha: Recurrence centring coefficients, shape ``(degree,)``.
        norm2: Squared column norms including the two leading
            sentinels, shape ``(degree + 2,)``.
    """

    def __init__(self, degree: int) -> None:
        if degree < 1:
            raise ValueError("'degree' must be at least 1.")
        self.degree = degree
        self.alpha: np.ndarray | None = None
        self.norm2: np.ndarray | None = None

    def fit(self, x: np.ndarray) -> OrthoPoly:
        x = np.asarray(x, dtype=float)
        if self.degree >= len(np.unique(x)):
            raise ValueError("'degree' must be less than number of unique points.")
        xbar = x.mean()
        xc = x - xbar
        powers = np.vander(xc, self.degree + 1, increasing=True)
        q, r = np.linalg.qr(powers)
        # Q scaled by diag(R) is sign-invariant across LAPACK builds.
        z = q * np.diag(r)[np.newaxis, :]
        norm2 = np.sum(z**2, axis=0)
        self.alpha = (np.sum(xc[:, np.newaxis] * z**2, axis=0) / norm2 + xbar)[
            : self.degree
        ]
        self.norm2 = np.concatenate([[1.0], norm2])
        return self

    def transform(self, x: np.ndarray) -> np.ndarray:
        if self.alpha is None or self.norm2 is None:
            raise RuntimeError("OrthoPoly must be fitted before transform().")
        x = np.asarray(x, dtype=float)
        n = len(x)
        z = np.ones((n, self.degree + 1))
        z[:, 1] = x - self.alpha[0]
        for i in range(1, self.degree):
            z[:, i + 1] = (x - self.alpha[i]) * z[:, i] - (
                self.norm2[i + 1] / self.norm2[i]
            ) * z[:, i - 1]
        z = z / np.sqrt(self.norm2[1:])[np.newaxis, :]
        return z[:, 1:]

    def fit_transform(self, x: np.ndarray) -> np.ndarray:
        return self.fit(x).transform(x)


# ------------------------------------------------------------------ #
# Fitted candidate
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class CandidateFit:
    """A candidate model fitted to one species.

    Attributes:
        candidate: The descriptor that produced this fit.
        result: The statsmodels results object.
        basis: Transformer used to build the design (``OrthoPoly`` or
            ``BSplines``), needed for prediction.
    """

    candidate: ResponseCandidate
    result: Any
    basis: Any

    @property
    def aic(self) -> float:
        return float(self.result.aic)

    @property
    def deviance(self) -> float:
        return float(self.result.deviance)

    @property
    def df_model(self) -> float:
        return float(self.result.df_model)

    def predict(self, x_new: np.ndarray) -> np.ndarray:
        """Predicted probability of occurrence at *x_new*."""
        return self.candidate.predict(self, np.asarray(x_new, dtype=float))

    def p_value(self, null: Any) -> float:
        """Significance of this fit against the intercept-only *null*."""
        return self.candidate.p_value(self, null)


# ------------------------------------------------------------------ #
# ResponseCandidate protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class ResponseCandidate(Protocol):
    """Interface of a candidate response model.

    Attributes:
        kind: ``"GLM"`` or ``"GAM"``.
        complexity: Polynomial degree or spline basis dimension.
        label: Human-readable description used in status lines,
            e.g. ``"GLM with 2 degrees"``.
    """

    @property
    def kind(self) -> str: ...

    @property
    def complexity(self) -> int: ...

    @property
    def label(self) -> str: ...

    def fit(self, x: np.ndarray, y: np.ndarray) -> CandidateFit:
        """Fit the candidate to predictor *x* and 0/1 response *y*."""
        ...

    def predict(self, fit: CandidateFit, x_new: np.ndarray) -> np.ndarray:
        """Predicted probabilities for a fit produced by :meth:`fit`."""
        ...

    def p_value(self, fit: CandidateFit, null: Any) -> float:
        """Unrounded p-value of *fit* against the null model."""
        ...


@dataclass(frozen=True)
class PolynomialLogit:
    """Logistic GLM on an orthogonal polynomial of the predictor."""

    degree: int

    @property
    def kind(self) -> str:
        return "GLM"

    @property
    def complexity(self) -> int:
        return self.degree

    @property
    def label(self) -> str:
        unit = "degree" if self.degree == 1 else "degrees"
        return f"GLM with {self.degree} {unit}"

    def fit(self, x: np.ndarray, y: np.ndarray) -> CandidateFit:
        basis = OrthoPoly(self.degree).fit(x)
        design = sm.add_constant(basis.transform(x), has_constant="add")
        model = sm.GLM(np.asarray(y, dtype=float), design, family=sm.families.Binomial())
        return CandidateFit(self, _quiet_fit(model.fit), basis)

    def predict(self, fit: CandidateFit, x_new: np.ndarray) -> np.ndarray:
        design = sm.add_constant(fit.basis.transform(x_new), has_constant="add")
        return np.asarray(fit.result.predict(design))

    def p_value(self, fit: CandidateFit, null: Any) -> float:
        return likelihood_ratio_test(fit.result, null)


@dataclass(frozen=True)
class SplineLogit:
    """Logistic GAM on a B-spline basis of dimension *df*.

    Args:
        df: Basis dimension ``k``.  The smooth term has ``k − 1``
            coefficients after the intercept; splines are cubic for
            ``k ≥ 4`` and quadratic for ``k = 3``.
        alpha: Penalty weight on the second derivative.  ``None``
            selects it by AIC for every fit; a number fixes it
            (``0.0`` gives an unpenalised regression spline).
    """

    df: int
    alpha: float | None = None

    def __post_init__(self) -> None:
        if self.df < 3:
            raise ValueError(f"Spline basis dimension must be at least 3, got {self.df}.")

    @property
    def kind(self) -> str:
        return "GAM"

    @property
    def complexity(self) -> int:
        return self.df

    @property
    def label(self) -> str:
        return f"GAM with {self.df} knots"

    @property
    def spline_degree(self) -> int:
        return min(3, self.df - 1)

    def _model(self, x: np.ndarray, y: np.ndarray, alpha: float) -> GLMGam:
        smoother = BSplines(x[:, np.newaxis], df=[self.df], degree=[self.spline_degree])
        return GLMGam(
            y,
            exog=np.ones((len(x), 1)),
            smoother=smoother,
            alpha=alpha,
            family=sm.families.Binomial(),
        )

    def select_alpha(self, x: np.ndarray, y: np.ndarray) -> float:
        """Penalty weight minimising AIC for this basis.

        Uses a deterministic Nelder-Mead search on ``log(alpha)``.  A
        constant response has nothing to smooth and gets ``0.0``; so
        does a response the search cannot fit because the smoother
        separates presences from absences.
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if np.ptp(y) == 0:
            return 0.0
        model = self._model(x, y, 0.0)
        try:
            alpha, _, _ = _quiet_fit(
                lambda: model.select_penweight(
                    criterion="aic", method="nm", disp=False, maxiter=_PENWEIGHT_MAXITER
                )
            )
        except PerfectSeparationError:
            logger.debug("Penalty search for %s hit perfect separation", self.label)
            return 0.0
        return float(np.asarray(alpha).ravel()[0])

    def fit(self, x: np.ndarray, y: np.ndarray) -> CandidateFit:
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        alpha = self.select_alpha(x, y) if self.alpha is None else self.alpha
        model = self._model(x, y, alpha)
        try:
            result = _quiet_fit(model.fit)
        except PerfectSeparationError:
            # Stop the iterations before fitted values reach 0/1, as a
            # separated GLM fit does.
            logger.debug("%s separates the data; refitting with capped iterations", self.label)
            model = self._model(x, y, alpha)
            result = _quiet_fit(lambda: model.fit(maxiter=_SEPARATION_MAXITER))
        logger.debug("%s: alpha=%.4g, AIC=%.3f", self.label, alpha, result.aic)
        return CandidateFit(self, result, model.smoother)

    def predict(self, fit: CandidateFit, x_new: np.ndarray) -> np.ndarray:
        return np.asarray(
            fit.result.predict(
                exog=np.ones((len(x_new), 1)),
                exog_smooth=x_new[:, np.newaxis],
                transform=True,
            )
        )

    def p_value(self, fit: CandidateFit, null: Any) -> float:  # noqa: ARG002
        # Wald χ² of the smooth term with effective degrees of freedom.
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", category=FutureWarning)
            test = _quiet_fit(lambda: fit.result.test_significance(0))
        return float(np.squeeze(test.pvalue))


# ------------------------------------------------------------------ #
# Baseline, testing and selection
# ------------------------------------------------------------------ #


def fit_null(y: np.ndarray) -> Any:
    """Fit the intercept-only logistic GLM used as the baseline."""
    y = np.asarray(y, dtype=float)
    model = sm.GLM(y, np.ones((len(y), 1)), family=sm.families.Binomial())
    return _quiet_fit(model.fit)


def likelihood_ratio_test(full: Any, null: Any) -> float:
    """χ² p-value for the deviance drop from *null* to *full*.

    Args:
        full: Fitted statsmodels GLM results of the larger model.
        null: Fitted results of the nested intercept-only model.

    Returns:
        Upper-tail χ² probability with ``df_model(full) − df_model(null)``
        degrees of freedom.
    """
    stat = max(float(null.deviance) - float(full.deviance), 0.0)
    df = float(full.df_model) - float(null.df_model)
    if df <= 0:
        return float("nan")
    return float(stats.chi2.sf(stat, df))


def select_by_aic(fits: Sequence[CandidateFit]) -> CandidateFit:
    """Return the fit with the lowest AIC; the earliest wins on ties.

    Raises:
        ValueError: If *fits* is empty.
    """
    if not fits:
        raise ValueError("select_by_aic() requires at least one fit.")
    aics = np.array([f.aic for f in fits])
    best = int(np.argmin(aics))  # argmin returns the first minimum
    logger.debug(
        "AIC table: %s -> %s",
        {f.candidate.label: round(a, 3) for f, a in zip(fits, aics)},
        fits[best].candidate.label,
    )
    return fits[best]


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #

_MODELS: dict[str, Callable[[], list[ResponseCandidate]]] = {}


def register_model(name: str, factory: Callable[[], list[ResponseCandidate]]) -> None:
    """Register a model keyword.

    Args:
        name: Keyword accepted by ``specresponse(model=...)``.
        factory: Zero-argument callable returning the ordered
            candidate list for that keyword.

    Raises:
        ValueError: If *name* is empty or *factory* is not callable.
    """
    if not name:
        raise ValueError("Model name must be a non-empty string.")
    if not callable(factory):
        raise ValueError(f"Factory for '{name}' must be callable.")
    _MODELS[name] = factory


def resolve_model(name: str) -> list[ResponseCandidate]:
    """Return the ordered candidate list for a model keyword.

    Raises:
        ValueError: If *name* is not a registered keyword.
    """
    if name not in _MODELS:
        available = ", ".join(sorted(_MODELS))
        raise ValueError(f"Model unknown: '{name}'. Choose from: {available}.")
    return list(_MODELS[name]())


register_model("linear", lambda: [PolynomialLogit(1)])
register_model("unimodal", lambda: [PolynomialLogit(2)])
register_model("bimodal", lambda: [PolynomialLogit(4)])
register_model("auto", lambda: [PolynomialLogit(d) for d in (1, 2, 3)])
register_model("gam", lambda: [SplineLogit(k) for k in range(3, 7)])
