"""Typed result objects for the fitting and ordination helpers.

Frozen dataclasses that provide:

* **Attribute access**: ``curve.model``, ``curve.p_value``, etc.
* **Dict-like access**: ``curve["model"]``, ``curve.get("key")``,
  ``"key" in curve`` for consumers that prefer bracket syntax.
* **Serialisation**: ``.to_dict()`` returns a plain ``dict[str, Any]``
  with all NumPy types converted to native Python.

Results are frozen to communicate that they are a snapshot of a
completed fit.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from .models import CandidateFit, ResponseCandidate

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy scalars/arrays to Python-native types.

    Handles nested dicts, lists, np.ndarray, np.integer, np.floating
    and pandas objects so that :meth:`to_dict` returns a fully
    JSON-serialisable structure.
    """
    if isinstance(obj, (pd.Series, pd.DataFrame)):
        return _numpy_to_python(obj.to_dict())
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


# ------------------------------------------------------------------ #
# Dict-compatibility mixin
# ------------------------------------------------------------------ #


class _DictAccessMixin:
    """Dict-like access convenience for result dataclasses.

    Supports three access patterns:

    1. ``result["key"]``      raises ``KeyError`` on miss
    2. ``result.get(key, d)`` returns *d* on miss (default ``None``)
    3. ``"key" in result``    membership test

    Subclasses may override ``_SERIALIZERS`` to register conversion
    functions for non-primitive fields, and ``_EXCLUDE_FROM_DICT`` to
    skip fields holding opaque objects.
    """

    _SERIALIZERS: ClassVar[dict[str, Any]] = {}

    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset()

    def __getitem__(self, key: str) -> Any:
        """Attribute lookup via bracket syntax."""
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        """Attribute lookup with a fallback default."""
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        """Membership test: ``"key" in result``."""
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary.

        Applies per-field serializers from ``_SERIALIZERS``, then runs
        :func:`_numpy_to_python` on every value.
        """
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._EXCLUDE_FROM_DICT:
                continue
            val = getattr(self, f.name)
            if f.name in self._SERIALIZERS:
                val = self._SERIALIZERS[f.name](val)
            result[f.name] = _numpy_to_python(val)
        return result


# ------------------------------------------------------------------ #
# ResponseCurve
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class ResponseCurve(_DictAccessMixin):
    """Fitted response of one species along one gradient.

    Returned (one per species) by
    :func:`~vegtools.response.specresponse` and
    :func:`~vegtools.response.fit_species_response`.
    """

    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "candidate": lambda c: c.label,
    }
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset({"fit", "null_model"})

    species: str
    """Species name (column label)."""

    candidate: ResponseCandidate
    """Descriptor of the selected model."""

    fit: CandidateFit
    """Selected fit, including the statsmodels results object."""

    null_model: Any
    """Intercept-only baseline fit."""

    deviance_explained: float
    """Percent deviance explained, rounded to one decimal."""

    p_value: float
    """Significance against the baseline, rounded to three decimals."""

    aic: dict[str, float] = field(default_factory=dict)
    """AIC of every evaluated candidate, keyed by label, in fit order."""

    n_presences: int = 0
    """Number of plots in which the species occurs."""

    n_observations: int = 0
    """Number of plots used for the fit."""

    x_grid: np.ndarray = field(default_factory=lambda: np.empty(0))
    """Predictor values the curve was evaluated at."""

    predicted: np.ndarray = field(default_factory=lambda: np.empty(0))
    """Predicted probability of occurrence along :attr:`x_grid`."""

    @property
    def model(self) -> Any:
        """The statsmodels results object of the selected fit."""
        return self.fit.result

    @property
    def label(self) -> str:
        return self.candidate.label


# ------------------------------------------------------------------ #
# OrdinationResult
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class OrdinationResult(_DictAccessMixin):
    """Site and species scores of an ordination.

    Produced by :func:`~vegtools.ordination.nmds`; other ordination
    outputs can be wrapped in it to use
    :func:`~vegtools.ordination.ordiselect`.
    """

    sites: pd.DataFrame
    """Site scores, one row per plot, one column per axis."""

    species: pd.DataFrame | None = None
    """Species scores, one row per species, or ``None``."""

    stress: float | None = None
    """Final stress for non-metric scaling, ``None`` otherwise."""

    method: str = ""
    """Short label of the ordination technique."""
