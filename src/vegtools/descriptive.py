"""Descriptive dispersion statistics.

Coefficient of variation
~~~~~~~~~~~~~~~~~~~~~~~~
CV = s / x̄, the sample standard deviation relative to the mean, also
known as relative standard deviation.  Being unit-free it allows
comparisons between variables measured on different scales, but it is
only meaningful for ratio-scale data (data with an absolute zero).
As a rule of thumb (Dormann 2017) CV < 0.05 indicates very high
precision and CV > 0.2 low precision; in highly variable ecological
systems values above 1 are not unusual.

Standard error of the mean
~~~~~~~~~~~~~~~~~~~~~~~~~~
SEM = s / √n.

Both statistics use the ``n − 1`` sample standard deviation.  A single
observation yields NaN (the standard deviation is undefined); an
empty input raises ``ValueError``.

References:
    Dormann, C. (2017). *Parametrische Statistik*. Springer.
    doi:10.1007/978-3-662-54684-0
"""

from __future__ import annotations

import math

import numpy as np

from ._typing import ArrayLike


def _prepare(x: ArrayLike, na_rm: bool) -> np.ndarray:
    values = np.asarray(x, dtype=float).ravel()
    if na_rm:
        values = values[~np.isnan(values)]
    if values.size == 0:
        raise ValueError("Statistic undefined for a zero-length vector.")
    return values


def _sd(values: np.ndarray) -> float:
    if values.size < 2:
        return math.nan
    return float(np.std(values, ddof=1))


def cv(x: ArrayLike, na_rm: bool = False) -> float:
    """Sample coefficient of variation ``sd(x) / mean(x)``.

    Args:
        x: Numeric vector.
        na_rm: Remove missing values before computation.  When
            ``False`` any missing value makes the result NaN.

    Raises:
        ValueError: If *x* is empty (after removing missing values).
    """
    values = _prepare(x, na_rm)
    # Zero mean gives inf/nan rather than an exception.
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(_sd(values)) / np.mean(values))


def sem(x: ArrayLike, na_rm: bool = False) -> float:
    """Standard error of the mean ``sd(x) / sqrt(n)``.

    Same missing-value and empty-input conventions as :func:`cv`.
    """
    values = _prepare(x, na_rm)
    return _sd(values) / math.sqrt(values.size)
