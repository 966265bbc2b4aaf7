"""Formatted text output for fitted response curves.

Two levels of output are provided.  :func:`format_response_line`
produces the one-sentence status line printed for every species while
:func:`~vegtools.response.specresponse` runs.  :func:`print_response_table`
renders all fitted species of one call side by side in a fixed-width
table, in the same style as a statsmodels summary.
"""

from __future__ import annotations

import math
import textwrap
from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._results import ResponseCurve


def _truncate(name: str, max_len: int) -> str:
    """Truncate *name* to *max_len*, appending ``'...'`` if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def format_p_value(p: float) -> str:
    """Render a rounded p-value with its comparison operator.

    ``0.0`` becomes ``"< 0.001"``; any other value ``"= <value>"``.
    """
    if isinstance(p, float) and math.isnan(p):
        return "= NA"
    if p == 0:
        return "< 0.001"
    return f"= {p:g}"


def format_response_line(curve: ResponseCurve) -> str:
    """Status sentence for one fitted species.

    Example::

        GLM with 2 degrees fitted for ArrElat. Deviance explained: 41.3%, p-value = 0.012.
    """
    return (
        f"{curve.candidate.label} fitted for {curve.species}. "
        f"Deviance explained: {curve.deviance_explained}%, "
        f"p-value {format_p_value(curve.p_value)}."
    )


def print_response_table(
    curves: Mapping[str, ResponseCurve],
    *,
    title: str = "Species Response Curves",
) -> None:
    """Print all fitted species of one call as an ASCII table.

    Args:
        curves: Mapping returned by
            :func:`~vegtools.response.specresponse`.
        title: Title for the output table.
    """
    print("=" * 80)
    for line in textwrap.wrap(title, width=78):
        print(f"{line:^80}")
    print("=" * 80)

    # Species (22) | Model (20) | Pres. (7) | Dev.expl (9) | p (10) | AIC (12)
    print(
        f"{'Species':<22}{'Model':<20}{'Pres.':>7}"
        f"{'Dev.expl':>9}{'p-value':>10}{'AIC':>12}"
    )
    print("-" * 80)
    for name, curve in curves.items():
        aic = curve.fit.aic
        aic_str = "N/A" if math.isnan(aic) else f"{aic:.2f}"
        presences = f"{curve.n_presences}/{curve.n_observations}"
        print(
            f"{_truncate(name, 21):<22}{_truncate(curve.candidate.label, 19):<20}"
            f"{presences:>7}{curve.deviance_explained:>8.1f}%"
            f"{format_p_value(curve.p_value):>10}{aic_str:>12}"
        )
    print("=" * 80)

    rare = [name for name, c in curves.items() if c.n_presences <= 5]
    if rare:
        print("Notes")
        print("-" * 80)
        for name in rare:
            print(f"  [!] {name}: 5 or fewer occurrences, curve shape unreliable.")
        print("=" * 80)
