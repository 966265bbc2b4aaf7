"""Species-table input handling.

Species tables (plots in rows, species in columns) may be pandas or
Polars frames.  Polars input is turned into pandas once, where it
enters a public function; everything downstream works on pandas
columns.  Polars itself is optional.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

import pandas as pd

if TYPE_CHECKING:
    import polars as pl

    DataFrameLike: TypeAlias = pd.DataFrame | pl.DataFrame | pl.LazyFrame
else:
    DataFrameLike: TypeAlias = pd.DataFrame

try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False

_POLARS_TABLES: tuple[type, ...] = (pl.DataFrame, pl.LazyFrame) if _HAS_POLARS else ()


def _is_dataframe_like(obj: object) -> bool:
    """Whether *obj* is a species table rather than a single vector."""
    return isinstance(obj, (pd.DataFrame, *_POLARS_TABLES))


def _ensure_pandas_df(obj: DataFrameLike, *, name: str = "input") -> pd.DataFrame:
    """Return *obj* as a pandas species table.

    pandas frames pass through unchanged; Polars frames are converted
    (lazy frames are collected first).  *name* is the argument name
    reported when *obj* is not a table.

    Raises:
        TypeError: If *obj* is neither a pandas nor a Polars frame.
    """
    if isinstance(obj, pd.DataFrame):
        return obj
    if _HAS_POLARS and isinstance(obj, pl.LazyFrame):
        obj = obj.collect()
    if _HAS_POLARS and isinstance(obj, pl.DataFrame):
        return obj.to_pandas()

    accepted = "a pandas DataFrame" + (" or Polars DataFrame/LazyFrame" if _HAS_POLARS else "")
    raise TypeError(f"'{name}' must be {accepted}, got {type(obj).__name__}.")
