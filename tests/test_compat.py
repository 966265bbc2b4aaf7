"""Tests for Polars DataFrame input compatibility."""

import numpy as np
import pandas as pd
import pytest

from vegtools import decostand_pa, nmds, racurve, specresponse
from vegtools._compat import _ensure_pandas_df, _is_dataframe_like
from vegtools.rendering import RecordingRenderer

# Import polars; skip all tests in this module if not installed.
pl = pytest.importorskip("polars")


class TestEnsurePandasDf:
    """Tests for the _ensure_pandas_df converter."""

    def test_pandas_passthrough(self):
        df = pd.DataFrame({"a": [1, 2, 3]})
        assert _ensure_pandas_df(df) is df

    def test_polars_converted(self):
        result = _ensure_pandas_df(pl.DataFrame({"a": [1, 2, 3]}))
        assert isinstance(result, pd.DataFrame)
        assert result["a"].tolist() == [1, 2, 3]

    def test_polars_lazyframe_collected_and_converted(self):
        result = _ensure_pandas_df(pl.DataFrame({"a": [1, 2, 3]}).lazy())
        assert isinstance(result, pd.DataFrame)
        assert result["a"].tolist() == [1, 2, 3]

    def test_rejects_invalid_type(self):
        with pytest.raises(TypeError, match="must be a pandas DataFrame"):
            _ensure_pandas_df([1, 2, 3])

    def test_error_includes_name(self):
        with pytest.raises(TypeError, match="'species'"):
            _ensure_pandas_df({"a": 1}, name="species")


class TestIsDataframeLike:
    def test_tables(self):
        assert _is_dataframe_like(pd.DataFrame())
        assert _is_dataframe_like(pl.DataFrame({"a": [1]}))
        assert _is_dataframe_like(pl.DataFrame({"a": [1]}).lazy())

    def test_vectors(self):
        assert not _is_dataframe_like(pd.Series([1]))
        assert not _is_dataframe_like(np.zeros((2, 2)))


class TestPolarsEndToEnd:
    """Public functions accept Polars species tables."""

    @staticmethod
    def _make_polars_table(n=40, seed=42):
        rng = np.random.default_rng(seed)
        x = np.linspace(0, 10, n)
        table = pl.DataFrame(
            {
                "Poa": rng.binomial(1, 1 / (1 + np.exp(-(x - 5)))) * 10,
                "Carex": rng.binomial(1, 1 / (1 + np.exp(x - 5))) * 4,
            }
        )
        return table, x

    def test_specresponse(self):
        table, x = self._make_polars_table()
        res = specresponse(table, x, model="linear", renderer=RecordingRenderer())
        assert list(res) == ["Poa", "Carex"]

    def test_matches_pandas(self):
        table, x = self._make_polars_table()
        pl_res = specresponse(table, x, model="linear", renderer=RecordingRenderer())
        pd_res = specresponse(
            table.to_pandas(), x, model="linear", renderer=RecordingRenderer()
        )
        for name in pd_res:
            assert pl_res[name].fit.aic == pytest.approx(pd_res[name].fit.aic)

    def test_racurve(self):
        table, _ = self._make_polars_table()
        values = racurve(table, renderer=RecordingRenderer())
        assert set(values.index) == {"Poa", "Carex"}

    def test_decostand_pa(self):
        table, _ = self._make_polars_table()
        pa = decostand_pa(table)
        assert set(np.unique(pa.to_numpy())) <= {0.0, 1.0}

    def test_nmds(self):
        table = pl.DataFrame(
            {"a": [1.0, 2.0, 3.0, 4.0, 5.0], "b": [5.0, 4.0, 3.0, 2.0, 1.0], "c": [1.0, 1.0, 2.0, 2.0, 3.0]}
        )
        res = nmds(table, k=1, trymax=2, random_state=0)
        assert res.sites.shape == (5, 1)
