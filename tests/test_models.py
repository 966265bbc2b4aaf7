"""Tests for candidate response models and AIC selection."""

from types import SimpleNamespace

import numpy as np
import pytest
import statsmodels.api as sm
from scipy import stats

from vegtools.models import (
    CandidateFit,
    OrthoPoly,
    PolynomialLogit,
    ResponseCandidate,
    SplineLogit,
    _MODELS,
    fit_null,
    likelihood_ratio_test,
    register_model,
    resolve_model,
    select_by_aic,
)

# ------------------------------------------------------------------ #
# OrthoPoly
# ------------------------------------------------------------------ #


class TestOrthoPoly:
    def test_columns_orthonormal(self):
        x = np.linspace(100, 400, 30)
        z = OrthoPoly(3).fit_transform(x)
        np.testing.assert_allclose(z.T @ z, np.eye(3), atol=1e-8)

    def test_columns_orthogonal_to_constant(self):
        x = np.arange(1.0, 21.0)
        z = OrthoPoly(2).fit_transform(x)
        np.testing.assert_allclose(z.sum(axis=0), 0.0, atol=1e-8)

    def test_degree_one_is_scaled_centred_x(self):
        x = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        z = OrthoPoly(1).fit_transform(x)[:, 0]
        expected = (x - x.mean()) / np.linalg.norm(x - x.mean())
        np.testing.assert_allclose(z, expected, atol=1e-10)

    def test_transform_new_values_spans_same_space(self):
        x = np.linspace(0, 10, 25)
        basis = OrthoPoly(2).fit(x)
        x_new = np.array([0.5, 3.3, 9.9])
        z_new = basis.transform(x_new)
        # Each basis column is a quadratic in x: exact fit by raw powers.
        raw = np.vander(x_new, 3, increasing=True)
        for j in range(2):
            coef, *_ = np.linalg.lstsq(np.vander(x, 3, increasing=True),
                                       basis.transform(x)[:, j], rcond=None)
            np.testing.assert_allclose(raw @ coef, z_new[:, j], atol=1e-8)

    def test_degree_too_high_for_unique_points(self):
        with pytest.raises(ValueError, match="less than number of unique points"):
            OrthoPoly(3).fit(np.array([1.0, 1.0, 2.0, 2.0, 3.0]))

    def test_transform_before_fit(self):
        with pytest.raises(RuntimeError, match="fitted"):
            OrthoPoly(2).transform(np.arange(5.0))

    def test_rejects_degree_zero(self):
        with pytest.raises(ValueError, match="at least 1"):
            OrthoPoly(0)


# ------------------------------------------------------------------ #
# Candidates
# ------------------------------------------------------------------ #


class TestPolynomialLogit:
    def test_protocol_conformance(self):
        assert isinstance(PolynomialLogit(2), ResponseCandidate)

    def test_labels(self):
        assert PolynomialLogit(1).label == "GLM with 1 degree"
        assert PolynomialLogit(2).label == "GLM with 2 degrees"
        assert PolynomialLogit(4).kind == "GLM"

    def test_matches_raw_power_fit(self, unimodal_data):
        x, y = unimodal_data
        fit = PolynomialLogit(2).fit(x, y)
        raw = sm.GLM(
            y, np.column_stack([np.ones_like(x), x, x**2]),
            family=sm.families.Binomial(),
        ).fit()
        assert fit.aic == pytest.approx(raw.aic, rel=1e-6)
        np.testing.assert_allclose(
            fit.predict(x), raw.fittedvalues, atol=1e-6
        )

    def test_predict_grid_in_unit_interval(self, unimodal_data):
        x, y = unimodal_data
        fit = PolynomialLogit(3).fit(x, y)
        grid = np.linspace(x.min(), x.max(), 101)
        pred = fit.predict(grid)
        assert pred.shape == (101,)
        assert np.all((pred >= 0) & (pred <= 1))

    def test_p_value_is_likelihood_ratio(self, unimodal_data):
        x, y = unimodal_data
        fit = PolynomialLogit(2).fit(x, y)
        null = fit_null(y)
        expected = stats.chi2.sf(null.deviance - fit.deviance, 2)
        assert fit.p_value(null) == pytest.approx(expected)


class TestSplineLogit:
    def test_protocol_conformance(self):
        assert isinstance(SplineLogit(4), ResponseCandidate)

    def test_label(self):
        assert SplineLogit(5).label == "GAM with 5 knots"
        assert SplineLogit(5).complexity == 5

    def test_quadratic_for_smallest_basis(self):
        assert SplineLogit(3).spline_degree == 2
        assert [SplineLogit(k).spline_degree for k in (4, 5, 6)] == [3, 3, 3]

    def test_rejects_basis_below_three(self):
        with pytest.raises(ValueError, match="at least 3"):
            SplineLogit(2)

    @pytest.mark.parametrize("k", [3, 4, 5, 6])
    def test_every_basis_dimension_fits(self, unimodal_data, k):
        x, y = unimodal_data
        fit = SplineLogit(k).fit(x, y)
        assert np.isfinite(fit.aic)
        assert fit.candidate.label == f"GAM with {k} knots"

    def test_fit_and_predict(self, unimodal_data):
        x, y = unimodal_data
        fit = SplineLogit(4).fit(x, y)
        pred = fit.predict(np.linspace(x.min(), x.max(), 101))
        assert pred.shape == (101,)
        assert np.all((pred >= 0) & (pred <= 1))

    def test_selected_penalty_is_used(self, unimodal_data):
        x, y = unimodal_data
        alpha = SplineLogit(4).select_alpha(x, y)
        assert alpha > 0
        fit = SplineLogit(4).fit(x, y)
        np.testing.assert_allclose(np.ravel(fit.result.model.alpha), [alpha])
        fixed = SplineLogit(4, alpha=alpha).fit(x, y)
        assert fit.aic == pytest.approx(fixed.aic)

    def test_fixed_penalty_skips_search(self, unimodal_data):
        x, y = unimodal_data
        fit = SplineLogit(5, alpha=0.0).fit(x, y)
        np.testing.assert_array_equal(np.ravel(fit.result.model.alpha), [0.0])

    @pytest.mark.parametrize("value", [0.0, 1.0])
    def test_constant_response(self, value):
        x = np.linspace(0, 10, 30)
        y = np.full(30, value)
        assert SplineLogit(3).select_alpha(x, y) == 0.0
        pred = SplineLogit(3).fit(x, y).predict(x)
        np.testing.assert_allclose(pred, value, atol=1e-2)

    def test_p_value_in_unit_interval(self, unimodal_data):
        x, y = unimodal_data
        fit = SplineLogit(3).fit(x, y)
        p = fit.p_value(fit_null(y))
        assert 0.0 <= p <= 1.0

    def test_strong_response_is_significant(self, unimodal_data):
        x, y = unimodal_data
        fit = SplineLogit(5).fit(x, y)
        assert fit.p_value(fit_null(y)) < 0.01


# ------------------------------------------------------------------ #
# Baseline and tests
# ------------------------------------------------------------------ #


class TestNullAndLikelihoodRatio:
    def test_null_is_intercept_only(self, unimodal_data):
        _, y = unimodal_data
        null = fit_null(y)
        assert null.df_model == 0
        assert null.deviance == pytest.approx(null.null_deviance)

    def test_zero_df_returns_nan(self, unimodal_data):
        _, y = unimodal_data
        null = fit_null(y)
        assert np.isnan(likelihood_ratio_test(null, null))

    def test_negative_deviance_drop_clipped(self):
        full = SimpleNamespace(deviance=10.0, df_model=1)
        null = SimpleNamespace(deviance=9.0, df_model=0)
        assert likelihood_ratio_test(full, null) == pytest.approx(1.0)


# ------------------------------------------------------------------ #
# Selection
# ------------------------------------------------------------------ #


def _fake_fit(label, aic):
    return SimpleNamespace(aic=aic, candidate=SimpleNamespace(label=label))


class TestSelectByAic:
    def test_picks_minimum(self):
        fits = [_fake_fit("a", 12.0), _fake_fit("b", 9.5), _fake_fit("c", 11.0)]
        assert select_by_aic(fits).candidate.label == "b"

    def test_first_minimum_wins_on_ties(self):
        fits = [_fake_fit("a", 10.0), _fake_fit("b", 8.0), _fake_fit("c", 8.0)]
        assert select_by_aic(fits).candidate.label == "b"

    def test_single_fit(self):
        fits = [_fake_fit("only", 3.0)]
        assert select_by_aic(fits) is fits[0]

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="at least one"):
            select_by_aic([])

    def test_auto_selects_argmin_of_three_degrees(self, unimodal_data):
        x, y = unimodal_data
        fits = [c.fit(x, y) for c in resolve_model("auto")]
        aics = [f.aic for f in fits]
        best = select_by_aic(fits)
        assert isinstance(best, CandidateFit)
        assert best.candidate.complexity == [1, 2, 3][int(np.argmin(aics))]

    def test_gam_selects_argmin_of_four_bases(self, unimodal_data):
        x, y = unimodal_data
        fits = [c.fit(x, y) for c in resolve_model("gam")]
        aics = [f.aic for f in fits]
        best = select_by_aic(fits)
        assert best.candidate.complexity == [3, 4, 5, 6][int(np.argmin(aics))]


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #


class TestRegistry:
    @pytest.mark.parametrize(
        "name, degrees",
        [
            ("linear", [1]),
            ("unimodal", [2]),
            ("bimodal", [4]),
            ("auto", [1, 2, 3]),
        ],
    )
    def test_polynomial_keywords(self, name, degrees):
        candidates = resolve_model(name)
        assert all(isinstance(c, PolynomialLogit) for c in candidates)
        assert [c.degree for c in candidates] == degrees

    def test_gam_keyword(self):
        candidates = resolve_model("gam")
        assert [c.df for c in candidates] == [3, 4, 5, 6]
        assert all(isinstance(c, SplineLogit) for c in candidates)

    def test_unknown_model(self):
        with pytest.raises(ValueError, match="Model unknown"):
            resolve_model("quadratic")

    def test_resolve_returns_fresh_list(self):
        first = resolve_model("auto")
        first.pop()
        assert len(resolve_model("auto")) == 3

    def test_register_custom_model(self):
        register_model("cubic", lambda: [PolynomialLogit(3)])
        try:
            assert [c.degree for c in resolve_model("cubic")] == [3]
        finally:
            _MODELS.pop("cubic", None)

    def test_register_rejects_non_callable(self):
        with pytest.raises(ValueError, match="callable"):
            register_model("broken", [PolynomialLogit(1)])

    def test_register_rejects_empty_name(self):
        with pytest.raises(ValueError, match="non-empty"):
            register_model("", lambda: [])
