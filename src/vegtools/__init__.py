"""vegtools: Plotting and data helpers for vegetation-community ecology.

Species response curves fitted by logistic regression with AIC-based
GLM/GAM model selection, rank-abundance curves, NMDS scree plots,
species selection for ordination diagrams, cover-abundance scale
conversion, and small dispersion statistics.  Model fitting is
delegated to statsmodels, ordination to scikit-learn and scipy, and
drawing to an injectable renderer (matplotlib by default).

Public API:
    .. autosummary::
        specresponse
        fit_species_response
        racurve
        decostand_pa
        cov2per
        per2cov
        scale_tabs
        nmds
        screeplot_nmds
        ordiselect
        site_scores
        species_scores
        wascores
        cv
        sem
        print_response_table
        format_p_value
        get_renderer
        set_renderer
        Renderer
        MatplotlibRenderer
        NullRenderer
        RecordingRenderer
        PolynomialLogit
        SplineLogit
        register_model
        resolve_model
        ResponseCurve
        OrdinationResult
"""

from ._config import get_renderer, set_renderer
from ._results import OrdinationResult, ResponseCurve
from .abundance import cov2per, decostand_pa, per2cov, racurve, scale_tabs
from .descriptive import cv, sem
from .display import format_p_value, print_response_table
from .models import PolynomialLogit, SplineLogit, register_model, resolve_model
from .ordination import (
    nmds,
    ordiselect,
    screeplot_nmds,
    site_scores,
    species_scores,
    wascores,
)
from .rendering import MatplotlibRenderer, NullRenderer, RecordingRenderer, Renderer
from .response import fit_species_response, specresponse

__all__ = [
    "OrdinationResult",
    "ResponseCurve",
    "specresponse",
    "fit_species_response",
    "racurve",
    "decostand_pa",
    "cov2per",
    "per2cov",
    "scale_tabs",
    "nmds",
    "screeplot_nmds",
    "ordiselect",
    "site_scores",
    "species_scores",
    "wascores",
    "cv",
    "sem",
    "print_response_table",
    "format_p_value",
    "get_renderer",
    "set_renderer",
    "Renderer",
    "MatplotlibRenderer",
    "NullRenderer",
    "RecordingRenderer",
    "PolynomialLogit",
    "SplineLogit",
    "register_model",
    "resolve_model",
]

__version__ = "0.1.0"
