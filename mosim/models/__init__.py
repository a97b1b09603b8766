"""
Models module - the fitted multinomial logit and everything that reads it.

This module provides:
- OutcomeSet: ordered outcome categories (first is the reference)
- Formula: additive/interaction formula parsing and design rows
- FittedModel: point estimates plus covariance and/or bootstrap ensemble
- fit_multinomial / bootstrap_ensemble: maximum-likelihood fitting
- UncertaintySampler: coefficient draws
- predict / predict_many / predict_grid: the multinomial link

Usage:
    from mosim.models import FittedModel, UncertaintySampler, predict

    model = FittedModel.load_json("model.json")
    draw = UncertaintySampler(seed=1).draw(model)
    probs = predict(draw, {"(Intercept)": 1.0, "age": 0.5}, model.predictors)
"""

from mosim.models.outcomes import DEFAULT_OUTCOME_COLORS, OutcomeSet
from mosim.models.formula import INTERCEPT, Formula
from mosim.models.fitted import FittedModel
from mosim.models.fitting import bootstrap_ensemble, fit_multinomial
from mosim.models.sampler import SAMPLING_METHODS, UncertaintySampler
from mosim.models.predictor import predict, predict_grid, predict_many

__all__ = [
    'DEFAULT_OUTCOME_COLORS',
    'OutcomeSet',
    'INTERCEPT',
    'Formula',
    'FittedModel',
    'bootstrap_ensemble',
    'fit_multinomial',
    'SAMPLING_METHODS',
    'UncertaintySampler',
    'predict',
    'predict_grid',
    'predict_many',
]
