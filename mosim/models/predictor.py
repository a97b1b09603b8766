"""Multinomial logit link: coefficients x covariates -> outcome probabilities."""

from typing import Mapping, Optional, Sequence, Union

import numpy as np

from mosim.exceptions import DimensionMismatchError


Covariates = Union[Sequence[float], np.ndarray, Mapping[str, float]]


def _softmax_with_reference(scores: np.ndarray) -> np.ndarray:
    # Reference category has a fixed score of 0 in the first column.
    shape = scores.shape[:-1] + (1,)
    full = np.concatenate([np.zeros(shape), scores], axis=-1)
    full = full - full.max(axis=-1, keepdims=True)
    weights = np.exp(full)
    return weights / weights.sum(axis=-1, keepdims=True)


def covariate_vector(
    covariates: Covariates,
    n_predictors: int,
    predictors: Optional[Sequence[str]] = None,
) -> np.ndarray:
    """Align covariates with the coefficient columns."""
    if isinstance(covariates, Mapping):
        if predictors is None:
            raise DimensionMismatchError(expected=n_predictors, received=len(covariates))
        missing = [name for name in predictors if name not in covariates]
        if missing:
            raise DimensionMismatchError(
                missing,
                expected=len(predictors),
                received=len(predictors) - len(missing),
            )
        x = np.array([float(covariates[name]) for name in predictors], dtype=float)
    else:
        x = np.asarray(covariates, dtype=float)
    if x.ndim != 1 or x.shape[0] != n_predictors:
        raise DimensionMismatchError(expected=n_predictors, received=int(x.size))
    return x


def predict(
    coefficients: np.ndarray,
    covariates: Covariates,
    predictors: Optional[Sequence[str]] = None,
) -> np.ndarray:
    """
    Probability vector over all outcomes, reference outcome first.

    Args:
        coefficients: (K-1, P) weights for the non-reference outcomes
        covariates: aligned vector of length P, or a predictor -> value mapping
        predictors: column names, required when ``covariates`` is a mapping

    Returns:
        Array of K non-negative probabilities summing to 1
    """
    coefficients = np.asarray(coefficients, dtype=float)
    x = covariate_vector(covariates, coefficients.shape[-1], predictors)
    return _softmax_with_reference(coefficients @ x)


def predict_many(coefficient_draws: np.ndarray, covariates: Covariates,
                 predictors: Optional[Sequence[str]] = None) -> np.ndarray:
    """Predict one covariate vector under a stack of (N, K-1, P) draws -> (N, K)."""
    draws = np.asarray(coefficient_draws, dtype=float)
    x = covariate_vector(covariates, draws.shape[-1], predictors)
    return _softmax_with_reference(draws @ x)


def predict_grid(coefficients: np.ndarray, design: np.ndarray) -> np.ndarray:
    """Predict many covariate rows (R, P) under one coefficient set -> (R, K)."""
    coefficients = np.asarray(coefficients, dtype=float)
    design = np.asarray(design, dtype=float)
    if design.ndim != 2 or design.shape[1] != coefficients.shape[-1]:
        raise DimensionMismatchError(
            expected=coefficients.shape[-1],
            received=int(design.shape[-1]) if design.ndim else 0,
        )
    return _softmax_with_reference(design @ coefficients.T)
