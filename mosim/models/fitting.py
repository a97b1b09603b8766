"""Maximum-likelihood fitting for multinomial logit models.

This is the model fit provider the engines rely on: it turns a dataset and a
formula into a ``FittedModel`` whose covariance is the inverse observed
information at the optimum. ``bootstrap_ensemble`` adds a resampled
coefficient ensemble as an alternative uncertainty representation.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union
import logging

import numpy as np
import pandas as pd

from mosim.exceptions import ConfigurationError, ModelFitError
from mosim.models.fitted import FittedModel
from mosim.models.formula import Formula
from mosim.models.outcomes import OutcomeSet
from mosim.models.predictor import predict_grid

logger = logging.getLogger(__name__)

_MAX_STEP_HALVINGS = 30


def prepare_frame(frame: pd.DataFrame, formula: Formula, outcomes: OutcomeSet) -> pd.DataFrame:
    """Keep complete rows for the formula columns and check outcome labels."""
    columns = [formula.outcome] + list(formula.variables)
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise ConfigurationError("formula", f"dataset has no column(s) {missing}")
    complete = frame.loc[frame[columns].notna().all(axis=1), columns].copy()
    dropped = len(frame) - len(complete)
    if dropped:
        logger.info("Dropped %d incomplete rows of %d", dropped, len(frame))
    if complete.empty:
        raise ModelFitError("dataset has no complete rows")
    complete[formula.outcome] = complete[formula.outcome].astype(str)
    unknown = sorted(set(complete[formula.outcome]) - set(outcomes.labels))
    if unknown:
        raise ConfigurationError("outcomes", f"dataset has unconfigured outcomes {unknown}")
    return complete


def _one_hot(labels: pd.Series, outcomes: OutcomeSet) -> np.ndarray:
    codes = labels.map({label: i for i, label in enumerate(outcomes.labels)}).to_numpy(dtype=int)
    response = np.zeros((len(codes), len(outcomes)), dtype=float)
    response[np.arange(len(codes)), codes] = 1.0
    return response


def _log_likelihood(probs: np.ndarray, response: np.ndarray) -> float:
    return float(np.sum(response * np.log(np.clip(probs, 1e-300, None))))


def _information(design: np.ndarray, probs: np.ndarray) -> np.ndarray:
    n_classes = probs.shape[1] - 1
    n_pred = design.shape[1]
    info = np.zeros((n_classes * n_pred, n_classes * n_pred), dtype=float)
    for k in range(n_classes):
        pk = probs[:, k + 1]
        for m in range(k, n_classes):
            weight = pk * ((1.0 if k == m else 0.0) - probs[:, m + 1])
            block = design.T @ (design * weight[:, None])
            info[k * n_pred:(k + 1) * n_pred, m * n_pred:(m + 1) * n_pred] = block
            if m != k:
                info[m * n_pred:(m + 1) * n_pred, k * n_pred:(k + 1) * n_pred] = block.T
    return info


def _newton(
    design: np.ndarray,
    response: np.ndarray,
    start: np.ndarray,
    max_iter: int,
    tol: float,
    ridge: float,
) -> Tuple[np.ndarray, np.ndarray, float, int]:
    beta = start.copy()
    shape = beta.shape
    penalty = ridge * np.eye(beta.size)

    def objective(b: np.ndarray) -> float:
        return _log_likelihood(predict_grid(b, design), response) - 0.5 * ridge * float(np.sum(b * b))

    current = objective(beta)
    for iteration in range(1, max_iter + 1):
        probs = predict_grid(beta, design)
        gradient = ((response[:, 1:] - probs[:, 1:]).T @ design).reshape(-1) - ridge * beta.reshape(-1)
        info = _information(design, probs) + penalty
        try:
            step = np.linalg.solve(info, gradient).reshape(shape)
        except np.linalg.LinAlgError as exc:
            raise ModelFitError("information matrix is singular") from exc

        scale = 1.0
        for _ in range(_MAX_STEP_HALVINGS):
            candidate = beta + scale * step
            value = objective(candidate)
            if value >= current - 1e-12:
                break
            scale *= 0.5
        else:
            raise ModelFitError("line search failed to improve the likelihood")

        beta = candidate
        improvement = value - current
        current = value
        if np.max(np.abs(scale * step)) < tol or abs(improvement) < tol * (abs(current) + tol):
            final_info = _information(design, predict_grid(beta, design)) + penalty
            return beta, final_info, current, iteration
    raise ModelFitError(f"did not converge in {max_iter} iterations")


def _invert_information(info: np.ndarray) -> np.ndarray:
    if not np.all(np.isfinite(info)):
        raise ModelFitError("information matrix is not finite")
    if np.linalg.cond(info) > 1e12:
        raise ModelFitError("information matrix is singular (collinear predictors or separation)")
    covariance = np.linalg.inv(info)
    return (covariance + covariance.T) / 2.0


def fit_multinomial(
    frame: pd.DataFrame,
    formula: Union[str, Formula],
    outcomes: Union[OutcomeSet, Sequence[str]],
    max_iter: int = 100,
    tol: float = 1e-8,
    ridge: float = 0.0,
    start: Optional[np.ndarray] = None,
) -> FittedModel:
    """
    Fit a multinomial logit by Newton-Raphson.

    Args:
        frame: Dataset with the outcome column and every formula variable
        formula: ``"outcome ~ a + b"`` or a parsed ``Formula``
        outcomes: Outcome labels; the first is the reference category
        max_iter: Newton iteration limit
        tol: Convergence tolerance on the step size / log-likelihood change
        ridge: Optional L2 penalty, useful for nearly separated data
        start: Optional (K-1, P) starting coefficients

    Returns:
        FittedModel with point estimates and covariance
    """
    if isinstance(formula, str):
        formula = Formula.parse(formula)
    if not isinstance(outcomes, OutcomeSet):
        outcomes = OutcomeSet.of(outcomes)

    data = prepare_frame(frame, formula, outcomes)
    design = formula.design_matrix(data)
    response = _one_hot(data[formula.outcome], outcomes)
    shape = (len(outcomes) - 1, design.shape[1])
    initial = np.zeros(shape) if start is None else np.asarray(start, dtype=float).reshape(shape)

    beta, info, loglik, iterations = _newton(design, response, initial, max_iter, tol, ridge)
    covariance = _invert_information(info)
    logger.info(
        "Fit %s on %d rows in %d iterations (log-likelihood %.4f)",
        formula,
        len(data),
        iterations,
        loglik,
    )
    return FittedModel(
        outcomes=outcomes,
        predictors=formula.predictors,
        coefficients=beta,
        covariance=covariance,
        formula=formula,
        metadata={
            "n_obs": int(len(data)),
            "log_likelihood": loglik,
            "iterations": iterations,
            "ridge": ridge,
        },
    )


def bootstrap_ensemble(
    frame: pd.DataFrame,
    formula: Union[str, Formula],
    outcomes: Union[OutcomeSet, Sequence[str]],
    replicates: int = 200,
    seed: Optional[int] = None,
    ridge: float = 0.0,
    max_iter: int = 100,
) -> FittedModel:
    """Fit once, then refit on ``replicates`` row resamples and attach the ensemble."""
    if replicates < 2:
        raise ConfigurationError("replicates", "bootstrap needs at least 2 replicates")
    base = fit_multinomial(frame, formula, outcomes, max_iter=max_iter, ridge=ridge)
    data = prepare_frame(frame, base.formula, base.outcomes)
    rng = np.random.default_rng(seed)

    draws = []
    failures = 0
    for replicate in range(replicates):
        sample = data.iloc[rng.integers(0, len(data), size=len(data))]
        try:
            refit = fit_multinomial(
                sample,
                base.formula,
                base.outcomes,
                max_iter=max_iter,
                ridge=ridge,
                start=base.coefficients,
            )
        except ModelFitError as exc:
            failures += 1
            logger.warning("Bootstrap replicate %d failed: %s", replicate, exc)
            continue
        draws.append(refit.coefficients)

    if len(draws) < max(2, replicates // 2):
        raise ModelFitError(f"{failures} of {replicates} bootstrap replicates failed")
    logger.info("Bootstrap ensemble: %d replicates (%d failed)", len(draws), failures)
    model = base.with_ensemble(np.stack(draws))
    model.metadata.update({"bootstrap_replicates": len(draws), "bootstrap_seed": seed})
    return model
