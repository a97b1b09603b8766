"""Case simulation engine (dot cloud)."""

from typing import Dict, Mapping, Optional
import logging

import numpy as np

from mosim.exceptions import InvalidDrawCountError
from mosim.engine.results import SimulationResult
from mosim.models.fitted import FittedModel
from mosim.models.formula import INTERCEPT
from mosim.models.predictor import covariate_vector, predict_many
from mosim.models.sampler import UncertaintySampler
from mosim.ops.metrics import MetricsRecorder, get_metrics_recorder
from mosim.presentation import PresentationAdapter
from mosim.variables.registry import VariableRegistry

logger = logging.getLogger(__name__)

DEFAULT_DRAW_COUNT = 1000


def build_covariates(model: FittedModel, model_values: Mapping[str, float]) -> np.ndarray:
    """Design vector for a model-space case, aligned with ``model.predictors``."""
    if model.formula is not None:
        return model.formula.design_row(model_values)
    values: Dict[str, float] = dict(model_values)
    values.setdefault(INTERCEPT, 1.0)
    return covariate_vector(values, model.n_predictors, model.predictors)


def _check_draw_count(draw_count) -> int:
    if isinstance(draw_count, bool) or not isinstance(draw_count, (int, np.integer)):
        raise InvalidDrawCountError(draw_count)
    if draw_count <= 0:
        raise InvalidDrawCountError(draw_count)
    return int(draw_count)


class CaseSimulator:
    """
    Ensemble of outcome-probability vectors for one case description.

    Each call owns a fresh sampler, so concurrent calls never share a
    random stream and a fixed seed always reproduces the same draws.
    """

    def __init__(
        self,
        registry: VariableRegistry,
        metrics: Optional[MetricsRecorder] = None,
        sampling_method: str = "auto",
    ) -> None:
        self.registry = registry
        self.adapter = PresentationAdapter(registry)
        self.sampling_method = sampling_method
        self._metrics = metrics or get_metrics_recorder()

    def simulate(
        self,
        case: Mapping[str, float],
        model: FittedModel,
        draw_count: int = DEFAULT_DRAW_COUNT,
        seed: Optional[int] = None,
    ) -> SimulationResult:
        """
        Simulate ``draw_count`` probability vectors for ``case``.

        Args:
            case: Display-space value for every model variable
            model: Fitted model with an uncertainty representation
            draw_count: Number of coefficient draws (positive int)
            seed: Optional seed; a fixed seed gives bit-identical results

        Returns:
            SimulationResult with one row per draw, in draw order
        """
        draw_count = _check_draw_count(draw_count)
        self._metrics.increment("simulate.calls")

        with self._metrics.timed("simulate.ms"):
            model_values = self.adapter.case_to_model(case)
            covariates = build_covariates(model, model_values)

            sampler = UncertaintySampler(seed=seed, method=self.sampling_method)
            method = sampler.resolve_method(model)
            draws = sampler.draw_many(model, draw_count)
            probabilities = predict_many(draws, covariates)

        self._metrics.increment("simulate.draws", draw_count)
        logger.debug("Simulated %d draws by %s (seed=%s)", draw_count, method, seed)

        rounded_case = {var_id: self.adapter.round_display(var_id, value) for var_id, value in case.items()}
        return SimulationResult(
            outcomes=model.outcomes,
            case=rounded_case,
            probabilities=probabilities,
            seed=seed,
            method=method,
        )
