"""Sweep simulation engine (ribbon)."""

from typing import Mapping, Optional, Sequence
import logging

import numpy as np

from mosim.exceptions import EmptyGridError, NonAxisVariableError
from mosim.engine.results import SweepResult
from mosim.engine.simulation import build_covariates
from mosim.models.fitted import FittedModel
from mosim.models.predictor import predict_grid
from mosim.ops.metrics import MetricsRecorder, get_metrics_recorder
from mosim.presentation import PresentationAdapter
from mosim.variables.registry import VariableRegistry

logger = logging.getLogger(__name__)


class SweepSimulator:
    """Point-estimate probability curves across one variable's grid."""

    def __init__(self, registry: VariableRegistry, metrics: Optional[MetricsRecorder] = None) -> None:
        self.registry = registry
        self.adapter = PresentationAdapter(registry)
        self._metrics = metrics or get_metrics_recorder()

    def sweep(
        self,
        baseline_case: Mapping[str, float],
        sweep_variable: str,
        grid: Sequence[float],
        model: FittedModel,
    ) -> SweepResult:
        """
        Evaluate the model across ``grid`` with everything else at the baseline.

        Args:
            baseline_case: Display-space values for the other variables
            sweep_variable: Variable to vary; must be an x-axis candidate
            grid: Ordered display-space values (at least two)
            model: Fitted model; only the point estimate is used

        Returns:
            SweepResult with one (x, probabilities) row per grid value
        """
        if not self.registry.is_axis_candidate(sweep_variable):
            raise NonAxisVariableError(sweep_variable)
        grid_values = [float(x) for x in grid]
        if len(grid_values) < 2:
            raise EmptyGridError(len(grid_values))
        self._metrics.increment("sweep.calls")

        with self._metrics.timed("sweep.ms"):
            base_values = self.adapter.case_to_model(
                {var_id: value for var_id, value in baseline_case.items() if var_id != sweep_variable}
            )
            swept = self.adapter.grid_to_model(sweep_variable, grid_values)

            rows = []
            for model_value in swept:
                values = dict(base_values)
                values[sweep_variable] = float(model_value)
                rows.append(build_covariates(model, values))
            design = np.vstack(rows)
            probabilities = predict_grid(model.coefficients, design)

        labels = model.outcomes.labels
        points = tuple(
            (x, dict(zip(labels, map(float, probs))))
            for x, probs in zip(grid_values, probabilities)
        )

        self._metrics.increment("sweep.points", len(points))
        logger.debug("Swept %s over %d points", sweep_variable, len(points))

        baseline = {
            var_id: self.adapter.round_display(var_id, value)
            for var_id, value in baseline_case.items()
            if var_id != sweep_variable
        }
        return SweepResult(
            outcomes=model.outcomes,
            variable=sweep_variable,
            baseline=baseline,
            points=points,
            covariates=design,
        )
