"""Simulation engines and the configured simulator facade."""

from pathlib import Path
from typing import Mapping, Optional, Sequence, Union
import logging

from mosim.engine.results import SimulationResult, SweepResult
from mosim.engine.simulation import DEFAULT_DRAW_COUNT, CaseSimulator, build_covariates
from mosim.engine.sweep import SweepSimulator
from mosim.models.fitted import FittedModel
from mosim.ops.metrics import MetricsRecorder
from mosim.variables.registry import VariableRegistry

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_DRAW_COUNT",
    "CaseSimulator",
    "OutcomeSimulator",
    "SimulationResult",
    "SweepResult",
    "SweepSimulator",
    "build_covariates",
]


class OutcomeSimulator:
    """
    One configured simulator instance: a fitted model plus its variable table.

    Formula variables missing from the table are registered as identity,
    non-interactive variables so every predictor can be given in a case.
    Instances share nothing; several may coexist with different models.
    """

    def __init__(
        self,
        model: FittedModel,
        registry: VariableRegistry,
        metrics: Optional[MetricsRecorder] = None,
        sampling_method: str = "auto",
    ) -> None:
        if model.formula is not None:
            registry = registry.with_defaults(model.formula.variables)
        self.model = model
        self.registry = registry
        self._case_engine = CaseSimulator(registry, metrics=metrics, sampling_method=sampling_method)
        self._sweep_engine = SweepSimulator(registry, metrics=metrics)

    @classmethod
    def from_files(
        cls,
        model_path: Union[str, Path],
        variables_path: Union[str, Path],
        **kwargs,
    ) -> "OutcomeSimulator":
        model = FittedModel.load_json(model_path)
        registry = VariableRegistry.from_json(variables_path)
        logger.info("Loaded simulator: %s, %d configured variables", model_path, len(registry))
        return cls(model, registry, **kwargs)

    @property
    def outcomes(self):
        return self.model.outcomes

    def simulate(
        self,
        case: Mapping[str, float],
        draw_count: int = DEFAULT_DRAW_COUNT,
        seed: Optional[int] = None,
    ) -> SimulationResult:
        return self._case_engine.simulate(case, self.model, draw_count=draw_count, seed=seed)

    def sweep(
        self,
        baseline_case: Mapping[str, float],
        sweep_variable: str,
        grid: Sequence[float],
    ) -> SweepResult:
        return self._sweep_engine.sweep(baseline_case, sweep_variable, grid, self.model)
