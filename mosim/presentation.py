"""Presentation adapter between display-space inputs and model-space values.

The engines work in model space; users (and plots) work in display space.
This module applies the registry transforms element-wise, rounds slider
inputs to the slider granularity before conversion so that the value a user
sees is the value the model gets, and offers caller-side helpers for
building baseline cases and sweep grids from a dataset.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from mosim.exceptions import ConfigurationError, EmptyGridError, UnknownVariableError
from mosim.variables.registry import VariableRegistry

logger = logging.getLogger(__name__)


def round_to_granularity(value: float, granularity: float) -> float:
    """Snap to the nearest multiple of ``granularity`` (halves round up)."""
    snapped = np.floor(float(value) / granularity + 0.5) * granularity
    # drop float noise such as 0.30000000000000004
    return float(round(snapped, 12))


class PresentationAdapter:
    def __init__(self, registry: VariableRegistry) -> None:
        self.registry = registry

    def round_display(self, var_id: str, value: float) -> float:
        """Round slider-driven inputs; other variables pass through unchanged."""
        if not self.registry.is_slider_candidate(var_id):
            return float(value)
        return round_to_granularity(value, self.registry.rounding_granularity(var_id))

    def to_model(self, var_id: str, display_value: float, rounded: bool = True) -> float:
        value = self.round_display(var_id, display_value) if rounded else float(display_value)
        return self.registry.to_model(var_id, value)

    def case_to_model(self, case: Mapping[str, float]) -> Dict[str, float]:
        """Convert a display-space case description to model space."""
        return {var_id: self.to_model(var_id, value) for var_id, value in case.items()}

    def grid_to_model(self, var_id: str, grid: Sequence[float]) -> np.ndarray:
        """Sweep grids are evaluated exactly as given: no slider rounding."""
        return np.asarray(self.registry.to_model(var_id, np.asarray(grid, dtype=float)), dtype=float)

    def values_to_display(self, var_id: str, values) -> np.ndarray:
        return np.asarray(self.registry.to_display(var_id, np.asarray(values, dtype=float)), dtype=float)

    def case_to_display(self, model_values: Mapping[str, float]) -> Dict[str, float]:
        return {var_id: self.registry.to_display(var_id, value) for var_id, value in model_values.items()}

    def axis_labels(
        self, var_id: str, frame: Optional[pd.DataFrame] = None
    ) -> Optional[Tuple[Tuple[float, ...], Optional[Tuple[str, ...]]]]:
        """
        Custom (breaks, labels) for a ribbon x-axis, if configured.

        Labels given without breaks sit on evenly spaced breaks over the
        observed display range, one break per label; that needs ``frame``.
        """
        spec = self.registry.spec(var_id)
        if spec.custom_breaks is not None:
            return spec.custom_breaks, spec.custom_labels
        if spec.custom_labels is None:
            return None
        breaks = self._spaced_over_range(frame, var_id, len(spec.custom_labels))
        return tuple(breaks), spec.custom_labels

    def _spaced_over_range(self, frame: Optional[pd.DataFrame], var_id: str, points: int) -> List[float]:
        if points < 2:
            raise EmptyGridError(points)
        if frame is None or var_id not in frame.columns:
            raise ConfigurationError(var_id, "no custom breaks and no data to derive a grid from")
        display = self.values_to_display(var_id, frame[var_id].dropna().to_numpy(dtype=float))
        low, high = float(display.min()), float(display.max())
        logger.debug("Grid for %s over [%g, %g] with %d points", var_id, low, high, points)
        return [float(v) for v in np.linspace(low, high, points)]

    # -- caller-side helpers --------------------------------------------------

    def baseline_case(self, frame: pd.DataFrame, variables: Optional[Iterable[str]] = None) -> Dict[str, float]:
        """
        Display-space case with every variable at its typical dataset value.

        Continuous variables use the model-space mean; facet candidates
        (categorical) use the most frequent value.
        """
        names = list(variables) if variables is not None else list(self.registry.names)
        case: Dict[str, float] = {}
        for var_id in names:
            if var_id not in frame.columns:
                raise UnknownVariableError(var_id)
            column = frame[var_id].dropna()
            if self.registry.is_facet_candidate(var_id):
                model_value = float(column.mode().iloc[0])
            else:
                model_value = float(column.astype(float).mean())
            case[var_id] = self.registry.to_display(var_id, model_value)
        return case

    def default_grid(self, frame: Optional[pd.DataFrame], var_id: str, points: int = 25) -> List[float]:
        """Axis breaks if configured (or derivable from labels), else ``points`` over the display range."""
        ticks = self.axis_labels(var_id, frame)
        if ticks is not None:
            return list(ticks[0])
        return self._spaced_over_range(frame, var_id, points)
