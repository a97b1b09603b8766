"""Result containers handed to the plotting layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from mosim.models.outcomes import OutcomeSet


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """
    Dot-cloud data: one probability vector per uncertainty draw.

    ``probabilities`` has shape (draws, outcomes), columns in outcome order,
    rows in draw order.
    """
    outcomes: OutcomeSet
    case: Dict[str, float]
    probabilities: np.ndarray
    seed: Optional[int] = None
    method: str = "covariance"

    def __post_init__(self) -> None:
        probabilities = np.array(self.probabilities, dtype=float, copy=True)
        probabilities.setflags(write=False)
        object.__setattr__(self, "probabilities", probabilities)
        object.__setattr__(self, "case", dict(self.case))

    def __len__(self) -> int:
        return int(self.probabilities.shape[0])

    @property
    def draw_count(self) -> int:
        return len(self)

    def rows(self) -> List[Dict[str, float]]:
        labels = self.outcomes.labels
        return [dict(zip(labels, map(float, row))) for row in self.probabilities]

    def to_frame(self) -> pd.DataFrame:
        """Long format for plotting: draw, outcome, probability."""
        n_draws, n_outcomes = self.probabilities.shape
        return pd.DataFrame({
            "draw": np.repeat(np.arange(n_draws), n_outcomes),
            "outcome": np.tile(np.array(self.outcomes.labels, dtype=object), n_draws),
            "probability": self.probabilities.reshape(-1),
        })

    def summary(self, quantiles: Sequence[float] = (0.05, 0.5, 0.95)) -> pd.DataFrame:
        """Per-outcome mean and quantiles across draws, in outcome order."""
        table = pd.DataFrame(self.probabilities, columns=list(self.outcomes.labels))
        summary = pd.DataFrame({"mean": table.mean()})
        for q in quantiles:
            summary[f"q{int(round(q * 100)):02d}"] = table.quantile(q)
        summary.index.name = "outcome"
        return summary.reset_index()

    def to_dict(self) -> Dict[str, object]:
        return {
            "outcomes": list(self.outcomes.labels),
            "case": dict(self.case),
            "seed": self.seed,
            "method": self.method,
            "probabilities": self.probabilities.tolist(),
        }


@dataclass(frozen=True, eq=False)
class SweepResult:
    """
    Ribbon data: (x, {outcome: probability}) pairs in grid order.

    ``x`` values are the display-space grid values as given by the caller;
    ``covariates`` holds the model-space design rows actually evaluated.
    """
    outcomes: OutcomeSet
    variable: str
    baseline: Dict[str, float]
    points: Tuple[Tuple[float, Dict[str, float]], ...]
    covariates: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))

    def __post_init__(self) -> None:
        covariates = np.array(self.covariates, dtype=float, copy=True)
        covariates.setflags(write=False)
        object.__setattr__(self, "covariates", covariates)
        object.__setattr__(self, "baseline", dict(self.baseline))
        object.__setattr__(self, "points", tuple(self.points))

    def __len__(self) -> int:
        return len(self.points)

    @property
    def x_values(self) -> List[float]:
        return [x for x, _ in self.points]

    def probabilities(self) -> np.ndarray:
        """(len(grid), outcomes) array in outcome order."""
        labels = self.outcomes.labels
        return np.array([[probs[label] for label in labels] for _, probs in self.points], dtype=float)

    def curve(self, outcome: str) -> List[float]:
        self.outcomes.index(outcome)
        return [probs[outcome] for _, probs in self.points]

    def most_likely(self) -> List[Tuple[float, str]]:
        """Leading outcome at each grid point; ties go to the earlier outcome."""
        labels = self.outcomes.labels
        leaders = []
        for x, probs in self.points:
            values = [probs[label] for label in labels]
            leaders.append((x, labels[int(np.argmax(values))]))
        return leaders

    def to_frame(self) -> pd.DataFrame:
        """Long format for plotting: x, outcome, probability."""
        records = [
            {"x": x, "outcome": label, "probability": probs[label]}
            for x, probs in self.points
            for label in self.outcomes.labels
        ]
        return pd.DataFrame(records, columns=["x", "outcome", "probability"])

    def to_dict(self) -> Dict[str, object]:
        return {
            "outcomes": list(self.outcomes.labels),
            "variable": self.variable,
            "baseline": dict(self.baseline),
            "points": [{"x": x, "probabilities": dict(probs)} for x, probs in self.points],
        }
