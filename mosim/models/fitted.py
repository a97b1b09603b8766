"""Fitted multinomial logit model.

``FittedModel`` is what the engines consume: point-estimate coefficients for
every non-reference outcome plus a representation of their sampling
uncertainty (a coefficient covariance matrix, a precomputed bootstrap
ensemble, or both). Arrays are frozen at construction so one instance can be
shared by concurrent simulations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union
import json
import logging

import numpy as np
import pandas as pd

from mosim.exceptions import ConfigurationError
from mosim.models.formula import Formula
from mosim.models.outcomes import OutcomeSet

logger = logging.getLogger(__name__)


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class FittedModel:
    outcomes: OutcomeSet
    predictors: Tuple[str, ...]
    coefficients: np.ndarray
    covariance: Optional[np.ndarray] = None
    ensemble: Optional[np.ndarray] = None
    formula: Optional[Formula] = None
    metadata: Dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        predictors = tuple(str(p) for p in self.predictors)
        object.__setattr__(self, "predictors", predictors)
        if len(set(predictors)) != len(predictors):
            raise ConfigurationError("predictors", "duplicate predictor names")
        if self.formula is not None and self.formula.predictors != predictors:
            raise ConfigurationError(
                "predictors",
                f"predictors {list(predictors)} do not match formula '{self.formula}'",
            )

        coefficients = _frozen(self.coefficients)
        expected = (len(self.outcomes) - 1, len(predictors))
        if coefficients.shape != expected:
            raise ConfigurationError(
                "coefficients",
                f"expected shape {expected}, got {coefficients.shape}",
            )
        object.__setattr__(self, "coefficients", coefficients)

        if self.covariance is not None:
            covariance = _frozen(self.covariance)
            size = coefficients.size
            if covariance.shape != (size, size):
                raise ConfigurationError(
                    "covariance",
                    f"expected shape {(size, size)}, got {covariance.shape}",
                )
            object.__setattr__(self, "covariance", covariance)

        if self.ensemble is not None:
            ensemble = _frozen(self.ensemble)
            if ensemble.ndim != 3 or ensemble.shape[1:] != expected:
                raise ConfigurationError(
                    "ensemble",
                    f"expected shape (M, {expected[0]}, {expected[1]}), got {ensemble.shape}",
                )
            object.__setattr__(self, "ensemble", ensemble)

        object.__setattr__(self, "metadata", dict(self.metadata))

    @property
    def uncertainty_method(self) -> Optional[str]:
        if self.ensemble is not None and len(self.ensemble) > 0:
            return "ensemble"
        if self.covariance is not None:
            return "covariance"
        return None

    @property
    def n_predictors(self) -> int:
        return len(self.predictors)

    def with_ensemble(self, ensemble: np.ndarray) -> "FittedModel":
        return FittedModel(
            outcomes=self.outcomes,
            predictors=self.predictors,
            coefficients=self.coefficients,
            covariance=self.covariance,
            ensemble=ensemble,
            formula=self.formula,
            metadata=self.metadata,
        )

    def coefficient(self, outcome: str, predictor: str) -> float:
        row = self.outcomes.index(outcome) - 1
        if row < 0:
            raise ConfigurationError("outcomes", f"'{outcome}' is the reference category")
        try:
            col = self.predictors.index(predictor)
        except ValueError:
            raise ConfigurationError("predictors", f"unknown predictor '{predictor}'") from None
        return float(self.coefficients[row, col])

    def standard_errors(self) -> Optional[np.ndarray]:
        if self.covariance is None:
            return None
        variances = np.clip(np.diag(self.covariance), 0.0, None)
        return np.sqrt(variances).reshape(self.coefficients.shape)

    def coefficient_frame(self) -> pd.DataFrame:
        """Tidy coefficient table: outcome, predictor, estimate, std_error."""
        std_errors = self.standard_errors()
        rows = []
        for i, outcome in enumerate(self.outcomes.non_reference):
            for j, predictor in enumerate(self.predictors):
                rows.append({
                    "outcome": outcome,
                    "predictor": predictor,
                    "estimate": float(self.coefficients[i, j]),
                    "std_error": float(std_errors[i, j]) if std_errors is not None else np.nan,
                })
        return pd.DataFrame(rows, columns=["outcome", "predictor", "estimate", "std_error"])

    # -- serialisation --------------------------------------------------------

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "outcomes": self.outcomes.to_dict(),
            "predictors": list(self.predictors),
            "coefficients": self.coefficients.tolist(),
            "covariance": self.covariance.tolist() if self.covariance is not None else None,
            "ensemble": self.ensemble.tolist() if self.ensemble is not None else None,
            "formula": str(self.formula) if self.formula is not None else None,
            "metadata": dict(self.metadata),
        }
        return payload

    @classmethod
    def from_dict(cls, payload: Dict) -> "FittedModel":
        try:
            outcomes = OutcomeSet.from_config(payload["outcomes"])
            formula = Formula.parse(payload["formula"]) if payload.get("formula") else None
            predictors: Sequence[str] = payload.get("predictors") or (
                formula.predictors if formula is not None else ()
            )
            return cls(
                outcomes=outcomes,
                predictors=tuple(predictors),
                coefficients=np.asarray(payload["coefficients"], dtype=float),
                covariance=(
                    np.asarray(payload["covariance"], dtype=float)
                    if payload.get("covariance") is not None
                    else None
                ),
                ensemble=(
                    np.asarray(payload["ensemble"], dtype=float)
                    if payload.get("ensemble") is not None
                    else None
                ),
                formula=formula,
                metadata=payload.get("metadata") or {},
            )
        except KeyError as exc:
            raise ConfigurationError("model", f"missing field {exc.args[0]!r}") from exc

    def save_json(self, path: Union[str, Path]) -> str:
        output = Path(path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        logger.info("Saved fitted model to %s", output)
        return str(output)

    @classmethod
    def load_json(cls, path: Union[str, Path]) -> "FittedModel":
        model_path = Path(path)
        if not model_path.exists():
            raise FileNotFoundError(f"Model file not found: {model_path}")
        model = cls.from_dict(json.loads(model_path.read_text(encoding="utf-8")))
        logger.debug(
            "Loaded model with %d outcomes, %d predictors, uncertainty=%s",
            len(model.outcomes),
            model.n_predictors,
            model.uncertainty_method,
        )
        return model
