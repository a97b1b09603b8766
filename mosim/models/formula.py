"""Model formula parsing and design-row construction.

Supports the formula shapes the simulator is configured with::

    outcome ~ a + b + c          additive terms
    outcome ~ a + b + a:b        explicit interaction
    outcome ~ a * b              expands to a + b + a:b

An intercept is always included as the first design column.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Dict, List, Mapping, Tuple
import re

import numpy as np
import pandas as pd

from mosim.exceptions import ConfigurationError, DimensionMismatchError


INTERCEPT = "(Intercept)"

_NAME_RE = re.compile(r"^[A-Za-z_.][A-Za-z0-9_.]*$")


def _check_name(name: str, formula: str) -> str:
    if not _NAME_RE.match(name):
        raise ConfigurationError("formula", f"invalid term '{name}' in '{formula}'")
    return name


def _expand_term(raw: str, formula: str) -> List[Tuple[str, ...]]:
    if "*" in raw:
        factors = [_check_name(f.strip(), formula) for f in raw.split("*")]
        terms = []
        for size in range(1, len(factors) + 1):
            terms.extend(combinations(factors, size))
        return terms
    return [tuple(_check_name(f.strip(), formula) for f in raw.split(":"))]


@dataclass(frozen=True)
class Formula:
    outcome: str
    terms: Tuple[Tuple[str, ...], ...]

    @classmethod
    def parse(cls, text: str) -> "Formula":
        if not text or "~" not in text:
            raise ConfigurationError("formula", f"expected 'outcome ~ terms', got {text!r}")
        lhs, rhs = text.split("~", 1)
        outcome = _check_name(lhs.strip(), text)
        terms: List[Tuple[str, ...]] = []
        for raw in rhs.split("+"):
            raw = raw.strip()
            if not raw:
                raise ConfigurationError("formula", f"empty term in '{text}'")
            if raw == "1":
                continue
            for term in _expand_term(raw, text):
                if term not in terms:
                    terms.append(term)
        if not terms:
            raise ConfigurationError("formula", f"no predictors in '{text}'")
        if any(outcome in term for term in terms):
            raise ConfigurationError("formula", f"outcome '{outcome}' also used as a predictor")
        return cls(outcome=outcome, terms=tuple(terms))

    def __str__(self) -> str:
        return f"{self.outcome} ~ " + " + ".join(":".join(term) for term in self.terms)

    @property
    def predictors(self) -> Tuple[str, ...]:
        return (INTERCEPT,) + tuple(":".join(term) for term in self.terms)

    @property
    def variables(self) -> Tuple[str, ...]:
        seen: List[str] = []
        for term in self.terms:
            for name in term:
                if name not in seen:
                    seen.append(name)
        return tuple(seen)

    def design_row(self, values: Mapping[str, float]) -> np.ndarray:
        """Design vector for one model-space case, intercept first."""
        missing = [name for name in self.variables if name not in values]
        if missing:
            raise DimensionMismatchError(
                missing,
                expected=len(self.variables),
                received=len(self.variables) - len(missing),
            )
        row = np.empty(len(self.terms) + 1, dtype=float)
        row[0] = 1.0
        for i, term in enumerate(self.terms, start=1):
            product = 1.0
            for name in term:
                product *= float(values[name])
            row[i] = product
        return row

    def design_matrix(self, frame: pd.DataFrame) -> np.ndarray:
        missing = [name for name in self.variables if name not in frame.columns]
        if missing:
            raise DimensionMismatchError(missing)
        matrix = np.ones((len(frame), len(self.terms) + 1), dtype=float)
        for i, term in enumerate(self.terms, start=1):
            column = np.ones(len(frame), dtype=float)
            for name in term:
                column = column * frame[name].to_numpy(dtype=float)
            matrix[:, i] = column
        return matrix

    def to_dict(self) -> Dict[str, str]:
        return {"formula": str(self)}
