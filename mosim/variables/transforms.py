"""Named transform pairs between model space and display space.

Each variable carries one transform. ``to_display`` maps the value the
fitted model sees onto the value a user sees (e.g. ``log1p`` age back to
years), ``to_model`` reverses it. Both accept scalars or numpy arrays.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Union

import numpy as np

from mosim.exceptions import ConfigurationError, DomainError


Number = Union[float, np.ndarray]

TRANSFORM_KINDS = ("identity", "negate", "log", "log1p", "affine", "custom")

# Aliases accepted in configuration tables.
_KIND_ALIASES = {
    "none": "identity",
    "neg": "negate",
    "negation": "negate",
    "exp": "log",
    "log/exp": "log",
    "expm1": "log1p",
    "log1p/expm1": "log1p",
    "linear": "affine",
    "shift": "affine",
}


def _as_array(value) -> np.ndarray:
    try:
        return np.asarray(value, dtype=float)
    except (TypeError, ValueError) as exc:
        raise DomainError(None, value, "input", "not numeric") from exc


def _unwrap(result: np.ndarray, original) -> Number:
    if np.ndim(original) == 0:
        return float(result)
    return result


@dataclass(frozen=True)
class Transform:
    """A mutually inverse pair of numeric maps.

    ``scale`` and ``shift`` are used by the ``affine`` kind only; ``custom``
    transforms carry explicit callables.
    """

    kind: str = "identity"
    scale: float = 1.0
    shift: float = 0.0
    display_fn: Optional[Callable] = None
    model_fn: Optional[Callable] = None

    def __post_init__(self) -> None:
        if self.kind not in TRANSFORM_KINDS:
            raise ConfigurationError("transform", f"unknown transform kind '{self.kind}'")
        if self.kind == "affine":
            if not np.isfinite(self.scale) or self.scale == 0:
                raise ConfigurationError("transform", "affine scale must be finite and non-zero")
            if not np.isfinite(self.shift):
                raise ConfigurationError("transform", "affine shift must be finite")
        if self.kind == "custom" and (self.display_fn is None or self.model_fn is None):
            raise ConfigurationError("transform", "custom transform needs both display_fn and model_fn")

    @property
    def name(self) -> str:
        if self.kind == "affine":
            return f"affine(scale={self.scale:g}, shift={self.shift:g})"
        if self.kind == "custom":
            label = getattr(self.display_fn, "__name__", "fn")
            return f"custom({label})"
        return self.kind

    def to_display(self, value, variable: Optional[str] = None) -> Number:
        """Map a model-space value to display space."""
        x = self._checked_input(value, variable)
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            if self.kind == "identity":
                y = x.copy()
            elif self.kind == "negate":
                y = -x
            elif self.kind == "log":
                y = np.exp(x)
            elif self.kind == "log1p":
                y = np.expm1(x)
            elif self.kind == "affine":
                y = x * self.scale + self.shift
            else:
                y = _as_array(self.display_fn(_unwrap(x, value)))
        return _unwrap(self._checked_output(y, value, variable), value)

    def to_model(self, value, variable: Optional[str] = None) -> Number:
        """Map a display-space value to model space."""
        y = self._checked_input(value, variable)
        if self.kind == "log" and np.any(y <= 0):
            raise DomainError(variable, value, self.name, "log requires a positive value")
        if self.kind == "log1p" and np.any(y <= -1):
            raise DomainError(variable, value, self.name, "log1p requires a value above -1")
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            if self.kind == "identity":
                x = y.copy()
            elif self.kind == "negate":
                x = -y
            elif self.kind == "log":
                x = np.log(y)
            elif self.kind == "log1p":
                x = np.log1p(y)
            elif self.kind == "affine":
                x = (y - self.shift) / self.scale
            else:
                x = _as_array(self.model_fn(_unwrap(y, value)))
        return _unwrap(self._checked_output(x, value, variable), value)

    def _checked_input(self, value, variable: Optional[str]) -> np.ndarray:
        arr = _as_array(value)
        if not np.all(np.isfinite(arr)):
            raise DomainError(variable, value, self.name, "value is not finite")
        return arr

    def _checked_output(self, result: np.ndarray, value, variable: Optional[str]) -> np.ndarray:
        if not np.all(np.isfinite(result)):
            raise DomainError(variable, value, self.name, "result is not finite")
        return result


IDENTITY = Transform("identity")


def build_transform(spec: Union[None, str, Mapping, Transform]) -> Transform:
    """Build a transform from a kind name or a ``{"kind": ...}`` mapping."""
    if spec is None:
        return IDENTITY
    if isinstance(spec, Transform):
        return spec
    if isinstance(spec, str):
        kind = _KIND_ALIASES.get(spec.strip().lower(), spec.strip().lower())
        if kind == "affine":
            raise ConfigurationError("transform", "affine transform needs scale/shift parameters")
        if kind == "custom":
            raise ConfigurationError("transform", "custom transform cannot be built from a name")
        return Transform(kind)
    if isinstance(spec, Mapping):
        raw_kind = str(spec.get("kind", "identity")).strip().lower()
        kind = _KIND_ALIASES.get(raw_kind, raw_kind)
        if kind == "custom":
            return Transform(
                "custom",
                display_fn=spec.get("to_display"),
                model_fn=spec.get("to_model"),
            )
        try:
            scale = float(spec.get("scale", 1.0))
            shift = float(spec.get("shift", 0.0))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError("transform", f"invalid affine parameters in {dict(spec)!r}") from exc
        return Transform(kind, scale=scale, shift=shift)
    raise ConfigurationError("transform", f"cannot build a transform from {spec!r}")


def describe_transform(transform: Transform) -> Dict[str, object]:
    """Serialisable description; custom transforms are not serialisable."""
    if transform.kind == "custom":
        raise ConfigurationError("transform", "custom transforms cannot be serialised")
    if transform.kind == "affine":
        return {"kind": "affine", "scale": transform.scale, "shift": transform.shift}
    return {"kind": transform.kind}
