"""Variable metadata and model <-> display transforms."""

from mosim.variables.registry import DEFAULT_ROUNDING_GRANULARITY, VariableRegistry, VariableSpec
from mosim.variables.transforms import IDENTITY, TRANSFORM_KINDS, Transform, build_transform

__all__ = [
    "DEFAULT_ROUNDING_GRANULARITY",
    "VariableRegistry",
    "VariableSpec",
    "IDENTITY",
    "TRANSFORM_KINDS",
    "Transform",
    "build_transform",
]
