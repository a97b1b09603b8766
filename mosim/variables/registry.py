"""Variable transform registry.

Holds one ``VariableSpec`` per model variable: display metadata, candidate
roles (slider / facet / x-axis) and the model <-> display transform pair.
The registry is built once from the declarative variable table and never
mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
import json
import logging

from mosim.exceptions import ConfigurationError, UnknownVariableError
from mosim.variables.transforms import IDENTITY, Transform, build_transform, describe_transform

logger = logging.getLogger(__name__)

DEFAULT_ROUNDING_GRANULARITY = 0.1


def _coerce_flag(value, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _coerce_granularity(value) -> Optional[float]:
    # NA/null in the table means "use the fallback"
    if value is None or value == "" or str(value).strip().upper() in ("NA", "NAN", "NONE"):
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError("slider_rounding", f"not a number: {value!r}") from exc


def _coerce_tuple(values, cast) -> Optional[tuple]:
    if values is None:
        return None
    if isinstance(values, (str, bytes)):
        values = [values]
    return tuple(cast(v) for v in values)


@dataclass(frozen=True)
class VariableSpec:
    name: str
    display_name: str = ""
    definition: str = ""
    ribbon_summary: str = ""
    is_slider_candidate: bool = False
    is_facet_candidate: bool = False
    is_axis_candidate: bool = False
    rounding_granularity: Optional[float] = None
    transform: Transform = IDENTITY
    custom_breaks: Optional[Tuple[float, ...]] = None
    custom_labels: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("variable", "variable name must not be empty")
        if self.is_facet_candidate and (self.is_slider_candidate or self.is_axis_candidate):
            raise ConfigurationError(
                self.name,
                "facet candidates are categorical and cannot also be slider or x-axis candidates",
            )
        if self.rounding_granularity is not None and not self.rounding_granularity > 0:
            raise ConfigurationError(self.name, "slider rounding must be a positive number")
        if (
            self.custom_breaks is not None
            and self.custom_labels is not None
            and len(self.custom_breaks) != len(self.custom_labels)
        ):
            raise ConfigurationError(
                self.name,
                f"{len(self.custom_labels)} custom labels for {len(self.custom_breaks)} breaks",
            )

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @classmethod
    def from_config(cls, name: str, entry: Mapping) -> "VariableSpec":
        """Build a spec from one entry of the declarative variable table."""
        return cls(
            name=name,
            display_name=str(entry.get("pretty_name") or entry.get("display_name") or "").strip(),
            definition=str(entry.get("definition") or ""),
            ribbon_summary=str(entry.get("ribbon_plot_summary") or entry.get("ribbon_summary") or ""),
            is_slider_candidate=_coerce_flag(entry.get("slider_candidate")),
            is_facet_candidate=_coerce_flag(entry.get("facet_candidate")),
            is_axis_candidate=_coerce_flag(
                entry.get("x_axis_candidate", entry.get("axis_candidate"))
            ),
            rounding_granularity=_coerce_granularity(entry.get("slider_rounding")),
            transform=build_transform(entry.get("transform")),
            custom_breaks=_coerce_tuple(entry.get("custom_x_breaks"), float),
            custom_labels=_coerce_tuple(entry.get("custom_x_labels"), str),
        )

    def to_config(self) -> Dict[str, object]:
        return {
            "pretty_name": self.display_name,
            "definition": self.definition,
            "ribbon_plot_summary": self.ribbon_summary,
            "custom_x_breaks": list(self.custom_breaks) if self.custom_breaks is not None else None,
            "custom_x_labels": list(self.custom_labels) if self.custom_labels is not None else None,
            "x_axis_candidate": self.is_axis_candidate,
            "slider_candidate": self.is_slider_candidate,
            "slider_rounding": self.rounding_granularity,
            "facet_candidate": self.is_facet_candidate,
            "transform": describe_transform(self.transform),
        }


class VariableRegistry:
    """Immutable lookup of variable specs by id."""

    def __init__(
        self,
        specs: Iterable[VariableSpec],
        fallback_granularity: float = DEFAULT_ROUNDING_GRANULARITY,
    ) -> None:
        if not fallback_granularity > 0:
            raise ConfigurationError("rounding_fallback", "must be a positive number")
        self.fallback_granularity = float(fallback_granularity)
        table: Dict[str, VariableSpec] = {}
        for spec in specs:
            if spec.name in table:
                raise ConfigurationError(spec.name, "variable registered twice")
            table[spec.name] = spec
        self._specs = MappingProxyType(table)

    @classmethod
    def from_dict(
        cls,
        payload: Mapping,
        fallback_granularity: float = DEFAULT_ROUNDING_GRANULARITY,
    ) -> "VariableRegistry":
        """Build from ``{"variables": {name: entry}}`` or a bare ``{name: entry}``."""
        variables = payload.get("variables", payload) if isinstance(payload, Mapping) else None
        if not isinstance(variables, Mapping):
            raise ConfigurationError("variables", "variable table must be a mapping")
        specs = []
        for name, entry in variables.items():
            if not isinstance(entry, Mapping):
                raise ConfigurationError(str(name), "variable entry must be a mapping")
            specs.append(VariableSpec.from_config(str(name), entry))
        logger.debug("Loaded %d variable specs", len(specs))
        return cls(specs, fallback_granularity)

    @classmethod
    def from_json(
        cls,
        path: Union[str, Path],
        fallback_granularity: float = DEFAULT_ROUNDING_GRANULARITY,
    ) -> "VariableRegistry":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Variable table not found: {config_path}")
        payload = json.loads(config_path.read_text(encoding="utf-8"))
        return cls.from_dict(payload, fallback_granularity)

    def to_dict(self) -> Dict[str, Dict[str, object]]:
        return {"variables": {name: spec.to_config() for name, spec in self._specs.items()}}

    def with_defaults(self, names: Iterable[str]) -> "VariableRegistry":
        """Return a registry that also covers ``names`` with identity, non-interactive specs."""
        extra = [VariableSpec(name=name) for name in names if name not in self._specs]
        if not extra:
            return self
        logger.debug("Registering %d model-only variables: %s", len(extra), [s.name for s in extra])
        return VariableRegistry(list(self._specs.values()) + extra, self.fallback_granularity)

    # -- lookup ---------------------------------------------------------------

    def spec(self, var_id: str) -> VariableSpec:
        try:
            return self._specs[var_id]
        except KeyError:
            raise UnknownVariableError(var_id) from None

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._specs)

    def __contains__(self, var_id: object) -> bool:
        return var_id in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> Iterator[VariableSpec]:
        return iter(self._specs.values())

    def __repr__(self) -> str:
        return f"VariableRegistry({list(self._specs)})"

    # -- transforms -----------------------------------------------------------

    def to_display(self, var_id: str, model_value):
        return self.spec(var_id).transform.to_display(model_value, variable=var_id)

    def to_model(self, var_id: str, display_value):
        return self.spec(var_id).transform.to_model(display_value, variable=var_id)

    def rounding_granularity(self, var_id: str) -> float:
        granularity = self.spec(var_id).rounding_granularity
        return self.fallback_granularity if granularity is None else granularity

    # -- candidate roles ------------------------------------------------------

    def is_slider_candidate(self, var_id: str) -> bool:
        return self.spec(var_id).is_slider_candidate

    def is_facet_candidate(self, var_id: str) -> bool:
        return self.spec(var_id).is_facet_candidate

    def is_axis_candidate(self, var_id: str) -> bool:
        return self.spec(var_id).is_axis_candidate

    def slider_candidates(self) -> List[str]:
        return [s.name for s in self._specs.values() if s.is_slider_candidate]

    def facet_candidates(self) -> List[str]:
        return [s.name for s in self._specs.values() if s.is_facet_candidate]

    def axis_candidates(self) -> List[str]:
        return [s.name for s in self._specs.values() if s.is_axis_candidate]
