"""Ordered outcome categories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

from mosim.exceptions import ConfigurationError


# Applied to outcomes in level order when no custom colors are configured.
DEFAULT_OUTCOME_COLORS: Tuple[str, ...] = (
    "#D9BB32", "#6DB33F", "#6E9CAE", "#B1662B",
    "#5B8067", "#444D3E", "#994D3E", "#10475B",
    "#7D6E86", "#D47079", "#262F1D", "#B0B0B0",
)


@dataclass(frozen=True)
class OutcomeSet:
    """
    Fixed, ordered list of mutually exclusive outcome labels.

    The first label is the reference category of the multinomial logit.
    Order also fixes color assignment and plotting order downstream.
    """
    labels: Tuple[str, ...]
    colors: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        labels = tuple(str(label) for label in self.labels)
        object.__setattr__(self, "labels", labels)
        if len(labels) < 2:
            raise ConfigurationError("outcomes", "at least two outcome categories are required")
        if len(set(labels)) != len(labels):
            raise ConfigurationError("outcomes", f"duplicate outcome labels in {list(labels)}")
        if self.colors is not None:
            colors = tuple(str(c) for c in self.colors)
            if len(colors) < len(labels):
                raise ConfigurationError(
                    "outcome_colors",
                    f"{len(colors)} colors given for {len(labels)} outcomes",
                )
            object.__setattr__(self, "colors", colors)

    @classmethod
    def of(cls, labels: Iterable[str], colors: Optional[Sequence[str]] = None) -> "OutcomeSet":
        return cls(tuple(labels), tuple(colors) if colors is not None else None)

    @classmethod
    def from_config(cls, payload: Union[Mapping, Sequence[str]]) -> "OutcomeSet":
        """Accept a bare label list or ``{"outcomes": [...], "outcome_colors": [...]}``."""
        if isinstance(payload, Mapping):
            labels = payload.get("outcomes") or payload.get("labels")
            if not labels:
                raise ConfigurationError("outcomes", "no outcome labels configured")
            return cls.of(labels, payload.get("outcome_colors") or payload.get("colors"))
        return cls.of(payload)

    @property
    def reference(self) -> str:
        return self.labels[0]

    @property
    def non_reference(self) -> Tuple[str, ...]:
        return self.labels[1:]

    def index(self, label: str) -> int:
        try:
            return self.labels.index(label)
        except ValueError:
            raise ConfigurationError("outcomes", f"unknown outcome '{label}'") from None

    def color_map(self) -> Dict[str, str]:
        palette = self.colors if self.colors is not None else DEFAULT_OUTCOME_COLORS
        return {label: palette[i % len(palette)] for i, label in enumerate(self.labels)}

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"outcomes": list(self.labels)}
        if self.colors is not None:
            payload["outcome_colors"] = list(self.colors)
        return payload

    def __len__(self) -> int:
        return len(self.labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self.labels)

    def __contains__(self, label: object) -> bool:
        return label in self.labels
