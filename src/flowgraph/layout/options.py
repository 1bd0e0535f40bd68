"""Layout options and node footprints."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..config.settings import Settings
from ..core.exceptions import ConfigurationError
from ..diagram.model import Node, NodeType

DIRECTIONS = {"TB", "BT", "LR", "RL"}
DIRECTION_ALIASES = {"TD": "TB"}

DEFAULT_FOOTPRINT = (180.0, 60.0)
DECISION_FOOTPRINT = (140.0, 90.0)

PAGE_MARGIN = 60.0
GROUP_PADDING = 40.0
GROUP_TITLE_HEIGHT = 50.0
GROUP_GAP = 60.0
GROUP_MIN_SIZE = (300.0, 200.0)
ORPHAN_GAP = 100.0


def normalize_direction(direction: str) -> str:
    value = (direction or "").strip().upper()
    value = DIRECTION_ALIASES.get(value, value)
    if value not in DIRECTIONS:
        raise ConfigurationError("Unknown layout direction", context={"direction": direction})
    return value


def footprint(node: Node) -> Tuple[float, float]:
    if node.type is NodeType.DECISION:
        return DECISION_FOOTPRINT
    return DEFAULT_FOOTPRINT


@dataclass(frozen=True)
class LayoutOptions:
    direction: str = "TB"
    node_spacing: float = 40.0
    rank_spacing: float = 60.0
    resolve_overlaps: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", normalize_direction(self.direction))
        if self.node_spacing < 0 or self.rank_spacing < 0:
            raise ConfigurationError(
                "Spacing must be non-negative",
                context={"node_spacing": self.node_spacing, "rank_spacing": self.rank_spacing},
            )

    def with_direction(self, direction: Optional[str]) -> "LayoutOptions":
        if not direction:
            return self
        return replace(self, direction=direction)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LayoutOptions":
        return cls(
            direction=settings.direction,
            node_spacing=settings.node_spacing,
            rank_spacing=settings.rank_spacing,
            resolve_overlaps=settings.resolve_overlaps,
        )
