"""Custom exception hierarchy for flowgraph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class FlowgraphException(Exception):
    """Base exception type for all flowgraph errors."""

    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


class ConfigurationError(FlowgraphException):
    """Raised when layout options or settings are invalid."""


class DiagramParseError(FlowgraphException):
    """Base class for failures that trigger the heuristic fallback parser."""


class GrammarError(DiagramParseError):
    """Raised when the grammar interpreter cannot read the diagram source."""


class StructuralInconsistencyError(DiagramParseError):
    """Raised when interpreter output has edges but no nodes to attach them to."""
