"""Raw parser records.

Both the grammar interpreter and the heuristic fallback parser produce these
records; the graph builder only ever consumes validated instances.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.exceptions import GrammarError


class RawVertex(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    text: Optional[str] = None
    shape: Optional[str] = None


class RawEdge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    start: str = Field(min_length=1)
    end: str = Field(min_length=1)
    text: Optional[str] = None
    stroke: str = "normal"
    directed: bool = True


class RawSubgraph(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    title: Optional[str] = None
    nodes: List[str] = Field(default_factory=list)


class RawGraph(BaseModel):
    direction: Optional[str] = None
    vertices: List[RawVertex] = Field(default_factory=list)
    edges: List[RawEdge] = Field(default_factory=list)
    subgraphs: List[RawSubgraph] = Field(default_factory=list)


def _validate_all(model: type[BaseModel], records: Iterable[Any], kind: str) -> List[Any]:
    validated = []
    for idx, record in enumerate(records or []):
        if isinstance(record, model):
            validated.append(record)
            continue
        try:
            validated.append(model.model_validate(record, from_attributes=True))
        except ValidationError as exc:
            raise GrammarError(
                f"Invalid {kind} record from interpreter",
                context={"index": idx, "errors": exc.errors(include_url=False)},
            ) from exc
    return validated


def ingest(database: Any, *, direction: Optional[str] = None) -> RawGraph:
    """Validate interpreter output into a RawGraph.

    `database` only needs `get_vertices()`, `get_edges()` and `get_subgraphs()`.
    Vertices may come back as a mapping keyed by id or as a sequence.
    """
    vertices = database.get_vertices()
    if isinstance(vertices, dict):
        vertices = list(vertices.values())
    return RawGraph(
        direction=direction,
        vertices=_validate_all(RawVertex, vertices, "vertex"),
        edges=_validate_all(RawEdge, database.get_edges(), "edge"),
        subgraphs=_validate_all(RawSubgraph, database.get_subgraphs(), "subgraph"),
    )
