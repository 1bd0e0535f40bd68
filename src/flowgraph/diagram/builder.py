"""Graph construction from raw parser records."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..core.exceptions import DiagramParseError, GrammarError, StructuralInconsistencyError
from ..utils.logging import get_logger
from .classify import classify_node_type, group_category, resolve_category
from .fallback import parse_fallback
from .grammar import FlowchartInterpreter, GrammarInterpreter
from .model import GROUP_PALETTE, Edge, Graph, Node, NodeType, Stroke, palette_color
from .raw import RawGraph, ingest
from .text import parse_metadata_comments, preprocess, sanitize_label

logger = get_logger(__name__)


def _stroke(value: str) -> Stroke:
    try:
        return Stroke(value)
    except ValueError:
        return Stroke.NORMAL


def _normalize_direction(direction: Optional[str]) -> Optional[str]:
    if not direction:
        return None
    direction = direction.upper()
    return "TB" if direction == "TD" else direction


def build_graph(
    raw: RawGraph,
    *,
    metadata: Optional[Dict[str, Dict[str, Any]]] = None,
    palette: Sequence[str] = GROUP_PALETTE,
) -> Graph:
    metadata = metadata or {}
    nodes: List[Node] = []
    group_titles: Dict[str, str] = {}

    for subgraph in raw.subgraphs:
        if subgraph.id in group_titles:
            continue
        label = sanitize_label(subgraph.title or "") or subgraph.id
        group_titles[subgraph.id] = label
        nodes.append(
            Node(
                id=subgraph.id,
                type=NodeType.GROUP,
                label=label,
                category=group_category(label),
                color=palette_color(len(group_titles) - 1, palette),
                metadata=metadata.get(subgraph.id),
            )
        )

    seen: set[str] = set(group_titles)
    for vertex in raw.vertices:
        if vertex.id in seen:
            logger.debug("Skipping vertex %s: id already used", vertex.id)
            continue
        seen.add(vertex.id)

        label = sanitize_label(vertex.text or "") or vertex.id
        node_type = classify_node_type(label, vertex.shape)

        parent_id = None
        for subgraph in raw.subgraphs:
            if vertex.id in subgraph.nodes and subgraph.id != vertex.id:
                parent_id = subgraph.id
                break

        group_title = None
        if parent_id:
            group_title = group_titles[parent_id] or parent_id
        node_type, category = resolve_category(node_type, label, group_title)

        nodes.append(
            Node(
                id=vertex.id,
                type=node_type,
                label=label,
                category=category,
                parent_id=parent_id,
                shape=vertex.shape,
                metadata=metadata.get(vertex.id),
            )
        )

    node_ids = {node.id for node in nodes}
    edges: List[Edge] = []
    for index, raw_edge in enumerate(raw.edges):
        if raw_edge.start not in node_ids or raw_edge.end not in node_ids:
            logger.debug("Dropping dangling edge %s -> %s", raw_edge.start, raw_edge.end)
            continue
        label = sanitize_label(raw_edge.text or "")
        edges.append(
            Edge(
                id=f"e{raw_edge.start}-{raw_edge.end}-{index}",
                source=raw_edge.start,
                target=raw_edge.end,
                label=label or None,
                stroke=_stroke(raw_edge.stroke),
                directed=raw_edge.directed,
            )
        )

    return Graph(nodes=nodes, edges=edges, direction=_normalize_direction(raw.direction))


def _check_structure(raw: RawGraph) -> None:
    group_ids = {subgraph.id for subgraph in raw.subgraphs}
    has_nodes = any(vertex.id not in group_ids for vertex in raw.vertices)
    if raw.edges and not has_nodes:
        raise StructuralInconsistencyError(
            "Interpreter returned edges without nodes",
            context={"edges": len(raw.edges)},
        )


def _interpret(interpreter: GrammarInterpreter, cleaned: str) -> RawGraph:
    try:
        database = interpreter.load(cleaned)
    except DiagramParseError:
        raise
    except Exception as exc:
        raise GrammarError("Interpreter raised an error", context={"error": repr(exc)}) from exc
    raw = ingest(database, direction=getattr(database, "direction", None))
    _check_structure(raw)
    return raw


def parse_with_fallback(
    source: str,
    *,
    palette: Sequence[str] = GROUP_PALETTE,
) -> Graph:
    """Parse with the heuristic parser only."""
    cleaned = preprocess(source)
    if not cleaned:
        return Graph()
    raw = parse_fallback(cleaned)
    graph = build_graph(raw, metadata=parse_metadata_comments(cleaned), palette=palette)
    logger.info("Fallback parser: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
    return graph


def parse_diagram(
    source: str,
    *,
    interpreter: Optional[GrammarInterpreter] = None,
    palette: Sequence[str] = GROUP_PALETTE,
) -> Graph:
    """Parse diagram text into a canonical graph.

    The grammar interpreter is tried first. Grammar failures and structurally
    inconsistent results fall back to the heuristic parser; neither is
    surfaced to the caller.
    """
    cleaned = preprocess(source)
    if not cleaned:
        return Graph()

    interpreter = interpreter or FlowchartInterpreter()
    try:
        raw = _interpret(interpreter, cleaned)
    except DiagramParseError as exc:
        logger.warning("Grammar interpreter failed, falling back to heuristic parser: %s", exc)
        return parse_with_fallback(source, palette=palette)

    graph = build_graph(raw, metadata=parse_metadata_comments(cleaned), palette=palette)
    logger.info("Grammar interpreter: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
    return graph
