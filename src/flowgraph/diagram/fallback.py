"""Heuristic fallback parser.

Recovers nodes, edges and subgraphs by pattern matching individual lines when
the grammar interpreter rejects the source or returns unusable output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple

from .raw import RawEdge, RawGraph, RawSubgraph, RawVertex
from .text import is_diagram_declaration, preprocess, sanitize_label

SUBGRAPH_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r'^subgraph\s+(\w+)\s*\[\s*"([^"]+)"\s*\]', re.IGNORECASE),
    re.compile(r"^subgraph\s+(\w+)\s*\[([^\]]+)\]", re.IGNORECASE),
    re.compile(r"^subgraph\s+(\w+)", re.IGNORECASE),
)
END_PATTERN = re.compile(r"^end$", re.IGNORECASE)
DIRECTION_PATTERN = re.compile(r"^(?:flowchart|graph)\s+(TB|TD|BT|RL|LR)\b", re.IGNORECASE)

# Compound brackets come first so `[(...)]` is a cylinder rather than a square.
NODE_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("cylinder", re.compile(r"(\w+)\s*\[\(([^)]+)\)\]")),
    ("stadium", re.compile(r"(\w+)\s*\(\[([^\]]+)\]\)")),
    ("circle", re.compile(r"(\w+)\s*\(\(([^)]+)\)\)")),
    ("subroutine", re.compile(r"(\w+)\s*\[\[([^\]]+)\]\]")),
    ("square", re.compile(r"(\w+)\s*\[([^\]]+)\]")),
    ("round", re.compile(r"(\w+)\s*\(([^)]+)\)")),
    ("diamond", re.compile(r"(\w+)\s*\{([^}]+)\}")),
)
RESERVED_IDS = {"end", "subgraph", "flowchart", "graph"}

PIPE_LABEL = re.compile(r"\|[^|]*\|")


@dataclass(frozen=True)
class ConnectorPattern:
    name: str
    pattern: Pattern[str]
    stroke: str = "normal"
    directed: bool = True


# Most specific first. Targets sit in a lookahead so chained statements
# (A --> B --> C) can reuse B as the next source.
EDGE_PATTERNS: Tuple[ConnectorPattern, ...] = (
    ConnectorPattern("pipe-arrow", re.compile(r"(\w+)\s*-->\|([^|]*)\|\s*(?=(\w+))")),
    ConnectorPattern("pipe-dotted", re.compile(r"(\w+)\s*-\.->\|([^|]*)\|\s*(?=(\w+))"), "dotted"),
    ConnectorPattern("text-arrow", re.compile(r"(\w+)\s*--\s*([^->\s][^-]*?)\s*-->\s*(?=(\w+))")),
    ConnectorPattern("dotted", re.compile(r"(\w+)\s*-\.->\s*(?=(\w+))"), "dotted"),
    ConnectorPattern("text-dotted", re.compile(r"(\w+)\s*-\.([^.>]+)\.->\s*(?=(\w+))"), "dotted"),
    ConnectorPattern("thick", re.compile(r"(\w+)\s*==>\s*(?=(\w+))"), "thick"),
    ConnectorPattern("arrow", re.compile(r"(\w+)\s*-->\s*(?=(\w+))")),
    ConnectorPattern("open-link", re.compile(r"(\w+)\s*---\s*(?=(\w+))"), directed=False),
)


@dataclass
class _Match:
    position: int
    source: str
    target: str
    label: Optional[str]
    connector: ConnectorPattern


def _unquote(text: str) -> str:
    stripped = text.strip()
    if len(stripped) >= 2 and stripped[0] == stripped[-1] == '"':
        return stripped[1:-1]
    return stripped


def _match_subgraph(line: str) -> Optional[RawSubgraph]:
    for pattern in SUBGRAPH_PATTERNS:
        match = pattern.match(line)
        if match:
            subgraph_id = match.group(1)
            title = match.group(2) if match.lastindex and match.lastindex >= 2 else subgraph_id
            return RawSubgraph(id=subgraph_id, title=sanitize_label(title) or subgraph_id)
    return None


Declaration = Tuple[Tuple[int, int], str, str, str]


def _match_nodes(line: str) -> List[Declaration]:
    """Shape declarations in textual order as (span, id, text, shape)."""
    masked = PIPE_LABEL.sub(lambda m: " " * len(m.group(0)), line)
    found: List[Declaration] = []
    for shape, pattern in NODE_PATTERNS:
        for match in pattern.finditer(masked):
            node_id = match.group(1)
            if node_id.lower() in RESERVED_IDS:
                continue
            # A compound bracket already claimed this text.
            if any(match.start() < end and start < match.end() for (start, end), *_ in found):
                continue
            found.append((match.span(), node_id, _unquote(match.group(2)), shape))
    found.sort(key=lambda item: item[0])
    return found


def _collapse_shapes(line: str, declarations: List[Declaration]) -> str:
    """Replace each shape declaration with its bare id."""
    parts = []
    cursor = 0
    for (start, end), node_id, _, _ in declarations:
        parts.append(line[cursor:start])
        parts.append(node_id)
        cursor = end
    parts.append(line[cursor:])
    return "".join(parts)


def _match_edges(line: str) -> List[_Match]:
    claimed: List[Tuple[int, int]] = []
    found: List[_Match] = []
    for connector in EDGE_PATTERNS:
        for match in connector.pattern.finditer(line):
            span = (match.end(1), match.end())
            if any(span[0] < end and start < span[1] for start, end in claimed):
                continue
            claimed.append(span)
            has_label = match.lastindex == 3
            label = sanitize_label(match.group(2)) if has_label else None
            found.append(
                _Match(
                    position=match.start(),
                    source=match.group(1),
                    target=match.group(match.lastindex),
                    label=label or None,
                    connector=connector,
                )
            )
    found.sort(key=lambda item: item.position)
    return found


class HeuristicParser:
    """Line-oriented pattern matcher producing raw records."""

    def parse(self, source: str) -> RawGraph:
        cleaned = preprocess(source)
        vertices: Dict[str, RawVertex] = {}
        edges: List[RawEdge] = []
        subgraphs: List[RawSubgraph] = []
        current: Optional[RawSubgraph] = None
        direction: Optional[str] = None

        lines = [line.strip() for line in cleaned.split("\n")]
        subgraph_ids = {sub.id for sub in filter(None, map(_match_subgraph, lines))}

        def register(node_id: str, text: Optional[str], shape: Optional[str]) -> None:
            if node_id in vertices or node_id in subgraph_ids:
                return
            vertices[node_id] = RawVertex(id=node_id, text=text, shape=shape)
            if current is not None:
                current.nodes.append(node_id)

        for line in lines:
            if not line or line.startswith("%%"):
                continue
            if is_diagram_declaration(line):
                declared = DIRECTION_PATTERN.match(line)
                if declared and direction is None:
                    direction = declared.group(1).upper()
                continue

            subgraph = _match_subgraph(line)
            if subgraph is not None:
                current = subgraph
                subgraphs.append(subgraph)
                continue
            if END_PATTERN.match(line):
                current = None
                continue

            declarations = _match_nodes(line)
            for _, node_id, text, shape in declarations:
                register(node_id, text, shape)

            for found in _match_edges(_collapse_shapes(line, declarations)):
                edges.append(
                    RawEdge(
                        start=found.source,
                        end=found.target,
                        text=found.label,
                        stroke=found.connector.stroke,
                        directed=found.connector.directed,
                    )
                )
                register(found.source, None, None)
                register(found.target, None, None)

        return RawGraph(
            direction=direction,
            vertices=list(vertices.values()),
            edges=edges,
            subgraphs=subgraphs,
        )


def parse_fallback(source: str) -> RawGraph:
    return HeuristicParser().parse(source)
