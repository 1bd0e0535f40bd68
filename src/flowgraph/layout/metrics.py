"""Layout quality diagnostics: edge crossings and crowded nodes."""

from __future__ import annotations

import math
from typing import Dict, List, Tuple

from ..diagram.model import Graph, Node
from .options import footprint

Point = Tuple[float, float]


def _page_positions(graph: Graph) -> Dict[str, Point]:
    """Top-left of every node in page coordinates.

    Group members are stored relative to their group, so the group's own
    position is added back.
    """
    groups = {node.id: node for node in graph.nodes if node.is_group}
    positions: Dict[str, Point] = {}
    for node in graph.nodes:
        parent = groups.get(node.parent_id) if node.parent_id else None
        if parent is not None and not node.is_group:
            positions[node.id] = (parent.x + node.x, parent.y + node.y)
        else:
            positions[node.id] = (node.x, node.y)
    return positions


def _centre(node: Node, origin: Point) -> Point:
    width, height = (node.width, node.height) if node.is_group else footprint(node)
    return origin[0] + (width or 0.0) / 2, origin[1] + (height or 0.0) / 2


def count_edge_crossings(graph: Graph) -> int:
    segments = _edge_segments(graph)
    crossings = 0
    for i in range(len(segments)):
        a1, a2 = segments[i]
        for j in range(i + 1, len(segments)):
            b1, b2 = segments[j]
            if _segments_cross(a1, a2, b1, b2):
                crossings += 1
    return crossings


def _edge_segments(graph: Graph) -> List[Tuple[Point, Point]]:
    positions = _page_positions(graph)
    centres: Dict[str, Point] = {node.id: _centre(node, positions[node.id]) for node in graph.nodes}
    segments = []
    for edge in graph.edges:
        src = centres.get(edge.source)
        dst = centres.get(edge.target)
        if src is None or dst is None or src == dst:
            continue
        segments.append((src, dst))
    return segments


def _segments_cross(a1: Point, a2: Point, b1: Point, b2: Point) -> bool:
    if a1 == b1 or a1 == b2 or a2 == b1 or a2 == b2:
        return False
    return _ccw(a1, b1, b2) != _ccw(a2, b1, b2) and _ccw(a1, a2, b1) != _ccw(a1, a2, b2)


def _ccw(a: Point, b: Point, c: Point) -> bool:
    return (c[1] - a[1]) * (b[0] - a[0]) > (b[1] - a[1]) * (c[0] - a[0])


def find_crowded_nodes(graph: Graph, threshold: float = 100.0) -> List[str]:
    """Ids of non-group nodes closer than ``threshold`` to another node."""
    positions = _page_positions(graph)
    nodes = [node for node in graph.nodes if not node.is_group]
    crowded: List[str] = []
    for i in range(len(nodes)):
        for j in range(i + 1, len(nodes)):
            a, b = nodes[i], nodes[j]
            (ax, ay), (bx, by) = positions[a.id], positions[b.id]
            if math.hypot(ax - bx, ay - by) < threshold:
                for node_id in (a.id, b.id):
                    if node_id not in crowded:
                        crowded.append(node_id)
    return crowded
