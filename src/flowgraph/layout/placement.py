"""Layered placement of a node/edge set using grandalf's Sugiyama layout."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Tuple

from grandalf.graphs import Edge as GEdge
from grandalf.graphs import Vertex, graph_core
from grandalf.layouts import SugiyamaLayout

Size = Tuple[float, float]
Point = Tuple[float, float]


class _VertexView:
    """Size and centre holder grandalf reads and writes during layout."""

    def __init__(self, w: float, h: float) -> None:
        self.w = w
        self.h = h
        self.xy = (0.0, 0.0)


def _unique_edges(sizes: Mapping[str, Size], edges: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    seen = set()
    result = []
    for source, target in edges:
        if source == target or source not in sizes or target not in sizes:
            continue
        if (source, target) in seen:
            continue
        seen.add((source, target))
        result.append((source, target))
    return result


def _components(node_ids: List[str], edges: List[Tuple[str, str]]) -> List[List[str]]:
    """Connected components in first-seen order.

    grandalf's own Graph collects components through sets, which leaves
    vertex order up to object ids.
    """
    neighbours: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}
    for source, target in edges:
        neighbours[source].append(target)
        neighbours[target].append(source)

    order = {node_id: idx for idx, node_id in enumerate(node_ids)}
    seen = set()
    components = []
    for root in node_ids:
        if root in seen:
            continue
        seen.add(root)
        stack = [root]
        members = []
        while stack:
            node_id = stack.pop()
            members.append(node_id)
            for other in neighbours[node_id]:
                if other not in seen:
                    seen.add(other)
                    stack.append(other)
        components.append(sorted(members, key=order.__getitem__))
    return components


def _layout_component(component, node_spacing: float, rank_spacing: float) -> None:
    sug = SugiyamaLayout(component)
    sug.xspace = node_spacing
    sug.yspace = rank_spacing
    sug.init_all()
    sug.draw()


def place_layered(
    sizes: Mapping[str, Size],
    edges: Iterable[Tuple[str, str]],
    *,
    direction: str = "TB",
    node_spacing: float = 40.0,
    rank_spacing: float = 60.0,
    margin_x: float = 0.0,
    margin_y: float = 0.0,
) -> Dict[str, Point]:
    """Return the centre of every node in ``sizes``.

    Ranks run along the flow axis of ``direction``. Connected components are
    laid out independently and packed side by side along the cross axis. The
    result is shifted so the top-left corner of the drawing sits at
    (margin_x, margin_y).
    """
    if not sizes:
        return {}

    horizontal = direction in {"LR", "RL"}
    vertices: Dict[str, Vertex] = {}
    for node_id, (width, height) in sizes.items():
        vertex = Vertex(node_id)
        # grandalf ranks top-down; horizontal flows are laid out rotated.
        vertex.view = _VertexView(height, width) if horizontal else _VertexView(width, height)
        vertices[node_id] = vertex

    unique = _unique_edges(sizes, edges)

    # (cross, flow) centres in the rotated frame, components packed on cross.
    local: Dict[str, Point] = {}
    cursor = 0.0
    for member_ids in _components(list(sizes), unique):
        members = [vertices[node_id] for node_id in member_ids]
        inside = set(member_ids)
        g_edges = [GEdge(vertices[s], vertices[t]) for s, t in unique if s in inside]
        _layout_component(graph_core(members, g_edges), node_spacing, rank_spacing)
        left = min(v.view.xy[0] - v.view.w / 2 for v in members)
        right = max(v.view.xy[0] + v.view.w / 2 for v in members)
        top = min(v.view.xy[1] - v.view.h / 2 for v in members)
        for v in members:
            local[v.data] = (v.view.xy[0] - left + cursor, v.view.xy[1] - top)
        cursor += right - left + node_spacing

    centres: Dict[str, Point] = {}
    for node_id, (cross, flow) in local.items():
        x, y = (flow, cross) if horizontal else (cross, flow)
        if direction == "BT":
            y = -y
        elif direction == "RL":
            x = -x
        centres[node_id] = (x, y)

    min_left = min(centres[n][0] - sizes[n][0] / 2 for n in centres)
    min_top = min(centres[n][1] - sizes[n][1] / 2 for n in centres)
    dx = margin_x - min_left
    dy = margin_y - min_top
    return {node_id: (x + dx, y + dy) for node_id, (x, y) in centres.items()}
