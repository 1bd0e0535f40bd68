"""Group-aware layout: swimlane stacking, orphan column and flat fallback."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from ..diagram.builder import parse_diagram
from ..diagram.model import Edge, Graph, Node
from ..utils.logging import get_logger
from .options import (
    GROUP_GAP,
    GROUP_MIN_SIZE,
    GROUP_PADDING,
    GROUP_TITLE_HEIGHT,
    ORPHAN_GAP,
    PAGE_MARGIN,
    LayoutOptions,
    footprint,
)
from .overlap import resolve_overlaps
from .placement import place_layered

logger = get_logger(__name__)


def _internal_edges(edges: Sequence[Edge], members: Sequence[Node]) -> List[Tuple[str, str]]:
    ids = {node.id for node in members}
    return [(e.source, e.target) for e in edges if e.source in ids and e.target in ids]


def _place(
    members: Sequence[Node],
    edges: Sequence[Edge],
    options: LayoutOptions,
    *,
    margin_x: float,
    margin_y: float,
) -> List[Node]:
    """Lay out ``members`` and return them as top-left positioned copies."""
    sizes = {node.id: footprint(node) for node in members}
    centres = place_layered(
        sizes,
        _internal_edges(edges, members),
        direction=options.direction,
        node_spacing=options.node_spacing,
        rank_spacing=options.rank_spacing,
        margin_x=margin_x,
        margin_y=margin_y,
    )
    placed: List[Node] = []
    for node in members:
        centre = centres.get(node.id)
        if centre is None:
            logger.debug("No position for %s; keeping placeholder", node.id)
            placed.append(node)
            continue
        width, height = sizes[node.id]
        placed.append(node.moved_to(centre[0] - width / 2, centre[1] - height / 2))
    return placed


def _layout_group(
    members: Sequence[Node],
    edges: Sequence[Edge],
    options: LayoutOptions,
) -> Tuple[float, float, List[Node]]:
    min_width, min_height = GROUP_MIN_SIZE
    if not members:
        return min_width, min_height, []

    placed = _place(members, edges, options, margin_x=0.0, margin_y=0.0)
    boxes = [(node.x, node.y, *footprint(node)) for node in placed]
    left = min(x for x, _, _, _ in boxes)
    top = min(y for _, y, _, _ in boxes)
    right = max(x + w for x, _, w, _ in boxes)
    bottom = max(y + h for _, y, _, h in boxes)

    # Member coordinates are relative to the group's own top-left.
    local = [
        node.moved_to(node.x - left + GROUP_PADDING, node.y - top + GROUP_PADDING + GROUP_TITLE_HEIGHT)
        for node in placed
    ]
    width = max(right - left + GROUP_PADDING * 2, min_width)
    height = max(bottom - top + GROUP_PADDING * 2 + GROUP_TITLE_HEIGHT, min_height)
    return width, height, local


def _layout_flat(graph: Graph, options: LayoutOptions) -> Graph:
    placed = _place(graph.nodes, graph.edges, options, margin_x=PAGE_MARGIN, margin_y=PAGE_MARGIN)
    if options.resolve_overlaps:
        result = resolve_overlaps(placed)
        if not result.converged:
            logger.info("Overlap resolver stopped after %d passes", result.passes)
        placed = result.nodes
    return replace(graph, nodes=placed, edges=list(graph.edges))


def layout_graph(graph: Graph, options: Optional[LayoutOptions] = None) -> Graph:
    """Return a positioned copy of ``graph``.

    Groups are stacked top to bottom at the left page margin, each sized to
    fit its members; members carry group-relative coordinates. Nodes outside
    any group are laid out in a column to the right of the widest group.
    """
    options = options or LayoutOptions()
    if not graph.nodes:
        return replace(graph, nodes=[], edges=list(graph.edges))

    groups = graph.groups
    if not groups:
        return _layout_flat(graph, options)

    group_ids = {group.id for group in groups}
    members: Dict[str, List[Node]] = {group.id: [] for group in groups}
    orphans: List[Node] = []
    for node in graph.nodes:
        if node.is_group:
            continue
        if node.parent_id in group_ids:
            members[node.parent_id].append(node)
        else:
            orphans.append(node)

    positioned: List[Node] = []
    cursor_y = PAGE_MARGIN
    widest = 0.0
    for group in groups:
        width, height, children = _layout_group(members[group.id], graph.edges, options)
        positioned.append(replace(group, x=PAGE_MARGIN, y=cursor_y, width=width, height=height))
        positioned.extend(children)
        cursor_y += height + GROUP_GAP
        widest = max(widest, width)

    if orphans:
        orphan_x = PAGE_MARGIN + max(widest, GROUP_MIN_SIZE[0]) + ORPHAN_GAP
        positioned.extend(_place(orphans, graph.edges, options, margin_x=orphan_x, margin_y=PAGE_MARGIN))

    logger.debug("Laid out %d groups and %d orphans", len(groups), len(orphans))
    return replace(graph, nodes=positioned, edges=list(graph.edges))


def compile_diagram(source: str, options: Optional[LayoutOptions] = None) -> Graph:
    """Parse diagram text and lay it out.

    The diagram's declared direction is used unless ``options`` is given.
    """
    graph = parse_diagram(source)
    if options is None:
        options = LayoutOptions().with_direction(graph.direction)
    return layout_graph(graph, options)
