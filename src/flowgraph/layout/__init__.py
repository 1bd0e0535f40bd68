"""Group-aware layout of canonical graphs."""

from .options import LayoutOptions
from .placement import place_layered
from .overlap import OverlapResult, count_overlaps, resolve_overlaps
from .orchestrator import compile_diagram, layout_graph
from .metrics import count_edge_crossings, find_crowded_nodes

__all__ = [
    "LayoutOptions",
    "place_layered",
    "OverlapResult",
    "count_overlaps",
    "resolve_overlaps",
    "compile_diagram",
    "layout_graph",
    "count_edge_crossings",
    "find_crowded_nodes",
]
