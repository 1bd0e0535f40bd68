"""CLI entrypoint: diagram text in, graph JSON out."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config.settings import Settings
from .core.exceptions import ConfigurationError
from .diagram.builder import parse_diagram
from .diagram.model import Graph
from .layout.metrics import count_edge_crossings, find_crowded_nodes
from .layout.options import LayoutOptions
from .layout.orchestrator import layout_graph
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowgraph",
        description="Compile flowchart text into a positioned node/edge graph (JSON).",
    )
    parser.add_argument("file", nargs="?", default="-", help="Diagram file, or '-' for stdin")
    parser.add_argument("--direction", help="Layout direction: TB, TD, BT, LR or RL")
    parser.add_argument("--node-spacing", type=float, help="Spacing between nodes in a rank")
    parser.add_argument("--rank-spacing", type=float, help="Spacing between ranks")
    parser.add_argument(
        "--no-overlap",
        action="store_true",
        help="Skip the overlap resolver on flat layouts",
    )
    parser.add_argument("--parse-only", action="store_true", help="Emit the graph without layout")
    parser.add_argument("--stats", action="store_true", help="Include layout diagnostics")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact)")
    return parser


def read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def layout_options(args: argparse.Namespace, settings: Settings, graph: Graph) -> LayoutOptions:
    """Settings give the defaults; the declared direction beats them, flags beat both."""
    options = LayoutOptions.from_settings(settings)
    options = options.with_direction(args.direction or graph.direction)
    overrides: Dict[str, Any] = {}
    if args.node_spacing is not None:
        overrides["node_spacing"] = args.node_spacing
    if args.rank_spacing is not None:
        overrides["rank_spacing"] = args.rank_spacing
    if args.no_overlap:
        overrides["resolve_overlaps"] = False
    return replace(options, **overrides) if overrides else options


def graph_stats(graph: Graph, *, positioned: bool) -> Dict[str, Any]:
    stats: Dict[str, Any] = {
        "nodes": len(graph.nodes),
        "edges": len(graph.edges),
        "groups": len(graph.groups),
    }
    if positioned:
        stats["edge_crossings"] = count_edge_crossings(graph)
        stats["crowded_nodes"] = find_crowded_nodes(graph)
    return stats


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        logger.error("Invalid settings: %s", exc)
        return 2
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)

    try:
        source = read_source(args.file)
    except OSError as exc:
        parser.error(f"cannot read {args.file}: {exc}")

    graph = parse_diagram(source)
    if not args.parse_only:
        try:
            options = layout_options(args, settings, graph)
        except ConfigurationError as exc:
            logger.error("Invalid layout options: %s", exc)
            return 2
        graph = layout_graph(graph, options)

    payload = graph.to_dict()
    if args.stats:
        payload["stats"] = graph_stats(graph, positioned=not args.parse_only)

    print(json.dumps(payload, indent=args.indent or None, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
