"""Canonical node/edge/group model and normalization."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class NodeType(str, Enum):
    START = "start"
    END = "end"
    DEFAULT = "default"
    DECISION = "decision"
    DATABASE = "database"
    CLIENT = "client"
    SERVER = "server"
    GROUP = "group"


class Category(str, Enum):
    CLIENT = "client"
    SERVER = "server"
    DATABASE = "database"
    GROUP = "group"
    OTHER = "other"


class Stroke(str, Enum):
    NORMAL = "normal"
    DOTTED = "dotted"
    THICK = "thick"


GROUP_PALETTE: Sequence[str] = ("#fef3c7", "#dbeafe", "#dcfce7", "#fce7f3", "#e0e7ff")

# Older payloads call the default type "process".
TYPE_ALIASES = {"process": NodeType.DEFAULT}


def palette_color(index: int, palette: Sequence[str] = GROUP_PALETTE) -> str:
    return palette[index % len(palette)]


def _coerce_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _unique_id(prefix: str, used: set[str]) -> str:
    idx = 1
    base = prefix or "node"
    candidate = f"{base}_{idx}"
    while candidate in used:
        idx += 1
        candidate = f"{base}_{idx}"
    used.add(candidate)
    return candidate


def _coerce_enum(enum_cls, value: Any, default):
    if isinstance(value, enum_cls):
        return value
    text = str(value or "").lower()
    if enum_cls is NodeType and text in TYPE_ALIASES:
        return TYPE_ALIASES[text]
    try:
        return enum_cls(text)
    except ValueError:
        return default


@dataclass
class Node:
    id: str
    type: NodeType
    label: str
    category: Category = Category.OTHER
    parent_id: Optional[str] = None
    shape: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    color: Optional[str] = None
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def is_group(self) -> bool:
        return self.type is NodeType.GROUP

    def moved_to(self, x: float, y: float) -> "Node":
        return replace(self, x=x, y=y)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "label": self.label,
            "category": self.category.value,
            "parent_id": self.parent_id,
            "shape": self.shape,
            "x": self.x,
            "y": self.y,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        if self.is_group:
            data["color"] = self.color
            data["width"] = self.width
            data["height"] = self.height
        return data


@dataclass
class Edge:
    id: str
    source: str
    target: str
    label: Optional[str] = None
    stroke: Stroke = Stroke.NORMAL
    directed: bool = True

    @property
    def animated(self) -> bool:
        return self.stroke is Stroke.DOTTED

    @property
    def dashed(self) -> bool:
        return self.stroke is Stroke.DOTTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
            "stroke": self.stroke.value,
            "directed": self.directed,
            "animated": self.animated,
            "dashed": self.dashed,
        }


@dataclass
class Graph:
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    direction: Optional[str] = None

    @property
    def groups(self) -> List[Node]:
        return [node for node in self.nodes if node.is_group]

    def node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }
        if self.direction:
            data["direction"] = self.direction
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Graph":
        nodes_raw = data.get("nodes") or []
        edges_raw = data.get("edges") or []

        nodes: List[Node] = []
        used_ids: set[str] = set()

        for idx, node in enumerate(nodes_raw):
            if not isinstance(node, dict):
                continue
            raw_id = str(node.get("id") or f"n{idx + 1}")
            node_id = raw_id
            if node_id in used_ids:
                node_id = _unique_id(raw_id, used_ids)
            else:
                used_ids.add(node_id)

            node_type = _coerce_enum(NodeType, node.get("type"), NodeType.DEFAULT)
            category = _coerce_enum(Category, node.get("category"), Category.OTHER)
            metadata = node.get("metadata")

            nodes.append(
                Node(
                    id=node_id,
                    type=node_type,
                    label=str(node.get("label") or node_id),
                    category=category,
                    parent_id=node.get("parent_id") or node.get("parentId") or None,
                    shape=node.get("shape") or None,
                    metadata=metadata if isinstance(metadata, dict) else None,
                    color=node.get("color") or None,
                    x=_coerce_float(node.get("x")) or 0.0,
                    y=_coerce_float(node.get("y")) or 0.0,
                    width=_coerce_float(node.get("width")),
                    height=_coerce_float(node.get("height")),
                )
            )

        # Parents must be groups, and never the node itself.
        group_ids = {node.id for node in nodes if node.is_group}
        for idx, node in enumerate(nodes):
            if node.parent_id and (
                node.parent_id == node.id or node.parent_id not in group_ids or node.is_group
            ):
                nodes[idx] = replace(node, parent_id=None)

        node_ids = {node.id for node in nodes}
        edges: List[Edge] = []
        for idx, edge in enumerate(edges_raw):
            if not isinstance(edge, dict):
                continue
            source = edge.get("source") or edge.get("from")
            target = edge.get("target") or edge.get("to")
            if not source or not target:
                continue
            if source not in node_ids or target not in node_ids:
                continue
            stroke = _coerce_enum(Stroke, edge.get("stroke"), Stroke.NORMAL)
            if edge.get("animated") or edge.get("dashed"):
                stroke = Stroke.DOTTED
            edges.append(
                Edge(
                    id=str(edge.get("id") or f"e{source}-{target}-{idx}"),
                    source=str(source),
                    target=str(target),
                    label=edge.get("label") or None,
                    stroke=stroke,
                    directed=bool(edge.get("directed", True)),
                )
            )

        direction = data.get("direction")
        return cls(nodes=nodes, edges=edges, direction=str(direction) if direction else None)
