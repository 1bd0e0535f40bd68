"""Semantic node typing and filter categories.

Both classifications are ordered rule tables: the first rule whose predicate
matches decides. Insert new rules by priority rather than branching inline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from .model import Category, NodeType


@dataclass(frozen=True)
class TypeRule:
    name: str
    matches: Callable[[str, Optional[str]], bool]
    node_type: NodeType


def _has_any(keywords: Sequence[str]) -> Callable[[str, Optional[str]], bool]:
    def predicate(label: str, shape: Optional[str]) -> bool:
        lowered = label.lower()
        return any(keyword in lowered for keyword in keywords)

    return predicate


def _shape_is(*shapes: str) -> Callable[[str, Optional[str]], bool]:
    def predicate(label: str, shape: Optional[str]) -> bool:
        return (shape or "").lower() in shapes

    return predicate


DECISION_KEYWORDS = ("review", "approve", "decision", "verify", "check", "validate", "confirm", "?")

TYPE_RULES: Tuple[TypeRule, ...] = (
    TypeRule("cylinder-shape", _shape_is("cylinder", "cyl"), NodeType.DATABASE),
    TypeRule("diamond-shape", _shape_is("diamond", "rhombus"), NodeType.DECISION),
    TypeRule("circle-shape", _shape_is("circle"), NodeType.START),
    TypeRule("double-circle-shape", _shape_is("doublecircle"), NodeType.END),
    TypeRule("decision-keyword", _has_any(DECISION_KEYWORDS), NodeType.DECISION),
    TypeRule("start-keyword", _has_any(("start", "begin")), NodeType.START),
    TypeRule("end-keyword", _has_any(("end", "stop")), NodeType.END),
    TypeRule("client-keyword", _has_any(("client", "user")), NodeType.CLIENT),
    TypeRule("server-keyword", _has_any(("server", "api")), NodeType.SERVER),
)


def classify_node_type(
    label: str,
    shape: Optional[str] = None,
    rules: Sequence[TypeRule] = TYPE_RULES,
) -> NodeType:
    for rule in rules:
        if rule.matches(label, shape):
            return rule.node_type
    return NodeType.DEFAULT


CATEGORY_RULES: Tuple[Tuple[Category, Tuple[str, ...]], ...] = (
    (Category.CLIENT, ("client", "frontend", "ui", "mobile", "web")),
    (Category.SERVER, ("server", "backend", "api", "service", "auth", "handler", "worker")),
    (Category.DATABASE, ("database", "db", "store", "cache", "redis")),
)

CATEGORY_TYPES = {
    Category.CLIENT: NodeType.CLIENT,
    Category.SERVER: NodeType.SERVER,
    Category.DATABASE: NodeType.DATABASE,
}

TYPE_CATEGORIES = {node_type: category for category, node_type in CATEGORY_TYPES.items()}


def category_from_title(title: str) -> Optional[Category]:
    lowered = (title or "").lower()
    for category, keywords in CATEGORY_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return None


def group_category(title: str) -> Category:
    return category_from_title(title) or Category.GROUP


def resolve_category(
    node_type: NodeType,
    label: str,
    group_title: Optional[str] = None,
) -> Tuple[NodeType, Category]:
    """Assign a filter category, letting the enclosing group speak first.

    Returns the possibly upgraded node type with its category: a default node
    inside a "Backend" swimlane is rendered as a server.
    """
    category = Category.OTHER

    if group_title:
        from_group = category_from_title(group_title)
        if from_group is not None:
            category = from_group
            if node_type is NodeType.DEFAULT:
                node_type = CATEGORY_TYPES[from_group]

    if category is Category.OTHER:
        if node_type in TYPE_CATEGORIES:
            category = TYPE_CATEGORIES[node_type]
        elif "gateway" in label.lower():
            category = Category.SERVER
            if node_type is NodeType.DEFAULT:
                node_type = NodeType.SERVER

    if node_type is NodeType.DEFAULT and category in CATEGORY_TYPES:
        node_type = CATEGORY_TYPES[category]

    return node_type, category
