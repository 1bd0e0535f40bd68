"""Diagram text parsing and the canonical graph model."""

from .model import Category, Edge, Graph, GROUP_PALETTE, Node, NodeType, Stroke
from .builder import build_graph, parse_diagram, parse_with_fallback
from .fallback import parse_fallback
from .grammar import FlowchartInterpreter, GrammarInterpreter
from .text import detect_input_type, preprocess, sanitize_label

__all__ = [
    "Category",
    "Edge",
    "Graph",
    "GROUP_PALETTE",
    "Node",
    "NodeType",
    "Stroke",
    "build_graph",
    "parse_diagram",
    "parse_with_fallback",
    "parse_fallback",
    "FlowchartInterpreter",
    "GrammarInterpreter",
    "detect_input_type",
    "preprocess",
    "sanitize_label",
]
