"""Source text cleanup shared by both parsers."""

from __future__ import annotations

import json
import re
from typing import Any, Dict

from ..utils.logging import get_logger

logger = get_logger(__name__)

_FENCE_OPEN = re.compile(r"^\s*```(?:mermaid)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```\s*$")
_INIT_DIRECTIVE = re.compile(r"%%\{\s*init\s*:.*?\}%%", re.DOTALL)
_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_MARKUP_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")
_DIAGRAM_DECLARATION = re.compile(r"^(flowchart|graph)\b", re.IGNORECASE)

_NOTATION_HINTS = (
    re.compile(r"^(flowchart|graph|sequenceDiagram|classDiagram|stateDiagram)", re.IGNORECASE | re.MULTILINE),
    re.compile(r"-->"),
    re.compile(r"---"),
    re.compile(r"\[\[.*\]\]"),
    re.compile(r"\(\(.*\)\)"),
    re.compile(r"\{.*\}"),
    re.compile(r"subgraph", re.IGNORECASE),
)


def sanitize_label(label: str) -> str:
    """Strip markup from a label and collapse whitespace."""
    text = _LINE_BREAK.sub(" ", label or "")
    text = _MARKUP_TAG.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def preprocess(source: str) -> str:
    cleaned = _FENCE_OPEN.sub("", source or "", count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    cleaned = _INIT_DIRECTIVE.sub("", cleaned)
    cleaned = _LINE_BREAK.sub(" ", cleaned)
    cleaned = cleaned.replace("\r\n", "\n").replace("\r", "\n")
    return cleaned.strip()


def is_diagram_declaration(line: str) -> bool:
    return bool(_DIAGRAM_DECLARATION.match(line.strip()))


def parse_metadata_comments(source: str) -> Dict[str, Dict[str, Any]]:
    """Collect `%% {"id": ..., "metadata": {...}}` comments keyed by node id."""
    metadata: Dict[str, Dict[str, Any]] = {}
    for line in source.split("\n"):
        stripped = line.strip()
        if not stripped.startswith("%%"):
            continue
        payload = stripped[2:].strip()
        if not (payload.startswith("{") and payload.endswith("}")):
            continue
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            logger.debug("Ignoring malformed metadata comment: %s", payload)
            continue
        if not isinstance(data, dict):
            continue
        node_id = data.get("id")
        node_meta = data.get("metadata")
        if node_id and isinstance(node_meta, dict):
            metadata[str(node_id)] = node_meta
    return metadata


def detect_input_type(text: str) -> str:
    """Guess whether text is diagram notation or a natural-language request."""
    for pattern in _NOTATION_HINTS:
        if pattern.search(text or ""):
            return "mermaid"
    return "natural"
