"""Iterative push-apart overlap removal for flat layouts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from ..diagram.model import Node
from .options import PAGE_MARGIN, footprint


@dataclass
class OverlapResult:
    nodes: List[Node] = field(default_factory=list)
    passes: int = 0
    converged: bool = True


def _overlap(a: List[float], b: List[float], padding: float) -> Tuple[float, float]:
    """Per-axis overlap of two [x, y, w, h] boxes; positive means overlap."""
    overlap_x = min(a[0] + a[2] + padding, b[0] + b[2] + padding) - max(a[0], b[0])
    overlap_y = min(a[1] + a[3] + padding, b[1] + b[3] + padding) - max(a[1], b[1])
    return overlap_x, overlap_y


def count_overlaps(nodes: Sequence[Node], padding: float = 0.0) -> int:
    boxes = [[node.x, node.y, *footprint(node)] for node in nodes if not node.is_group]
    count = 0
    for i in range(len(boxes)):
        for j in range(i + 1, len(boxes)):
            overlap_x, overlap_y = _overlap(boxes[i], boxes[j], padding)
            if overlap_x > 0 and overlap_y > 0:
                count += 1
    return count


def resolve_overlaps(
    nodes: Sequence[Node],
    *,
    max_passes: int = 50,
    padding: float = 20.0,
    push_margin: float = 1.0,
    page_margin: float = PAGE_MARGIN,
) -> OverlapResult:
    """Push colliding non-group nodes apart along their cheaper axis.

    Returns new node records; the input is not modified. Stops at the first
    pass without collisions, or after ``max_passes``.
    """
    indices = [idx for idx, node in enumerate(nodes) if not node.is_group]
    boxes = [[nodes[idx].x, nodes[idx].y, *footprint(nodes[idx])] for idx in indices]

    passes = 0
    converged = False
    while passes < max_passes:
        passes += 1
        moved = False
        for i in range(len(boxes)):
            for j in range(i + 1, len(boxes)):
                a, b = boxes[i], boxes[j]
                overlap_x, overlap_y = _overlap(a, b, padding)
                if overlap_x <= 0 or overlap_y <= 0:
                    continue
                moved = True
                axis, overlap = (0, overlap_x) if overlap_x < overlap_y else (1, overlap_y)
                push = overlap / 2 + push_margin
                if a[axis] < b[axis]:
                    a[axis] -= push
                    b[axis] += push
                else:
                    a[axis] += push
                    b[axis] -= push
        if not moved:
            converged = True
            break

    if boxes:
        min_x = min(box[0] for box in boxes)
        min_y = min(box[1] for box in boxes)
        if min_x < page_margin or min_y < page_margin:
            dx = page_margin - min_x
            dy = page_margin - min_y
            for box in boxes:
                box[0] += dx
                box[1] += dy

    result = list(nodes)
    for idx, box in zip(indices, boxes):
        result[idx] = result[idx].moved_to(box[0], box[1])
    return OverlapResult(nodes=result, passes=passes, converged=converged)
