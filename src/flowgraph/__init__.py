"""flowgraph - Flowchart text to positioned graph compiler."""

from typing import TYPE_CHECKING

__all__ = ["Settings", "compile_diagram", "layout_graph", "parse_diagram"]

if TYPE_CHECKING:
    from .config.settings import Settings
    from .diagram.builder import parse_diagram
    from .layout.orchestrator import compile_diagram, layout_graph


def __getattr__(name: str):
    if name == "Settings":
        from .config.settings import Settings

        return Settings
    if name == "parse_diagram":
        from .diagram.builder import parse_diagram

        return parse_diagram
    if name in {"compile_diagram", "layout_graph"}:
        from .layout import orchestrator

        return getattr(orchestrator, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
