"""Grammar interpreter for flowchart notation.

Statements are parsed one line at a time with a PEG grammar (parsimonious);
block structure (subgraph ... end) is tracked by the interpreter. Any line the
grammar rejects fails the whole diagram with GrammarError, which sends the
caller down the heuristic fallback path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from ..core.exceptions import GrammarError
from ..utils.logging import get_logger

logger = get_logger(__name__)

GRAMMAR = r"""
line               = _ statement? _ terminator? _
statement          = header / subgraph_close / subgraph_open / ignored / edge_stmt / node_stmt
terminator         = ";"

header             = graph_keyword header_direction?
graph_keyword      = ~r"(?:flowchart|graph)\b"i
header_direction   = __ direction
direction          = ~r"(?:TB|TD|BT|RL|LR)\b"i

subgraph_close     = ~r"end[ \t]*;?[ \t]*$"i
subgraph_open      = ~r"subgraph\b"i _ subgraph_head?
subgraph_head      = subgraph_bracketed / quoted_title / subgraph_named / subgraph_text
subgraph_bracketed = identifier _ "[" _ bracket_text _ "]"
subgraph_named     = identifier &eol
quoted_title       = ~r'"[^"]*"'
subgraph_text      = ~r"[^;\n]+"
bracket_text       = ~r'"[^"]*"' / ~r"[^\]\n]*"

ignored            = ~r"(?:classDef|class|style|linkStyle|click|direction)\b[^\n]*"

edge_stmt          = node_group link_step+
node_stmt          = node_group &eol
link_step          = _ link _ node_group
node_group         = node_ref more_refs*
more_refs          = _ "&" _ node_ref
node_ref           = identifier shape_part? class_suffix?
shape_part         = _ shape
class_suffix       = ~r":::[\w-]+"
identifier         = ~r"\w+(?:-\w+)*"

shape              = cylinder / stadium / subroutine / doublecircle / circle / hexagon / diamond / asymmetric / square / round
cylinder           = "[(" round_text ")]"
stadium            = "([" square_text "])"
subroutine         = "[[" square_text "]]"
doublecircle       = "(((" round_text ")))"
circle             = "((" round_text "))"
hexagon            = "{{" curly_text "}}"
diamond            = "{" curly_text "}"
asymmetric         = ">" square_text "]"
square             = "[" square_text "]"
round              = "(" round_text ")"
square_text        = ~r'"[^"]*"' / ~r"[^\]\n]+"
round_text         = ~r'"[^"]*"' / ~r"[^)\n]+"
curly_text         = ~r'"[^"]*"' / ~r"[^}\n]+"

link               = link_body pipe_label?
link_body          = text_link / arrow
text_link          = ~r"(?P<open>--|-\.|==)[ \t]*(?P<text>[^-=.|>\s][^|]*?)[ \t]*(?P<close>-{2,}>|-{3,}|\.-+>|\.-|={2,}>|={3,})"
arrow              = ~r"<?(?:-{2,}>|-{3,}|-\.+->|-\.+-|={2,}>|={3,})"
pipe_label         = _ ~r"\|[^|\n]*\|"

eol                = ~r"[ \t]*;?[ \t]*$"
_                  = ~r"[ \t]*"
__                 = ~r"[ \t]+"
"""

FLOWCHART_GRAMMAR = Grammar(GRAMMAR)


def _unquote(text: str) -> str:
    stripped = text.strip()
    if len(stripped) >= 2 and stripped[0] == stripped[-1] == '"':
        return stripped[1:-1].strip()
    return stripped


def _stroke_of(token: str) -> str:
    if "." in token:
        return "dotted"
    if "=" in token:
        return "thick"
    return "normal"


class StatementVisitor(NodeVisitor):
    """Turns one parsed line into a statement tuple."""

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def visit_line(self, node, visited_children):
        _, statement, _, _, _ = visited_children
        return statement[0] if isinstance(statement, list) else None

    def visit_statement(self, node, visited_children):
        return visited_children[0]

    def visit_header(self, node, visited_children):
        _, direction = visited_children
        return ("header", direction[0] if isinstance(direction, list) else None)

    def visit_header_direction(self, node, visited_children):
        return visited_children[1]

    def visit_direction(self, node, visited_children):
        return node.text.upper()

    def visit_subgraph_close(self, node, visited_children):
        return ("end",)

    def visit_subgraph_open(self, node, visited_children):
        _, _, head = visited_children
        subgraph_id, title = head[0] if isinstance(head, list) else (None, None)
        return ("subgraph", subgraph_id, title)

    def visit_subgraph_head(self, node, visited_children):
        return visited_children[0]

    def visit_subgraph_bracketed(self, node, visited_children):
        return (visited_children[0], visited_children[4])

    def visit_subgraph_named(self, node, visited_children):
        return (visited_children[0], None)

    def visit_quoted_title(self, node, visited_children):
        return (None, _unquote(node.text))

    def visit_subgraph_text(self, node, visited_children):
        return (None, node.text.strip())

    def visit_bracket_text(self, node, visited_children):
        return _unquote(node.text)

    def visit_ignored(self, node, visited_children):
        return ("ignored",)

    def visit_edge_stmt(self, node, visited_children):
        first, steps = visited_children
        return ("edges", first, steps)

    def visit_node_stmt(self, node, visited_children):
        return ("nodes", visited_children[0])

    def visit_link_step(self, node, visited_children):
        _, link, _, group = visited_children
        return (link, group)

    def visit_node_group(self, node, visited_children):
        first, rest = visited_children
        refs = [first]
        if isinstance(rest, list):
            refs.extend(rest)
        return refs

    def visit_more_refs(self, node, visited_children):
        return visited_children[-1]

    def visit_node_ref(self, node, visited_children):
        identifier, shape, _ = visited_children
        ref: Dict[str, Any] = {"id": identifier, "shape": None, "text": None}
        if isinstance(shape, list):
            ref["shape"], ref["text"] = shape[0]
        return ref

    def visit_shape_part(self, node, visited_children):
        return visited_children[1]

    def visit_shape(self, node, visited_children):
        return visited_children[0]

    def _shape_body(self, node, visited_children):
        return (node.expr_name, visited_children[1])

    visit_cylinder = _shape_body
    visit_stadium = _shape_body
    visit_subroutine = _shape_body
    visit_doublecircle = _shape_body
    visit_circle = _shape_body
    visit_hexagon = _shape_body
    visit_diamond = _shape_body
    visit_asymmetric = _shape_body
    visit_square = _shape_body
    visit_round = _shape_body

    def _label_text(self, node, visited_children):
        return _unquote(node.text)

    visit_square_text = _label_text
    visit_round_text = _label_text
    visit_curly_text = _label_text

    def visit_identifier(self, node, visited_children):
        return node.text

    def visit_link(self, node, visited_children):
        (token, inline_text), label = visited_children
        pipe_text = label[0] if isinstance(label, list) else None
        text = pipe_text if pipe_text is not None else inline_text
        return {
            "stroke": _stroke_of(token),
            "directed": token.endswith(">"),
            "text": text or None,
        }

    def visit_link_body(self, node, visited_children):
        return visited_children[0]

    def visit_text_link(self, node, visited_children):
        match = node.match
        return (match.group("open") + match.group("close"), match.group("text").strip())

    def visit_arrow(self, node, visited_children):
        return (node.text, None)

    def visit_pipe_label(self, node, visited_children):
        return node.text.strip()[1:-1].strip()


class DiagramDatabase(Protocol):
    """What the graph builder needs from any grammar interpreter result."""

    direction: Optional[str]

    def get_vertices(self) -> Any: ...

    def get_edges(self) -> Any: ...

    def get_subgraphs(self) -> Any: ...


class GrammarInterpreter(Protocol):
    def load(self, source: str) -> DiagramDatabase: ...


@dataclass
class FlowchartDatabase:
    direction: Optional[str] = None
    vertices: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    edges: List[Dict[str, Any]] = field(default_factory=list)
    subgraphs: List[Dict[str, Any]] = field(default_factory=list)

    def get_vertices(self) -> Dict[str, Dict[str, Any]]:
        return self.vertices

    def get_edges(self) -> List[Dict[str, Any]]:
        return self.edges

    def get_subgraphs(self) -> List[Dict[str, Any]]:
        return self.subgraphs


class FlowchartInterpreter:
    """Default GrammarInterpreter for `flowchart`/`graph` diagrams."""

    def __init__(self, grammar: Grammar = FLOWCHART_GRAMMAR):
        self.grammar = grammar
        self.visitor = StatementVisitor()

    def parse_statement(self, line: str) -> Optional[Tuple[Any, ...]]:
        try:
            tree = self.grammar.parse(line)
            return self.visitor.visit(tree)
        except (ParseError, VisitationError) as exc:
            raise GrammarError("Unrecognized statement", context={"line": line}) from exc

    def load(self, source: str) -> FlowchartDatabase:
        db = FlowchartDatabase()
        stack: List[Dict[str, Any]] = []
        seen_header = False

        for line_no, raw_line in enumerate(source.split("\n"), start=1):
            line = raw_line.strip()
            if not line or line.startswith("%%"):
                continue

            statement = self.parse_statement(line)
            if statement is None:
                continue
            kind = statement[0]

            if not seen_header:
                if kind != "header":
                    raise GrammarError(
                        "Missing or unsupported diagram declaration",
                        context={"line_no": line_no, "line": line},
                    )
                seen_header = True
                db.direction = statement[1]
                continue

            if kind == "header":
                raise GrammarError("Duplicate diagram declaration", context={"line_no": line_no})
            if kind == "subgraph":
                self._open_subgraph(db, stack, statement[1], statement[2])
            elif kind == "end":
                if not stack:
                    raise GrammarError("Unmatched end", context={"line_no": line_no})
                stack.pop()
            elif kind == "edges":
                self._add_edges(db, stack, statement[1], statement[2])
            elif kind == "nodes":
                for ref in statement[1]:
                    self._touch(db, stack, ref)

        if not seen_header:
            raise GrammarError("Empty diagram")
        if stack:
            raise GrammarError("Unclosed subgraph", context={"subgraph": stack[-1]["id"]})
        return db

    def _open_subgraph(
        self,
        db: FlowchartDatabase,
        stack: List[Dict[str, Any]],
        subgraph_id: Optional[str],
        title: Optional[str],
    ) -> None:
        subgraph_id = subgraph_id or f"subGraph{len(db.subgraphs)}"
        subgraph = {"id": subgraph_id, "title": title or subgraph_id, "nodes": []}
        db.subgraphs.append(subgraph)
        stack.append(subgraph)

    def _touch(self, db: FlowchartDatabase, stack: List[Dict[str, Any]], ref: Dict[str, Any]) -> str:
        node_id = ref["id"]
        vertex = db.vertices.setdefault(node_id, {"id": node_id, "text": None, "shape": None})
        # A later declaration with a shape replaces the earlier text and shape.
        if ref["shape"]:
            vertex["text"] = ref["text"]
            vertex["shape"] = ref["shape"]
        if stack and node_id not in stack[-1]["nodes"]:
            stack[-1]["nodes"].append(node_id)
        return node_id

    def _add_edges(
        self,
        db: FlowchartDatabase,
        stack: List[Dict[str, Any]],
        first: List[Dict[str, Any]],
        steps: List[Tuple[Dict[str, Any], List[Dict[str, Any]]]],
    ) -> None:
        sources = [self._touch(db, stack, ref) for ref in first]
        for link, group in steps:
            targets = [self._touch(db, stack, ref) for ref in group]
            for source in sources:
                for target in targets:
                    db.edges.append({"start": source, "end": target, **link})
            sources = targets
