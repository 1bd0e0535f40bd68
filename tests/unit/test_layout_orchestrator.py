import pytest

from flowgraph.core.exceptions import ConfigurationError
from flowgraph.diagram.model import Category, Edge, Graph, Node, NodeType
from flowgraph.layout import orchestrator
from flowgraph.layout.options import LayoutOptions
from flowgraph.layout.orchestrator import compile_diagram, layout_graph


def _node(node_id, parent_id=None, node_type=NodeType.DEFAULT):
    return Node(id=node_id, type=node_type, label=node_id, parent_id=parent_id)


def _group(node_id):
    return Node(id=node_id, type=NodeType.GROUP, label=node_id, category=Category.GROUP)


def _edge(source, target):
    return Edge(id=f"e{source}-{target}", source=source, target=target)


@pytest.fixture
def swimlanes():
    return Graph(
        nodes=[
            _group("lane1"),
            _group("lane2"),
            _node("a", "lane1"),
            _node("b", "lane1", NodeType.DECISION),
            _node("orphan"),
            _node("stray", "nowhere"),
        ],
        edges=[_edge("a", "b"), _edge("b", "orphan"), _edge("orphan", "stray")],
    )


def test_layout_options_defaults_and_validation():
    options = LayoutOptions()
    assert (options.direction, options.node_spacing, options.rank_spacing) == ("TB", 40, 60)
    assert options.resolve_overlaps is True
    assert LayoutOptions(direction="td").direction == "TB"
    with pytest.raises(ConfigurationError):
        LayoutOptions(direction="diagonal")
    with pytest.raises(ConfigurationError):
        LayoutOptions(node_spacing=-1)


def test_empty_graph():
    result = layout_graph(Graph())
    assert result.nodes == []
    assert result.edges == []


def test_flat_layout_respects_page_margin_and_keeps_edges():
    graph = Graph(
        nodes=[_node("a"), _node("b"), _node("c")],
        edges=[_edge("a", "b"), _edge("b", "c")],
    )
    result = layout_graph(graph)
    assert [n.id for n in result.nodes] == ["a", "b", "c"]
    assert min(n.x for n in result.nodes) == pytest.approx(60)
    assert min(n.y for n in result.nodes) == pytest.approx(60)
    assert result.nodes[0].y < result.nodes[1].y < result.nodes[2].y
    assert result.edges == graph.edges
    assert [(n.x, n.y) for n in graph.nodes] == [(0.0, 0.0)] * 3


def test_groups_are_emitted_before_their_members(swimlanes):
    result = layout_graph(swimlanes)
    assert [n.id for n in result.nodes] == ["lane1", "a", "b", "lane2", "orphan", "stray"]
    seen = set()
    for node in result.nodes:
        if node.parent_id and node.parent_id in {g.id for g in result.groups}:
            assert node.parent_id in seen
        seen.add(node.id)


def test_swimlane_geometry(swimlanes):
    result = layout_graph(swimlanes)
    lane1 = result.node("lane1")
    lane2 = result.node("lane2")
    members = [result.node("a"), result.node("b")]

    assert (lane1.x, lane1.y) == (60, 60)
    assert min(m.x for m in members) == pytest.approx(40)
    assert min(m.y for m in members) == pytest.approx(90)
    assert lane1.width >= 300
    assert lane1.height >= 60 + 90 + 80 + 50

    assert (lane2.x, lane2.y) == (60, 60 + lane1.height + 60)
    assert (lane2.width, lane2.height) == (300, 200)


def test_orphans_are_placed_right_of_the_widest_group(swimlanes):
    result = layout_graph(swimlanes)
    orphans = [result.node("orphan"), result.node("stray")]
    widest = max(group.width for group in result.groups)
    assert min(n.x for n in orphans) == pytest.approx(60 + max(widest, 300) + 100)
    assert min(n.y for n in orphans) == pytest.approx(60)


def test_layout_is_pure_and_deterministic(swimlanes):
    first = layout_graph(swimlanes)
    second = layout_graph(swimlanes)
    assert first == second
    assert all((n.x, n.y) == (0.0, 0.0) for n in swimlanes.nodes)
    assert first.edges == swimlanes.edges


def test_unpositioned_nodes_keep_placeholder(monkeypatch):
    monkeypatch.setattr(orchestrator, "place_layered", lambda *args, **kwargs: {})
    graph = Graph(nodes=[_node("a"), _node("b")], edges=[])
    result = layout_graph(graph, LayoutOptions(resolve_overlaps=False))
    assert [(n.x, n.y) for n in result.nodes] == [(0.0, 0.0), (0.0, 0.0)]


def test_compile_diagram_uses_declared_direction():
    result = compile_diagram("flowchart LR\nA --> B")
    a, b = result.node("A"), result.node("B")
    assert b.x > a.x
    assert a.y == pytest.approx(b.y)

    overridden = compile_diagram("flowchart LR\nA --> B", LayoutOptions(direction="TB"))
    assert overridden.node("B").y > overridden.node("A").y


def test_compile_diagram_with_groups():
    source = "\n".join(
        [
            "flowchart TD",
            "subgraph be [Backend]",
            "  Api[Handle request] --> Db[(Orders)]",
            "end",
            "User[Browser] --> Api",
        ]
    )
    result = compile_diagram(source)
    assert [n.id for n in result.nodes] == ["be", "Api", "Db", "User"]
    assert result.node("be").width >= 300
    assert result.node("User").x >= 60 + 300 + 100
