from flowgraph.diagram.model import Graph
from flowgraph.layout.orchestrator import compile_diagram
from flowgraph.layout.metrics import count_edge_crossings, find_crowded_nodes


def test_count_edge_crossings_detects_intersection():
    graph = Graph.from_dict(
        {
            "nodes": [
                {"id": "a", "type": "start", "label": "A", "x": 0, "y": 0},
                {"id": "b", "type": "process", "label": "B", "x": 10, "y": 0},
                {"id": "c", "type": "process", "label": "C", "x": 0, "y": 10},
                {"id": "d", "type": "end", "label": "D", "x": 10, "y": 10},
            ],
            "edges": [
                {"from": "a", "to": "d"},
                {"from": "b", "to": "c"},
            ],
        }
    )

    assert count_edge_crossings(graph) == 1


def test_edges_sharing_an_endpoint_do_not_cross():
    graph = Graph.from_dict(
        {
            "nodes": [
                {"id": "a", "x": 0, "y": 0},
                {"id": "b", "x": 100, "y": 100},
                {"id": "c", "x": -100, "y": 100},
            ],
            "edges": [{"from": "a", "to": "b"}, {"from": "a", "to": "c"}],
        }
    )
    assert count_edge_crossings(graph) == 0


def test_find_crowded_nodes_skips_groups():
    graph = Graph.from_dict(
        {
            "nodes": [
                {"id": "g", "type": "group", "x": 0, "y": 0, "width": 300, "height": 200},
                {"id": "a", "x": 0, "y": 0},
                {"id": "b", "x": 50, "y": 0},
                {"id": "c", "x": 500, "y": 500},
                {"id": "d", "x": 520, "y": 500},
            ],
        }
    )
    assert find_crowded_nodes(graph) == ["a", "b", "c", "d"]
    assert find_crowded_nodes(graph, threshold=30) == ["c", "d"]


def test_swimlane_members_are_measured_on_the_page():
    graph = compile_diagram(
        "flowchart TD\nsubgraph G1 [One]\nA[Alpha]\nend\nsubgraph G2 [Two]\nB[Beta]\nend"
    )
    nodes = {n.id: n for n in graph.nodes}
    assert (nodes["A"].x, nodes["A"].y) == (nodes["B"].x, nodes["B"].y)
    assert find_crowded_nodes(graph) == []


def test_member_to_orphan_edge_uses_group_offset():
    graph = Graph.from_dict(
        {
            "nodes": [
                {"id": "g", "type": "group", "label": "G", "x": 100, "y": 0, "width": 300, "height": 200},
                {"id": "m", "label": "M", "x": 0, "y": 0, "parentId": "g"},
                {"id": "o", "label": "O", "x": 0, "y": 100},
                {"id": "p", "label": "P", "x": 0, "y": 0},
                {"id": "q", "label": "Q", "x": 100, "y": 100},
            ],
            "edges": [{"from": "m", "to": "o"}, {"from": "p", "to": "q"}],
        }
    )
    assert count_edge_crossings(graph) == 1
