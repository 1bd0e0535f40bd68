from flowgraph.diagram.model import Category, Graph, Node, NodeType, Stroke


def test_graph_from_dict_normalizes_nodes_and_edges():
    data = {
        "nodes": [
            {"id": "n1", "type": "unknown", "label": "Alpha"},
            {"id": "n1", "label": "Beta"},
            {"id": "g", "type": "group", "label": "Lane", "width": 300, "height": 200},
            {"id": "n2", "type": "process", "parentId": "g", "x": 12, "y": "bad"},
            {"id": "n3", "parent_id": "n2"},
        ],
        "edges": [
            {"from": "n1", "to": "n1_1", "label": "Yes"},
            {"source": "n1", "target": "n2", "animated": True},
            {"from": "missing", "to": "n1"},
        ],
    }

    graph = Graph.from_dict(data)
    assert [n.id for n in graph.nodes] == ["n1", "n1_1", "g", "n2", "n3"]
    assert graph.nodes[0].type == NodeType.DEFAULT
    assert graph.node("n2").parent_id == "g"
    assert graph.node("n2").type == NodeType.DEFAULT
    assert (graph.node("n2").x, graph.node("n2").y) == (12.0, 0.0)
    assert graph.node("n3").parent_id is None
    assert [e.id for e in graph.edges] == ["en1-n1_1-0", "en1-n2-1"]
    assert graph.edges[1].stroke == Stroke.DOTTED


def test_node_to_dict_includes_group_geometry_only_for_groups():
    group = Node(id="g", type=NodeType.GROUP, label="Lane", category=Category.GROUP, color="#fff", width=300, height=200)
    member = Node(id="a", type=NodeType.DEFAULT, label="A", parent_id="g")
    assert group.to_dict()["width"] == 300
    assert "width" not in member.to_dict()
    assert member.to_dict()["parent_id"] == "g"


def test_moved_to_returns_new_node():
    node = Node(id="a", type=NodeType.DEFAULT, label="A")
    moved = node.moved_to(10, 20)
    assert (moved.x, moved.y) == (10, 20)
    assert (node.x, node.y) == (0.0, 0.0)


def test_dotted_edges_are_animated_and_dashed():
    data = {
        "nodes": [{"id": "a"}, {"id": "b"}],
        "edges": [{"source": "a", "target": "b", "stroke": "dotted"}],
    }
    edge = Graph.from_dict(data).edges[0].to_dict()
    assert edge["animated"] is True
    assert edge["dashed"] is True


def test_graph_round_trips_through_dict():
    graph = Graph.from_dict(
        {
            "direction": "LR",
            "nodes": [{"id": "a", "type": "start", "label": "Go"}, {"id": "b", "type": "end"}],
            "edges": [{"source": "a", "target": "b", "label": "done"}],
        }
    )
    assert Graph.from_dict(graph.to_dict()) == graph
