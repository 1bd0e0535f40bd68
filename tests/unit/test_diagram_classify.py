from flowgraph.diagram.classify import (
    TypeRule,
    classify_node_type,
    group_category,
    resolve_category,
)
from flowgraph.diagram.model import Category, NodeType


def test_shape_beats_keywords():
    assert classify_node_type("Start here", "cylinder") == NodeType.DATABASE
    assert classify_node_type("Users", "diamond") == NodeType.DECISION
    assert classify_node_type("Anything", "circle") == NodeType.START
    assert classify_node_type("Anything", "doublecircle") == NodeType.END


def test_keyword_rules_in_priority_order():
    assert classify_node_type("Review request") == NodeType.DECISION
    assert classify_node_type("Is user valid?") == NodeType.DECISION
    assert classify_node_type("Begin") == NodeType.START
    assert classify_node_type("Stop processing") == NodeType.END
    assert classify_node_type("User login") == NodeType.CLIENT
    assert classify_node_type("API gateway") == NodeType.SERVER
    assert classify_node_type("Notify team") == NodeType.DEFAULT


def test_custom_rule_table():
    rules = (TypeRule("always-end", lambda label, shape: True, NodeType.END),)
    assert classify_node_type("Anything", None, rules) == NodeType.END


def test_group_category_from_title():
    assert group_category("Frontend") == Category.CLIENT
    assert group_category("Backend Services") == Category.SERVER
    assert group_category("Data Store") == Category.DATABASE
    assert group_category("Misc") == Category.GROUP


def test_group_title_upgrades_default_nodes():
    assert resolve_category(NodeType.DEFAULT, "Handle", "Backend") == (NodeType.SERVER, Category.SERVER)
    assert resolve_category(NodeType.DECISION, "Check", "Backend") == (
        NodeType.DECISION,
        Category.SERVER,
    )


def test_category_from_type_and_gateway_label():
    assert resolve_category(NodeType.DATABASE, "Orders") == (NodeType.DATABASE, Category.DATABASE)
    assert resolve_category(NodeType.DEFAULT, "Payment gateway") == (NodeType.SERVER, Category.SERVER)
    assert resolve_category(NodeType.DEFAULT, "Notify team") == (NodeType.DEFAULT, Category.OTHER)
    assert resolve_category(NodeType.START, "Go", "Misc") == (NodeType.START, Category.OTHER)
