import pytest

from flowgraph.diagram.text import (
    detect_input_type,
    is_diagram_declaration,
    parse_metadata_comments,
    preprocess,
    sanitize_label,
)


def test_sanitize_label_strips_markup_and_collapses_whitespace():
    assert sanitize_label("<b>Hello</b><br/>World  ") == "Hello World"
    assert sanitize_label("  many   \n spaces ") == "many spaces"
    assert sanitize_label("") == ""


@pytest.mark.parametrize(
    "label",
    ["Plain", "<i>Check</i> <br> token", "a<br/>b<br>c", "   ", "<span class='x'>API</span>  call"],
)
def test_sanitize_label_is_idempotent(label):
    once = sanitize_label(label)
    assert sanitize_label(once) == once


def test_preprocess_removes_fence_and_normalizes_newlines():
    source = "```mermaid\nflowchart TD\r\nA-->B\n```"
    assert preprocess(source) == "flowchart TD\nA-->B"


def test_preprocess_removes_init_directive_and_line_breaks():
    source = "%%{init: {'theme': 'dark'}}%%\nflowchart LR\nA[One<br/>Two] --> B"
    cleaned = preprocess(source)
    assert "init" not in cleaned
    assert cleaned.startswith("flowchart LR")
    assert "A[One Two]" in cleaned


def test_preprocess_handles_empty_input():
    assert preprocess("") == ""
    assert preprocess("   \n  ") == ""


def test_is_diagram_declaration():
    assert is_diagram_declaration("flowchart TD")
    assert is_diagram_declaration("graph LR")
    assert not is_diagram_declaration("graphics --> x")


def test_parse_metadata_comments_collects_valid_entries():
    source = "\n".join(
        [
            "flowchart TD",
            '%% {"id": "A", "metadata": {"owner": "ops"}}',
            "%% {not json}",
            '%% {"id": "B", "metadata": "nope"}',
            "A --> B",
        ]
    )
    assert parse_metadata_comments(source) == {"A": {"owner": "ops"}}


def test_detect_input_type():
    assert detect_input_type("flowchart TD\nA-->B") == "mermaid"
    assert detect_input_type("subgraph Backend") == "mermaid"
    assert detect_input_type("Draw a login process for new users") == "natural"
