import json
import logging

import pytest
from pydantic import ValidationError

from flowgraph.config.settings import Settings
from flowgraph.core.exceptions import ConfigurationError
from flowgraph.layout.options import LayoutOptions
from flowgraph.utils.logging import JsonLogFormatter


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("FLOWGRAPH_DIRECTION", "LR")
    monkeypatch.setenv("FLOWGRAPH_NODE_SPACING", "25")
    monkeypatch.setenv("FLOWGRAPH_RESOLVE_OVERLAPS", "false")
    options = LayoutOptions.from_settings(Settings(_env_file=None))
    assert options == LayoutOptions(direction="LR", node_spacing=25, resolve_overlaps=False)


def test_settings_reject_negative_spacing(monkeypatch):
    monkeypatch.setenv("FLOWGRAPH_RANK_SPACING", "-5")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_unknown_direction_in_settings_is_a_configuration_error(monkeypatch):
    monkeypatch.setenv("FLOWGRAPH_DIRECTION", "up")
    with pytest.raises(ConfigurationError) as excinfo:
        LayoutOptions.from_settings(Settings(_env_file=None))
    assert excinfo.value.context == {"direction": "up"}


def test_json_log_formatter_includes_extra_fields():
    record = logging.LogRecord("flowgraph.test", logging.INFO, __file__, 1, "parsed %d", (3,), None)
    record.nodes = 3
    payload = json.loads(JsonLogFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["message"] == "parsed 3"
    assert payload["nodes"] == 3
    assert "lineno" not in payload
