"""
Unit tests for the topology loader
"""

import json
from datetime import datetime

import pytest
import pytz

from plantscope.errors import TopologyLoadError
from plantscope.topology.loader import TopologyLoader, load_topology, parse_timestamp
from plantscope.topology.types import NodeType, TopologyType, VariableKind

LOADED_AT = datetime(2024, 3, 1, 8, 30, tzinfo=pytz.UTC)


@pytest.fixture
def document():
    return {
        "type": "Electrical",
        "variables": [
            {"id": "power", "name": "Power", "kind": "extensive", "unit": "kW", "sit": 15, "integrated": True},
        ],
        "nodes": [
            {"id": "ats-1", "name": "ATS 1", "type": "ATS", "children": ["ups-1"]},
            {
                "id": "ups-1",
                "name": "UPS 1",
                "type": "UPS",
                "children": ["pdu-1", "ghost"],
                "metrics": [{"variable": "power", "value": 12.5, "timestamp": "2024-01-15T12:00:00Z"}],
                "alerts": ["On battery"],
                "c_sit": 30,
            },
            {"id": "pdu-1", "name": "PDU 1", "type": "PDU", "metrics": [{"variable": "power", "value": 4}]},
        ],
    }


@pytest.fixture
def loader():
    return TopologyLoader(loaded_at=LOADED_AT)


class TestLoadDict:
    """Test building topologies from mappings"""

    def test_nodes_and_types(self, loader, document):
        topology = loader.load_dict(document)

        assert topology.type == TopologyType.ELECTRICAL
        assert topology.all_node_ids() == ["ats-1", "ups-1", "pdu-1"]
        assert topology.get_node("ups-1").type == NodeType.UPS
        assert topology.get_node("ups-1").c_sit == 30
        assert topology.get_node("ups-1").alerts == ["On battery"]

    def test_parents_derived(self, loader, document):
        topology = loader.load_dict(document)

        assert topology.get_node("ats-1").parents == []
        assert topology.get_node("ups-1").parents == ["ats-1"]
        assert topology.get_node("pdu-1").parents == ["ups-1"]

    def test_links_derived_skip_dangling(self, loader, document):
        topology = loader.load_dict(document)

        assert [l.id for l in topology.links] == ["ats-1->ups-1", "ups-1->pdu-1"]

    def test_explicit_links(self, loader, document):
        document["links"] = [{"source": "ats-1", "target": "ups-1"}]
        topology = loader.load_dict(document)

        assert len(topology.links) == 1
        assert topology.links[0].id == "ats-1->ups-1"

    def test_metrics(self, loader, document):
        topology = loader.load_dict(document)
        metric = topology.get_node("ups-1").get_metric("power")

        assert metric.value == 12.5
        assert metric.variable.kind == VariableKind.EXTENSIVE
        assert metric.timestamp == datetime(2024, 1, 15, 12, 0, tzinfo=pytz.UTC)

    def test_missing_timestamp_uses_load_time(self, loader, document):
        topology = loader.load_dict(document)
        assert topology.get_node("pdu-1").get_metric("power").timestamp == LOADED_AT

    def test_unknown_variable(self, loader, document):
        document["nodes"][2]["metrics"] = [{"variable": "flux", "value": 1}]
        with pytest.raises(TopologyLoadError, match="unknown variable flux"):
            loader.load_dict(document)

    def test_duplicate_node(self, loader, document):
        document["nodes"].append({"id": "pdu-1", "name": "Again", "type": "PDU"})
        with pytest.raises(TopologyLoadError, match="Duplicate node id pdu-1"):
            loader.load_dict(document)

    def test_unknown_node_type(self, loader, document):
        document["nodes"][0]["type"] = "Toaster"
        with pytest.raises(TopologyLoadError):
            loader.load_dict(document)

    def test_not_a_mapping(self, loader):
        with pytest.raises(TopologyLoadError):
            loader.load_dict(["nodes"])

    def test_metric_without_value(self, loader, document):
        document["nodes"][2]["metrics"] = [{"variable": "power"}]
        with pytest.raises(TopologyLoadError, match="Invalid topology document"):
            loader.load_dict(document)

    def test_node_row_not_a_mapping(self, loader):
        with pytest.raises(TopologyLoadError, match="node entry must be a mapping"):
            loader.load_dict({"nodes": ["u"]})

    def test_variable_row_not_a_mapping(self, loader, document):
        document["variables"] = ["power"]
        with pytest.raises(TopologyLoadError, match="variable entry must be a mapping"):
            loader.load_dict(document)

    def test_metric_row_not_a_mapping(self, loader, document):
        document["nodes"][2]["metrics"] = [4.0]
        with pytest.raises(TopologyLoadError, match="metric entry must be a mapping"):
            loader.load_dict(document)

    def test_link_row_not_a_mapping(self, loader, document):
        document["links"] = [["ats-1", "ups-1"]]
        with pytest.raises(TopologyLoadError, match="link entry must be a mapping"):
            loader.load_dict(document)


class TestLoadFile:
    """Test YAML and JSON files"""

    def test_yaml(self, tmp_path):
        path = tmp_path / "plant.yaml"
        path.write_text(
            "variables: []\n"
            "nodes:\n"
            "  - {id: a, name: A, type: ES, children: [b]}\n"
            "  - {id: b, name: B, type: ATS}\n"
        )
        topology = load_topology(path)

        assert topology.get_node("b").parents == ["a"]
        assert topology.has_link("a", "b")

    def test_json(self, tmp_path, document):
        path = tmp_path / "plant.json"
        path.write_text(json.dumps(document))
        topology = load_topology(str(path))

        assert len(topology.nodes) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(TopologyLoadError, match="Cannot read"):
            load_topology(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("nodes: [unclosed\n")
        with pytest.raises(TopologyLoadError, match="Cannot parse"):
            load_topology(path)


class TestParseTimestamp:
    """Test timestamp normalization to UTC"""

    def test_naive_is_utc(self):
        result = parse_timestamp("2024-01-15T12:00:00", LOADED_AT)
        assert result == datetime(2024, 1, 15, 12, 0, tzinfo=pytz.UTC)

    def test_offset_converted(self):
        result = parse_timestamp("2024-01-15T14:00:00+02:00", LOADED_AT)
        assert result == datetime(2024, 1, 15, 12, 0, tzinfo=pytz.UTC)
        assert result.tzinfo == pytz.UTC

    def test_invalid(self):
        with pytest.raises(TopologyLoadError):
            parse_timestamp("yesterday", LOADED_AT)
