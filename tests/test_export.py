"""Tests for graph export."""

import json
from xml.etree import ElementTree as ET  # nosec B405

import pytest

from sam.errors import ErrorCode, ExportError
from sam.graph.export import export_graph, export_to_graphml, export_to_json
from sam.graph.models import EdgeType, GraphEdge, GraphNode, HealthLevel
from sam.graph.pipeline import GraphData

NS = {"g": "http://graphml.graphdrawing.org/xmlns"}


@pytest.fixture
def graph() -> GraphData:
    nodes = [
        GraphNode(id="a", label="Alice", primary_role="Client", x=100.0, y=120.0),
        GraphNode(
            id="g",
            label="Ghost",
            relationship_health=HealthLevel.UNKNOWN,
            is_ghost=True,
            x=300.0,
            y=220.0,
        ),
        GraphNode(id="b", label="Bob", x=500.0, y=420.0),
    ]
    edges = [
        GraphEdge("a", "b", EdgeType.REFERRAL),
        GraphEdge("g", "a", EdgeType.MENTIONED_TOGETHER, weight=0.6),
    ]
    return GraphData(nodes=nodes, edges=edges, metadata={"layout": "force_directed"})


class TestExportJson:
    def test_export_to_json(self, graph) -> None:
        data = json.loads(export_to_json(graph))

        assert len(data["nodes"]) == 3
        assert data["edges"][0]["edge_type"] == "referral"
        assert data["nodes"][1]["relationship_health"] == "unknown"
        assert data["metadata"]["layout"] == "force_directed"
        assert data["export_info"]["format"] == "json"
        assert data["export_info"]["node_count"] == 3

    def test_export_to_json_file(self, graph, tmp_path) -> None:
        path = tmp_path / "graph.json"
        export_to_json(graph, path)

        assert path.exists()
        assert json.loads(path.read_text())["export_info"]["edge_count"] == 2


class TestExportGraphml:
    def test_export_to_graphml(self, graph) -> None:
        """Test GraphML output parses and carries node and edge data."""
        root = ET.fromstring(export_to_graphml(graph))  # nosec B314

        nodes = root.findall("g:graph/g:node", NS)
        edges = root.findall("g:graph/g:edge", NS)
        assert [n.get("id") for n in nodes] == ["a", "g", "b"]
        assert len(edges) == 2

        ghost = nodes[1]
        values = {d.get("key"): d.text for d in ghost.findall("g:data", NS)}
        assert values["n_is_ghost"] == "true"
        assert values["n_relationship_health"] == "unknown"
        assert values["n_label"] == "Ghost"

    def test_directed_edges_marked(self, graph) -> None:
        root = ET.fromstring(export_to_graphml(graph))  # nosec B314
        edges = root.findall("g:graph/g:edge", NS)

        assert edges[0].get("directed") == "true"
        assert edges[1].get("directed") is None


class TestExportGraph:
    def test_dispatch_by_format(self, graph) -> None:
        assert export_graph(graph, "GraphML").startswith("<?xml")
        assert json.loads(export_graph(graph, "json"))["nodes"]

    def test_unknown_format(self, graph) -> None:
        with pytest.raises(ExportError) as exc_info:
            export_graph(graph, "svg")

        assert exc_info.value.code == ErrorCode.EXPORT_INVALID_FORMAT
        assert exc_info.value.details["supported"] == ["graphml", "json"]

    def test_write_failure(self, graph, tmp_path) -> None:
        path = tmp_path / "missing-dir" / "graph.json"

        with pytest.raises(ExportError) as exc_info:
            export_graph(graph, "json", path)

        assert exc_info.value.code == ErrorCode.EXPORT_WRITE_FAILED
        assert exc_info.value.details["path"] == str(path)
