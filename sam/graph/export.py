"""Export functionality for graph data.

Provides export to JSON and GraphML.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any
from xml.etree import ElementTree as ET  # nosec B405

from sam.errors import ErrorCode, ExportError
from sam.graph.pipeline import GraphData

logger = logging.getLogger(__name__)

NODE_ATTRS = [
    ("label", "string"),
    ("primary_role", "string"),
    ("relationship_health", "string"),
    ("production_value", "double"),
    ("pipeline_stage", "string"),
    ("is_ghost", "boolean"),
    ("is_orphaned", "boolean"),
    ("is_pinned", "boolean"),
    ("x", "double"),
    ("y", "double"),
]

EDGE_ATTRS = [
    ("edge_type", "string"),
    ("weight", "double"),
    ("label", "string"),
    ("is_reciprocal", "boolean"),
]


def _write(text: str, path: Path | str, fmt: str) -> None:
    path = Path(path)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ExportError(
            f"Cannot write {fmt} export to {path}", format=fmt, path=str(path), cause=e
        ) from e
    logger.info("Exported graph to %s", path)


def _graphml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def export_to_json(
    graph: GraphData,
    path: Path | str | None = None,
    indent: int = 2,
) -> str:
    """Export graph to JSON format.

    Args:
        graph: Graph data to export
        path: Optional file path to write to
        indent: JSON indentation level

    Returns:
        JSON string representation
    """
    data = graph.to_dict()
    data["export_info"] = {
        "format": "json",
        "exported_at": datetime.now().isoformat(),
        "node_count": graph.node_count,
        "edge_count": graph.edge_count,
    }

    json_str = json.dumps(data, indent=indent)

    if path:
        _write(json_str, path, "json")

    return json_str


def export_to_graphml(
    graph: GraphData,
    path: Path | str | None = None,
) -> str:
    """Export graph to GraphML format.

    Edges default to undirected; referral and recruiting edges are marked
    directed individually.

    Args:
        graph: Graph data to export
        path: Optional file path to write to

    Returns:
        GraphML XML string
    """
    root = ET.Element("graphml")
    root.set("xmlns", "http://graphml.graphdrawing.org/xmlns")

    for scope, attrs in (("node", NODE_ATTRS), ("edge", EDGE_ATTRS)):
        for attr_name, attr_type in attrs:
            key = ET.SubElement(root, "key")
            key.set("id", f"{scope[0]}_{attr_name}")
            key.set("for", scope)
            key.set("attr.name", attr_name)
            key.set("attr.type", attr_type)

    graph_elem = ET.SubElement(root, "graph")
    graph_elem.set("id", "G")
    graph_elem.set("edgedefault", "undirected")

    for node in graph.nodes:
        node_elem = ET.SubElement(graph_elem, "node")
        node_elem.set("id", node.id)

        for attr_name, _ in NODE_ATTRS:
            value = getattr(node, attr_name)
            if value is not None:
                data_elem = ET.SubElement(node_elem, "data")
                data_elem.set("key", f"n_{attr_name}")
                data_elem.text = _graphml_value(value)

    for i, edge in enumerate(graph.edges):
        edge_elem = ET.SubElement(graph_elem, "edge")
        edge_elem.set("id", f"e{i}")
        edge_elem.set("source", edge.source)
        edge_elem.set("target", edge.target)
        if edge.is_directed:
            edge_elem.set("directed", "true")

        for attr_name, _ in EDGE_ATTRS:
            value = getattr(edge, attr_name)
            if value is not None:
                data_elem = ET.SubElement(edge_elem, "data")
                data_elem.set("key", f"e_{attr_name}")
                data_elem.text = _graphml_value(value)

    xml_str = '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode")

    if path:
        _write(xml_str, path, "graphml")

    return xml_str


EXPORTERS: dict[str, Callable[..., str]] = {
    "json": export_to_json,
    "graphml": export_to_graphml,
}


def export_graph(graph: GraphData, fmt: str, path: Path | str | None = None) -> str:
    """Export ``graph`` in the named format.

    Raises:
        ExportError: If the format is unknown or the file cannot be written
    """
    exporter = EXPORTERS.get(fmt.lower())
    if exporter is None:
        raise ExportError(
            f"Unsupported export format: {fmt}",
            format=fmt,
            code=ErrorCode.EXPORT_INVALID_FORMAT,
            supported=sorted(EXPORTERS),
        )
    return exporter(graph, path)
