"""
Diagram snapshot normalization.

A survey stores the GSN snapshot it was created from. Two shapes exist:

- diagram data: ``{"nodes": [...], "links": [...]}``
- project data: ``{"modules": {"root": <diagram data>, ...},
  "currentDiagramId": "root"}``

``normalize_snapshot`` accepts either, picks the current module for project
data, and validates every node and link at this boundary so the engine only
ever sees string ids and a closed NodeKind.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from concord.engine.graph import DiagramEdge, DiagramNode, NodeKind
from concord.exceptions import SnapshotFormatError
from concord.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MODULE_ID = "root"


@dataclass(frozen=True)
class DiagramSnapshot:
    """Validated node and edge lists of one diagram module."""

    nodes: tuple[DiagramNode, ...] = ()
    edges: tuple[DiagramEdge, ...] = ()
    module_id: str | None = None
    dropped: dict[str, int] = field(default_factory=dict, compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.nodes


def is_diagram_data(value: Any) -> bool:
    return (
        isinstance(value, Mapping)
        and isinstance(value.get("nodes"), list)
        and isinstance(value.get("links"), list)
    )


def is_project_data(value: Any) -> bool:
    return isinstance(value, Mapping) and isinstance(value.get("modules"), Mapping)


def _parse_node(raw: Any) -> DiagramNode | None:
    if not isinstance(raw, Mapping) or raw.get("id") is None:
        return None
    raw_type = raw.get("type")
    return DiagramNode(
        id=str(raw["id"]),
        kind=NodeKind.parse(raw_type),
        label=str(raw.get("label") or raw.get("content") or ""),
        raw_type=str(raw_type or ""),
    )


def _parse_link(raw: Any) -> DiagramEdge | None:
    if not isinstance(raw, Mapping):
        return None
    source, target = raw.get("source"), raw.get("target")
    if source is None or target is None:
        return None
    return DiagramEdge(source_id=str(source), target_id=str(target))


def _module_of(value: Any) -> tuple[Mapping[str, Any] | None, str | None]:
    if is_project_data(value):
        modules = value["modules"]
        current = value.get("currentDiagramId") or DEFAULT_MODULE_ID
        module = modules.get(current)
        if module is None:
            current = DEFAULT_MODULE_ID
            module = modules.get(DEFAULT_MODULE_ID)
        if not isinstance(module, Mapping):
            return None, None
        return module, str(current)
    if is_diagram_data(value):
        return value, None
    return None, None


def normalize_snapshot(value: Any) -> DiagramSnapshot | None:
    """Turn a raw stored snapshot into a DiagramSnapshot.

    Returns None when the value is neither diagram nor project data, or when
    project data has no usable module. Entries without an id (nodes) or
    without endpoints (links) are dropped and counted in ``dropped``.
    """
    module, module_id = _module_of(value)
    if module is None:
        return None

    raw_nodes = module.get("nodes") if isinstance(module.get("nodes"), list) else []
    raw_links = module.get("links") if isinstance(module.get("links"), list) else []

    nodes = [node for node in (_parse_node(raw) for raw in raw_nodes) if node is not None]
    edges = [edge for edge in (_parse_link(raw) for raw in raw_links) if edge is not None]
    dropped = {
        "nodes": len(raw_nodes) - len(nodes),
        "links": len(raw_links) - len(edges),
    }
    if dropped["nodes"] or dropped["links"]:
        logger.debug("Dropped malformed snapshot entries", module=module_id, **dropped)

    return DiagramSnapshot(
        nodes=tuple(nodes),
        edges=tuple(edges),
        module_id=module_id,
        dropped=dropped,
    )


def node_index(value: Any) -> dict[str, DiagramNode]:
    """Every node across all modules of a snapshot, keyed by id.

    Used to label questions whose node lives outside the current module.
    """
    if is_project_data(value):
        modules = [m for m in value["modules"].values() if isinstance(m, Mapping)]
    elif is_diagram_data(value):
        modules = [value]
    else:
        return {}

    index: dict[str, DiagramNode] = {}
    for module in modules:
        raw_nodes = module.get("nodes")
        if not isinstance(raw_nodes, list):
            continue
        for raw in raw_nodes:
            node = _parse_node(raw)
            if node is not None:
                index[node.id] = node
    return index


def parse_snapshot_json(text: str, source: str | None = None) -> DiagramSnapshot:
    """Parse and normalize a snapshot from JSON text.

    Raises:
        SnapshotFormatError: If the text is not JSON or not a known snapshot shape.
    """
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"not valid JSON ({e.msg})", source) from e
    snapshot = normalize_snapshot(value)
    if snapshot is None:
        raise SnapshotFormatError("expected diagram data or project data", source)
    return snapshot


__all__ = [
    "DiagramSnapshot",
    "is_diagram_data",
    "is_project_data",
    "normalize_snapshot",
    "node_index",
    "parse_snapshot_json",
]
