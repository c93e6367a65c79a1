"""
Argument graph model for GSN diagrams.

The aggregation engine only distinguishes Goal and Strategy nodes; every other
GSN element (Context, Evidence, Assumption, ...) is carried as OTHER so it can
appear in adjacency without ever entering the numeric core.

Usage:
    graph = build_graph(nodes, edges)
    for strategy_id in graph.children_of_kind("G1", NodeKind.STRATEGY):
        ...
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from concord.serialization import SerializableMixin


class NodeKind(str, Enum):
    """Closed set of node kinds the engine recognizes."""

    GOAL = "Goal"
    STRATEGY = "Strategy"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> NodeKind:
        """Map a raw GSN node type onto a NodeKind.

        Anything that is not exactly "Goal" or "Strategy" is OTHER.
        """
        if isinstance(value, NodeKind):
            return value
        if value == cls.GOAL.value:
            return cls.GOAL
        if value == cls.STRATEGY.value:
            return cls.STRATEGY
        return cls.OTHER

    @property
    def participates(self) -> bool:
        """Whether nodes of this kind take part in propagation."""
        return self is not NodeKind.OTHER


@dataclass(frozen=True)
class DiagramNode(SerializableMixin):
    """A node in a diagram snapshot."""

    id: str
    kind: NodeKind
    label: str = ""
    raw_type: str = ""  # original GSN type, e.g. "Context"


@dataclass(frozen=True)
class DiagramEdge(SerializableMixin):
    """A directed link from a parent node to a child node."""

    source_id: str
    target_id: str


@dataclass
class ArgumentGraph:
    """Id-indexed nodes with child/parent adjacency, built once per run.

    Node iteration order is the snapshot order, which keeps every derived
    mapping deterministic.
    """

    by_id: dict[str, DiagramNode] = field(default_factory=dict)
    _children: dict[str, list[str]] = field(default_factory=dict)
    _parents: dict[str, list[str]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.by_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.by_id

    def __iter__(self) -> Iterator[DiagramNode]:
        return iter(self.by_id.values())

    def node(self, node_id: str) -> DiagramNode | None:
        return self.by_id.get(node_id)

    def kind_of(self, node_id: str) -> NodeKind | None:
        node = self.by_id.get(node_id)
        return node.kind if node else None

    def children_of(self, node_id: str) -> list[str]:
        """Targets of edges whose source is ``node_id`` (edge order)."""
        return list(self._children.get(node_id, ()))

    def parents_of(self, node_id: str) -> list[str]:
        return list(self._parents.get(node_id, ()))

    def has_incoming(self, node_id: str) -> bool:
        return bool(self._parents.get(node_id))

    def children_of_kind(self, node_id: str, kind: NodeKind) -> list[str]:
        return [
            child_id
            for child_id in self._children.get(node_id, ())
            if self.by_id[child_id].kind is kind
        ]

    def ids_of_kind(self, kind: NodeKind) -> list[str]:
        return [node.id for node in self.by_id.values() if node.kind is kind]

    def goal_ids(self) -> list[str]:
        return self.ids_of_kind(NodeKind.GOAL)

    def strategy_ids(self) -> list[str]:
        return self.ids_of_kind(NodeKind.STRATEGY)

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._children.values())

    def propagation_children(self, node_id: str) -> list[str]:
        """Children reached by propagation: Goal → Strategy and Strategy → Goal."""
        kind = self.kind_of(node_id)
        if kind is NodeKind.GOAL:
            return self.children_of_kind(node_id, NodeKind.STRATEGY)
        if kind is NodeKind.STRATEGY:
            return self.children_of_kind(node_id, NodeKind.GOAL)
        return []

    def propagation_components(self) -> dict[str, int]:
        """Strongly connected components of the Goal/Strategy links.

        Maps every Goal and Strategy id to a component index; two nodes share
        an index exactly when each can reach the other through
        ``propagation_children``. Iterative Kosaraju, linear in graph size.
        """
        node_ids = [node.id for node in self.by_id.values() if node.kind.participates]

        finished: list[str] = []
        seen: set[str] = set()
        for start in node_ids:
            if start in seen:
                continue
            seen.add(start)
            stack = [(start, iter(self.propagation_children(start)))]
            while stack:
                node_id, children = stack[-1]
                for child_id in children:
                    if child_id not in seen:
                        seen.add(child_id)
                        stack.append((child_id, iter(self.propagation_children(child_id))))
                        break
                else:
                    stack.pop()
                    finished.append(node_id)

        reverse: dict[str, list[str]] = {}
        for node_id in node_ids:
            for child_id in self.propagation_children(node_id):
                reverse.setdefault(child_id, []).append(node_id)

        components: dict[str, int] = {}
        index = 0
        for start in reversed(finished):
            if start in components:
                continue
            components[start] = index
            pending = [start]
            while pending:
                node_id = pending.pop()
                for parent_id in reverse.get(node_id, ()):
                    if parent_id not in components:
                        components[parent_id] = index
                        pending.append(parent_id)
            index += 1
        return components


def build_graph(nodes: Iterable[DiagramNode], edges: Iterable[DiagramEdge]) -> ArgumentGraph:
    """Build an ArgumentGraph from a node list and an edge list.

    Edges whose source or target is not a known node are dropped. Duplicate
    node ids keep the first occurrence. Never raises for well-typed input.
    """
    graph = ArgumentGraph()
    for node in nodes:
        graph.by_id.setdefault(node.id, node)

    for edge in edges:
        if edge.source_id not in graph.by_id or edge.target_id not in graph.by_id:
            continue
        graph._children.setdefault(edge.source_id, []).append(edge.target_id)
        graph._parents.setdefault(edge.target_id, []).append(edge.source_id)

    return graph


__all__ = [
    "NodeKind",
    "DiagramNode",
    "DiagramEdge",
    "ArgumentGraph",
    "build_graph",
]
