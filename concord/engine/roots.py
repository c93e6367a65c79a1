"""
Headline aggregates and per-node maps for a whole diagram.

Root goals are Goal nodes with no incoming edge. The diagram's consensus is
the mean of the root goals' consensus scores; its confidence is the plain
average of the root goals' means and variances. Roots that resolve to None
are left out, and with no resolvable root the aggregate is None
("insufficient data").
"""

from __future__ import annotations

from dataclasses import dataclass, field

from concord.engine.confidence import ConfidencePropagator
from concord.engine.consensus import ConsensusPropagator
from concord.engine.graph import ArgumentGraph
from concord.engine.stats import Estimate, average_estimates, mean
from concord.serialization import SerializableMixin


@dataclass
class AggregationResult(SerializableMixin):
    """Self-contained result snapshot of one aggregation run.

    ``consensus_by_node`` and ``confidence_by_node`` cover every Goal
    (propagated value) and every Strategy (direct value), with None where
    there is nothing to report.
    """

    consensus: float | None = None
    confidence: Estimate | None = None
    consensus_by_node: dict[str, float | None] = field(default_factory=dict)
    confidence_by_node: dict[str, Estimate | None] = field(default_factory=dict)
    root_goals: list[str] = field(default_factory=list)

    @property
    def insufficient_data(self) -> bool:
        """True when neither headline aggregate could be computed."""
        return self.consensus is None and self.confidence is None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["insufficient_data"] = self.insufficient_data
        return data


class RootAggregator:
    """Builds an AggregationResult from the two propagators of one run."""

    def __init__(
        self,
        graph: ArgumentGraph,
        consensus: ConsensusPropagator,
        confidence: ConfidencePropagator,
    ):
        self.graph = graph
        self.consensus = consensus
        self.confidence = confidence

    def root_goals(self) -> list[str]:
        return [goal_id for goal_id in self.graph.goal_ids() if not self.graph.has_incoming(goal_id)]

    def aggregate(self) -> AggregationResult:
        consensus_by_node: dict[str, float | None] = {}
        confidence_by_node: dict[str, Estimate | None] = {}

        for strategy_id in self.graph.strategy_ids():
            consensus_by_node[strategy_id] = self.consensus.direct(strategy_id)
            confidence_by_node[strategy_id] = self.confidence.direct(strategy_id)

        goal_ids = self.graph.goal_ids()
        for goal_id in goal_ids:
            consensus_by_node[goal_id] = self.consensus.goal_consensus(goal_id)
        roots = self.root_goals()
        root_consensus = [
            score for score in (self.consensus.goal_consensus(root) for root in roots) if score is not None
        ]

        root_confidence = [
            estimate
            for estimate in (self.confidence.goal_confidence(root) for root in roots)
            if estimate is not None
        ]
        for goal_id in goal_ids:
            confidence_by_node[goal_id] = self.confidence.goal_confidence(goal_id)

        return AggregationResult(
            consensus=mean(root_consensus),
            confidence=average_estimates(root_confidence),
            consensus_by_node=consensus_by_node,
            confidence_by_node=confidence_by_node,
            root_goals=roots,
        )


__all__ = ["AggregationResult", "RootAggregator"]
