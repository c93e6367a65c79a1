"""
One aggregation run, end to end.

    graph      = build_graph(nodes, edges)
    statistics = aggregate_responses(consensus_sources, expert_sources)
    result     = RootAggregator(graph, ConsensusPropagator(...),
                                ConfidencePropagator(...)).aggregate()

Every call builds fresh propagators, so two runs never share memo state and
identical inputs always produce identical results.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from concord.config import EngineConfig
from concord.engine.confidence import ConfidencePropagator
from concord.engine.consensus import ConsensusPropagator
from concord.engine.graph import DiagramEdge, DiagramNode, build_graph
from concord.engine.responses import ResponseSet, aggregate_responses
from concord.engine.roots import AggregationResult, RootAggregator
from concord.logging_config import LogContext, get_logger, log_function

logger = get_logger(__name__)


class AggregationEngine:
    """Stateless entry point for consensus/confidence aggregation."""

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    @log_function(level="DEBUG")
    def run(
        self,
        nodes: Sequence[DiagramNode],
        edges: Sequence[DiagramEdge],
        consensus_sources: Sequence[ResponseSet],
        expert_sources: Sequence[ResponseSet] = (),
    ) -> AggregationResult:
        """Aggregate survey responses over one diagram snapshot.

        Args:
            nodes: Diagram nodes in snapshot order.
            edges: Directed parent → child links.
            consensus_sources: Response sets feeding consensus.
            expert_sources: Response sets feeding expert confidence.

        Returns:
            AggregationResult with headline aggregates and per-node maps.
        """
        with LogContext(run_id=uuid.uuid4().hex):
            graph = build_graph(nodes, edges)
            statistics = aggregate_responses(consensus_sources, expert_sources, self.config)

            consensus = ConsensusPropagator(graph, statistics, self.config.memo_policy)
            confidence = ConfidencePropagator(graph, statistics, self.config.memo_policy)
            result = RootAggregator(graph, consensus, confidence).aggregate()

            logger.info(
                "Aggregation finished",
                nodes=len(graph),
                edges=graph.edge_count,
                rated_nodes=len(statistics),
                roots=len(result.root_goals),
                cycle_hits=consensus.cycle_hits + confidence.cycle_hits,
                insufficient_data=result.insufficient_data,
            )
            return result


def run_aggregation(
    nodes: Sequence[DiagramNode],
    edges: Sequence[DiagramEdge],
    consensus_sources: Sequence[ResponseSet],
    expert_sources: Sequence[ResponseSet] = (),
    config: EngineConfig | None = None,
) -> AggregationResult:
    """Convenience wrapper around ``AggregationEngine(config).run(...)``."""
    return AggregationEngine(config).run(nodes, edges, consensus_sources, expert_sources)


__all__ = ["AggregationEngine", "run_aggregation"]
