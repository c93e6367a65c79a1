"""
Consensus and confidence aggregation engine.

Pure, synchronous computation over one diagram snapshot and one set of
survey responses. See ``concord.engine.runner`` for the wiring.
"""

from concord.engine.confidence import ConfidencePropagator
from concord.engine.consensus import ConsensusPropagator
from concord.engine.graph import ArgumentGraph, DiagramEdge, DiagramNode, NodeKind, build_graph
from concord.engine.responses import (
    NodeStatistic,
    ResponseSet,
    ScaleKind,
    SurveyAnswer,
    SurveyQuestion,
    SurveyResponse,
    aggregate_responses,
)
from concord.engine.roots import AggregationResult, RootAggregator
from concord.engine.runner import AggregationEngine, run_aggregation
from concord.engine.stats import Estimate

__all__ = [
    "AggregationEngine",
    "AggregationResult",
    "ArgumentGraph",
    "ConfidencePropagator",
    "ConsensusPropagator",
    "DiagramEdge",
    "DiagramNode",
    "Estimate",
    "NodeKind",
    "NodeStatistic",
    "ResponseSet",
    "RootAggregator",
    "ScaleKind",
    "SurveyAnswer",
    "SurveyQuestion",
    "SurveyResponse",
    "aggregate_responses",
    "build_graph",
    "run_aggregation",
]
