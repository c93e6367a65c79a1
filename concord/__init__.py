"""
concord: consensus and confidence aggregation for GSN survey feedback

Teams rate the nodes of a goal-structuring (GSN) argument diagram through
surveys answered by two audiences. concord turns those ratings into:

- a bottom-up consensus score for every goal, mixing each goal's own rating
  with the support its strategies and sub-goals receive
- a bottom-up expert confidence estimate (mean and variance) for every goal,
  fusing sub-goals by inverse-variance weighting and propagating uncertainty
  through strategies
- headline aggregates over the diagram's root goals

Usage:
    from concord import AggregationEngine, normalize_snapshot

    snapshot = normalize_snapshot(raw_snapshot)
    result = AggregationEngine().run(snapshot.nodes, snapshot.edges, [responses])
    print(result.to_json(indent=2))
"""

from __future__ import annotations

import importlib
from typing import Any

from concord.__version__ import __version__

_EXPORT_MAP = {
    'AggregationEngine': ('concord.engine.runner', 'AggregationEngine'),
    'AggregationResult': ('concord.engine.roots', 'AggregationResult'),
    'ArgumentGraph': ('concord.engine.graph', 'ArgumentGraph'),
    'ClientConfig': ('concord.config', 'ClientConfig'),
    'ConcordError': ('concord.exceptions', 'ConcordError'),
    'ConfidencePropagator': ('concord.engine.confidence', 'ConfidencePropagator'),
    'ConsensusPropagator': ('concord.engine.consensus', 'ConsensusPropagator'),
    'ConsensusService': ('concord.service', 'ConsensusService'),
    'DiagramEdge': ('concord.engine.graph', 'DiagramEdge'),
    'DiagramNode': ('concord.engine.graph', 'DiagramNode'),
    'DiagramSnapshot': ('concord.surveys.snapshot', 'DiagramSnapshot'),
    'EngineConfig': ('concord.config', 'EngineConfig'),
    'Estimate': ('concord.engine.stats', 'Estimate'),
    'LatestRunGate': ('concord.service', 'LatestRunGate'),
    'MemoPolicy': ('concord.config', 'MemoPolicy'),
    'NodeKind': ('concord.engine.graph', 'NodeKind'),
    'NodeStatistic': ('concord.engine.responses', 'NodeStatistic'),
    'ResponseSet': ('concord.engine.responses', 'ResponseSet'),
    'RootAggregator': ('concord.engine.roots', 'RootAggregator'),
    'ScaleKind': ('concord.engine.responses', 'ScaleKind'),
    'Survey': ('concord.surveys.models', 'Survey'),
    'SurveyClient': ('concord.surveys.client', 'SurveyClient'),
    'SurveySelection': ('concord.surveys.selection', 'SurveySelection'),
    'aggregate_responses': ('concord.engine.responses', 'aggregate_responses'),
    'build_graph': ('concord.engine.graph', 'build_graph'),
    'configure_logging': ('concord.logging_config', 'configure_logging'),
    'get_logger': ('concord.logging_config', 'get_logger'),
    'normalize_snapshot': ('concord.surveys.snapshot', 'normalize_snapshot'),
    'parse_response_set': ('concord.surveys.models', 'parse_response_set'),
    'question_stats': ('concord.surveys.analytics', 'question_stats'),
    'run_aggregation': ('concord.engine.runner', 'run_aggregation'),
    'select_sources': ('concord.surveys.selection', 'select_sources'),
}


def __getattr__(name: str) -> Any:
    """Lazily import public symbols so the CLI and engine load only what they use."""
    try:
        module_name, attr_name = _EXPORT_MAP[name]
    except KeyError as exc:
        raise AttributeError(f"module 'concord' has no attribute {name!r}") from exc
    module = importlib.import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))


__all__ = [
    # Engine
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
    "aggregate_responses",
    "build_graph",
    "run_aggregation",
    # Surveys
    "DiagramSnapshot",
    "Survey",
    "SurveyClient",
    "SurveySelection",
    "normalize_snapshot",
    "parse_response_set",
    "question_stats",
    "select_sources",
    # Service
    "ConsensusService",
    "LatestRunGate",
    # Config, errors, logging
    "ClientConfig",
    "ConcordError",
    "EngineConfig",
    "MemoPolicy",
    "configure_logging",
    "get_logger",
]
