"""
Shared pytest fixtures for the concord test suite.

Factory fixtures build diagram nodes, edges, response sets and survey API
payloads so individual tests only spell out the numbers they care about.
"""

import logging
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from concord.engine.graph import DiagramEdge, DiagramNode, NodeKind
from concord.engine.responses import (
    NodeStatistic,
    ResponseSet,
    ScaleKind,
    SurveyAnswer,
    SurveyQuestion,
    SurveyResponse,
)
from concord.engine.stats import Estimate
from concord.logging_config import clear_context
from concord.surveys.models import Audience, Survey, SurveyMode


# ============================================================================
# Logging isolation
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_logging():
    """Restore root/concord logger state and clear log context after each test."""
    root = logging.getLogger()
    concord_logger = logging.getLogger("concord")
    saved_handlers = root.handlers[:]
    saved_level = root.level
    saved_concord = (concord_logger.level, concord_logger.propagate)
    clear_context()
    yield
    # configure_logging() swaps root handlers; drop the ones it installed
    for handler in root.handlers[:]:
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)
    concord_logger.setLevel(saved_concord[0])
    concord_logger.propagate = saved_concord[1]
    clear_context()


# ============================================================================
# Diagram builders
# ============================================================================


@pytest.fixture
def make_nodes() -> Callable[..., list[DiagramNode]]:
    """Build nodes from ``id=type`` keyword pairs, in keyword order.

    Example:
        make_nodes(G1="Goal", S1="Strategy", C1="Context")
    """

    def _make(**kinds: str) -> list[DiagramNode]:
        return [
            DiagramNode(id=node_id, kind=NodeKind.parse(raw), label=node_id, raw_type=raw)
            for node_id, raw in kinds.items()
        ]

    return _make


@pytest.fixture
def make_edges() -> Callable[..., list[DiagramEdge]]:
    """Build edges from ``"G1>S1"`` strings."""

    def _make(*links: str) -> list[DiagramEdge]:
        edges = []
        for link in links:
            source, target = link.split(">")
            edges.append(DiagramEdge(source_id=source, target_id=target))
        return edges

    return _make


@pytest.fixture
def make_stats() -> Callable[..., dict[str, NodeStatistic]]:
    """Build a statistics mapping directly, bypassing response aggregation.

    Values are either a consensus float, an (mean, variance) tuple for the
    expert estimate, or a (consensus, (mean, variance)) pair for both.
    """

    def _make(**values: Any) -> dict[str, NodeStatistic]:
        stats = {}
        for node_id, value in values.items():
            if isinstance(value, tuple) and len(value) == 2 and isinstance(value[1], tuple):
                consensus, (m, v) = value
                stats[node_id] = NodeStatistic(consensus, Estimate(m, v))
            elif isinstance(value, tuple):
                stats[node_id] = NodeStatistic(None, Estimate(*value))
            else:
                stats[node_id] = NodeStatistic(consensus_mean=value)
        return stats

    return _make


# ============================================================================
# Response builders
# ============================================================================


def _response_set(
    survey_id: str,
    ratings: dict[str, list[float]],
    scale: ScaleKind,
    scale_max: float | None,
) -> ResponseSet:
    questions = tuple(
        SurveyQuestion(id=f"q-{node_id}", node_id=node_id, scale=scale, scale_max=scale_max)
        for node_id in ratings
    )
    count = max((len(scores) for scores in ratings.values()), default=0)
    responses = []
    for i in range(count):
        answers = tuple(
            SurveyAnswer(question_id=f"q-{node_id}", score=scores[i])
            for node_id, scores in ratings.items()
            if i < len(scores)
        )
        responses.append(SurveyResponse(id=f"{survey_id}-r{i}", answers=answers))
    return ResponseSet(survey_id=survey_id, questions=questions, responses=tuple(responses))


@pytest.fixture
def likert_set() -> Callable[..., ResponseSet]:
    """One likert question per node; the i-th score of each node is response i."""

    def _make(ratings: dict[str, list[float]], survey_id: str = "general", scale_max: float | None = 3):
        return _response_set(survey_id, ratings, ScaleKind.LIKERT_0_3, scale_max)

    return _make


@pytest.fixture
def continuous_set() -> Callable[..., ResponseSet]:
    """One continuous question per node; the i-th score of each node is response i."""

    def _make(ratings: dict[str, list[float]], survey_id: str = "expert", scale_max: float | None = 1):
        return _response_set(survey_id, ratings, ScaleKind.CONTINUOUS_0_1, scale_max)

    return _make


# ============================================================================
# Survey API payloads
# ============================================================================


@pytest.fixture
def diagram_data() -> dict:
    """Raw diagram data: G1 supported by S1 over G2 and G3, plus a context."""
    return {
        "nodes": [
            {"id": "G1", "type": "Goal", "label": "System is safe"},
            {"id": "S1", "type": "Strategy", "label": "Argue over hazards"},
            {"id": "G2", "type": "Goal", "content": "Hazard A mitigated"},
            {"id": "G3", "type": "Goal", "label": "Hazard B mitigated"},
            {"id": "C1", "type": "Context", "label": "Operating context"},
        ],
        "links": [
            {"source": "G1", "target": "S1"},
            {"source": "S1", "target": "G2"},
            {"source": "S1", "target": "G3"},
            {"source": "G1", "target": "C1"},
        ],
    }


@pytest.fixture
def make_survey(diagram_data) -> Callable[..., Survey]:
    def _make(
        survey_id: str,
        audience: Audience = Audience.GENERAL,
        mode: SurveyMode = SurveyMode.SINGLE,
        diagram_id: str | None = "d1",
        snapshot: Any = "default",
    ) -> Survey:
        return Survey(
            id=survey_id,
            project_id="p1",
            diagram_id=diagram_id,
            title=f"Survey {survey_id}",
            audience=audience,
            mode=mode,
            status="published",
            gsn_snapshot=diagram_data if snapshot == "default" else snapshot,
        )

    return _make


@pytest.fixture
def responses_payload() -> dict:
    """A ``GET /surveys/{id}/responses`` payload with likert and continuous questions."""
    return {
        "survey": {"id": "s1", "audience": "general"},
        "questions": [
            {"id": "q1", "nodeId": "G1", "scaleType": "likert_0_3", "scaleMax": 3,
             "nodeType": "Goal", "questionText": "How convinced are you?"},
            {"id": "q2", "nodeId": "S1", "scaleType": "continuous_0_1",
             "nodeType": "Strategy"},
            {"id": "q3", "nodeId": "meta_role", "nodeType": "Meta",
             "questionText": "What is your role?"},
        ],
        "responses": [
            {"id": "r1", "answers": [
                {"questionId": "q1", "score": 3},
                {"questionId": "q2", "score": 0.8, "comment": "solid"},
                {"questionId": "q3", "score": 1},
            ]},
            {"id": "r2", "answers": [
                {"questionId": "q1", "score": 2},
            ]},
        ],
    }


# ============================================================================
# aiohttp mocks
# ============================================================================


@pytest.fixture
def mock_http() -> Callable[..., MagicMock]:
    """Build a mocked aiohttp session whose GET returns ``status`` and ``payload``.

    Usage:
        session = mock_http(200, {"survey": {...}})
        with patch("aiohttp.ClientSession", return_value=session):
            ...
    """

    def _make(status: int = 200, payload: Any = None, text: str = "") -> MagicMock:
        mock_response = MagicMock()
        mock_response.status = status
        mock_response.json = AsyncMock(return_value=payload)
        mock_response.text = AsyncMock(return_value=text)
        mock_response.__aenter__ = AsyncMock(return_value=mock_response)
        mock_response.__aexit__ = AsyncMock(return_value=None)

        mock_session = MagicMock()
        mock_session.get = MagicMock(return_value=mock_response)
        mock_session.__aenter__ = AsyncMock(return_value=mock_session)
        mock_session.__aexit__ = AsyncMock(return_value=None)
        return mock_session

    return _make
