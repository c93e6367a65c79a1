"""
Survey response models and per-node response aggregation.

Two rating scales are in use:

- ``likert_0_3``: discrete 0..scale_max answers from general respondents,
  normalized by dividing by scale_max.
- ``continuous_0_1``: expert answers already on the unit interval.

``aggregate_responses`` turns the raw answers into one NodeStatistic per node:
a consensus mean over every normalized answer, and an expert (mean, variance)
estimate over continuous answers from the expert sources only.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from concord.config import EngineConfig
from concord.engine.stats import Estimate, mean, sample_variance
from concord.logging_config import get_logger
from concord.serialization import SerializableMixin
from concord.types import ROLE_QUESTION_NODE_ID, ROLE_QUESTION_NODE_TYPE

logger = get_logger(__name__)


class ScaleKind(str, Enum):
    """Rating scale of a survey question."""

    LIKERT_0_3 = "likert_0_3"
    CONTINUOUS_0_1 = "continuous_0_1"

    @classmethod
    def parse(cls, value: Any) -> ScaleKind:
        """Parse a wire value; missing or unknown scales are likert."""
        if isinstance(value, ScaleKind):
            return value
        if value == cls.CONTINUOUS_0_1.value:
            return cls.CONTINUOUS_0_1
        return cls.LIKERT_0_3


@dataclass(frozen=True)
class SurveyQuestion(SerializableMixin):
    """A survey question bound to exactly one diagram node."""

    id: str
    node_id: str
    scale: ScaleKind = ScaleKind.LIKERT_0_3
    scale_max: float | None = None
    node_type: str = ""
    text: str = ""

    @property
    def is_role_question(self) -> bool:
        """Whether this is the respondent-role question rather than a rating."""
        return self.node_id == ROLE_QUESTION_NODE_ID and self.node_type == ROLE_QUESTION_NODE_TYPE

    def effective_max(self, config: EngineConfig) -> float:
        if self.scale_max is not None:
            return self.scale_max
        if self.scale is ScaleKind.CONTINUOUS_0_1:
            return config.default_continuous_max
        return config.default_likert_max


@dataclass(frozen=True)
class SurveyAnswer(SerializableMixin):
    question_id: str
    score: float
    comment: str | None = None


@dataclass(frozen=True)
class SurveyResponse(SerializableMixin):
    id: str
    answers: tuple[SurveyAnswer, ...] = ()


@dataclass(frozen=True)
class ResponseSet(SerializableMixin):
    """One survey's question catalog together with its submitted responses."""

    survey_id: str
    questions: tuple[SurveyQuestion, ...] = ()
    responses: tuple[SurveyResponse, ...] = ()
    audience: str | None = None

    def questions_by_id(self) -> dict[str, SurveyQuestion]:
        return {question.id: question for question in self.questions}

    @property
    def answer_count(self) -> int:
        return sum(len(response.answers) for response in self.responses)


@dataclass(frozen=True)
class NodeStatistic(SerializableMixin):
    """Direct (unpropagated) survey statistics for one node.

    None in either field means the node had no qualifying answers.
    """

    consensus_mean: float | None = None
    expert: Estimate | None = None


def normalize_score(answer: SurveyAnswer, question: SurveyQuestion, config: EngineConfig) -> float | None:
    """Normalize an answer onto [0, 1]; None when the scale maximum is zero."""
    scale_max = question.effective_max(config)
    if scale_max == 0:
        return None
    if question.scale is ScaleKind.CONTINUOUS_0_1:
        return answer.score
    return answer.score / scale_max


@dataclass
class _NodeSamples:
    normalized: list[float] = field(default_factory=list)
    expert: list[float] = field(default_factory=list)


def _collect(
    sources: Iterable[ResponseSet],
    config: EngineConfig,
    samples: dict[str, _NodeSamples],
    expert: bool,
) -> None:
    for response_set in sources:
        questions = response_set.questions_by_id()
        skipped = 0
        for response in response_set.responses:
            for answer in response.answers:
                question = questions.get(answer.question_id)
                if question is None:
                    skipped += 1
                    continue
                entry = samples.setdefault(question.node_id, _NodeSamples())
                if expert:
                    if question.scale is ScaleKind.CONTINUOUS_0_1:
                        entry.expert.append(answer.score)
                    continue
                normalized = normalize_score(answer, question, config)
                if normalized is None:
                    skipped += 1
                    continue
                entry.normalized.append(normalized)
        if skipped:
            logger.debug(
                "Skipped unusable answers",
                survey_id=response_set.survey_id,
                skipped=skipped,
            )


def aggregate_responses(
    consensus_sources: Sequence[ResponseSet],
    expert_sources: Sequence[ResponseSet] = (),
    config: EngineConfig | None = None,
) -> dict[str, NodeStatistic]:
    """Compute per-node statistics from raw survey responses.

    Args:
        consensus_sources: Response sets feeding the consensus mean
            (every scale counts).
        expert_sources: Response sets feeding the expert estimate (only
            continuous answers count).
        config: Engine configuration; defaults to EngineConfig().

    Returns:
        Mapping of node id to NodeStatistic. Nodes without any qualifying
        answer are absent from the mapping.
    """
    config = config or EngineConfig()
    samples: dict[str, _NodeSamples] = {}
    _collect(consensus_sources, config, samples, expert=False)
    _collect(expert_sources, config, samples, expert=True)

    result: dict[str, NodeStatistic] = {}
    for node_id, entry in samples.items():
        expert_estimate = None
        if entry.expert:
            expert_estimate = Estimate(
                mean=sum(entry.expert) / len(entry.expert),
                variance=sample_variance(entry.expert) + config.variance_epsilon,
            )
        consensus_mean = mean(entry.normalized)
        if consensus_mean is None and expert_estimate is None:
            continue
        result[node_id] = NodeStatistic(consensus_mean=consensus_mean, expert=expert_estimate)
    return result


__all__ = [
    "ScaleKind",
    "SurveyQuestion",
    "SurveyAnswer",
    "SurveyResponse",
    "ResponseSet",
    "NodeStatistic",
    "normalize_score",
    "aggregate_responses",
]
