"""
Per-question analytics for a single survey.

Raw (unnormalized) average score and answer count for every rating question,
in question order. The respondent-role question is not a rating and is left
out.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from concord.engine.responses import ResponseSet
from concord.serialization import SerializableMixin


@dataclass(frozen=True)
class QuestionStat(SerializableMixin):
    question_id: str
    node_id: str
    node_type: str
    average_score: float | None
    count: int


@dataclass(frozen=True)
class SurveyAnalytics(SerializableMixin):
    response_count: int
    stats: list[QuestionStat] = field(default_factory=list)


def question_stats(response_set: ResponseSet) -> SurveyAnalytics:
    scores: dict[str, list[float]] = defaultdict(list)
    for response in response_set.responses:
        for answer in response.answers:
            scores[answer.question_id].append(answer.score)

    stats = []
    for question in response_set.questions:
        if question.is_role_question:
            continue
        related = scores.get(question.id, [])
        stats.append(
            QuestionStat(
                question_id=question.id,
                node_id=question.node_id,
                node_type=question.node_type,
                average_score=sum(related) / len(related) if related else None,
                count=len(related),
            )
        )
    return SurveyAnalytics(response_count=len(response_set.responses), stats=stats)


__all__ = ["QuestionStat", "SurveyAnalytics", "question_stats"]
