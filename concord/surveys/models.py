"""
Survey records and parsers for survey API payloads.

The survey API speaks camelCase JSON. The parsers here turn those payloads
into the frozen dataclasses the engine consumes and raise
PayloadFormatError when a payload lacks the structure the engine needs.
Unknown extra keys are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from concord.engine.responses import (
    ResponseSet,
    ScaleKind,
    SurveyAnswer,
    SurveyQuestion,
    SurveyResponse,
)
from concord.exceptions import PayloadFormatError
from concord.serialization import SerializableMixin


class Audience(str, Enum):
    GENERAL = "general"
    EXPERT = "expert"

    @classmethod
    def parse(cls, value: Any) -> Audience:
        return cls.EXPERT if value == cls.EXPERT.value else cls.GENERAL


class SurveyMode(str, Enum):
    """A single survey targets one audience; a combined survey targets both."""

    SINGLE = "single"
    COMBINED = "combined"

    @classmethod
    def parse(cls, value: Any) -> SurveyMode:
        return cls.COMBINED if value == cls.COMBINED.value else cls.SINGLE


@dataclass(frozen=True)
class Survey(SerializableMixin):
    """Survey metadata needed to pick response sources and the snapshot."""

    id: str
    project_id: str = ""
    diagram_id: str | None = None
    title: str = ""
    audience: Audience = Audience.GENERAL
    mode: SurveyMode = SurveyMode.SINGLE
    status: str = "draft"
    gsn_snapshot: Any = None

    _exclude_fields = ("gsn_snapshot",)

    @property
    def is_expert(self) -> bool:
        return self.audience is Audience.EXPERT

    @property
    def is_combined(self) -> bool:
        return self.mode is SurveyMode.COMBINED


def _require_mapping(value: Any, source: str, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise PayloadFormatError(source, f"{what} must be an object")
    return value


def _require_list(value: Any, source: str, what: str) -> list[Any]:
    if not isinstance(value, list):
        raise PayloadFormatError(source, f"{what} must be a list")
    return value


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _number(value: Any, source: str, what: str) -> float:
    # bool is an int subclass but never a valid score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadFormatError(source, f"{what} must be a number")
    return float(value)


def parse_survey(data: Any, source: str = "survey") -> Survey:
    """Parse a survey object (``GET /surveys/{id}`` → ``survey``)."""
    data = _require_mapping(data, source, "survey")
    if "id" not in data:
        raise PayloadFormatError(source, "survey is missing 'id'")
    return Survey(
        id=str(data["id"]),
        project_id=str(data.get("projectId") or ""),
        diagram_id=_optional_str(data.get("diagramId")),
        title=str(data.get("title") or ""),
        audience=Audience.parse(data.get("audience")),
        mode=SurveyMode.parse(data.get("mode")),
        status=str(data.get("status") or "draft"),
        gsn_snapshot=data.get("gsnSnapshot"),
    )


def parse_question(data: Any, source: str) -> SurveyQuestion:
    data = _require_mapping(data, source, "question")
    if "id" not in data or "nodeId" not in data:
        raise PayloadFormatError(source, "question requires 'id' and 'nodeId'")
    scale_max = data.get("scaleMax")
    return SurveyQuestion(
        id=str(data["id"]),
        node_id=str(data["nodeId"]),
        scale=ScaleKind.parse(data.get("scaleType")),
        scale_max=None if scale_max is None else _number(scale_max, source, "scaleMax"),
        node_type=str(data.get("nodeType") or ""),
        text=str(data.get("questionText") or ""),
    )


def parse_response(data: Any, source: str) -> SurveyResponse:
    data = _require_mapping(data, source, "response")
    answers = []
    for raw in _require_list(data.get("answers", []), source, "answers"):
        raw = _require_mapping(raw, source, "answer")
        if "questionId" not in raw:
            raise PayloadFormatError(source, "answer is missing 'questionId'")
        answers.append(
            SurveyAnswer(
                question_id=str(raw["questionId"]),
                score=_number(raw.get("score"), source, "score"),
                comment=_optional_str(raw.get("comment")),
            )
        )
    return SurveyResponse(id=str(data.get("id", "")), answers=tuple(answers))


def parse_response_set(data: Any, survey_id: str | None = None) -> ResponseSet:
    """Parse a ``GET /surveys/{id}/responses`` payload.

    Args:
        data: Decoded JSON with ``survey``, ``questions`` and ``responses``.
        survey_id: Fallback survey id when the payload omits ``survey.id``.

    Raises:
        PayloadFormatError: If questions or responses are missing or malformed.
    """
    source = f"survey {survey_id}" if survey_id else "responses payload"
    data = _require_mapping(data, source, "payload")
    survey = data.get("survey") if isinstance(data.get("survey"), Mapping) else {}
    questions = tuple(
        parse_question(q, source) for q in _require_list(data.get("questions"), source, "questions")
    )
    responses = tuple(
        parse_response(r, source) for r in _require_list(data.get("responses"), source, "responses")
    )
    return ResponseSet(
        survey_id=str(survey.get("id") or survey_id or ""),
        questions=questions,
        responses=responses,
        audience=_optional_str(survey.get("audience")),
    )


__all__ = [
    "Audience",
    "SurveyMode",
    "Survey",
    "parse_survey",
    "parse_question",
    "parse_response",
    "parse_response_set",
]
