"""
Survey-side collaborators of the aggregation engine.

Snapshot normalization, survey source selection, per-question analytics and
the async survey API client.
"""

from concord.surveys.analytics import QuestionStat, SurveyAnalytics, question_stats
from concord.surveys.client import SurveyClient
from concord.surveys.models import (
    Audience,
    Survey,
    SurveyMode,
    parse_response_set,
    parse_survey,
)
from concord.surveys.selection import SurveySelection, select_sources
from concord.surveys.snapshot import (
    DiagramSnapshot,
    node_index,
    normalize_snapshot,
    parse_snapshot_json,
)

__all__ = [
    "Audience",
    "DiagramSnapshot",
    "QuestionStat",
    "Survey",
    "SurveyAnalytics",
    "SurveyClient",
    "SurveyMode",
    "SurveySelection",
    "node_index",
    "normalize_snapshot",
    "parse_response_set",
    "parse_snapshot_json",
    "parse_survey",
    "question_stats",
    "select_sources",
]
