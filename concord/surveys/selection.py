"""
Survey source selection.

A diagram can be surveyed either with one combined survey (general and
expert questions together) or with a pair of single-audience surveys. Given
the survey a user is looking at, pick the surveys whose responses feed
consensus and expert confidence.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from concord.surveys.models import Survey


@dataclass(frozen=True)
class SurveySelection:
    combined_id: str | None = None
    general_id: str | None = None
    expert_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.combined_id or self.general_id or self.expert_id)

    @property
    def consensus_ids(self) -> list[str]:
        """Surveys whose responses feed the consensus mean, in fetch order."""
        if self.combined_id:
            return [self.combined_id]
        return [sid for sid in (self.general_id, self.expert_id) if sid]

    @property
    def expert_ids(self) -> list[str]:
        """Surveys whose continuous answers feed expert confidence."""
        if self.combined_id:
            return [self.combined_id]
        return [self.expert_id] if self.expert_id else []

    @property
    def fetch_ids(self) -> list[str]:
        return list(dict.fromkeys(self.consensus_ids + self.expert_ids))


def _same_diagram(a: Survey, b: Survey) -> bool:
    return (a.diagram_id or None) == (b.diagram_id or None)


def select_sources(selected: Survey, surveys: Sequence[Survey]) -> SurveySelection:
    """Resolve the response sources for ``selected``.

    - A combined survey is its own single source.
    - An expert survey pairs with the first general survey on the same diagram.
    - A general survey pairs with the first expert survey on the same diagram.
    """
    if selected.is_combined:
        return SurveySelection(combined_id=selected.id)

    if selected.is_expert:
        general = next(
            (s for s in surveys if not s.is_expert and _same_diagram(s, selected)),
            None,
        )
        return SurveySelection(general_id=general.id if general else None, expert_id=selected.id)

    expert = next(
        (s for s in surveys if s.is_expert and _same_diagram(s, selected)),
        None,
    )
    return SurveySelection(general_id=selected.id, expert_id=expert.id if expert else None)


__all__ = ["SurveySelection", "select_sources"]
