"""
Fetch-then-aggregate orchestration.

ConsensusService resolves which surveys feed a diagram's aggregation,
fetches their responses concurrently, and runs the synchronous engine on the
result. Every call yields a complete AggregationResult meant to replace the
previous one; there is no incremental merging.

LatestRunGate covers the "new response arrived while we were still
computing" case: each refresh takes a ticket, and a result whose ticket is no
longer the latest is discarded instead of returned.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Sequence

from concord.engine.responses import ResponseSet
from concord.engine.roots import AggregationResult
from concord.engine.runner import AggregationEngine
from concord.logging_config import LogContext, get_logger
from concord.surveys.client import SurveyClient
from concord.surveys.models import Survey
from concord.surveys.selection import SurveySelection, select_sources
from concord.surveys.snapshot import DiagramSnapshot, normalize_snapshot

logger = get_logger(__name__)


class LatestRunGate:
    """Hands out increasing tickets; only the newest ticket is current."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest = 0

    def issue(self) -> int:
        self._latest = next(self._counter)
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest


class ConsensusService:
    """Computes consensus/confidence for the survey a user is looking at."""

    def __init__(
        self,
        client: SurveyClient,
        engine: AggregationEngine | None = None,
    ):
        self.client = client
        self.engine = engine or AggregationEngine()
        self.gate = LatestRunGate()

    async def fetch_sources(
        self, selection: SurveySelection
    ) -> tuple[list[ResponseSet], list[ResponseSet]]:
        """Fetch every selected survey once and split into (consensus, expert) sources."""
        ids = selection.fetch_ids
        fetched = await asyncio.gather(*(self.client.get_survey_responses(sid) for sid in ids))
        by_id = dict(zip(ids, fetched))
        consensus_sources = [by_id[sid] for sid in selection.consensus_ids]
        expert_sources = [by_id[sid] for sid in selection.expert_ids]
        return consensus_sources, expert_sources

    def aggregate(
        self,
        snapshot: DiagramSnapshot,
        consensus_sources: Sequence[ResponseSet],
        expert_sources: Sequence[ResponseSet],
    ) -> AggregationResult:
        return self.engine.run(snapshot.nodes, snapshot.edges, consensus_sources, expert_sources)

    async def compute_for_survey(
        self, selected: Survey, surveys: Sequence[Survey]
    ) -> AggregationResult:
        """Select sources for ``selected``, fetch them and aggregate.

        Returns an empty result (insufficient data) when the survey carries no
        usable snapshot or no survey can feed the computation. Fetch errors
        propagate as SurveyFetchError / SurveyNotFoundError.
        """
        with LogContext(survey_id=selected.id, diagram_id=selected.diagram_id):
            snapshot = normalize_snapshot(selected.gsn_snapshot)
            if snapshot is None:
                logger.warning("Survey has no usable diagram snapshot")
                return AggregationResult()

            selection = select_sources(selected, surveys)
            if selection.is_empty:
                return AggregationResult()

            logger.info(
                "Computing consensus",
                consensus_surveys=selection.consensus_ids,
                expert_surveys=selection.expert_ids,
            )
            consensus_sources, expert_sources = await self.fetch_sources(selection)
            return self.aggregate(snapshot, consensus_sources, expert_sources)

    async def refresh(
        self, selected: Survey, surveys: Sequence[Survey]
    ) -> AggregationResult | None:
        """Like compute_for_survey, but None if a newer refresh has started meanwhile."""
        ticket = self.gate.issue()
        result = await self.compute_for_survey(selected, surveys)
        if not self.gate.is_current(ticket):
            logger.debug("Discarding stale aggregation result", ticket=ticket)
            return None
        return result


__all__ = ["ConsensusService", "LatestRunGate"]
