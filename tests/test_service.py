"""Tests for the fetch-then-aggregate service."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from concord.config import EngineConfig
from concord.engine.runner import AggregationEngine
from concord.exceptions import SurveyFetchError
from concord.service import ConsensusService, LatestRunGate
from concord.surveys.client import SurveyClient
from concord.surveys.models import Audience, SurveyMode


@pytest.fixture
def response_sets(likert_set, continuous_set):
    return {
        "g1": likert_set({"G1": [3], "S1": [3], "G2": [3], "G3": [0]}, survey_id="g1"),
        "e1": continuous_set({"G1": [0.9], "S1": [0.8], "G2": [0.6], "G3": [0.9]}, survey_id="e1"),
        "c1": continuous_set({"G1": [0.5]}, survey_id="c1"),
    }


@pytest.fixture
def fake_client(response_sets):
    client = MagicMock(spec=SurveyClient)

    async def _fetch(survey_id):
        return response_sets[survey_id]

    client.get_survey_responses = AsyncMock(side_effect=_fetch)
    return client


class TestLatestRunGate:
    """Test ticket issuing."""

    def test_tickets_increase(self):
        gate = LatestRunGate()
        first = gate.issue()
        second = gate.issue()
        assert second > first

    def test_only_latest_is_current(self):
        gate = LatestRunGate()
        first = gate.issue()
        assert gate.is_current(first)
        second = gate.issue()
        assert not gate.is_current(first)
        assert gate.is_current(second)


class TestComputeForSurvey:
    """Test source selection, fetching and aggregation together."""

    @pytest.mark.asyncio
    async def test_general_expert_pair(self, fake_client, make_survey):
        general = make_survey("g1")
        expert = make_survey("e1", Audience.EXPERT)
        service = ConsensusService(fake_client)

        result = await service.compute_for_survey(general, [general, expert])

        assert result.root_goals == ["G1"]
        assert result.consensus is not None
        assert result.confidence is not None
        fetched = sorted(call.args[0] for call in fake_client.get_survey_responses.await_args_list)
        assert fetched == ["e1", "g1"]

    @pytest.mark.asyncio
    async def test_expert_responses_feed_consensus(self, fake_client, make_survey):
        general = make_survey("g1")
        expert = make_survey("e1", Audience.EXPERT)
        service = ConsensusService(fake_client)

        result = await service.compute_for_survey(general, [general, expert])

        # G3 consensus pools likert 0/3 and continuous 0.9
        assert result.consensus_by_node["G3"] == pytest.approx(0.45)

    @pytest.mark.asyncio
    async def test_combined_fetched_once(self, fake_client, make_survey):
        combined = make_survey("c1", Audience.EXPERT, SurveyMode.COMBINED)
        service = ConsensusService(fake_client)

        result = await service.compute_for_survey(combined, [combined])

        fake_client.get_survey_responses.assert_awaited_once_with("c1")
        assert result.consensus_by_node["G1"] == pytest.approx(0.5)
        assert result.confidence_by_node["G1"].mean == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_no_snapshot(self, fake_client, make_survey):
        survey = make_survey("g1", snapshot=None)
        result = await ConsensusService(fake_client).compute_for_survey(survey, [survey])

        assert result.insufficient_data
        fake_client.get_survey_responses.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uses_engine_config(self, fake_client, make_survey):
        survey = make_survey("e1", Audience.EXPERT)
        engine = AggregationEngine(EngineConfig(variance_epsilon=0.01))
        service = ConsensusService(fake_client, engine)

        result = await service.compute_for_survey(survey, [survey])

        assert result.confidence_by_node["S1"].variance == pytest.approx(0.01)

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, make_survey):
        client = MagicMock(spec=SurveyClient)
        client.get_survey_responses = AsyncMock(side_effect=SurveyFetchError("g1", "HTTP 500"))
        survey = make_survey("g1")

        with pytest.raises(SurveyFetchError):
            await ConsensusService(client).compute_for_survey(survey, [survey])


class TestRefresh:
    """Test stale result discarding."""

    @pytest.mark.asyncio
    async def test_latest_refresh_returns_result(self, fake_client, make_survey):
        survey = make_survey("g1")
        result = await ConsensusService(fake_client).refresh(survey, [survey])
        assert result is not None
        assert result.root_goals == ["G1"]

    @pytest.mark.asyncio
    async def test_stale_refresh_discarded(self, response_sets, make_survey):
        survey = make_survey("g1")
        release = asyncio.Event()
        client = MagicMock(spec=SurveyClient)

        async def _slow_then_fast(survey_id):
            if client.get_survey_responses.await_count == 1:
                await release.wait()
            return response_sets[survey_id]

        client.get_survey_responses = AsyncMock(side_effect=_slow_then_fast)
        service = ConsensusService(client)

        slow = asyncio.create_task(service.refresh(survey, [survey]))
        await asyncio.sleep(0)
        fast = await service.refresh(survey, [survey])
        release.set()
        stale = await slow

        assert fast is not None
        assert stale is None
