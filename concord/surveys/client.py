"""
Async client for the survey API.

Fetching is the only part of concord that suspends. Every fetch error
surfaces as a SurveyFetchError (or SurveyNotFoundError for 404) before any
aggregation starts, so the engine never sees partially fetched input.

Usage:
    client = SurveyClient(ClientConfig.from_env())
    response_set = await client.get_survey_responses("survey-1")
"""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from concord.config import ClientConfig
from concord.engine.responses import ResponseSet
from concord.exceptions import PayloadFormatError, SurveyFetchError, SurveyNotFoundError
from concord.http_client import build_timeout, create_client_session
from concord.logging_config import get_logger
from concord.surveys.models import Survey, parse_response_set, parse_survey

logger = get_logger(__name__)

# Error bodies are echoed into exception messages, truncated
_MAX_ERROR_BODY = 200


class SurveyClient:
    """Read-only client for survey metadata and responses."""

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    async def _get_json(self, path: str, resource_id: str, survey_lookup: bool = True) -> Any:
        url = self._url(path)
        try:
            async with create_client_session(
                timeout=build_timeout(self.config.timeout_seconds),
                token=self.config.token,
            ) as session:
                async with session.get(url) as resp:
                    if resp.status == 404 and survey_lookup:
                        raise SurveyNotFoundError(resource_id)
                    if resp.status >= 400:
                        body = await resp.text()
                        raise SurveyFetchError(
                            resource_id,
                            f"HTTP {resp.status}: {body[:_MAX_ERROR_BODY]}",
                            status_code=resp.status,
                        )
                    payload = await resp.json()
        except aiohttp.ContentTypeError as e:
            raise PayloadFormatError(url, f"response is not JSON ({e.message})") from e
        except aiohttp.ClientError as e:
            raise SurveyFetchError(resource_id, str(e) or type(e).__name__) from e
        except asyncio.TimeoutError as e:
            raise SurveyFetchError(resource_id, "request timed out") from e
        except ValueError as e:
            raise PayloadFormatError(url, f"response is not JSON ({e})") from e

        logger.debug("Fetched survey API resource", path=path)
        return payload

    async def get_survey(self, survey_id: str) -> Survey:
        payload = await self._get_json(f"/surveys/{survey_id}", survey_id)
        if not isinstance(payload, dict) or "survey" not in payload:
            raise PayloadFormatError(f"survey {survey_id}", "missing 'survey'")
        return parse_survey(payload["survey"], source=f"survey {survey_id}")

    async def list_project_surveys(self, project_id: str) -> list[Survey]:
        payload = await self._get_json(
            f"/projects/{project_id}/surveys", f"project {project_id}", survey_lookup=False
        )
        if not isinstance(payload, dict) or not isinstance(payload.get("surveys"), list):
            raise PayloadFormatError(f"project {project_id}", "missing 'surveys' list")
        return [parse_survey(item, source=f"project {project_id}") for item in payload["surveys"]]

    async def get_survey_responses(self, survey_id: str) -> ResponseSet:
        """Fetch the question catalog and all responses of one survey."""
        payload = await self._get_json(f"/surveys/{survey_id}/responses", survey_id)
        response_set = parse_response_set(payload, survey_id=survey_id)
        logger.info(
            "Fetched survey responses",
            survey_id=survey_id,
            questions=len(response_set.questions),
            responses=len(response_set.responses),
        )
        return response_set


__all__ = ["SurveyClient"]
