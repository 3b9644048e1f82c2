"""HTTP client for the assessment backend: record store, welcome data, batch insights, profiles.

Every call raises ServiceError on transport failure, non-2xx status, timeout, or
an unparseable body. Callers decide how to degrade.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from readiness import config
from readiness.errors import ServiceError
from readiness.models.service import (
    AssessmentStartRequest,
    AssessmentStartResponse,
    AssessmentSubmitRequest,
    AssessmentSubmitResponse,
    InsightRequest,
    InsightServiceResponse,
    ProfileRequest,
    ProfileResponse,
    WelcomeData,
)

logger = logging.getLogger(__name__)

BATCH_ENDPOINTS = {
    1: "/api/insights/batch-1",
    2: "/api/insights/batch-2",
    3: "/api/insights/batch-3",
}


class AssessmentApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or config.api_base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else config.api_timeout_seconds()
        self._transport = transport
        self._headers = {"Content-Type": "application/json"}

    async def start_assessment(self, payload: AssessmentStartRequest) -> AssessmentStartResponse:
        data = await self._request("POST", "/api/assessment/start", payload)
        return _parse(AssessmentStartResponse, data)

    async def submit_assessment(self, payload: AssessmentSubmitRequest) -> AssessmentSubmitResponse:
        data = await self._request("POST", "/api/assessment/submit", payload)
        return _parse(AssessmentSubmitResponse, data)

    async def generate_batch_insight(self, batch_number: int, payload: InsightRequest) -> InsightServiceResponse:
        endpoint = BATCH_ENDPOINTS.get(batch_number)
        if endpoint is None:
            raise ServiceError(f"No insight endpoint for batch {batch_number}")
        data = await self._request("POST", endpoint, payload)
        return _parse(InsightServiceResponse, data)

    async def generate_profiles(self, payload: ProfileRequest) -> ProfileResponse:
        data = await self._request("POST", "/api/profiles/generate", payload)
        return _parse(ProfileResponse, data)

    async def get_welcome_data(self, session_id: str) -> WelcomeData:
        if not session_id.strip():
            raise ServiceError("Welcome data needs a session id")
        data = await self._request("GET", f"/api/welcome/{quote(session_id, safe='')}")
        return _parse(WelcomeData, data)

    async def get_health(self) -> dict[str, Any]:
        return await self._request("GET", "/api/health")

    async def _request(self, method: str, path: str, payload: BaseModel | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        body = payload.model_dump(mode="json", exclude_none=True) if payload is not None else None
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, json=body, headers=self._headers)
        except httpx.TimeoutException as exc:
            raise ServiceError(f"{method} {path} timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise ServiceError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            raise ServiceError(_error_message(response))
        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceError(f"{method} {path} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise ServiceError(f"{method} {path} returned an unexpected payload")
        logger.debug("%s %s -> %s", method, path, response.status_code)
        return data


def _parse(model: type[BaseModel], data: dict[str, Any]) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ServiceError(f"Malformed {model.__name__}: {exc.error_count()} validation errors") from exc


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = {}
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP error! status: {response.status_code}"
