from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, Protocol

from readiness import config
from readiness.errors import ServiceError, ValidationFailure
from readiness.models.assessment import GeneratedContent, Insight, InsightSlot, SessionView
from readiness.models.service import (
    BatchResponseItem,
    InsightRequest,
    InsightRequestUserInfo,
    InsightServiceResponse,
)
from readiness.scoring.insight_heuristics import build_fallback_insight
from readiness.scoring.questions import BATCH_BOUNDS, batch_question_ids, batch_questions

LOGGER = logging.getLogger(__name__)

DEFAULT_COMPANY = "B2B Company"
DEFAULT_PRODUCT_NAME = "Product"
MAX_PRODUCT_NAME_LENGTH = 50
UNSETTLED_STATUSES = frozenset({"pending", "in_flight"})

FallbackBuilder = Callable[[int, dict[str, int], dict[str, int], GeneratedContent | None], Insight | None]


class InsightService(Protocol):
    async def generate_batch_insight(self, batch_number: int, payload: InsightRequest) -> InsightServiceResponse: ...


class InsightOrchestrator:
    """Requests one insight per batch for a single session.

    A batch is requested at most once: completed insights are returned from
    memory and concurrent callers share the in-flight request. Failures are
    never retried; batches 2 and 3 degrade to a heuristic insight while batch 1
    is left pending.
    """

    def __init__(
        self,
        service: InsightService,
        fallback: FallbackBuilder = build_fallback_insight,
        timeout: float | None = None,
    ) -> None:
        self._service = service
        self._fallback = fallback
        self._timeout = timeout if timeout is not None else config.api_timeout_seconds()
        self._insights: dict[int, Insight] = {}
        self._status: dict[int, str] = {batch: "pending" for batch in BATCH_BOUNDS}
        self._inflight: dict[int, asyncio.Future] = {}

    def status(self, batch_number: int) -> str:
        return self._status[batch_number]

    def insights(self) -> list[Insight]:
        return [self._insights[batch] for batch in sorted(self._insights)]

    @property
    def is_generating(self) -> bool:
        return bool(self._inflight)

    async def request_insight(self, batch_number: int, context: SessionView) -> Insight | None:
        if batch_number not in BATCH_BOUNDS:
            raise ValidationFailure(f"Unknown insight batch: {batch_number}", field="batchNumber")

        existing = self._insights.get(batch_number)
        if existing is not None:
            return existing
        if self._status[batch_number] == "failed":
            return None

        task = self._inflight.get(batch_number)
        if task is None:
            self._status[batch_number] = "in_flight"
            task = asyncio.ensure_future(self._generate(batch_number, context))
            self._inflight[batch_number] = task
        return await asyncio.shield(task)

    def display_slots(self) -> list[InsightSlot]:
        """Settled batches in order, stopping at the first one still outstanding."""
        slots: list[InsightSlot] = []
        for batch_number in sorted(BATCH_BOUNDS):
            status = self._status[batch_number]
            if status in UNSETTLED_STATUSES:
                break
            slots.append(self._slot(batch_number))
        return slots

    def all_slots(self) -> list[InsightSlot]:
        return [self._slot(batch_number) for batch_number in sorted(BATCH_BOUNDS)]

    def _slot(self, batch_number: int) -> InsightSlot:
        return InsightSlot(
            batchNumber=batch_number,
            status=self._status[batch_number],
            insight=self._insights.get(batch_number),
        )

    async def _generate(self, batch_number: int, context: SessionView) -> Insight | None:
        started = time.perf_counter()
        try:
            insight = await self._request_from_service(batch_number, context)
            status = "completed"
            LOGGER.info(
                "Batch %d insight generated for %s in %.2fs (%s, %d%% confidence)",
                batch_number,
                context.sessionId,
                time.perf_counter() - started,
                insight.challengeLabel,
                insight.confidence,
            )
        except asyncio.CancelledError:
            self._status[batch_number] = "pending"
            raise
        except Exception as exc:
            LOGGER.warning("Batch %d insight generation failed for %s: %s", batch_number, context.sessionId, exc)
            try:
                insight = self._fallback(
                    batch_number,
                    dict(context.responses),
                    dict(context.questionTimings),
                    context.generatedContent,
                )
            except Exception:
                LOGGER.exception("Batch %d fallback insight failed for %s", batch_number, context.sessionId)
                insight = None
            status = "fallback" if insight is not None else "failed"
        finally:
            self._inflight.pop(batch_number, None)

        if insight is not None:
            self._insights[batch_number] = insight
        self._status[batch_number] = status
        return insight

    async def _request_from_service(self, batch_number: int, context: SessionView) -> Insight:
        payload = build_insight_request(batch_number, context, previous_insights=self.insights())
        response = await asyncio.wait_for(
            self._service.generate_batch_insight(batch_number, payload),
            timeout=self._timeout,
        )
        return insight_from_response(batch_number, response)


def build_insight_request(
    batch_number: int,
    context: SessionView,
    previous_insights: list[Insight] | None = None,
) -> InsightRequest:
    product_info = context.productInfo
    if product_info is None:
        raise ServiceError("Cannot request insights before product info is submitted")

    company = context.userInfo.company if context.userInfo is not None else DEFAULT_COMPANY
    return InsightRequest(
        sessionId=context.sessionId,
        responses=[
            BatchResponseItem(
                questionId=question.id,
                questionText=question.text,
                response=context.responses.get(question.id, 0),
            )
            for question in batch_questions(batch_number)
        ],
        userInfo=InsightRequestUserInfo(
            company=company,
            productName=derive_product_name(product_info.productName, product_info.productDescription),
            businessModel=product_info.businessModel,
        ),
        previousInsights=[
            insight.to_service_payload()
            for insight in (previous_insights or [])
            if insight.batchNumber < batch_number
        ],
    )


def derive_product_name(product_name: str | None, product_description: str) -> str:
    if product_name and product_name.strip():
        return product_name.strip()[:MAX_PRODUCT_NAME_LENGTH]
    first_sentence = product_description.split(".")[0].strip()
    return first_sentence[:MAX_PRODUCT_NAME_LENGTH] or DEFAULT_PRODUCT_NAME


def insight_from_response(batch_number: int, response: InsightServiceResponse) -> Insight:
    if not response.success or not response.insight:
        raise ServiceError(f"Insight service returned no insight for batch {batch_number}")

    data: dict[str, Any] = dict(response.insight)
    metadata = response.metadata
    if metadata is not None and metadata.batchNumber != batch_number:
        raise ServiceError(f"Insight service answered batch {metadata.batchNumber}, expected {batch_number}")
    if data.setdefault("batchNumber", batch_number) != batch_number:
        raise ServiceError(f"Insight payload is tagged batch {data['batchNumber']}, expected {batch_number}")

    data["questionRange"] = batch_question_ids(batch_number)
    if not data.get("generatedAt") and metadata is not None and metadata.generatedAt is not None:
        data["generatedAt"] = metadata.generatedAt
    if not data.get("generatedAt"):
        data.pop("generatedAt", None)
    data["source"] = "ai"
    return Insight.model_validate(data)
