from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from readiness.models.assessment import DiagnosticReport, SessionView, utcnow
from readiness.models.service import AssessmentStartRequest, AssessmentSubmitRequest
from readiness.services.api_client import AssessmentApiClient
from readiness.services.diagnostic_report import build_diagnostic_report
from readiness.services.insight_orchestrator import InsightOrchestrator
from readiness.services.profile_generator import ProfileGenerator
from readiness.services.session_machine import (
    MilestoneReached,
    ProductInfoSubmitted,
    ResultsReached,
    SessionEvent,
    SessionStateMachine,
)

LOGGER = logging.getLogger(__name__)

SUBMISSION_NOTICE = "Your results are shown below, but we could not save them to your record."


class AssessmentFlow:
    """Wires one session's state machine to its asynchronous collaborators.

    Events emitted by the machine become background tasks. Each task writes back
    only through the machine's incorporate methods, so late results for a
    discarded session are dropped there.
    """

    def __init__(
        self,
        machine: SessionStateMachine | None = None,
        client: AssessmentApiClient | None = None,
        orchestrator: InsightOrchestrator | None = None,
        profile_generator: ProfileGenerator | None = None,
    ) -> None:
        self.machine = machine or SessionStateMachine()
        self.client = client or AssessmentApiClient()
        self.orchestrator = orchestrator or InsightOrchestrator(self.client)
        self.profile_generator = profile_generator or ProfileGenerator(service=self.client)
        self.record_id: str | None = None
        self.submission_notice: str | None = None
        self._submitted = False
        self._tasks: set[asyncio.Task] = set()
        self.machine.subscribe(self._on_event)

    @property
    def session_id(self) -> str:
        return self.machine.session_id

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def discard(self) -> None:
        self.machine.discard()
        LOGGER.info("Session %s discarded with %d background tasks outstanding", self.session_id, len(self._tasks))

    def report(self) -> DiagnosticReport:
        return build_diagnostic_report(
            self.machine.view(),
            batch_status={slot.batchNumber: slot.status for slot in self.orchestrator.all_slots()},
            submission_notice=self.submission_notice,
        )

    def _on_event(self, event: SessionEvent) -> None:
        if isinstance(event, ProductInfoSubmitted):
            self._spawn(self._prime_session(), "session priming")
        elif isinstance(event, MilestoneReached):
            self._spawn(
                self._generate_insight(event.batch_number, self.machine.view()),
                f"batch {event.batch_number} insight",
            )
        elif isinstance(event, ResultsReached):
            self._spawn(self._submit_results(), "result submission")

    def _spawn(self, coro: Coroutine[Any, Any, None], label: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            LOGGER.warning("No running event loop; skipped %s for %s", label, self.session_id)
            return
        task = loop.create_task(self._guarded(coro, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guarded(self, coro: Coroutine[Any, Any, None], label: str) -> None:
        try:
            await coro
        except Exception:
            LOGGER.exception("Background %s failed for %s", label, self.session_id)

    async def _prime_session(self) -> None:
        await asyncio.gather(self._start_record(), self._generate_profiles())

    async def _start_record(self) -> None:
        view = self.machine.view()
        try:
            response = await self.client.start_assessment(
                AssessmentStartRequest(sessionId=view.sessionId, startTime=view.startedAt)
            )
        except Exception as exc:
            LOGGER.warning("Could not open assessment record for %s: %s", view.sessionId, exc)
            return
        # The submission response carries the final record id.
        if self.record_id is None:
            self.record_id = response.recordId

    async def _generate_profiles(self) -> None:
        view = self.machine.view()
        if view.productInfo is None:
            return
        content = await self.profile_generator.generate(view.sessionId, view.productInfo)
        if content is not None:
            self.machine.incorporate_generated_content(content)

    async def _generate_insight(self, batch_number: int, view: SessionView) -> None:
        insight = await self.orchestrator.request_insight(batch_number, view)
        if insight is not None:
            self.machine.incorporate_insight(insight)

    async def _submit_results(self) -> None:
        if self._submitted:
            return
        self._submitted = True

        view = self.machine.view()
        request = AssessmentSubmitRequest(
            sessionId=view.sessionId,
            responses=view.responses,
            results=self.machine.results,
            timestamp=utcnow(),
            userInfo=view.userInfo,
            productInfo=view.productInfo,
            questionTimings=view.questionTimings or None,
            generatedContent=view.generatedContent,
        )
        try:
            response = await self.client.submit_assessment(request)
        except Exception as exc:
            LOGGER.warning("Assessment submission failed for %s: %s", view.sessionId, exc)
            self.submission_notice = SUBMISSION_NOTICE
            return
        self.record_id = response.recordId
        LOGGER.info("Assessment %s submitted as record %s", view.sessionId, response.recordId)
