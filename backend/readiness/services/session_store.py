from __future__ import annotations

import logging
import time
from collections.abc import Callable

from readiness import config
from readiness.services.assessment_flow import AssessmentFlow

LOGGER = logging.getLogger(__name__)


class SessionStore:
    """In-memory registry of live assessment flows, keyed by session id.

    Flows older than the configured max age are discarded on the next lookup or
    creation, and the oldest flows are discarded once the size bound is reached.
    """

    def __init__(
        self,
        flow_factory: Callable[[], AssessmentFlow] | None = None,
        max_age_seconds: float | None = None,
        max_sessions: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._flow_factory = flow_factory or AssessmentFlow
        self._max_age_seconds = max_age_seconds
        self._max_sessions = max_sessions
        self._clock = clock
        self._flows: dict[str, AssessmentFlow] = {}
        self._created_at: dict[str, float] = {}

    @property
    def max_age_seconds(self) -> float:
        return self._max_age_seconds if self._max_age_seconds is not None else config.session_ttl_seconds()

    @property
    def max_sessions(self) -> int:
        return self._max_sessions if self._max_sessions is not None else config.max_sessions()

    def create_flow(self) -> AssessmentFlow:
        self.evict_expired()
        while len(self._flows) >= self.max_sessions:
            oldest = next(iter(self._flows))
            LOGGER.info("Evicting session %s: store is full", oldest)
            self.discard_flow(oldest)

        flow = self._flow_factory()
        self._flows[flow.session_id] = flow
        self._created_at[flow.session_id] = self._clock()
        LOGGER.info("Created assessment session %s", flow.session_id)
        return flow

    def get_flow(self, session_id: str) -> AssessmentFlow | None:
        if self._is_expired(session_id):
            LOGGER.info("Evicting expired session %s", session_id)
            self.discard_flow(session_id)
            return None
        return self._flows.get(session_id)

    def discard_flow(self, session_id: str) -> bool:
        flow = self._flows.pop(session_id, None)
        self._created_at.pop(session_id, None)
        if flow is None:
            return False
        flow.discard()
        return True

    def evict_expired(self) -> int:
        expired = [session_id for session_id in self._flows if self._is_expired(session_id)]
        for session_id in expired:
            self.discard_flow(session_id)
        if expired:
            LOGGER.info("Evicted %d expired sessions", len(expired))
        return len(expired)

    def configure(self, flow_factory: Callable[[], AssessmentFlow]) -> None:
        self._flow_factory = flow_factory

    def clear(self) -> None:
        for flow in list(self._flows.values()):
            flow.discard()
        self._flows.clear()
        self._created_at.clear()

    def _is_expired(self, session_id: str) -> bool:
        created_at = self._created_at.get(session_id)
        if created_at is None:
            return False
        return self._clock() - created_at >= self.max_age_seconds

    def __len__(self) -> int:
        return len(self._flows)


session_store = SessionStore()
