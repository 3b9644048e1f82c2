import os
import unittest
from unittest.mock import patch

try:
    from readiness.services.assessment_flow import AssessmentFlow
    from readiness.services.session_store import SessionStore

    DEPENDENCIES_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - environment dependent
    DEPENDENCIES_AVAILABLE = False


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "pydantic/httpx dependencies are not installed")
class SessionStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        env = patch.dict(os.environ, {}, clear=True)
        env.start()
        self.addCleanup(env.stop)
        self.clock = FakeClock()

    def _store(self, **kwargs) -> "SessionStore":
        store = SessionStore(flow_factory=AssessmentFlow, clock=self.clock, **kwargs)
        self.addCleanup(store.clear)
        return store

    def test_expired_flows_are_discarded_on_create(self) -> None:
        store = self._store(max_age_seconds=60, max_sessions=10)
        stale = [store.create_flow() for _ in range(3)]

        self.clock.now += 61
        fresh = store.create_flow()

        self.assertEqual(len(store), 1)
        self.assertIs(store.get_flow(fresh.session_id), fresh)
        for flow in stale:
            self.assertIsNone(store.get_flow(flow.session_id))
            self.assertTrue(flow.machine.discarded)

    def test_expired_flow_is_not_returned(self) -> None:
        store = self._store(max_age_seconds=60, max_sessions=10)
        flow = store.create_flow()

        self.clock.now += 59
        self.assertIs(store.get_flow(flow.session_id), flow)
        self.clock.now += 1
        self.assertIsNone(store.get_flow(flow.session_id))
        self.assertTrue(flow.machine.discarded)
        self.assertEqual(len(store), 0)

    def test_oldest_flow_is_evicted_when_full(self) -> None:
        store = self._store(max_age_seconds=3600, max_sessions=2)
        first = store.create_flow()
        second = store.create_flow()
        third = store.create_flow()

        self.assertEqual(len(store), 2)
        self.assertIsNone(store.get_flow(first.session_id))
        self.assertTrue(first.machine.discarded)
        self.assertIs(store.get_flow(second.session_id), second)
        self.assertIs(store.get_flow(third.session_id), third)

    def test_limits_read_from_environment(self) -> None:
        with patch.dict(os.environ, {"ASSESSMENT_SESSION_TTL_SECONDS": "120", "ASSESSMENT_MAX_SESSIONS": "5"}):
            store = self._store()
            self.assertEqual(store.max_age_seconds, 120.0)
            self.assertEqual(store.max_sessions, 5)

    def test_discard_flow(self) -> None:
        store = self._store(max_age_seconds=60, max_sessions=10)
        flow = store.create_flow()
        self.assertTrue(store.discard_flow(flow.session_id))
        self.assertFalse(store.discard_flow(flow.session_id))
        self.assertTrue(flow.machine.discarded)


if __name__ == "__main__":
    unittest.main()
