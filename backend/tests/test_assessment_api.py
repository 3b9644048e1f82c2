import os
import unittest
from unittest.mock import patch

try:
    import httpx
    from fastapi.testclient import TestClient

    from readiness.main import app
    from readiness.scoring.questions import TOTAL_QUESTIONS
    from readiness.services.api_client import AssessmentApiClient
    from readiness.services.assessment_flow import AssessmentFlow
    from readiness.services.session_store import session_store

    DEPENDENCIES_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - environment dependent
    DEPENDENCIES_AVAILABLE = False


PRODUCT = {
    "businessModel": "B2B SaaS",
    "productDescription": "Revenue analytics for finance teams.",
}


def _offline_flow() -> "AssessmentFlow":
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"message": "offline"})

    return AssessmentFlow(
        client=AssessmentApiClient(base_url="http://backend.test", timeout=2, transport=httpx.MockTransport(handler))
    )


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "fastapi/httpx dependencies are not installed")
class AssessmentApiTests(unittest.TestCase):
    def setUp(self) -> None:
        env = patch.dict(os.environ, {}, clear=True)
        env.start()
        self.addCleanup(env.stop)
        session_store.configure(_offline_flow)
        self.addCleanup(session_store.configure, AssessmentFlow)
        self.addCleanup(session_store.clear)

    def test_health(self) -> None:
        with TestClient(app) as client:
            response = client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_full_assessment_over_http(self) -> None:
        with TestClient(app) as client:
            start = client.post("/assessments/start")
            self.assertEqual(start.status_code, 201)
            session_id = start.json()["sessionId"]
            self.assertEqual(start.json()["step"], "ProductInput")
            base = f"/assessments/{session_id}"

            early = client.post(f"{base}/answers", json={"value": 3})
            self.assertEqual(early.status_code, 422)
            self.assertEqual(early.json()["detail"]["field"], "step")

            self.assertEqual(client.post(f"{base}/product", json={"businessModel": "B2B"}).status_code, 422)

            product = client.post(f"{base}/product", json=PRODUCT)
            self.assertEqual(product.status_code, 200)
            self.assertEqual(product.json()["step"], "Assessment")
            self.assertEqual(product.json()["currentQuestion"]["questionId"], "q1")
            self.assertEqual(product.json()["currentQuestion"]["responseOptions"]["4"], "Definitely Yes")

            invalid = client.post(f"{base}/answers", json={"questionId": "q1", "value": 9})
            self.assertEqual(invalid.status_code, 422)
            self.assertEqual(invalid.json()["detail"]["field"], "value")

            for index in range(TOTAL_QUESTIONS):
                answered = client.post(f"{base}/answers", json={"questionId": f"q{index + 1}", "value": 4})
                self.assertEqual(answered.status_code, 200)
            self.assertEqual(answered.json()["step"], "UserInfo")
            self.assertEqual(answered.json()["results"]["overallScore"], 126)

            premature = client.get(f"{base}/report")
            self.assertEqual(premature.status_code, 409)
            self.assertTrue(premature.json()["detail"]["restart"])

            self.assertEqual(client.post(f"{base}/user-info/skip").json()["step"], "Results")

            report = client.get(f"{base}/report")
            self.assertEqual(report.status_code, 200)
            payload = report.json()
            self.assertEqual(payload["results"]["qualification"], "Qualified")
            self.assertEqual(len(payload["insights"]), 3)
            self.assertEqual(payload["insights"][0]["status"], "failed")
            self.assertEqual(payload["insights"][1]["insight"]["source"], "heuristic")
            self.assertIsNotNone(payload["submissionNotice"])

            self.assertEqual(client.delete(base).status_code, 200)
            self.assertEqual(client.get(f"{base}/state").status_code, 404)

    def test_navigation_endpoints(self) -> None:
        with TestClient(app) as client:
            session_id = client.post("/assessments/start").json()["sessionId"]
            base = f"/assessments/{session_id}"
            client.post(f"{base}/product", json=PRODUCT)
            client.post(f"{base}/answers", json={"value": 2})
            client.post(f"{base}/answers", json={"value": 3})

            previous = client.post(f"{base}/previous")
            self.assertEqual(previous.json()["questionIndex"], 1)
            restarted = client.post(f"{base}/restart")
            self.assertEqual(restarted.json()["questionIndex"], 0)
            self.assertEqual(restarted.json()["answeredCount"], 2)

            state = client.get(f"{base}/state")
            self.assertEqual(state.json()["currentQuestion"]["questionNumber"], 1)

    def test_answer_value_must_be_a_json_integer(self) -> None:
        with TestClient(app) as client:
            session_id = client.post("/assessments/start").json()["sessionId"]
            base = f"/assessments/{session_id}"
            client.post(f"{base}/product", json=PRODUCT)

            for value in (True, "4", 3.0):
                with self.subTest(value=value):
                    response = client.post(f"{base}/answers", json={"questionId": "q1", "value": value})
                    self.assertEqual(response.status_code, 422)

            state = client.get(f"{base}/state").json()
            self.assertEqual(state["answeredCount"], 0)
            self.assertEqual(state["currentQuestion"]["questionId"], "q1")

    def test_user_info_validation(self) -> None:
        with TestClient(app) as client:
            session_id = client.post("/assessments/start").json()["sessionId"]
            base = f"/assessments/{session_id}"
            client.post(f"{base}/product", json=PRODUCT)
            for _ in range(TOTAL_QUESTIONS):
                client.post(f"{base}/answers", json={"value": 1})

            bad = client.post(f"{base}/user-info", json={"name": "Sam", "email": "sam", "company": "Acme"})
            self.assertEqual(bad.status_code, 422)
            good = client.post(
                f"{base}/user-info",
                json={"name": "Sam", "email": "sam@acme.io", "company": "Acme", "role": "Founder"},
            )
            self.assertEqual(good.json()["step"], "Results")

    def test_unknown_session(self) -> None:
        with TestClient(app) as client:
            self.assertEqual(client.get("/assessments/missing/state").status_code, 404)
            self.assertEqual(client.delete("/assessments/missing").status_code, 404)


if __name__ == "__main__":
    unittest.main()
