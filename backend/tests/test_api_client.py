import json
import unittest
from datetime import datetime, timezone

try:
    import httpx

    from readiness.errors import ServiceError
    from readiness.models.service import (
        AssessmentStartRequest,
        BatchResponseItem,
        InsightRequest,
        InsightRequestUserInfo,
        ProfileRequest,
    )
    from readiness.services.api_client import AssessmentApiClient

    DEPENDENCIES_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - environment dependent
    DEPENDENCIES_AVAILABLE = False


def _insight_request() -> "InsightRequest":
    return InsightRequest(
        sessionId="assess_1_client",
        responses=[BatchResponseItem(questionId="q5", questionText="Question five", response=3)],
        userInfo=InsightRequestUserInfo(company="Acme", productName="Ledgerly", businessModel="B2B SaaS"),
    )


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "httpx/pydantic dependencies are not installed")
class AssessmentApiClientTests(unittest.IsolatedAsyncioTestCase):
    def _client(self, handler) -> "AssessmentApiClient":
        return AssessmentApiClient(
            base_url="http://backend.test/",
            timeout=2,
            transport=httpx.MockTransport(handler),
        )

    async def test_start_assessment_posts_session(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "sessionId": "assess_1", "recordId": "rec_9"})

        response = await self._client(handler).start_assessment(
            AssessmentStartRequest(sessionId="assess_1", startTime=datetime(2026, 1, 5, tzinfo=timezone.utc))
        )

        self.assertEqual(seen["path"], "/api/assessment/start")
        self.assertEqual(seen["body"]["sessionId"], "assess_1")
        self.assertTrue(seen["body"]["startTime"].startswith("2026-01-05T00:00:00"))
        self.assertEqual(response.recordId, "rec_9")

    async def test_batch_insight_endpoint(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "insight": {"insight": "Text", "challengeIdentified": "Label", "confidence": 77},
                    "metadata": {"batchNumber": 2, "questionRange": "5-9", "processingTime": 1.4},
                },
            )

        response = await self._client(handler).generate_batch_insight(2, _insight_request())

        self.assertEqual(seen["path"], "/api/insights/batch-2")
        self.assertEqual(seen["body"]["userInfo"]["company"], "Acme")
        self.assertEqual(seen["body"]["previousInsights"], [])
        self.assertTrue(response.success)
        self.assertEqual(response.metadata.batchNumber, 2)

    async def test_welcome_data_fetch(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            return httpx.Response(
                200,
                json={
                    "sessionId": "assess_1_welcome",
                    "company": "Acme",
                    "qualification": "Promising",
                    "overallScore": 72,
                    "topChallenge": "Buyer Misalignment",
                    "icpContent": "Mid-market finance teams",
                    "tbpContent": None,
                    "accessToken": "tok_123",
                },
            )

        welcome = await self._client(handler).get_welcome_data("assess_1_welcome")

        self.assertEqual(seen, {"method": "GET", "path": "/api/welcome/assess_1_welcome"})
        self.assertEqual(welcome.company, "Acme")
        self.assertEqual(welcome.overallScore, 72)
        self.assertEqual(welcome.topChallenge, "Buyer Misalignment")
        self.assertIsNone(welcome.tbpContent)
        self.assertEqual(welcome.accessToken, "tok_123")

    async def test_welcome_data_errors(self) -> None:
        client = self._client(lambda request: httpx.Response(404, json={"message": "Session not found"}))
        with self.assertRaisesRegex(ServiceError, "Session not found"):
            await client.get_welcome_data("assess_missing")
        with self.assertRaises(ServiceError):
            await client.get_welcome_data("  ")

        client = self._client(lambda request: httpx.Response(200, json={"sessionId": "s", "company": "Acme"}))
        with self.assertRaisesRegex(ServiceError, "Malformed WelcomeData"):
            await client.get_welcome_data("s")

    async def test_unknown_batch_endpoint(self) -> None:
        client = self._client(lambda request: httpx.Response(200, json={}))
        with self.assertRaises(ServiceError):
            await client.generate_batch_insight(4, _insight_request())

    async def test_error_status_uses_server_message(self) -> None:
        client = self._client(lambda request: httpx.Response(500, json={"message": "Insight model unavailable"}))
        with self.assertRaisesRegex(ServiceError, "Insight model unavailable"):
            await client.generate_batch_insight(1, _insight_request())

    async def test_error_status_without_message(self) -> None:
        client = self._client(lambda request: httpx.Response(404, text="not found"))
        with self.assertRaisesRegex(ServiceError, "HTTP error! status: 404"):
            await client.generate_profiles(
                ProfileRequest(sessionId="s", productName="P", productDescription="D", businessModel="B2B")
            )

    async def test_non_json_and_malformed_bodies(self) -> None:
        client = self._client(lambda request: httpx.Response(200, text="<html>"))
        with self.assertRaises(ServiceError):
            await client.get_health()

        client = self._client(lambda request: httpx.Response(200, json={"success": True}))
        with self.assertRaisesRegex(ServiceError, "Malformed AssessmentStartResponse"):
            await client.start_assessment(
                AssessmentStartRequest(sessionId="s", startTime=datetime.now(timezone.utc))
            )

    async def test_timeout_becomes_service_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        with self.assertRaisesRegex(ServiceError, "timed out"):
            await self._client(handler).get_health()

    async def test_connection_error_becomes_service_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaisesRegex(ServiceError, "connection refused"):
            await self._client(handler).get_health()


if __name__ == "__main__":
    unittest.main()
