import unittest

try:
    from readiness.models.assessment import GeneratedContent
    from readiness.scoring.insight_heuristics import build_fallback_insight, compute_batch_statistics
    from readiness.scoring.questions import QUESTION_CATALOG

    DEPENDENCIES_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - environment dependent
    DEPENDENCIES_AVAILABLE = False


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "pydantic dependency is not installed")
class InsightHeuristicsTests(unittest.TestCase):
    def test_first_batch_has_no_fallback(self) -> None:
        responses = {question.id: 3 for question in QUESTION_CATALOG}
        self.assertIsNone(build_fallback_insight(1, responses, {}))

    def test_consistent_batch_without_timings(self) -> None:
        responses = {question.id: 4 for question in QUESTION_CATALOG}
        insight = build_fallback_insight(3, responses, None)

        self.assertIsNotNone(insight)
        self.assertEqual(insight.challengeLabel, "Consistent Revenue Execution")
        self.assertEqual(insight.source, "heuristic")
        self.assertEqual(insight.confidence, 55)
        self.assertEqual(insight.questionRange, ("q10", "q11", "q12", "q13", "q14"))

    def test_score_drop_between_batches(self) -> None:
        responses = {question.id: 4 for question in QUESTION_CATALOG[:9]}
        responses.update({question.id: 1 for question in QUESTION_CATALOG[9:]})
        timings = {question.id: 3000 for question in QUESTION_CATALOG}

        stats = compute_batch_statistics(3, responses, timings)
        self.assertEqual(stats.score_delta, -75.0)
        self.assertEqual(stats.slow_answers, 0)

        insight = build_fallback_insight(3, responses, timings)
        self.assertEqual(insight.challengeLabel, "Revenue Execution Drop-Off")
        self.assertEqual(insight.confidence, 65)
        self.assertIn("75 points", insight.text)

    def test_slow_answers_produce_decision_pattern(self) -> None:
        responses = {question.id: 2 for question in QUESTION_CATALOG[:9]}
        timings = {question.id: 2000 for question in QUESTION_CATALOG[:9]}
        timings["q5"] = 20000
        timings["q6"] = 20000

        insight = build_fallback_insight(2, responses, timings)
        self.assertEqual(insight.challengeLabel, "Decision Pattern Analysis")
        self.assertIn("2 questions", insight.text)
        self.assertIn("skill gaps", insight.text)

    def test_buyer_profile_insight_for_second_batch(self) -> None:
        responses = {question.id: 3 for question in QUESTION_CATALOG[:9]}
        content = GeneratedContent(
            icpGenerated="Enterprise healthcare networks running legacy EHR systems",
            tbpGenerated="VP of Operations",
            buyerGap=65,
        )

        insight = build_fallback_insight(2, responses, {}, content)
        self.assertEqual(insight.challengeLabel, "Critical Buyer Reality Check")
        self.assertIn("65% gap", insight.text)
        self.assertIn("6+ stakeholders", insight.text)

    def test_profile_without_cues_falls_through(self) -> None:
        responses = {question.id: 3 for question in QUESTION_CATALOG[:9]}
        content = GeneratedContent(icpGenerated="Regional bakeries", buyerGap=20)

        insight = build_fallback_insight(2, responses, {}, content)
        self.assertEqual(insight.challengeLabel, "Consistent Value Articulation")


if __name__ == "__main__":
    unittest.main()
