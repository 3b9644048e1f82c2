import unittest

from readiness.scoring.gap_analyzer import GAP_CEILING, GAP_FLOOR, compute_gap, overlap_ratio


class GapAnalyzerTests(unittest.TestCase):
    def test_empty_generated_text_hits_ceiling(self) -> None:
        self.assertEqual(compute_gap("we sell software to enterprise companies", ""), 75)
        self.assertEqual(compute_gap("", "Enterprise companies with complex procurement"), 75)
        self.assertEqual(compute_gap(None, None), 75)

    def test_identical_text_is_floored(self) -> None:
        text = "enterprise finance teams struggling with revenue forecasting"
        self.assertEqual(overlap_ratio(text, text), 1.0)
        self.assertEqual(compute_gap(text, text), GAP_FLOOR)

    def test_partial_overlap_matches_substrings_both_ways(self) -> None:
        # "enterprise" is contained in "enterprises"; "platform" has no counterpart.
        self.assertEqual(compute_gap("Enterprise software platform", "software for enterprises"), 33)

    def test_short_tokens_are_ignored(self) -> None:
        self.assertEqual(overlap_ratio("we to a", "we to a"), 0.0)

    def test_gap_always_within_bounds(self) -> None:
        samples = [
            ("", ""),
            ("data", "data"),
            ("logistics teams", "procurement leaders in healthcare"),
            ("b2b saas for developers", "developers building saas products for b2b buyers"),
            ("x" * 200, "y" * 200),
        ]
        for user_text, generated_text in samples:
            with self.subTest(user_text=user_text[:20]):
                gap = compute_gap(user_text, generated_text)
                self.assertGreaterEqual(gap, GAP_FLOOR)
                self.assertLessEqual(gap, GAP_CEILING)


if __name__ == "__main__":
    unittest.main()
