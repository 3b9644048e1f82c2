import statistics
from collections.abc import Mapping
from dataclasses import dataclass

from readiness.models.assessment import GeneratedContent, Insight
from readiness.scoring.questions import batch_question_ids
from readiness.scoring.score_calculator import batch_score

# Batch 1 has no local fallback: a failed first batch stays pending.
FALLBACK_BATCHES = frozenset({2, 3})
HEURISTIC_BASE_CONFIDENCE = 55
HEURISTIC_MAX_CONFIDENCE = 70
SLOW_ANSWER_FACTOR = 1.5

BATCH_THEMES = {
    2: "Value Articulation",
    3: "Revenue Execution",
}

BUYER_PROFILE_CUES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("enterprise",), "have complex procurement processes with 6+ stakeholders"),
    (("legacy",), "are constrained by legacy systems and need gradual migration paths"),
    (("developer", "engineering"), "evaluate technical architecture before business value"),
    (("smb", "small business"), "have limited budgets and need immediate value within 30 days"),
    (("silo", "disconnect"), "struggle with disconnected tools and data silos across departments"),
    (("visibility", "insight"), "lack real-time visibility into critical business metrics"),
    (("churn", "retention"), "are losing 20%+ annual revenue to preventable customer churn"),
    (("pilot", "proof of concept"), "require proof-of-concept before committing to annual contracts"),
)


@dataclass(frozen=True)
class BatchStatistics:
    batch_number: int
    batch_score: float
    previous_score: float | None
    average_time_ms: float
    overall_average_ms: float
    slow_answers: int

    @property
    def score_delta(self) -> float:
        if self.previous_score is None:
            return 0.0
        return round(self.batch_score - self.previous_score, 2)


def compute_batch_statistics(
    batch_number: int,
    responses: Mapping[str, int],
    question_timings: Mapping[str, int] | None,
) -> BatchStatistics:
    timings = question_timings or {}
    batch_ids = batch_question_ids(batch_number)
    batch_timings = [float(timings[qid]) for qid in batch_ids if qid in timings]
    all_timings = [float(value) for value in timings.values()]
    overall_average = statistics.mean(all_timings) if all_timings else 0.0
    previous = batch_score(batch_number - 1, responses) if batch_number > 1 else None
    return BatchStatistics(
        batch_number=batch_number,
        batch_score=batch_score(batch_number, responses),
        previous_score=previous,
        average_time_ms=statistics.mean(batch_timings) if batch_timings else 0.0,
        overall_average_ms=overall_average,
        slow_answers=sum(1 for value in batch_timings if value > overall_average * SLOW_ANSWER_FACTOR),
    )


def build_fallback_insight(
    batch_number: int,
    responses: Mapping[str, int],
    question_timings: Mapping[str, int] | None,
    generated_content: GeneratedContent | None = None,
) -> Insight | None:
    """Locally derived insight used when the text-generation service fails.

    Returns None for batches without a defined fallback.
    """
    if batch_number not in FALLBACK_BATCHES:
        return None

    stats = compute_batch_statistics(batch_number, responses, question_timings)
    confidence = HEURISTIC_BASE_CONFIDENCE
    if stats.average_time_ms > 0:
        confidence += 10
    confidence = min(confidence, HEURISTIC_MAX_CONFIDENCE)

    if batch_number == 2 and generated_content is not None and generated_content.icpGenerated:
        profile_insight = _buyer_profile_insight(generated_content, confidence)
        if profile_insight is not None:
            return profile_insight

    if stats.slow_answers >= 2:
        return _insight(
            batch_number=batch_number,
            label="Decision Pattern Analysis",
            text=(
                f"You spent extra time on {stats.slow_answers} questions in this section. "
                + (
                    "These hesitation points reveal specific skill gaps."
                    if stats.batch_score < 60
                    else "This indicates deep consideration of complex revenue concepts."
                )
            ),
            impact="Hesitation in live buyer conversations lengthens sales cycles and weakens conviction.",
            confidence=confidence,
        )
    return _score_delta_insight(stats, confidence)


def _score_delta_insight(stats: BatchStatistics, confidence: int) -> Insight:
    theme = BATCH_THEMES[stats.batch_number]
    delta = stats.score_delta
    if delta <= -10:
        label = f"{theme} Drop-Off"
        text = (
            f"Your readiness drops {abs(delta):.0f} points in {theme.lower()} compared with the "
            f"previous section ({stats.batch_score:.0f}% vs {stats.previous_score:.0f}%)."
        )
        impact = "Closing this gap is the fastest lever for shorter sales cycles."
    elif delta >= 10:
        label = f"{theme} Strength"
        text = (
            f"{theme} is a relative strength at {stats.batch_score:.0f}%, "
            f"{delta:.0f} points above the previous section."
        )
        impact = "Lead buyer conversations with this strength to build early credibility."
    else:
        label = f"Consistent {theme}"
        text = (
            f"Your {theme.lower()} answers track closely with the rest of the assessment "
            f"at {stats.batch_score:.0f}% of achievable points."
        )
        impact = "Consistent gaps point to a systematic process fix rather than a single weak spot."
    return _insight(
        batch_number=stats.batch_number,
        label=label,
        text=text,
        impact=impact,
        confidence=confidence,
    )


def _buyer_profile_insight(generated_content: GeneratedContent, confidence: int) -> Insight | None:
    profile_text = generated_content.combined_text().lower()
    cues = [
        description
        for keywords, description in BUYER_PROFILE_CUES
        if any(keyword in profile_text for keyword in keywords)
    ]
    if not cues:
        return None

    gap = generated_content.buyerGap
    if gap is not None and gap > 60:
        label = "Critical Buyer Reality Check"
        text = f"Your target buyers {', '.join(cues[:2])}. Your current positioning has a {gap}% gap from these realities."
    elif gap is not None and gap > 40:
        label = "Buyer Profile Analysis"
        text = f"Your ideal customers {' and '.join(cues[:2])}. Your understanding shows a {gap}% variance from this profile."
    else:
        label = "Buyer Alignment Confirmed"
        alignment = (
            f"Your positioning aligns within {100 - gap}% of market reality."
            if gap is not None
            else "Market patterns confirm your understanding."
        )
        text = f"Your ideal customers {' and '.join(cues[:2])}. {alignment}"
    return _insight(
        batch_number=2,
        label=label,
        text=text,
        impact="Aligning messaging with buyer reality raises qualified pipeline.",
        confidence=confidence,
    )


def _insight(batch_number: int, label: str, text: str, impact: str, confidence: int) -> Insight:
    return Insight(
        batchNumber=batch_number,
        questionRange=batch_question_ids(batch_number),
        text=text,
        challengeLabel=label,
        confidence=confidence,
        businessImpact=impact,
        source="heuristic",
    )
