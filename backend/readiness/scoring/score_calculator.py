import math
from collections.abc import Mapping
from dataclasses import dataclass

from readiness.models.assessment import AssessmentResult
from readiness.scoring.questions import QUESTION_CATALOG, VALID_RESPONSES, batch_questions


@dataclass(frozen=True)
class ScoreBand:
    min_score: float
    label: str


QUALIFICATION_BANDS: tuple[ScoreBand, ...] = (
    ScoreBand(min_score=80.0, label="Qualified"),
    ScoreBand(min_score=60.0, label="Promising"),
    ScoreBand(min_score=40.0, label="Developing"),
    ScoreBand(min_score=float("-inf"), label="Early Stage"),
)

PROFESSIONAL_LEVELS: tuple[ScoreBand, ...] = (
    ScoreBand(min_score=90.0, label="Master"),
    ScoreBand(min_score=80.0, label="Advanced"),
    ScoreBand(min_score=70.0, label="Proficient"),
    ScoreBand(min_score=60.0, label="Developing"),
    ScoreBand(min_score=50.0, label="Foundation"),
    ScoreBand(min_score=float("-inf"), label="Beginning"),
)


def compute_assessment_score(responses: Mapping[str, int]) -> AssessmentResult:
    """Weighted readiness score for a full or partial response map.

    Unanswered questions contribute zero, so this is safe to call after every
    answer for live display.
    """
    buyer_total, tech_total = _category_totals(responses)
    overall_score = round_half_up(buyer_total + tech_total)
    return AssessmentResult(
        buyerScore=round_half_up(buyer_total),
        techScore=round_half_up(tech_total),
        overallScore=overall_score,
        qualification=score_to_qualification(overall_score),
    )


def score_to_qualification(overall_score: float) -> str:
    return _band_for(overall_score, QUALIFICATION_BANDS).label


def professional_level(score: float) -> str:
    return _band_for(score, PROFESSIONAL_LEVELS).label


def batch_score(batch_number: int, responses: Mapping[str, int]) -> float:
    """Percentage of the achievable points earned inside one insight batch."""
    questions = batch_questions(batch_number)
    achievable = sum(question.weight for question in questions)
    if achievable <= 0:
        return 0.0
    earned = sum(_points(question.weight, responses.get(question.id)) for question in questions)
    return round((earned / achievable) * 100.0, 2)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _category_totals(responses: Mapping[str, int]) -> tuple[float, float]:
    buyer_total = 0.0
    tech_total = 0.0
    for question in QUESTION_CATALOG:
        points = _points(question.weight, responses.get(question.id))
        if question.category == "buyer":
            buyer_total += points
        else:
            tech_total += points
    return buyer_total, tech_total


def _points(weight: float, response: int | None) -> float:
    if response not in VALID_RESPONSES:
        return 0.0
    return (response / 4) * weight


def _band_for(score: float, bands: tuple[ScoreBand, ...]) -> ScoreBand:
    for band in bands:
        if score >= band.min_score:
            return band
    return bands[-1]
