from readiness.scoring.gap_analyzer import compute_gap, overlap_ratio
from readiness.scoring.insight_heuristics import build_fallback_insight, compute_batch_statistics
from readiness.scoring.messaging import build_personalized_messaging
from readiness.scoring.questions import (
    QUESTION_CATALOG,
    Question,
    batch_question_ids,
    batch_questions,
    milestone_batch,
)
from readiness.scoring.score_calculator import (
    batch_score,
    compute_assessment_score,
    professional_level,
    score_to_qualification,
)
from readiness.scoring.synthesizer import synthesize

__all__ = [
    "QUESTION_CATALOG",
    "Question",
    "batch_question_ids",
    "batch_questions",
    "batch_score",
    "build_fallback_insight",
    "build_personalized_messaging",
    "compute_assessment_score",
    "compute_batch_statistics",
    "compute_gap",
    "milestone_batch",
    "overlap_ratio",
    "professional_level",
    "score_to_qualification",
    "synthesize",
]
