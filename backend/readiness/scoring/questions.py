from dataclasses import dataclass
from typing import Literal

Category = Literal["buyer", "tech"]


@dataclass(frozen=True)
class Question:
    id: str
    category: Category
    text: str
    weight: float


# Buyer weights sum to 85.71 and tech weights to 40, so a maximal response set
# scores above 100. Downstream thresholds rely on this literal table.
QUESTION_CATALOG: tuple[Question, ...] = (
    Question(
        id="q1",
        category="buyer",
        text="I can name the exact three pain points that cost my buyers the most money annually",
        weight=8.57,
    ),
    Question(
        id="q2",
        category="buyer",
        text="I know the specific job titles, LinkedIn headlines, and reporting structure of my champions",
        weight=8.57,
    ),
    Question(
        id="q3",
        category="buyer",
        text=(
            "I can map out the exact 7-step evaluation process my buyers follow, "
            "including who signs off at each stage"
        ),
        weight=8.57,
    ),
    Question(
        id="q4",
        category="buyer",
        text="I have calculated the specific dollar amount my solution saves/earns per customer per quarter",
        weight=8.57,
    ),
    Question(
        id="q5",
        category="buyer",
        text="I know the exact internal event or metric threshold that triggers buyers to seek my solution urgently",
        weight=8.57,
    ),
    Question(
        id="q6",
        category="buyer",
        text="I can list my top 3 competitors and explain why buyers choose them over me in specific scenarios",
        weight=8.57,
    ),
    Question(
        id="q7",
        category="buyer",
        text="I know exactly how my product features map to executive KPIs like CAC, NRR, or operational efficiency",
        weight=8.57,
    ),
    Question(
        id="q8",
        category="tech",
        text="I can explain my API architecture to a CFO in terms of cost savings and risk reduction",
        weight=10.0,
    ),
    Question(
        id="q9",
        category="tech",
        text="I have a one-page business case that quantifies value without mentioning technology stack",
        weight=10.0,
    ),
    Question(
        id="q10",
        category="tech",
        text="I can demonstrate my product's value in under 5 minutes using only business metrics",
        weight=10.0,
    ),
    Question(
        id="q11",
        category="tech",
        text="I have 3+ case studies showing specific percentage improvements in revenue, costs, or time",
        weight=10.0,
    ),
    Question(
        id="q12",
        category="buyer",
        text="I conduct 5+ customer discovery calls per week and document specific quotes about their problems",
        weight=8.57,
    ),
    Question(
        id="q13",
        category="buyer",
        text="I have a documented ICP that includes company size, tech stack, team structure, and budget range",
        weight=8.57,
    ),
    Question(
        id="q14",
        category="buyer",
        text="I track time-to-value, feature adoption rate, and expansion revenue for each customer cohort",
        weight=8.58,
    ),
)

TOTAL_QUESTIONS = len(QUESTION_CATALOG)

VALID_RESPONSES = frozenset({1, 2, 3, 4})
RESPONSE_LABELS = {
    4: "Definitely Yes",
    3: "Yes, I believe so",
    2: "Not Sure",
    1: "Definitely No",
}

# Half-open catalog index ranges per insight batch.
BATCH_BOUNDS: dict[int, tuple[int, int]] = {
    1: (0, 4),
    2: (4, 9),
    3: (9, 14),
}
MILESTONE_BATCHES: dict[int, int] = {end: batch for batch, (_, end) in BATCH_BOUNDS.items()}


def batch_questions(batch_number: int) -> tuple[Question, ...]:
    if batch_number not in BATCH_BOUNDS:
        raise ValueError(f"Unknown insight batch: {batch_number}")
    start, end = BATCH_BOUNDS[batch_number]
    return QUESTION_CATALOG[start:end]


def batch_question_ids(batch_number: int) -> tuple[str, ...]:
    return tuple(question.id for question in batch_questions(batch_number))


def milestone_batch(answered_count: int) -> int | None:
    return MILESTONE_BATCHES.get(answered_count)
