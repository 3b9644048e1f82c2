from __future__ import annotations

import logging
import secrets
import string
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from readiness.errors import InvalidTransitionError, ValidationFailure
from readiness.models.assessment import (
    AssessmentResult,
    GeneratedContent,
    Insight,
    ProductInfo,
    SessionStep,
    SessionView,
    UserInfo,
    utcnow,
)
from readiness.scoring.questions import (
    QUESTION_CATALOG,
    TOTAL_QUESTIONS,
    VALID_RESPONSES,
    Question,
    milestone_batch,
)
from readiness.scoring.score_calculator import compute_assessment_score

LOGGER = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class ProductInfoSubmitted:
    session_id: str


@dataclass(frozen=True)
class MilestoneReached:
    session_id: str
    batch_number: int
    answered_count: int


@dataclass(frozen=True)
class ResultsReached:
    session_id: str


SessionEvent = ProductInfoSubmitted | MilestoneReached | ResultsReached
SessionListener = Callable[[SessionEvent], None]


def new_session_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"assess_{int(time.time() * 1000)}_{suffix}"


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class Session:
    session_id: str
    started_at: datetime
    step: SessionStep = SessionStep.PRODUCT_INPUT
    question_index: int = 0
    responses: dict[str, int] = field(default_factory=dict)
    question_timings: dict[str, int] = field(default_factory=dict)
    product_info: ProductInfo | None = None
    user_info: UserInfo | None = None
    generated_content: GeneratedContent | None = None
    insights: dict[int, Insight] = field(default_factory=dict)
    discarded: bool = False


class SessionStateMachine:
    """Single writer for one assessment session.

    Transitions are synchronous. Side effects that need I/O are announced to
    subscribed listeners as events and never awaited here.
    """

    def __init__(
        self,
        session_id: str | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._clock = clock or _monotonic_ms
        self._session = Session(session_id=session_id or new_session_id(), started_at=utcnow())
        self._listeners: list[SessionListener] = []
        self._question_started_at: float | None = None
        self._cached_result: AssessmentResult | None = None

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def step(self) -> SessionStep:
        return self._session.step

    @property
    def question_index(self) -> int:
        return self._session.question_index

    @property
    def current_question(self) -> Question | None:
        if self._session.step != SessionStep.ASSESSMENT:
            return None
        return QUESTION_CATALOG[self._session.question_index]

    @property
    def answered_count(self) -> int:
        return len(self._session.responses)

    @property
    def discarded(self) -> bool:
        return self._session.discarded

    @property
    def results(self) -> AssessmentResult:
        if self._cached_result is None:
            self._cached_result = compute_assessment_score(self._session.responses)
        return self._cached_result

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def view(self) -> SessionView:
        session = self._session
        return SessionView(
            sessionId=session.session_id,
            step=session.step,
            questionIndex=session.question_index,
            responses=dict(session.responses),
            questionTimings=dict(session.question_timings),
            productInfo=session.product_info,
            userInfo=session.user_info,
            generatedContent=session.generated_content,
            insights=tuple(session.insights[batch] for batch in sorted(session.insights)),
            startedAt=session.started_at,
            discarded=session.discarded,
        )

    def submit_product_info(self, info: ProductInfo | Mapping[str, Any]) -> ProductInfo:
        self._require_step(SessionStep.PRODUCT_INPUT, "submit product info")
        product_info = _coerce(ProductInfo, info)

        self._session.product_info = product_info
        self._session.step = SessionStep.ASSESSMENT
        self._session.question_index = 0
        self._start_question_timer()
        LOGGER.info("Session %s started assessment (%s)", self.session_id, product_info.businessModel)
        self._emit(ProductInfoSubmitted(session_id=self.session_id))
        return product_info

    def answer_question(self, question_id: str | None, value: int) -> AssessmentResult:
        self._require_step(SessionStep.ASSESSMENT, "answer a question")
        question = QUESTION_CATALOG[self._session.question_index]
        if question_id is not None and question_id != question.id:
            raise ValidationFailure(
                f"Question {question_id!r} is not the current question ({question.id})",
                field="questionId",
            )
        if isinstance(value, bool) or not isinstance(value, int) or value not in VALID_RESPONSES:
            raise ValidationFailure("Response value must be one of 1, 2, 3, 4", field="value")

        elapsed = self._elapsed_ms()
        is_new_answer = question.id not in self._session.responses
        self._session.question_timings[question.id] = elapsed
        self._session.responses[question.id] = value
        self._cached_result = None

        answered = self.answered_count
        batch_number = milestone_batch(answered) if is_new_answer else None

        if self._session.question_index >= TOTAL_QUESTIONS - 1:
            self._session.step = SessionStep.USER_INFO
            self._question_started_at = None
            LOGGER.info("Session %s finished all %d questions", self.session_id, TOTAL_QUESTIONS)
        else:
            self._session.question_index += 1
            self._start_question_timer()

        if batch_number is not None:
            LOGGER.info("Session %s reached milestone %d (batch %d)", self.session_id, answered, batch_number)
            self._emit(
                MilestoneReached(
                    session_id=self.session_id,
                    batch_number=batch_number,
                    answered_count=answered,
                )
            )
        return self.results

    def go_to_previous_question(self) -> int:
        self._require_step(SessionStep.ASSESSMENT, "go to the previous question")
        if self._session.question_index > 0:
            self._session.question_index -= 1
            self._start_question_timer()
        return self._session.question_index

    def restart_questions(self) -> int:
        self._require_step(SessionStep.ASSESSMENT, "return to the first question")
        self._session.question_index = 0
        self._start_question_timer()
        return 0

    def submit_user_info(self, info: UserInfo | Mapping[str, Any]) -> UserInfo:
        self._require_step(SessionStep.USER_INFO, "submit user info")
        user_info = _coerce(UserInfo, info)
        self._session.user_info = user_info
        self._enter_results()
        return user_info

    def skip_user_info(self) -> None:
        self._require_step(SessionStep.USER_INFO, "skip user info")
        self._enter_results()

    def incorporate_insight(self, insight: Insight) -> bool:
        if self._session.discarded:
            LOGGER.debug("Dropping stale batch %d insight for %s", insight.batchNumber, self.session_id)
            return False
        if insight.batchNumber in self._session.insights:
            return False
        self._session.insights[insight.batchNumber] = insight
        return True

    def incorporate_generated_content(self, content: GeneratedContent) -> bool:
        if self._session.discarded:
            LOGGER.debug("Dropping stale generated content for %s", self.session_id)
            return False
        if self._session.generated_content is not None:
            return False
        self._session.generated_content = content
        return True

    def discard(self) -> None:
        self._session.discarded = True
        self._listeners.clear()
        self._question_started_at = None

    def _enter_results(self) -> None:
        self._session.step = SessionStep.RESULTS
        LOGGER.info(
            "Session %s reached results (overall %d, %s)",
            self.session_id,
            self.results.overallScore,
            self.results.qualification,
        )
        self._emit(ResultsReached(session_id=self.session_id))

    def _require_step(self, expected: SessionStep, action: str) -> None:
        if self._session.discarded:
            raise InvalidTransitionError(f"Cannot {action}: session was discarded", field="step")
        if self._session.step != expected:
            raise InvalidTransitionError(
                f"Cannot {action} while in {self._session.step.value}",
                field="step",
            )

    def _start_question_timer(self) -> None:
        self._question_started_at = self._clock()

    def _elapsed_ms(self) -> int:
        if self._question_started_at is None:
            return 0
        return max(0, int(round(self._clock() - self._question_started_at)))

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                LOGGER.exception("Session listener failed for %s", type(event).__name__)


def _coerce(model: type, payload: Any) -> Any:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = exc.errors()
        field_name = None
        if errors and errors[0].get("loc"):
            field_name = str(errors[0]["loc"][0])
        message = errors[0].get("msg", "Invalid input") if errors else "Invalid input"
        raise ValidationFailure(f"{field_name or 'input'}: {message}", field=field_name) from exc
