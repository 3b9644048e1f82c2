from fastapi import APIRouter, HTTPException, status

from readiness.errors import SessionMissingError, ValidationFailure
from readiness.models.assessment import DiagnosticReport, ProductInfo, UserInfo
from readiness.models.session import (
    AnswerRequest,
    DiscardResponse,
    QuestionPayload,
    SessionCreateResponse,
    SessionStateResponse,
)
from readiness.scoring.questions import RESPONSE_LABELS, TOTAL_QUESTIONS
from readiness.services.assessment_flow import AssessmentFlow
from readiness.services.session_store import session_store

router = APIRouter(prefix="/assessments", tags=["Assessments"])


@router.post("/start", response_model=SessionCreateResponse, status_code=status.HTTP_201_CREATED)
async def start_assessment() -> SessionCreateResponse:
    flow = session_store.create_flow()
    return SessionCreateResponse(
        sessionId=flow.session_id,
        step=flow.machine.step,
        message="Assessment started",
        totalQuestions=TOTAL_QUESTIONS,
    )


@router.post("/{sessionId}/product", response_model=SessionStateResponse)
async def submit_product_info(sessionId: str, payload: ProductInfo) -> SessionStateResponse:
    flow = _get_flow(sessionId)
    try:
        flow.machine.submit_product_info(payload)
    except ValidationFailure as exc:
        raise _validation_error(exc) from exc
    return _state(flow)


@router.post("/{sessionId}/answers", response_model=SessionStateResponse)
async def answer_question(sessionId: str, payload: AnswerRequest) -> SessionStateResponse:
    flow = _get_flow(sessionId)
    try:
        flow.machine.answer_question(payload.questionId, payload.value)
    except ValidationFailure as exc:
        raise _validation_error(exc) from exc
    return _state(flow)


@router.post("/{sessionId}/previous", response_model=SessionStateResponse)
async def previous_question(sessionId: str) -> SessionStateResponse:
    flow = _get_flow(sessionId)
    try:
        flow.machine.go_to_previous_question()
    except ValidationFailure as exc:
        raise _validation_error(exc) from exc
    return _state(flow)


@router.post("/{sessionId}/restart", response_model=SessionStateResponse)
async def restart_questions(sessionId: str) -> SessionStateResponse:
    flow = _get_flow(sessionId)
    try:
        flow.machine.restart_questions()
    except ValidationFailure as exc:
        raise _validation_error(exc) from exc
    return _state(flow)


@router.post("/{sessionId}/user-info", response_model=SessionStateResponse)
async def submit_user_info(sessionId: str, payload: UserInfo) -> SessionStateResponse:
    flow = _get_flow(sessionId)
    try:
        flow.machine.submit_user_info(payload)
    except ValidationFailure as exc:
        raise _validation_error(exc) from exc
    return _state(flow)


@router.post("/{sessionId}/user-info/skip", response_model=SessionStateResponse)
async def skip_user_info(sessionId: str) -> SessionStateResponse:
    flow = _get_flow(sessionId)
    try:
        flow.machine.skip_user_info()
    except ValidationFailure as exc:
        raise _validation_error(exc) from exc
    return _state(flow)


@router.get("/{sessionId}/state", response_model=SessionStateResponse)
async def get_state(sessionId: str) -> SessionStateResponse:
    return _state(_get_flow(sessionId))


@router.get("/{sessionId}/report", response_model=DiagnosticReport)
async def get_report(sessionId: str) -> DiagnosticReport:
    flow = _get_flow(sessionId)
    await flow.drain()
    try:
        return flow.report()
    except SessionMissingError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "restart": True},
        ) from exc


@router.delete("/{sessionId}", response_model=DiscardResponse)
async def discard_session(sessionId: str) -> DiscardResponse:
    if not session_store.discard_flow(sessionId):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return DiscardResponse(sessionId=sessionId, discarded=True)


def _get_flow(session_id: str) -> AssessmentFlow:
    flow = session_store.get_flow(session_id)
    if flow is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return flow


def _validation_error(exc: ValidationFailure) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"message": str(exc), "field": exc.field},
    )


def _state(flow: AssessmentFlow) -> SessionStateResponse:
    machine = flow.machine
    view = machine.view()
    question = machine.current_question
    return SessionStateResponse(
        sessionId=view.sessionId,
        step=view.step,
        questionIndex=view.questionIndex,
        answeredCount=machine.answered_count,
        totalQuestions=TOTAL_QUESTIONS,
        currentQuestion=(
            QuestionPayload(
                questionId=question.id,
                questionText=question.text,
                category=question.category,
                questionNumber=view.questionIndex + 1,
                responseOptions=dict(RESPONSE_LABELS),
            )
            if question is not None
            else None
        ),
        results=machine.results,
        generatedContent=view.generatedContent,
        insights=flow.orchestrator.display_slots(),
        isGeneratingInsight=flow.orchestrator.is_generating,
    )
