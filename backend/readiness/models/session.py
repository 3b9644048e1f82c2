from pydantic import BaseModel, Field, StrictInt

from readiness.models.assessment import AssessmentResult, GeneratedContent, InsightSlot, SessionStep


class SessionCreateResponse(BaseModel):
    sessionId: str
    step: SessionStep
    message: str
    totalQuestions: int


class QuestionPayload(BaseModel):
    questionId: str
    questionText: str
    category: str
    questionNumber: int
    responseOptions: dict[int, str] = Field(default_factory=dict)


class AnswerRequest(BaseModel):
    questionId: str | None = None
    value: StrictInt


class SessionStateResponse(BaseModel):
    sessionId: str
    step: SessionStep
    questionIndex: int
    answeredCount: int
    totalQuestions: int
    currentQuestion: QuestionPayload | None = None
    results: AssessmentResult
    generatedContent: GeneratedContent | None = None
    insights: list[InsightSlot] = Field(default_factory=list)
    isGeneratingInsight: bool = False


class DiscardResponse(BaseModel):
    sessionId: str
    discarded: bool
