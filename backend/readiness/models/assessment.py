import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

Qualification = Literal["Qualified", "Promising", "Developing", "Early Stage"]
Severity = Literal["high", "medium", "low"]
InsightSource = Literal["ai", "heuristic"]
BatchStatus = Literal["pending", "in_flight", "completed", "fallback", "failed"]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStep(str, Enum):
    PRODUCT_INPUT = "ProductInput"
    ASSESSMENT = "Assessment"
    USER_INFO = "UserInfo"
    RESULTS = "Results"


class ProductInfo(BaseModel):
    businessModel: str = Field(..., min_length=1)
    productDescription: str = Field(..., min_length=1)
    productName: str | None = None
    keyFeatures: str | None = None
    idealCustomerDescription: str | None = None
    customerCount: str | None = None
    distinguishingFeature: str | None = None

    @field_validator("businessModel", "productDescription")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class UserInfo(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1)
    role: str | None = None

    @field_validator("name", "company")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("email")
    @classmethod
    def _require_email(cls, value: str) -> str:
        candidate = value.strip()
        if not EMAIL_PATTERN.match(candidate):
            raise ValueError("Please enter a valid email")
        return candidate


class AssessmentResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    buyerScore: int
    techScore: int
    overallScore: int
    qualification: Qualification


class GeneratedContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    icpGenerated: str | None = None
    tbpGenerated: str | None = None
    buyerGap: int | None = Field(default=None, ge=15, le=75)

    def combined_text(self) -> str:
        return " ".join(part for part in (self.icpGenerated, self.tbpGenerated) if part)


class Insight(BaseModel):
    """One diagnostic statement per batch. Immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    batchNumber: int = Field(..., ge=1, le=3)
    questionRange: tuple[str, ...] = ()
    text: str = Field(..., min_length=1, validation_alias=AliasChoices("text", "insight"))
    challengeLabel: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("challengeLabel", "challengeIdentified"),
    )
    confidence: int = Field(..., ge=0, le=100)
    businessImpact: str = ""
    generatedAt: datetime = Field(default_factory=utcnow)
    source: InsightSource = "ai"

    @field_validator("confidence", mode="before")
    @classmethod
    def _round_confidence(cls, value: Any) -> Any:
        if isinstance(value, float):
            return int(round(value))
        return value

    def to_service_payload(self) -> dict[str, Any]:
        return {
            "batchNumber": self.batchNumber,
            "questionRange": list(self.questionRange),
            "insight": self.text,
            "challengeIdentified": self.challengeLabel,
            "confidence": self.confidence,
            "businessImpact": self.businessImpact,
            "generatedAt": self.generatedAt.isoformat(),
            "source": self.source,
        }


class InsightSlot(BaseModel):
    batchNumber: int
    status: BatchStatus
    insight: Insight | None = None

    @property
    def pending(self) -> bool:
        return self.insight is None


class Challenge(BaseModel):
    name: str
    severity: Severity
    evidence: str
    pattern: str
    revenueImpact: str


class Recommendation(BaseModel):
    name: str
    description: str
    whyRecommended: str
    expectedImprovement: str
    directLink: str


class HiddenInsight(BaseModel):
    type: Literal["unconscious-incompetence", "overconfidence", "industry-comparison", "aha-moment"]
    title: str
    description: str


class DiagnosticSynthesis(BaseModel):
    challenges: list[Challenge] = Field(..., min_length=1, max_length=3)
    recommendations: list[Recommendation] = Field(default_factory=list, max_length=3)
    hiddenInsights: list[HiddenInsight] = Field(default_factory=list, max_length=2)


class SessionView(BaseModel):
    """Read-only snapshot of a session handed to components other than the state machine."""

    model_config = ConfigDict(frozen=True)

    sessionId: str
    step: SessionStep
    questionIndex: int
    responses: dict[str, int] = Field(default_factory=dict)
    questionTimings: dict[str, int] = Field(default_factory=dict)
    productInfo: ProductInfo | None = None
    userInfo: UserInfo | None = None
    generatedContent: GeneratedContent | None = None
    insights: tuple[Insight, ...] = ()
    startedAt: datetime
    discarded: bool = False


class DiagnosticReport(BaseModel):
    sessionId: str
    results: AssessmentResult
    professionalLevel: str
    generatedContent: GeneratedContent | None = None
    challenges: list[Challenge]
    recommendations: list[Recommendation]
    hiddenInsights: list[HiddenInsight]
    insights: list[InsightSlot]
    messaging: dict[str, Any] = Field(default_factory=dict)
    submissionNotice: str | None = None
    generatedAt: datetime = Field(default_factory=utcnow)
