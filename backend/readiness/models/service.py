from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from readiness.models.assessment import AssessmentResult, GeneratedContent, ProductInfo, UserInfo


class AssessmentStartRequest(BaseModel):
    sessionId: str = Field(..., min_length=1)
    startTime: datetime


class AssessmentStartResponse(BaseModel):
    success: bool
    sessionId: str
    recordId: str


class AssessmentSubmitRequest(BaseModel):
    sessionId: str = Field(..., min_length=1)
    responses: dict[str, int]
    results: AssessmentResult
    timestamp: datetime
    userInfo: UserInfo | None = None
    productInfo: ProductInfo | None = None
    questionTimings: dict[str, int] | None = None
    generatedContent: GeneratedContent | None = None


class AssessmentSubmitResponse(BaseModel):
    success: bool
    recordId: str
    sessionId: str


class BatchResponseItem(BaseModel):
    questionId: str
    questionText: str
    response: int


class InsightRequestUserInfo(BaseModel):
    company: str
    productName: str
    businessModel: str


class InsightRequest(BaseModel):
    sessionId: str
    responses: list[BatchResponseItem]
    userInfo: InsightRequestUserInfo
    previousInsights: list[dict[str, Any]] = Field(default_factory=list)


class InsightMetadata(BaseModel):
    batchNumber: int
    questionRange: list[str] | str | None = None
    generatedAt: datetime | None = None
    processingTime: float | None = None


class InsightServiceResponse(BaseModel):
    success: bool
    insight: dict[str, Any] | None = None
    metadata: InsightMetadata | None = None


class ProfileRequest(BaseModel):
    sessionId: str
    productName: str
    productDescription: str
    businessModel: str
    keyFeatures: str | None = None
    idealCustomerDescription: str | None = None


class ProfileResponse(BaseModel):
    icpGenerated: str | None = None
    tbpGenerated: str | None = None


class WelcomeData(BaseModel):
    sessionId: str
    company: str
    qualification: str
    overallScore: int
    topChallenge: str
    icpContent: str | None = None
    tbpContent: str | None = None
    accessToken: str | None = None
