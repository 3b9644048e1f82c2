from collections.abc import Mapping

from readiness.errors import SessionMissingError
from readiness.models.assessment import DiagnosticReport, InsightSlot, SessionStep, SessionView
from readiness.scoring.messaging import build_personalized_messaging
from readiness.scoring.questions import BATCH_BOUNDS
from readiness.scoring.score_calculator import compute_assessment_score, professional_level
from readiness.scoring.synthesizer import synthesize


def build_diagnostic_report(
    view: SessionView,
    batch_status: Mapping[int, str] | None = None,
    submission_notice: str | None = None,
) -> DiagnosticReport:
    """Final results payload for a session that has reached Results.

    Batches without an incorporated insight appear as placeholder slots whose
    status comes from ``batch_status`` (pending when unknown).
    """
    if view.step != SessionStep.RESULTS:
        raise SessionMissingError(f"Session {view.sessionId} has not reached results (step {view.step.value})")
    if not view.responses:
        raise SessionMissingError(f"Session {view.sessionId} has no responses")

    results = compute_assessment_score(view.responses)
    content = view.generatedContent
    synthesis = synthesize(
        results,
        content.buyerGap if content is not None else None,
        content,
        view.questionTimings,
        business_model=view.productInfo.businessModel if view.productInfo is not None else None,
    )
    return DiagnosticReport(
        sessionId=view.sessionId,
        results=results,
        professionalLevel=professional_level(results.overallScore),
        generatedContent=content,
        challenges=synthesis.challenges,
        recommendations=synthesis.recommendations,
        hiddenInsights=synthesis.hiddenInsights,
        insights=insight_slots(view, batch_status),
        messaging=build_personalized_messaging(results),
        submissionNotice=submission_notice,
    )


def insight_slots(view: SessionView, batch_status: Mapping[int, str] | None = None) -> list[InsightSlot]:
    statuses = batch_status or {}
    by_batch = {insight.batchNumber: insight for insight in view.insights}
    slots = []
    for batch_number in sorted(BATCH_BOUNDS):
        insight = by_batch.get(batch_number)
        if insight is None:
            status = statuses.get(batch_number, "pending")
            if status in ("completed", "fallback"):
                status = "pending"
        else:
            status = "fallback" if insight.source == "heuristic" else "completed"
        slots.append(InsightSlot(batchNumber=batch_number, status=status, insight=insight))
    return slots
