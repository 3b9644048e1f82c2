import logging
import statistics
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace

from readiness.models.assessment import (
    AssessmentResult,
    Challenge,
    DiagnosticSynthesis,
    GeneratedContent,
    HiddenInsight,
    Recommendation,
)

LOGGER = logging.getLogger(__name__)

MAX_CHALLENGES = 3
MAX_RECOMMENDATIONS = 3
MAX_HIDDEN_INSIGHTS = 2
SLOW_ANSWER_FACTOR = 1.5
QUICK_ANSWER_MS = 2000


@dataclass(frozen=True)
class SynthesisSignals:
    """Everything the rule tables read, computed once per synthesis."""

    results: AssessmentResult
    gap: int
    icp_text: str
    business_model: str
    average_time_ms: float
    slow_answers: int
    quick_answers: int
    challenges: tuple[Challenge, ...] = ()

    @property
    def buyer_tech_gap(self) -> int:
        return abs(self.results.buyerScore - self.results.techScore)

    def icp_mentions(self, *keywords: str) -> bool:
        return any(keyword in self.icp_text for keyword in keywords)


@dataclass(frozen=True)
class SynthesisRule:
    name: str
    applies: Callable[[SynthesisSignals], bool]
    produce: Callable[[SynthesisSignals], object]


def synthesize(
    results: AssessmentResult,
    gap: int | None,
    generated_content: GeneratedContent | None,
    question_timings: Mapping[str, int] | None,
    *,
    business_model: str | None = None,
) -> DiagnosticSynthesis:
    signals = build_signals(
        results=results,
        gap=gap,
        generated_content=generated_content,
        question_timings=question_timings,
        business_model=business_model,
    )
    challenges = _run_rules(CHALLENGE_RULES, signals, MAX_CHALLENGES)
    if not challenges:
        challenges = [_continuous_improvement(signals)]
    signals = replace(signals, challenges=tuple(challenges))

    recommendations = _run_rules(RECOMMENDATION_RULES, signals, MAX_RECOMMENDATIONS)
    hidden_insights = _run_rules(HIDDEN_INSIGHT_RULES, signals, MAX_HIDDEN_INSIGHTS)
    LOGGER.debug(
        "Synthesized %d challenges, %d recommendations, %d hidden insights",
        len(challenges),
        len(recommendations),
        len(hidden_insights),
    )
    return DiagnosticSynthesis(
        challenges=challenges,
        recommendations=recommendations,
        hiddenInsights=hidden_insights,
    )


def build_signals(
    results: AssessmentResult,
    gap: int | None,
    generated_content: GeneratedContent | None,
    question_timings: Mapping[str, int] | None,
    business_model: str | None = None,
) -> SynthesisSignals:
    timings = [float(value) for value in (question_timings or {}).values()]
    average = statistics.mean(timings) if timings else 0.0
    icp_text = ""
    if generated_content is not None and generated_content.icpGenerated:
        icp_text = generated_content.icpGenerated.lower()
    return SynthesisSignals(
        results=results,
        gap=int(gap or 0),
        icp_text=icp_text,
        business_model=(business_model or "").strip() or "B2B",
        average_time_ms=average,
        slow_answers=sum(1 for value in timings if value > average * SLOW_ANSWER_FACTOR),
        quick_answers=sum(1 for value in timings if value < QUICK_ANSWER_MS),
    )


def _run_rules(rules: tuple[SynthesisRule, ...], signals: SynthesisSignals, cap: int) -> list:
    produced: list = []
    for rule in rules:
        if len(produced) >= cap:
            break
        if rule.applies(signals):
            produced.append(rule.produce(signals))
    return produced


# -- challenges ---------------------------------------------------------------


def _buyer_misalignment(signals: SynthesisSignals) -> Challenge:
    name = "Buyer Profile Misalignment"
    evidence = f"{signals.gap}% variance between your buyer understanding and market reality"
    if signals.icp_mentions("enterprise", "complex"):
        name = "Enterprise Buyer Complexity"
        evidence = "Your buyers have 6+ stakeholders but your approach targets single champions"
    elif "technical" in signals.icp_text and "founder" in signals.icp_text:
        name = "Technical Buyer Translation"
        evidence = "Your buyers evaluate architecture first but you lead with business value"
    elif signals.icp_mentions("budget", "cost"):
        name = "Economic Buyer Justification"
        evidence = "Your buyers need ROI proof within 90 days but you lack quantified metrics"
    return Challenge(
        name=name,
        severity="high",
        evidence=evidence,
        pattern=f"ICP analysis reveals critical gaps in understanding {signals.business_model} buyer priorities",
        revenueImpact="Alignment could increase qualified pipeline by 40-60%",
    )


def _revenue_foundation(signals: SynthesisSignals) -> Challenge:
    overall = signals.results.overallScore
    if signals.icp_mentions("startup", "series"):
        pattern = "Selling to funded startups requires different proof than enterprise sales"
    else:
        pattern = "Technical founder challenge - strong product vision needs revenue execution"
    return Challenge(
        name="Revenue Foundation Building",
        severity="high" if overall < 50 else "medium",
        evidence=f"Overall readiness at {overall}% indicates foundational gaps",
        pattern=pattern,
        revenueImpact="Foundation improvements typically accelerate revenue 2-3x within 6 months",
    )


def _score_imbalance(signals: SynthesisSignals) -> Challenge:
    results = signals.results
    severity = "high" if signals.buyer_tech_gap > 25 else "medium"
    if results.techScore > results.buyerScore:
        return Challenge(
            name="Customer Empathy Development",
            severity=severity,
            evidence=(
                f"Tech communication ({results.techScore}%) stronger than "
                f"buyer understanding ({results.buyerScore}%)"
            ),
            pattern=(
                "Technical founder pattern - excellent product knowledge, "
                "opportunity to strengthen customer connection"
            ),
            revenueImpact="Enhanced customer empathy typically increases deal closure rates by 20-30%",
        )
    return Challenge(
        name="Technical Value Communication",
        severity=severity,
        evidence=(
            f"Buyer understanding ({results.buyerScore}%) exceeds "
            f"tech communication ({results.techScore}%)"
        ),
        pattern="Strong customer connection with opportunity to improve technical value articulation",
        revenueImpact="Better technical storytelling can reduce sales cycles by 30-40%",
    )


def _decision_confidence(signals: SynthesisSignals) -> Challenge:
    return Challenge(
        name="Decision Confidence",
        severity="high" if signals.slow_answers >= 4 else "medium",
        evidence=f"Extended consideration on {signals.slow_answers} questions indicates thoughtful analysis",
        pattern="Reflective decision-making style - thorough but can benefit from confidence building",
        revenueImpact="Increased confidence in revenue conversations leads to more compelling presentations",
    )


def _mastery_optimization(signals: SynthesisSignals) -> Challenge:
    return Challenge(
        name="Mastery Optimization",
        severity="low",
        evidence=(
            f"Strong performance at {signals.results.overallScore}% "
            "with potential for expert-level execution"
        ),
        pattern="High-achiever profile - ready for advanced revenue strategies",
        revenueImpact="Fine-tuning at this level can unlock premium pricing and enterprise deals",
    )


def _continuous_improvement(signals: SynthesisSignals) -> Challenge:
    return Challenge(
        name="Continuous Improvement",
        severity="medium",
        evidence="Assessment completed - opportunity for strategic revenue enhancement",
        pattern="Growth-minded approach to revenue development",
        revenueImpact="Proactive revenue skill building creates competitive advantages",
    )


CHALLENGE_RULES: tuple[SynthesisRule, ...] = (
    SynthesisRule("buyer_misalignment", lambda s: s.gap > 60, _buyer_misalignment),
    SynthesisRule("revenue_foundation", lambda s: s.results.overallScore < 70, _revenue_foundation),
    SynthesisRule("score_imbalance", lambda s: s.buyer_tech_gap > 15, _score_imbalance),
    SynthesisRule("decision_confidence", lambda s: s.slow_answers >= 2, _decision_confidence),
    SynthesisRule("mastery_optimization", lambda s: s.results.overallScore >= 80, _mastery_optimization),
)


# -- recommendations ----------------------------------------------------------


def _has_challenge(signals: SynthesisSignals, fragment: str) -> bool:
    return any(fragment in challenge.name for challenge in signals.challenges)


def _stakeholder_canvas(signals: SynthesisSignals) -> Recommendation:
    stakeholders = "6+" if "6+" in signals.icp_text else "multiple"
    return Recommendation(
        name="Stakeholder Mapping Canvas",
        description="Visual framework to identify and influence all 7+ decision makers in enterprise deals",
        whyRecommended=f"Your ICP involves {stakeholders} stakeholders but you are targeting single champions",
        expectedImprovement="Reduce deal slippage by 45% through complete stakeholder coverage",
        directLink="/resources/stakeholder-canvas",
    )


def _technical_playbook(signals: SynthesisSignals) -> Recommendation:
    return Recommendation(
        name="Technical Buyer Playbook",
        description="Scripts and frameworks for selling to CTOs, VPs of Engineering, and technical evaluators",
        whyRecommended="Your buyers evaluate architecture first - this playbook speaks their language",
        expectedImprovement="Increase technical champion engagement by 60%",
        directLink="/resources/technical-playbook",
    )


def _discovery_blueprint(signals: SynthesisSignals) -> Recommendation:
    return Recommendation(
        name="Discovery Call Blueprint",
        description="47-question framework to uncover budget, authority, need, and timeline in one call",
        whyRecommended="Transforms every prospect call into qualified pipeline",
        expectedImprovement="Increase discovery-to-demo conversion by 35%",
        directLink="/resources/discovery-blueprint",
    )


def _roi_templates(signals: SynthesisSignals) -> Recommendation:
    return Recommendation(
        name="ROI Calculator Templates",
        description="Pre-built Excel models to quantify value in dollars, hours, and efficiency gains",
        whyRecommended="Convert technical metrics into CFO-friendly business cases",
        expectedImprovement="Shorten approval cycles by 3-4 weeks",
        directLink="/resources/roi-templates",
    )


def _objection_matrix(signals: SynthesisSignals) -> Recommendation:
    return Recommendation(
        name="Objection Handling Matrix",
        description='127 proven responses to "too expensive", "not now", and "need to think about it"',
        whyRecommended="Your assessment shows hesitation patterns - this builds conviction",
        expectedImprovement='Convert 30% more "maybes" into "yes"',
        directLink="/resources/objection-matrix",
    )


def _interview_tracker(signals: SynthesisSignals) -> Recommendation:
    return Recommendation(
        name="Customer Interview Tracker",
        description="Notion template to document and analyze 100+ customer conversations systematically",
        whyRecommended="Build deep buyer empathy through structured customer research",
        expectedImprovement="Gain 20+ buyer insights per week",
        directLink="/resources/interview-tracker",
    )


def _feature_translator(signals: SynthesisSignals) -> Recommendation:
    return Recommendation(
        name="Feature-to-Benefit Translator",
        description="AI-powered tool that converts technical specs into customer value statements",
        whyRecommended="Bridge the gap between what you built and why customers care",
        expectedImprovement="Create compelling value props in 5 minutes instead of hours",
        directLink="/resources/feature-translator",
    )


def _deal_orchestrator(signals: SynthesisSignals) -> Recommendation:
    return Recommendation(
        name="Enterprise Deal Orchestrator",
        description="Advanced framework for managing $100K+ deals with multiple stakeholders",
        whyRecommended="You are ready for bigger deals - this helps you close them",
        expectedImprovement="Increase average deal size by 2.5x",
        directLink="/resources/enterprise-orchestrator",
    )


RECOMMENDATION_RULES: tuple[SynthesisRule, ...] = (
    SynthesisRule(
        "stakeholder_canvas",
        lambda s: s.gap > 50 and s.icp_mentions("enterprise", "stakeholder"),
        _stakeholder_canvas,
    ),
    SynthesisRule(
        "technical_playbook",
        lambda s: s.gap > 50 and s.icp_mentions("technical", "developer"),
        _technical_playbook,
    ),
    SynthesisRule("discovery_blueprint", lambda s: _has_challenge(s, "Buyer"), _discovery_blueprint),
    SynthesisRule("roi_templates", lambda s: _has_challenge(s, "Technical"), _roi_templates),
    SynthesisRule(
        "objection_matrix",
        lambda s: any(challenge.severity == "high" for challenge in s.challenges),
        _objection_matrix,
    ),
    SynthesisRule("interview_tracker", lambda s: s.results.buyerScore < 60, _interview_tracker),
    SynthesisRule("feature_translator", lambda s: s.results.techScore < 60, _feature_translator),
    SynthesisRule("deal_orchestrator", lambda s: s.results.overallScore > 75, _deal_orchestrator),
)


# -- hidden insights ----------------------------------------------------------


def _confidence_gap(signals: SynthesisSignals) -> HiddenInsight:
    return HiddenInsight(
        type="unconscious-incompetence",
        title="Confidence-Competence Gap Detected",
        description=(
            f"You answered {signals.quick_answers} questions very quickly but scored "
            f"{signals.results.overallScore}%. This suggests overconfidence in areas where you "
            "actually have knowledge gaps - a classic technical founder pattern."
        ),
    )


def _industry_comparison(signals: SynthesisSignals) -> HiddenInsight:
    results = signals.results
    buyer_leads = results.buyerScore > results.techScore
    return HiddenInsight(
        type="industry-comparison",
        title="Technical Founder Benchmark",
        description=(
            f"Your profile matches 73% of technical founders: strong product vision ({results.techScore}%) "
            f"but {'weaker' if results.buyerScore < results.techScore else 'stronger'} customer empathy "
            f"({results.buyerScore}%). This is actually "
            f"{'unusual and advantageous' if buyer_leads else 'typical but addressable'}."
        ),
    )


def _acceleration_moment(signals: SynthesisSignals) -> HiddenInsight:
    buyer_leads = signals.results.buyerScore > signals.results.techScore
    strength = "customer empathy strength" if buyer_leads else "technical depth"
    struggle = "technical translation" if buyer_leads else "customer empathy"
    return HiddenInsight(
        type="aha-moment",
        title="Revenue Acceleration Insight",
        description=(
            f"Your {strength} is actually your competitive advantage. Most founders struggle with "
            f"{struggle} - you have the foundation to excel quickly."
        ),
    )


HIDDEN_INSIGHT_RULES: tuple[SynthesisRule, ...] = (
    SynthesisRule(
        "confidence_gap",
        lambda s: s.quick_answers > 8 and s.results.overallScore < 70,
        _confidence_gap,
    ),
    SynthesisRule("industry_comparison", lambda s: True, _industry_comparison),
    SynthesisRule("acceleration_moment", lambda s: s.buyer_tech_gap > 25, _acceleration_moment),
)
