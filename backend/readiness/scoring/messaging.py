from typing import Any

from readiness.models.assessment import AssessmentResult

DEFAULT_WELCOME = {
    "primary": "Welcome to your professional development platform",
    "secondary": "Begin your systematic revenue intelligence journey",
    "urgency": "moderate",
    "tone": "professional",
}
BASE_TOOL_DESCRIPTIONS = {
    "icpTool": "Systematic customer analysis and targeting",
    "costTool": "Financial impact analysis and opportunity quantification",
    "businessCase": "Executive-ready business case development",
}
DEFAULT_NEXT_STEPS = [
    "Begin with systematic customer analysis",
    "Focus on foundational professional development",
    "Build consistent methodology and processes",
]


def build_personalized_messaging(result: AssessmentResult | None) -> dict[str, Any]:
    if result is None:
        return {
            "welcomeMessage": dict(DEFAULT_WELCOME),
            "toolDescriptions": dict(BASE_TOOL_DESCRIPTIONS),
            "nextSteps": list(DEFAULT_NEXT_STEPS),
        }
    return {
        "welcomeMessage": _welcome_message(result),
        "toolDescriptions": _tool_descriptions(result),
        "nextSteps": _next_steps(result),
    }


def _welcome_message(result: AssessmentResult) -> dict[str, str]:
    score = result.overallScore
    messages = {
        "Qualified": {
            "primary": f"Excellent work! Your {score}% assessment score shows strong revenue readiness",
            "secondary": "You're ready for advanced revenue strategies and enterprise-level opportunities",
            "urgency": "low",
            "tone": "professional",
        },
        "Promising": {
            "primary": f"Great progress! Your {score}% assessment shows solid revenue foundations",
            "secondary": "Focus on key areas to unlock your full revenue potential",
            "urgency": "moderate",
            "tone": "encouraging",
        },
        "Developing": {
            "primary": f"Your {score}% assessment reveals important growth opportunities",
            "secondary": "Systematic improvements can significantly accelerate your revenue growth",
            "urgency": "moderate",
            "tone": "supportive",
        },
        "Early Stage": {
            "primary": "Your assessment shows foundational areas for revenue development",
            "secondary": "Building strong fundamentals will create a solid revenue foundation",
            "urgency": "immediate",
            "tone": "supportive",
        },
    }
    return messages.get(result.qualification, messages["Developing"])


def _tool_descriptions(result: AssessmentResult) -> dict[str, str]:
    descriptions = dict(BASE_TOOL_DESCRIPTIONS)
    if result.buyerScore < 60:
        descriptions["icpTool"] = "Deep customer discovery and buyer persona development"
        descriptions["costTool"] = "Customer value quantification and pain point analysis"
    elif result.techScore < 60:
        descriptions["businessCase"] = "Technical value translation and ROI communication"
        descriptions["costTool"] = "Feature-to-benefit mapping and business case development"
    elif result.qualification == "Qualified":
        descriptions["icpTool"] = "Advanced customer segmentation and enterprise targeting"
        descriptions["businessCase"] = "Complex deal orchestration and stakeholder management"
    return descriptions


def _next_steps(result: AssessmentResult) -> list[str]:
    if result.qualification == "Qualified":
        return [
            "Leverage advanced revenue strategies for enterprise deals",
            "Optimize existing processes for maximum efficiency",
            "Mentor others in revenue development best practices",
        ]
    if result.buyerScore < 60:
        return [
            "Conduct systematic customer discovery interviews",
            "Develop comprehensive buyer personas",
            "Map customer journey and pain points",
        ]
    if result.techScore < 60:
        return [
            "Create technical value communication frameworks",
            "Develop ROI calculators and business cases",
            "Practice translating features to business benefits",
        ]
    return [
        "Focus on identified weak areas from assessment",
        "Use platform tools to systematically improve",
        "Track progress with regular assessments",
    ]
