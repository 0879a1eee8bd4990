"""Turn raw AI symptom-analysis text into a structured triage result."""

import json
import math
import re
from typing import Any

import structlog

from app.schemas.triage import TriageResult, UrgencyLevel

logger = structlog.get_logger()

# Greedy: first "{" through last "}"
JSON_SPAN_PATTERN = re.compile(r"\{[\s\S]*\}")

FALLBACK_SEVERITY_SCORE = 5
FALLBACK_URGENCY = UrgencyLevel.SAME_DAY
FALLBACK_RECOMMENDED_ACTION = "Book an appointment soon"

RULE = "═══════════════════════════════════════"
REPORT_TITLE = "🏥 SYMPTOM ANALYSIS REPORT"

_URGENCY_BY_NAME = {level.value.lower(): level for level in UrgencyLevel}

_URGENCY_INDICATORS = {
    UrgencyLevel.ROUTINE: "🔵",
    UrgencyLevel.SAME_DAY: "🟡",
    UrgencyLevel.URGENT: "🟠",
    UrgencyLevel.EMERGENCY: "🔴",
}


def severity_indicator(score: float) -> str:
    """Traffic-light marker for a 0-10 severity score."""
    if score <= 2:
        return "🟢"
    if score <= 4:
        return "🟡"
    if score <= 6:
        return "🟠"
    if score <= 8:
        return "🔴"
    return "🆘"


def coerce_severity_score(value: Any) -> float:
    """Read a severity score, clamped to [0, 10]; missing or non-numeric is 0."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(score):
        return 0
    return min(max(score, 0), 10)


def coerce_urgency(value: Any) -> UrgencyLevel:
    """Match an urgency label case-insensitively; missing or unknown is Routine."""
    if not isinstance(value, str):
        return UrgencyLevel.ROUTINE
    return _URGENCY_BY_NAME.get(value.strip().lower(), UrgencyLevel.ROUTINE)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _items(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [_text(item) for item in value if _text(item)]


def extract_json_object(raw_text: str) -> dict[str, Any] | None:
    """
    Pull the embedded JSON object out of free text.

    Returns:
        The decoded object, or None when there is no brace span, the span is
        not valid JSON, or it decodes to something other than an object.
    """
    match = JSON_SPAN_PATTERN.search(raw_text or "")
    if not match:
        return None

    try:
        data = json.loads(match.group(0))
    except (ValueError, RecursionError):
        return None

    if not isinstance(data, dict):
        return None
    return data


def format_analysis_report(data: dict[str, Any], score: float, urgency: UrgencyLevel) -> str:
    """Render the sections present in the AI payload as a readable report."""
    score_text = f"{score:g}/10"
    level = _text(data.get("severity_level"))
    score_line = f"   {severity_indicator(score)} Score: {score_text}"
    if level:
        score_line += f" | Level: {level}"

    lines = [
        REPORT_TITLE,
        RULE,
        "",
        "📊 SEVERITY ASSESSMENT",
        score_line,
        f"   {_URGENCY_INDICATORS[urgency]} Urgency: {urgency.value}",
    ]

    assessment = _text(data.get("primary_assessment"))
    if assessment:
        lines += ["", "🔍 PRIMARY ASSESSMENT", f"   {assessment}"]

    sections = (
        ("🎯 POSSIBLE CONDITIONS", "possible_conditions", "•"),
        ("⚡ IMMEDIATE ACTIONS", "immediate_actions", "✓"),
        ("🏠 SELF-CARE RECOMMENDATIONS", "self_care_tips", "•"),
        ("⚠️ WARNING SIGNS TO WATCH", "warning_signs", "🚨"),
    )
    for heading, key, bullet in sections:
        items = _items(data.get(key))
        if items:
            lines += ["", heading] + [f"   {bullet} {item}" for item in items]

    action = _text(data.get("recommended_action"))
    if action:
        lines += ["", "➡️ RECOMMENDED ACTION", f"   {action}"]

    seek_help = _text(data.get("when_to_seek_help"))
    if seek_help:
        lines += ["", "👨‍⚕️ WHEN TO SEEK MEDICAL HELP", f"   {seek_help}"]

    disclaimer = _text(data.get("disclaimer"))
    lines += ["", RULE]
    if disclaimer:
        lines += ["⚖️ MEDICAL DISCLAIMER", f"   {disclaimer}", RULE]

    return "\n".join(lines)


def format_fallback_report(query: str, raw_text: str) -> str:
    """Report used when the AI answered but not with parseable JSON."""
    lines = [
        REPORT_TITLE,
        RULE,
        "",
        f"📝 SYMPTOMS ANALYZED: {query}",
        "",
        "📊 ASSESSMENT",
        f"   {raw_text}",
        "",
        RULE,
        "⚖️ MEDICAL DISCLAIMER",
        "   This is AI-generated health information for educational purposes only.",
        "   Always consult healthcare professionals for medical advice, diagnosis, or treatment.",
        RULE,
    ]
    return "\n".join(lines)


def format_error_report(query: str, error_message: str) -> str:
    """Canned report used when the AI service could not be reached."""
    lines = [
        REPORT_TITLE,
        RULE,
        "",
        f"📝 SYMPTOMS ANALYZED: {query}",
        "",
        "📊 SEVERITY ASSESSMENT",
        f"   🟡 Score: {FALLBACK_SEVERITY_SCORE}/10 | Level: Moderate",
        f"   🟡 Urgency: {FALLBACK_URGENCY.value}",
        "",
        "🔍 GENERAL ASSESSMENT",
        "   Based on your symptoms, this appears to be a health concern that requires "
        "attention and monitoring.",
        "",
        "⚡ IMMEDIATE ACTIONS",
        "   ✓ Monitor your symptoms closely",
        "   ✓ Rest and stay hydrated",
        "   ✓ Avoid strenuous activities",
        "",
        "🏠 SELF-CARE RECOMMENDATIONS",
        "   • Get adequate rest and sleep",
        "   • Stay well hydrated with water",
        "   • Maintain a comfortable environment",
        "",
        "⚠️ WARNING SIGNS TO WATCH",
        "   🚨 Symptoms getting worse rapidly",
        "   🚨 Severe pain or discomfort",
        "   🚨 Difficulty breathing or chest pain",
        "",
        "👨‍⚕️ WHEN TO SEEK MEDICAL HELP",
        "   If symptoms persist for more than 2-3 days, worsen, or if you develop any warning "
        "signs, consult a healthcare professional immediately.",
        "",
        RULE,
        "⚖️ MEDICAL DISCLAIMER",
        "   This is general health information only. For accurate medical advice, please "
        "consult with a qualified healthcare provider.",
        "",
        f"   Note: {error_message}. Please try again later or consult with a healthcare "
        "professional directly.",
        RULE,
    ]
    return "\n".join(lines)


def build_fallback_result(formatted_message: str) -> TriageResult:
    """Fixed triage values used whenever the AI output cannot be trusted."""
    return TriageResult(
        severity_score=FALLBACK_SEVERITY_SCORE,
        urgency=FALLBACK_URGENCY,
        recommended_action=FALLBACK_RECOMMENDED_ACTION,
        formatted_message=formatted_message,
    )


def build_error_result(query: str, error_message: str) -> TriageResult:
    """Fallback result for a failed AI call, with the failure reason in the report."""
    return build_fallback_result(format_error_report(query, error_message))


def parse_triage_response(query: str, raw_text: str) -> TriageResult:
    """
    Parse the AI service's text output into a triage result.

    Never raises for malformed text: anything without a usable JSON object
    degrades to the fixed fallback values with the raw text echoed back.

    Args:
        query: The symptoms that were analyzed
        raw_text: The AI service's completion text

    Returns:
        Normalized triage result
    """
    data = extract_json_object(raw_text)
    if data is None:
        logger.warning("triage_response_unparseable", response_length=len(raw_text or ""))
        return build_fallback_result(format_fallback_report(query, raw_text or ""))

    score = coerce_severity_score(data.get("severity_score"))
    urgency = coerce_urgency(data.get("urgency"))

    return TriageResult(
        severity_score=score,
        urgency=urgency,
        recommended_action=_text(data.get("recommended_action")),
        formatted_message=format_analysis_report(data, score, urgency),
    )
