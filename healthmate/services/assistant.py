"""
Language-model calls: chat replies and structured report analysis.

Every failure is turned into AssistantUnavailable at this boundary; no call is
retried. Chat handlers degrade to a placeholder reply, report analysis maps the
error's status_code to an HTTP error.
"""
import json
import logging
from typing import Iterable

from openai import APIConnectionError, AuthenticationError, OpenAI, OpenAIError, RateLimitError
from pydantic import ValidationError

from healthmate.core.config import is_openai_configured, settings
from healthmate.models import ChatMessage, HealthReport, MessageRole
from healthmate.schemas.report import ReportAnalysis

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = (
    "You are HealthMate AI, a helpful health assistant. Provide accurate, helpful, and professional "
    "health advice. Always remind users to consult with healthcare professionals for serious medical "
    "concerns. Be friendly, informative, and supportive."
)

REPORT_SYSTEM_PROMPT = (
    "You are a medical AI assistant. Analyze medical reports professionally and provide clear, helpful "
    "summaries. Always remind users to consult healthcare professionals for medical decisions. "
    "Answer with a single JSON object and nothing else."
)

REPORT_PROMPT_TEMPLATE = """Analyze this medical report.

Respond with a JSON object with exactly these keys:
- "summary": a comprehensive summary in English (string)
- "summary_second_language": the same summary written in {language} (string)
- "key_findings": the key findings and important values, one per item (array of strings)
- "recommendations": concerns or recommendations, one per item (array of strings)

Report Type: {report_type}
Report Date: {report_date}
Extracted Text: {extracted_text}"""


class AssistantUnavailable(Exception):
    """The language model could not produce a usable answer."""

    def __init__(self, message: str, status_code: int = 503):
        super().__init__(message)
        self.status_code = status_code


def _client() -> OpenAI:
    if not is_openai_configured():
        raise AssistantUnavailable("AI assistant is not configured (OPENAI_API_KEY missing).")
    return OpenAI(api_key=settings.openai_api_key, timeout=settings.openai_timeout)


def _unavailable(exc: OpenAIError) -> AssistantUnavailable:
    """OpenAI errors -> AssistantUnavailable. Upstream auth failures must not read as a 401 for our user."""
    if isinstance(exc, AuthenticationError):
        return AssistantUnavailable("AI access failed: check the configured OPENAI_API_KEY.", 503)
    if isinstance(exc, RateLimitError):
        return AssistantUnavailable("AI service is busy, please try again later.", 503)
    if isinstance(exc, APIConnectionError):
        return AssistantUnavailable("AI service is unreachable at the moment.", 503)
    return AssistantUnavailable("AI service error.", 502)


def _first_content(completion) -> str:
    """Text of the first choice; a reply without one is an upstream failure."""
    choices = getattr(completion, "choices", None) or []
    message = getattr(choices[0], "message", None) if choices else None
    content = getattr(message, "content", None)
    if not isinstance(content, str) or not content.strip():
        raise AssistantUnavailable("AI service returned an empty reply.", 502)
    return content.strip()


def generate_chat_reply(history: Iterable[ChatMessage]) -> str:
    """Assistant reply to the whole conversation so far (oldest message first)."""
    messages = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
    messages += [
        {"role": MessageRole(m.role).value, "content": m.content}
        for m in history
    ]
    client = _client()
    try:
        completion = client.chat.completions.create(
            model=settings.openai_model,
            messages=messages,
            max_tokens=settings.chat_max_tokens,
            temperature=settings.chat_temperature,
        )
    except OpenAIError as e:
        logger.exception("OpenAI API error in generate_chat_reply: %s", e)
        raise _unavailable(e) from e
    return _first_content(completion)


def analyze_report(report: HealthReport) -> ReportAnalysis:
    prompt = REPORT_PROMPT_TEMPLATE.format(
        language=settings.report_second_language,
        report_type=report.report_type.value if hasattr(report.report_type, "value") else report.report_type,
        report_date=report.report_date.date().isoformat(),
        extracted_text=report.extracted_text or "No text extracted",
    )
    client = _client()
    try:
        completion = client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": REPORT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=settings.report_max_tokens,
            temperature=settings.report_temperature,
            response_format={"type": "json_object"},
        )
    except OpenAIError as e:
        logger.exception("OpenAI API error in analyze_report: %s", e)
        raise _unavailable(e) from e
    raw = _first_content(completion)
    try:
        return ReportAnalysis.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Report analysis did not match the expected schema: %s", e)
        raise AssistantUnavailable("AI service returned an unreadable analysis.", 502) from e
