import json
import re
from typing import Dict, List, Optional

import requests
from pydantic import ValidationError

from . import prompts
from .config import Settings
from .errors import AIServiceError, AIServiceNotConfiguredError
from .logger import get_logger
from .models import ArgumentResponse, Case, Document, Verdict, utcnow

logger = get_logger(__name__)

DOCUMENT_PREVIEW_CHARS = 2000
SUMMARY_FALLBACK = "Case summary generation failed."

VERDICT_STAMPED_KEYS = {"timestamp", "caseId", "case_id", "country", "caseType", "case_type"}
ARGUMENT_STAMPED_KEYS = {"timestamp", "originalArgument", "original_argument", "side"}

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_BRACED_JSON = re.compile(r"\{.*\}", re.DOTALL)


def _side_name(side: str) -> str:
    return "Plaintiff" if side == "A" else "Defendant"


# -------------------------------
# Utility: Call the chat completions API
# -------------------------------
def _call_chat(messages: List[Dict[str, str]], settings: Settings, max_tokens: Optional[int] = None) -> str:
    if not settings.ai_configured:
        raise AIServiceNotConfiguredError("AI service not configured. Set OPENROUTER_API_KEY in the environment.")

    headers = {
        "Authorization": f"Bearer {settings.ai_api_key}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": settings.ai_model,
        "messages": messages,
        "max_tokens": max_tokens or settings.ai_max_tokens,
        "temperature": settings.ai_temperature,
        "top_p": settings.ai_top_p,
    }
    try:
        resp = requests.post(settings.ai_base_url, headers=headers, json=payload, timeout=settings.ai_timeout)
        resp.raise_for_status()
        data = resp.json()
        content = data["choices"][0]["message"]["content"]
    except requests.RequestException as e:
        raise AIServiceError(f"AI request failed: {e}") from e
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise AIServiceError(f"Unexpected AI response shape: {e}") from e

    # filtered or reasoning-only replies come back with null content
    if not isinstance(content, str) or not content.strip():
        raise AIServiceError("AI response contained no message content")
    return content.strip()


def _ask_judge(prompt: str, settings: Settings, max_tokens: Optional[int] = None) -> str:
    return _call_chat(
        [{"role": "system", "content": prompts.SYSTEM_JUDGE},
         {"role": "user", "content": prompt}],
        settings,
        max_tokens=max_tokens,
    )


# -------------------------------
# Prompt building
# -------------------------------
def truncate_text(text: Optional[str], max_length: int = 1000) -> str:
    """Cut at a word boundary when one falls in the last fifth of the window."""
    if not text or len(text) <= max_length:
        return text or ""

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        truncated = truncated[:last_space]
    return truncated + "... [truncated]"


def format_documents(documents: List[Document]) -> str:
    if not documents:
        return "No documents submitted."
    return "\n\n".join(
        prompts.DOCUMENT_ENTRY.format(
            index=i,
            filename=doc.filename,
            preview=truncate_text(doc.extracted_text, DOCUMENT_PREVIEW_CHARS),
        )
        for i, doc in enumerate(documents, start=1)
    )


def format_previous_arguments(case: Case) -> str:
    if not case.arguments:
        return "No previous arguments in this case."
    return "\n\n".join(
        prompts.ARGUMENT_ENTRY.format(
            index=i,
            side_name=_side_name(arg.side),
            argument=arg.argument,
            response=arg.ai_response.response or "No response recorded",
        )
        for i, arg in enumerate(case.arguments, start=1)
    )


def build_verdict_prompt(case: Case) -> str:
    return prompts.VERDICT_PROMPT.format(
        country=case.country,
        case_type=case.case_type,
        title=case.title,
        description=case.description,
        side_a_description=case.side_a.description or "No description provided",
        side_a_documents=format_documents(case.side_a.documents),
        side_b_description=case.side_b.description or "No description provided",
        side_b_documents=format_documents(case.side_b.documents),
    )


def build_argument_prompt(case: Case, side: str, argument: str) -> str:
    verdict = case.verdict
    return prompts.ARGUMENT_PROMPT.format(
        title=case.title,
        decision=verdict.decision.value if verdict else "Not yet decided",
        reasoning=(verdict.reasoning if verdict else None) or "No initial reasoning available",
        previous_arguments=format_previous_arguments(case),
        side_name=_side_name(side).upper(),
        side=side,
        argument=argument,
        country=case.country,
    )


# -------------------------------
# Response parsing
# -------------------------------
def extract_json_object(text: str) -> Optional[dict]:
    """Best-effort pull of a JSON object out of a model reply."""
    if not text:
        return None
    for pattern in (_FENCED_JSON, _BRACED_JSON):
        match = pattern.search(text)
        if not match:
            continue
        candidate = match.group(1) if match.groups() else match.group(0)
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _without(data: dict, keys) -> dict:
    return {k: v for k, v in data.items() if k not in keys}


def parse_verdict_response(text: str) -> Verdict:
    data = extract_json_object(text)
    if data is not None:
        # these are stamped by generate_verdict, never taken from the model
        data = _without(data, VERDICT_STAMPED_KEYS)
        try:
            return Verdict.model_validate(data)
        except ValidationError as e:
            logger.error(f"Verdict JSON did not validate: {e}")
    else:
        logger.warning("Verdict response contained no parseable JSON")

    return Verdict(
        decision="insufficient_evidence",
        reasoning=text,
        key_findings=[],
        legal_principles=[],
        damages=None,
        notes="Response could not be parsed into structured format",
        confidence=0.5,
        open_to_reconsideration=True,
    )


def parse_argument_response(text: str) -> ArgumentResponse:
    data = extract_json_object(text)
    if data is not None:
        data = _without(data, ARGUMENT_STAMPED_KEYS)
        try:
            return ArgumentResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Argument response JSON did not validate: {e}")
    else:
        logger.warning("Argument response contained no parseable JSON")

    return ArgumentResponse(
        response=text,
        verdict_change="none",
        confidence=0.5,
    )


# -------------------------------
# Judge operations
# -------------------------------
def generate_verdict(case: Case, settings: Settings) -> Verdict:
    logger.info("Requesting verdict", case_id=case.case_id)
    reply = _ask_judge(build_verdict_prompt(case), settings)

    verdict = parse_verdict_response(reply)
    verdict.timestamp = utcnow()
    verdict.case_id = case.case_id
    verdict.country = case.country
    verdict.case_type = case.case_type
    logger.info(f"Verdict received: {verdict.decision.value}", case_id=case.case_id)
    return verdict


def respond_to_argument(case: Case, side: str, argument: str, settings: Settings) -> ArgumentResponse:
    logger.info("Requesting argument response", case_id=case.case_id, side=side)
    reply = _ask_judge(build_argument_prompt(case, side, argument), settings)

    response = parse_argument_response(reply)
    response.timestamp = utcnow()
    response.original_argument = argument
    response.side = side
    return response


def generate_case_summary(case: Case, settings: Settings) -> str:
    prompt = prompts.SUMMARY_PROMPT.format(
        title=case.title,
        case_type=case.case_type,
        country=case.country,
        description=case.description,
    )
    try:
        return _ask_judge(prompt, settings, max_tokens=512)
    except AIServiceError as e:
        logger.error(f"Error generating case summary: {e}", case_id=case.case_id)
        return SUMMARY_FALLBACK
