"""Structured LLM evaluation on top of a single-turn chat transport.

Response parsing contract (``extract_json``):

1. Scan the raw text for balanced ``{...}`` substrings, left to right, and
   return the first one that parses as a JSON object. Chat models often wrap
   the object in prose or code fences; this tier recovers it.
2. If no substring parses, parse the whole response as JSON.
3. If that fails too, raise ``ParseError``.

Parse and schema failures are ``ValidationError``s and are never retried. Only
the transport call itself goes through the retry executor.
"""
import json
import logging
from typing import Iterator, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from domain.errors import ParseError, ValidationError
from domain.interfaces import ChatTransport
from domain.schemas import DeliverableEvaluation, ProfileEvaluation
from domain.services.retry import OnRetry, RetryExecutor, with_timeout
from infra.llm.prompts import (
    DELIVERABLE_EVAL_PROMPT,
    HEALTH_PROMPT,
    PROFILE_EVAL_PROMPT,
    SUMMARY_PROMPT,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

MAX_DOCUMENT_CHARS = 5000
HEALTH_CHECK_TIMEOUT = 10.0


def _balanced_objects(text: str) -> Iterator[str]:
    """Yield every balanced ``{...}`` substring, ignoring braces inside JSON strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    yield text[start:i + 1]
                    break
        start = text.find("{", start + 1)


def extract_json(raw_text: str) -> dict:
    for candidate in _balanced_objects(raw_text):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ParseError("Failed to parse LLM response as JSON") from exc
    if not isinstance(parsed, dict):
        raise ParseError("LLM response JSON was not an object")
    return parsed


def _validate_llm_response(raw_text: str, model: Type[T]) -> T:
    data = extract_json(raw_text)
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(f"LLM response failed validation: {exc}") from exc


class LLMEvaluationClient:
    def __init__(self, transport: ChatTransport, retry: RetryExecutor, *, timeout: float = 30.0):
        self.transport = transport
        self.retry = retry
        self.timeout = timeout

    async def _complete(self, prompt: str, label: str, on_retry: Optional[OnRetry] = None) -> str:
        return await self.retry.execute(
            lambda: with_timeout(self.transport.chat_complete(prompt), self.timeout, label),
            on_retry=on_retry,
            label=label,
        )

    async def evaluate_profile(
        self,
        profile_text: str,
        job_requirements: str,
        rubric: str,
        *,
        on_retry: Optional[OnRetry] = None,
    ) -> ProfileEvaluation:
        prompt = PROFILE_EVAL_PROMPT.format(
            job_requirements=job_requirements or "(none)",
            rubric=rubric or "(none)",
            profile_text=profile_text[:MAX_DOCUMENT_CHARS],
        )
        raw = await self._complete(prompt, "profile evaluation", on_retry)
        result = _validate_llm_response(raw, ProfileEvaluation)
        logger.info("Profile evaluation: match_score=%.2f feedback_len=%d",
                    result.profile_match_score, len(result.profile_feedback))
        return result

    async def evaluate_deliverable(
        self,
        deliverable_text: str,
        case_study: str,
        rubric: str,
        *,
        on_retry: Optional[OnRetry] = None,
    ) -> DeliverableEvaluation:
        prompt = DELIVERABLE_EVAL_PROMPT.format(
            case_study=case_study or "(none)",
            rubric=rubric or "(none)",
            deliverable_text=deliverable_text[:MAX_DOCUMENT_CHARS],
        )
        raw = await self._complete(prompt, "deliverable evaluation", on_retry)
        result = _validate_llm_response(raw, DeliverableEvaluation)
        logger.info("Deliverable evaluation: score=%.2f feedback_len=%d",
                    result.deliverable_score, len(result.deliverable_feedback))
        return result

    async def summarize(
        self,
        profile_eval: ProfileEvaluation,
        deliverable_eval: DeliverableEvaluation,
        *,
        title: str = "",
        on_retry: Optional[OnRetry] = None,
    ) -> str:
        prompt = SUMMARY_PROMPT.format(
            title=title or "unspecified",
            profile_match_score=profile_eval.profile_match_score,
            profile_feedback=profile_eval.profile_feedback,
            deliverable_score=deliverable_eval.deliverable_score,
            deliverable_feedback=deliverable_eval.deliverable_feedback,
        )
        raw = await self._complete(prompt, "summary synthesis", on_retry)
        summary = (raw or "").strip()
        if not summary:
            raise ValidationError("LLM returned an empty summary")
        logger.info("Summary generated (%d chars)", len(summary))
        return summary

    async def health_check(self) -> dict:
        # single attempt, outside the retry executor
        reply = await with_timeout(
            self.transport.chat_complete(HEALTH_PROMPT),
            min(self.timeout, HEALTH_CHECK_TIMEOUT),
            "health check",
        )
        return {"status": "ok", "reply": reply.strip()[:20]}
