import re
import logging
from typing import List, Optional

from domain.errors import EvaluationError
from domain.interfaces import ContextProvider, EvaluationLLM, TextExtractor
from domain.schemas import (
    CATEGORY_CASE_STUDY,
    CATEGORY_JOB_DESCRIPTION,
    CATEGORY_RUBRIC,
    RUBRIC_CV,
    RUBRIC_PROJECT,
    ContextResult,
    EvaluationResult,
    Job,
)
from domain.services.retry import OnRetry, RetryExecutor, with_timeout

logger = logging.getLogger(__name__)

STAGE_EXTRACT = "text extraction"
STAGE_CONTEXT = "context retrieval"
STAGE_PROFILE = "profile scoring"
STAGE_DELIVERABLE = "deliverable scoring"
STAGE_SUMMARY = "summary synthesis"


class StageError(EvaluationError):
    """A pipeline stage failed; carries the stage name and the original error."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage} failed: {cause}")
        self.stage = stage
        self.cause = cause


def redact_numeric_examples(text: str) -> str:
    # remove json-like examples with numeric scores to prevent bias
    text = re.sub(r'\{[^{}]{0,200}("deliverable_score"|\'deliverable_score\')[^{}]+\}',
                  '[redacted-example]', text, flags=re.I | re.S)
    text = re.sub(r'\{[^{}]{0,200}("profile_match_score"|\'profile_match_score\')[^{}]+\}',
                  '[redacted-example]', text, flags=re.I | re.S)
    return text


def sanitize_refs(refs: List[str]) -> List[str]:
    return [redact_numeric_examples(r) for r in refs]


def _joined(ctx: ContextResult) -> str:
    return "\n---\n".join(sanitize_refs(ctx.documents))


class EvaluationPipeline:
    """Runs the five evaluation stages for one job, strictly in order.

    Every remote call gets its own timeout and its own pass through the retry
    executor, so a transient failure in one stage never re-runs an earlier one.
    Any stage failure aborts the run; nothing from earlier stages is kept.
    """

    def __init__(
        self,
        extractor: TextExtractor,
        context_provider: ContextProvider,
        llm: EvaluationLLM,
        retry: RetryExecutor,
        *,
        query_chars: int = 200,
        top_k: int = 2,
        call_timeout: float = 30.0,
    ):
        self.extractor = extractor
        self.context_provider = context_provider
        self.llm = llm
        self.retry = retry
        self.query_chars = query_chars
        self.top_k = top_k
        self.call_timeout = call_timeout

    async def _retrieve(self, query: str, category: str, sub_type: Optional[str],
                        top_k: int, on_retry: Optional[OnRetry]) -> ContextResult:
        label = f"context {sub_type or category}"
        return await self.retry.execute(
            lambda: with_timeout(
                self.context_provider.retrieve_context(query, category, top_k, sub_type=sub_type),
                self.call_timeout, label),
            on_retry=on_retry,
            label=label,
        )

    async def run(self, job: Job, on_retry: Optional[OnRetry] = None) -> EvaluationResult:
        refs = job.input_refs
        stage = STAGE_EXTRACT
        try:
            logger.info("[%s] Stage 1: extracting document text", job.id)
            profile = await with_timeout(
                self.extractor.extract_text(refs.profile_id), self.call_timeout, "profile extraction")
            deliverable = await with_timeout(
                self.extractor.extract_text(refs.deliverable_id), self.call_timeout, "deliverable extraction")
            logger.info("[%s] Profile text: %d chars / %d pages; deliverable text: %d chars / %d pages",
                        job.id, len(profile.text), profile.page_count,
                        len(deliverable.text), deliverable.page_count)

            stage = STAGE_CONTEXT
            logger.info("[%s] Stage 2: retrieving reference context", job.id)
            profile_query = profile.text[:self.query_chars]
            deliverable_query = deliverable.text[:self.query_chars]
            job_requirements = await self._retrieve(
                f"backend skills experience: {profile_query}",
                CATEGORY_JOB_DESCRIPTION, None, self.top_k, on_retry)
            cv_rubric = await self._retrieve(
                f"CV evaluation scoring criteria rubric: {profile_query}",
                CATEGORY_RUBRIC, RUBRIC_CV, self.top_k, on_retry)
            case_study = await self._retrieve(
                f"project requirements implementation: {deliverable_query}",
                CATEGORY_CASE_STUDY, None, self.top_k, on_retry)
            project_rubric = await self._retrieve(
                f"project deliverable evaluation scoring rubric: {deliverable_query}",
                CATEGORY_RUBRIC, RUBRIC_PROJECT, self.top_k, on_retry)

            stage = STAGE_PROFILE
            logger.info("[%s] Stage 3: scoring profile", job.id)
            profile_eval = await self.llm.evaluate_profile(
                profile.text, _joined(job_requirements), _joined(cv_rubric), on_retry=on_retry)

            stage = STAGE_DELIVERABLE
            logger.info("[%s] Stage 4: scoring deliverable", job.id)
            deliverable_eval = await self.llm.evaluate_deliverable(
                deliverable.text, _joined(case_study), _joined(project_rubric), on_retry=on_retry)

            stage = STAGE_SUMMARY
            logger.info("[%s] Stage 5: synthesizing summary", job.id)
            summary = await self.llm.summarize(
                profile_eval, deliverable_eval, title=refs.title, on_retry=on_retry)
        except Exception as exc:
            logger.error("[%s] %s failed: %r", job.id, stage, exc)
            raise StageError(stage, exc) from exc

        return EvaluationResult(
            profile_match_score=profile_eval.profile_match_score,
            profile_feedback=profile_eval.profile_feedback,
            deliverable_score=deliverable_eval.deliverable_score,
            deliverable_feedback=deliverable_eval.deliverable_feedback,
            summary=summary,
        )
