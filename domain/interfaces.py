"""Collaborator contracts consumed by the evaluation core.

Concrete implementations live under ``infra``; tests substitute in-memory
fakes. Anything matching these method shapes can be wired into
``app.context.AppContext``.
"""
from typing import List, Optional, Protocol

from domain.schemas import (
    ContextResult,
    DeliverableEvaluation,
    EvaluationResult,
    ExtractedText,
    Job,
    JobStatus,
    ProfileEvaluation,
)


class JobStore(Protocol):
    def create_job(self, job_id: str, profile_ref: str, deliverable_ref: str, title: str) -> None: ...

    def get_job(self, job_id: str) -> Optional[Job]: ...

    def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        result: Optional[EvaluationResult] = None,
        error_message: Optional[str] = None,
    ) -> None: ...

    def list_jobs(self, status: JobStatus) -> List[Job]: ...

    def discard_job(self, job_id: str) -> None: ...


class TextExtractor(Protocol):
    async def extract_text(self, document_ref: str) -> ExtractedText: ...


class ContextProvider(Protocol):
    async def retrieve_context(
        self, query: str, category: str, top_k: int, sub_type: Optional[str] = None
    ) -> ContextResult: ...


class ChatTransport(Protocol):
    async def chat_complete(self, prompt: str) -> str: ...


class EvaluationLLM(Protocol):
    async def evaluate_profile(
        self, profile_text: str, job_requirements: str, rubric: str, *, on_retry=None
    ) -> ProfileEvaluation: ...

    async def evaluate_deliverable(
        self, deliverable_text: str, case_study: str, rubric: str, *, on_retry=None
    ) -> DeliverableEvaluation: ...

    async def summarize(
        self,
        profile_eval: ProfileEvaluation,
        deliverable_eval: DeliverableEvaluation,
        *,
        title: str = "",
        on_retry=None,
    ) -> str: ...
