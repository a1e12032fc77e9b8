"""
Pytest fixtures and in-memory collaborators.

Every external dependency of the evaluation core (job store, text extractor,
context provider, chat transport) has a small fake here, so the queue, worker
and state machine can be exercised without SQLite, Qdrant, PDFs or network.
"""

import asyncio
import json
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import pytest

from app.context import assemble
from app.settings import Settings
from domain.errors import NotFoundError
from domain.schemas import (
    ContextResult,
    EvaluationResult,
    ExtractedText,
    InputRefs,
    Job,
    JobStatus,
)
from domain.services.retry import RetryExecutor


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class FakeJobStore:
    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.history: Dict[str, List[JobStatus]] = {}
        self._lock = threading.Lock()

    def create_job(self, job_id, profile_ref, deliverable_ref, title):
        with self._lock:
            now = _now()
            self.jobs[job_id] = Job(
                id=job_id,
                input_refs=InputRefs(profile_id=profile_ref, deliverable_id=deliverable_ref, title=title),
                status=JobStatus.QUEUED,
                created_at=now,
                updated_at=now,
            )
            self.history[job_id] = [JobStatus.QUEUED]

    def get_job(self, job_id):
        with self._lock:
            job = self.jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def update_job_status(self, job_id, status, result=None, error_message=None):
        with self._lock:
            if job_id not in self.jobs:
                raise NotFoundError(job_id)
            job = self.jobs[job_id]
            self.jobs[job_id] = job.model_copy(update={
                "status": status,
                "result": result if status == JobStatus.COMPLETED else None,
                "error_message": error_message if status == JobStatus.FAILED else None,
                "updated_at": max(job.updated_at, _now()),
            })
            self.history[job_id].append(JobStatus(status))

    def list_jobs(self, status):
        with self._lock:
            return [j for j in self.jobs.values() if j.status == status]

    def discard_job(self, job_id):
        with self._lock:
            if self.jobs.pop(job_id, None) is None:
                raise NotFoundError(job_id)
            self.history.pop(job_id, None)


class FakeExtractor:
    def __init__(self, texts: Optional[Dict[str, str]] = None, errors: Optional[Dict[str, Exception]] = None):
        self.texts = texts or {}
        self.errors = errors or {}
        self.calls: List[str] = []
        self.saved: List[dict] = []

    async def extract_text(self, document_ref):
        self.calls.append(document_ref)
        await asyncio.sleep(0)
        if document_ref in self.errors:
            raise self.errors[document_ref]
        if document_ref not in self.texts:
            raise NotFoundError(f"file {document_ref} not found")
        return ExtractedText(text=self.texts[document_ref], page_count=1)

    def exists(self, document_ref):
        return document_ref in self.texts or document_ref in self.errors

    def save(self, ftype, path, name):
        file_id = f"file_{len(self.saved) + 1}"
        self.saved.append({"id": file_id, "type": ftype, "path": path, "name": name})
        self.texts[file_id] = name
        return file_id


class FakeContextProvider:
    def __init__(self, documents: Optional[Dict[tuple, List[str]]] = None):
        self.documents = documents if documents is not None else {
            ("job_description", None): ["Backend engineer: Node.js, PostgreSQL, AWS, 3-5 years."],
            ("rubric", "cv_evaluation"): ["Technical Skills Match (40%), Experience Level (25%)"],
            ("case_study", None): ["Build an async evaluation service with retries."],
            ("rubric", "project_evaluation"): ["Correctness (30%), Code Quality (25%)"],
        }
        self.calls: List[dict] = []
        self.failures: List[Exception] = []

    async def retrieve_context(self, query, category, top_k, sub_type=None):
        self.calls.append({"query": query, "category": category, "top_k": top_k, "sub_type": sub_type})
        await asyncio.sleep(0)
        if self.failures:
            raise self.failures.pop(0)
        docs = self.documents.get((category, sub_type), [])[:top_k]
        return ContextResult(documents=docs, scores=[1.0 - 0.1 * i for i in range(len(docs))])


def default_responder(prompt: str) -> str:
    if "CANDIDATE CV" in prompt:
        return json.dumps({"profile_match_score": 0.8, "profile_feedback": "Strong backend match."})
    if "PROJECT REPORT" in prompt:
        return json.dumps({"deliverable_score": 4.0, "deliverable_feedback": "Solid retries and tests."})
    return "Strong candidate. Good project. Recommend moving to interview."


class ScriptedTransport:
    """Chat transport answering from a responder, with optional scripted failures first."""

    def __init__(self, responder: Callable[[str], str] = default_responder):
        self.responder = responder
        self.prompts: List[str] = []
        self.failures: List[Exception] = []

    async def chat_complete(self, prompt):
        self.prompts.append(prompt)
        await asyncio.sleep(0)
        if self.failures:
            raise self.failures.pop(0)
        return self.responder(prompt)


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay):
        self.delays.append(delay)


def make_settings(**overrides) -> Settings:
    values = dict(
        WORKER_CONCURRENCY=2,
        RETRY_MAX_ATTEMPTS=3,
        RETRY_BASE_DELAY_SECONDS=1.0,
        REMOTE_CALL_TIMEOUT_SECONDS=5.0,
        CONTEXT_QUERY_CHARS=200,
        CONTEXT_TOP_K=2,
        INGEST_ON_STARTUP=False,
    )
    values.update(overrides)
    return Settings(**values)


def sample_result(**overrides) -> EvaluationResult:
    values = dict(
        profile_match_score=0.8,
        profile_feedback="Strong backend match.",
        deliverable_score=4.0,
        deliverable_feedback="Solid retries and tests.",
        summary="Recommend.",
    )
    values.update(overrides)
    return EvaluationResult(**values)


@pytest.fixture
def store():
    return FakeJobStore()


@pytest.fixture
def extractor():
    return FakeExtractor({
        "cv_1": "5 years backend, Node.js, PostgreSQL, AWS",
        "report_1": "Project report: async queue with retries and exponential backoff.",
    })


@pytest.fixture
def context_provider():
    return FakeContextProvider()


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def build(store, extractor, context_provider, transport, sleep):
    """Assemble an AppContext from the fakes; keyword args override settings."""
    def _build(**settings_overrides):
        settings = make_settings(**settings_overrides)
        retry = RetryExecutor(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            base_delay=settings.RETRY_BASE_DELAY_SECONDS,
            sleep=sleep,
        )
        ctx = assemble(
            settings,
            store=store,
            extractor=extractor,
            context_provider=context_provider,
            transport=transport,
            retry=retry,
            files_repo=extractor,
        )
        return ctx
    return _build
