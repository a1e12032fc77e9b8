"""Explicitly constructed application context.

Everything the evaluation core needs is built here once and passed down;
tests call ``assemble`` with fakes instead of going through ``build_context``.
"""
from dataclasses import dataclass
from typing import Any, Optional

from app.settings import Settings
from domain.interfaces import ContextProvider, JobStore, TextExtractor
from domain.services.evaluation_pipeline import EvaluationPipeline
from domain.services.evaluation_service import EvaluationService
from domain.services.job_queue import JobQueue
from domain.services.retry import RetryExecutor
from domain.state_machine import JobStateMachine
from infra.llm.client import LLMEvaluationClient


@dataclass
class AppContext:
    settings: Settings
    store: JobStore
    extractor: TextExtractor
    context_provider: ContextProvider
    llm: LLMEvaluationClient
    queue: JobQueue
    service: EvaluationService
    files_repo: Optional[Any] = None
    qdrant: Optional[Any] = None


def assemble(
    settings: Settings,
    *,
    store: JobStore,
    extractor: TextExtractor,
    context_provider: ContextProvider,
    transport,
    retry: Optional[RetryExecutor] = None,
    files_repo=None,
    qdrant=None,
) -> AppContext:
    retry = retry or RetryExecutor(
        max_attempts=settings.RETRY_MAX_ATTEMPTS,
        base_delay=settings.RETRY_BASE_DELAY_SECONDS,
    )
    llm = LLMEvaluationClient(transport, retry, timeout=settings.REMOTE_CALL_TIMEOUT_SECONDS)
    pipeline = EvaluationPipeline(
        extractor,
        context_provider,
        llm,
        retry,
        query_chars=settings.CONTEXT_QUERY_CHARS,
        top_k=settings.CONTEXT_TOP_K,
        call_timeout=settings.REMOTE_CALL_TIMEOUT_SECONDS,
    )
    queue = JobQueue(store, pipeline, JobStateMachine(store),
                     concurrency=settings.WORKER_CONCURRENCY)
    service = EvaluationService(
        store, queue,
        document_exists=files_repo.exists if files_repo is not None else None,
    )
    return AppContext(
        settings=settings,
        store=store,
        extractor=extractor,
        context_provider=context_provider,
        llm=llm,
        queue=queue,
        service=service,
        files_repo=files_repo,
        qdrant=qdrant,
    )


def build_context(settings: Settings) -> AppContext:
    from infra.db.session import init_db, make_engine, make_session_factory
    from infra.llm.transport import HttpChatTransport
    from infra.pdf.parser import PdfTextExtractor
    from infra.rag.qdrant_client import get_client
    from infra.rag.retriever import QdrantContextProvider
    from infra.repositories.files_repository import FilesRepository
    from infra.repositories.jobs_repository import JobsRepository

    engine = make_engine(settings.SQLITE_PATH)
    init_db(engine)
    sessions = make_session_factory(engine)
    files_repo = FilesRepository(sessions)
    qdrant = get_client(settings)
    return assemble(
        settings,
        store=JobsRepository(sessions),
        extractor=PdfTextExtractor(files_repo),
        context_provider=QdrantContextProvider(
            qdrant,
            settings.QDRANT_COLLECTION,
            api_key=settings.OPENAI_API_KEY,
            embedding_model=settings.OPENAI_EMBEDDING_MODEL,
        ),
        transport=HttpChatTransport(settings),
        files_repo=files_repo,
        qdrant=qdrant,
    )
