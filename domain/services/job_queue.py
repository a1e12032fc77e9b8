"""In-process job queue with a bounded pool of asyncio workers.

Jobs are identified by id only; the store is the source of truth for their
data and status. ``submit`` never blocks and raises ``QueueUnavailableError``
when the queue is not running, so the submission path can report it.

Dispatch is not durable: a job that is mid-pipeline when the process stops
stays ``processing`` in the store.
"""
import asyncio
import logging
from typing import List, Optional, Set

from domain.errors import DuplicateJobError, QueueUnavailableError
from domain.interfaces import JobStore
from domain.schemas import JobStatus
from domain.services.evaluation_pipeline import EvaluationPipeline
from domain.state_machine import JobStateMachine

logger = logging.getLogger(__name__)


class JobQueue:
    def __init__(
        self,
        store: JobStore,
        pipeline: EvaluationPipeline,
        lifecycle: JobStateMachine,
        *,
        concurrency: int = 1,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.store = store
        self.pipeline = pipeline
        self.lifecycle = lifecycle
        self.concurrency = concurrency
        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []
        self._submitted: Set[str] = set()
        self._in_flight: Set[str] = set()
        self._accepting = False

    @property
    def accepting(self) -> bool:
        return self._accepting

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def start(self) -> None:
        if self._accepting:
            return
        self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker(n), name=f"evaluation-worker-{n}")
            for n in range(self.concurrency)
        ]
        self._accepting = True
        logger.info("Job queue started with %d workers", self.concurrency)

    def submit(self, job_id: str) -> None:
        if not self._accepting or self._queue is None:
            raise QueueUnavailableError("evaluation queue is not accepting jobs")
        if job_id in self._submitted:
            raise DuplicateJobError(f"job {job_id} was already submitted")
        self._submitted.add(job_id)
        self._queue.put_nowait(job_id)
        logger.info("Job added to queue: %s", job_id)

    async def join(self) -> None:
        if self._queue is not None:
            await self._queue.join()

    async def shutdown(self, *, drain: bool = False) -> None:
        self._accepting = False
        if drain:
            await self.join()
        if self._in_flight:
            logger.warning("Abandoning %d in-flight jobs: %s",
                           len(self._in_flight), sorted(self._in_flight))
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("Job queue closed")

    async def _worker(self, n: int) -> None:
        assert self._queue is not None
        while True:
            job_id = await self._queue.get()
            self._in_flight.add(job_id)
            try:
                await self._process(job_id)
            except Exception:
                logger.exception("Worker %d could not finalize job %s", n, job_id)
            finally:
                self._in_flight.discard(job_id)
                self._submitted.discard(job_id)
                self._queue.task_done()

    async def _process(self, job_id: str) -> None:
        job = self.store.get_job(job_id)
        if job is None:
            logger.error("Job %s vanished before dispatch", job_id)
            return
        if job.status is not JobStatus.QUEUED:
            logger.warning("Job %s is %s, skipping duplicate dispatch", job_id, job.status.value)
            return

        self.lifecycle.started(job_id)
        try:
            result = await self.pipeline.run(
                job, on_retry=lambda attempt, _exc: self.lifecycle.retried(job_id, attempt))
        except Exception as exc:
            self.lifecycle.failed(job_id, str(exc) or exc.__class__.__name__)
            return
        self.lifecycle.completed(job_id, result)
