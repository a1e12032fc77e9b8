import logging
import uuid
from typing import Callable, Optional

from domain.errors import NotFoundError, QueueUnavailableError
from domain.interfaces import JobStore
from domain.schemas import Job, JobStatus
from domain.services.job_queue import JobQueue

logger = logging.getLogger(__name__)


def new_job_id() -> str:
    return f"job_{uuid.uuid4().hex}"


class EvaluationService:
    """Entry points the HTTP layer calls: submit a job, read its status."""

    def __init__(
        self,
        store: JobStore,
        queue: JobQueue,
        *,
        document_exists: Optional[Callable[[str], bool]] = None,
    ):
        self.store = store
        self.queue = queue
        self.document_exists = document_exists

    def submit_evaluation(self, profile_id: str, deliverable_id: str, title: str) -> str:
        if self.document_exists is not None:
            missing = [ref for ref in (profile_id, deliverable_id) if not self.document_exists(ref)]
            if missing:
                raise NotFoundError(f"document(s) not found: {', '.join(missing)}")
        if not self.queue.accepting:
            raise QueueUnavailableError("evaluation queue is not accepting jobs")

        job_id = new_job_id()
        self.store.create_job(job_id, profile_id, deliverable_id, title)
        try:
            self.queue.submit(job_id)
        except QueueUnavailableError:
            self.store.discard_job(job_id)
            raise
        logger.info("Job created: %s with title: %s", job_id, title)
        return job_id

    def get_job_status(self, job_id: str) -> Job:
        job = self.store.get_job(job_id)
        if job is None:
            raise NotFoundError(f"No evaluation job with ID: {job_id}")
        return job

    def resume_pending(self) -> int:
        """Re-dispatch jobs persisted as ``queued`` by a previous process.

        Jobs left ``processing`` are only reported; they may have produced
        partial side effects and need manual recovery.
        """
        resumed = 0
        for job in self.store.list_jobs(JobStatus.QUEUED):
            self.queue.submit(job.id)
            resumed += 1
        stuck = self.store.list_jobs(JobStatus.PROCESSING)
        if stuck:
            logger.warning("%d jobs were left processing by a previous run: %s",
                           len(stuck), [j.id for j in stuck])
        if resumed:
            logger.info("Re-queued %d pending jobs", resumed)
        return resumed
