"""Job lifecycle transitions.

The worker calls these methods synchronously at each pipeline boundary.
``check_transition`` is the single source of truth for what is legal; the
store applies status and payload in one write so readers never observe a
half-applied transition.
"""
import logging
from typing import Dict, FrozenSet

from domain.errors import InvalidTransitionError, NotFoundError
from domain.interfaces import JobStore
from domain.schemas import EvaluationResult, JobStatus

logger = logging.getLogger(__name__)

LEGAL_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def check_transition(job_id: str, current: JobStatus, target: JobStatus) -> None:
    if target not in LEGAL_TRANSITIONS[current]:
        raise InvalidTransitionError(job_id, current.value, target.value)


class JobStateMachine:
    def __init__(self, store: JobStore):
        self.store = store

    def _current(self, job_id: str) -> JobStatus:
        job = self.store.get_job(job_id)
        if job is None:
            raise NotFoundError(f"job {job_id} not found")
        return job.status

    def started(self, job_id: str) -> None:
        check_transition(job_id, self._current(job_id), JobStatus.PROCESSING)
        self.store.update_job_status(job_id, JobStatus.PROCESSING)
        logger.info("Job %s started processing", job_id)

    def completed(self, job_id: str, result: EvaluationResult) -> None:
        check_transition(job_id, self._current(job_id), JobStatus.COMPLETED)
        self.store.update_job_status(job_id, JobStatus.COMPLETED, result=result)
        logger.info("Job %s completed", job_id)

    def failed(self, job_id: str, error_message: str) -> None:
        check_transition(job_id, self._current(job_id), JobStatus.FAILED)
        self.store.update_job_status(
            job_id, JobStatus.FAILED, error_message=error_message or "unknown error")
        logger.error("Job %s failed: %s", job_id, error_message)

    def retried(self, job_id: str, attempt: int) -> None:
        logger.warning("Job %s retrying (attempt %d)", job_id, attempt)
