import threading
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from domain.errors import NotFoundError
from domain.schemas import EvaluationResult, InputRefs, Job, JobStatus
from infra.db.models import JobRecord, JobResultRecord


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_job(job: JobRecord) -> Job:
    status = JobStatus(job.status)
    result = None
    if status is JobStatus.COMPLETED and job.result is not None:
        jr = job.result
        result = EvaluationResult(
            profile_match_score=jr.profile_match_score,
            profile_feedback=jr.profile_feedback,
            deliverable_score=jr.deliverable_score,
            deliverable_feedback=jr.deliverable_feedback,
            summary=jr.summary,
        )
    return Job(
        id=job.id,
        input_refs=InputRefs(
            profile_id=job.profile_file_id,
            deliverable_id=job.deliverable_file_id,
            title=job.job_title,
        ),
        status=status,
        result=result,
        error_message=job.error_message if status is JobStatus.FAILED else None,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


class JobsRepository:
    """SQL-backed job store.

    Each status change is one transaction that writes the status together with
    its payload (result row or error message), so a reader sees either the old
    state or the whole new one. Writers are serialized by a store-wide lock.
    """

    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory
        self._write_lock = threading.Lock()

    def create_job(self, job_id: str, profile_ref: str, deliverable_ref: str, title: str) -> None:
        now = _now()
        with self._write_lock, self._sessions() as s:
            s.add(JobRecord(id=job_id, status=JobStatus.QUEUED.value, job_title=title,
                            profile_file_id=profile_ref, deliverable_file_id=deliverable_ref,
                            created_at=now, updated_at=now))
            s.commit()

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._sessions() as s:
            job = s.get(JobRecord, job_id)
            if not job:
                return None
            return _to_job(job)

    def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        result: Optional[EvaluationResult] = None,
        error_message: Optional[str] = None,
    ) -> None:
        status = JobStatus(status)
        if status is JobStatus.COMPLETED and result is None:
            raise ValueError("completed status requires a result")
        if status is JobStatus.FAILED and not error_message:
            raise ValueError("failed status requires an error message")

        with self._write_lock, self._sessions() as s:
            job = s.get(JobRecord, job_id)
            if not job:
                raise NotFoundError(f"job {job_id} not found")
            job.status = status.value
            job.updated_at = max(_now(), job.updated_at)
            job.error_message = error_message if status is JobStatus.FAILED else None
            if status is JobStatus.COMPLETED:
                job.result = JobResultRecord(
                    job_id=job_id,
                    profile_match_score=result.profile_match_score,
                    profile_feedback=result.profile_feedback,
                    deliverable_score=result.deliverable_score,
                    deliverable_feedback=result.deliverable_feedback,
                    summary=result.summary,
                )
            s.commit()

    def list_jobs(self, status: JobStatus) -> List[Job]:
        with self._sessions() as s:
            rows = s.scalars(
                select(JobRecord)
                .where(JobRecord.status == JobStatus(status).value)
                .order_by(JobRecord.created_at)
            ).all()
            return [_to_job(r) for r in rows]

    def discard_job(self, job_id: str) -> None:
        with self._write_lock, self._sessions() as s:
            job = s.get(JobRecord, job_id)
            if not job:
                raise NotFoundError(f"job {job_id} not found")
            s.delete(job)
            s.commit()
