from fastapi import APIRouter, Depends
from app.context import AppContext
from api.deps import get_ctx
from domain.schemas import JobStatus, JobStatusResponse

router = APIRouter()

STATUS_MESSAGES = {
    JobStatus.QUEUED: "Job is queued. Please check again later.",
    JobStatus.PROCESSING: "Job is being processed. Please check again soon.",
    JobStatus.COMPLETED: "Evaluation completed.",
    JobStatus.FAILED: "Evaluation failed.",
}


@router.get("/result/{job_id}", response_model=JobStatusResponse)
async def get_result(job_id: str, ctx: AppContext = Depends(get_ctx)) -> JobStatusResponse:
    job = ctx.service.get_job_status(job_id)
    return JobStatusResponse(
        id=job.id,
        status=job.status,
        message=STATUS_MESSAGES[job.status],
        result=job.result,
        error=job.error_message,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )
