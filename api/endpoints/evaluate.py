from fastapi import APIRouter, Depends
from app.context import AppContext
from api.deps import get_ctx
from domain.schemas import EvaluateRequest, JobStatus, JobStatusResponse

router = APIRouter()


@router.post("/evaluate", response_model=JobStatusResponse, status_code=202)
async def evaluate(body: EvaluateRequest, ctx: AppContext = Depends(get_ctx)) -> JobStatusResponse:
    job_id = ctx.service.submit_evaluation(body.cv_id, body.report_id, body.job_title)
    return JobStatusResponse(
        id=job_id,
        status=JobStatus.QUEUED,
        message="Evaluation job queued. Poll GET /result/{id} to check status",
    )
