import asyncio
from fastapi import APIRouter, Depends, HTTPException
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from app.context import AppContext
from api.deps import get_ctx
from domain.errors import EvaluationError

router = APIRouter()


@router.get("/vector-db/health")
async def vector_db_health(ctx: AppContext = Depends(get_ctx)):
    if ctx.qdrant is None:
        raise HTTPException(status_code=503, detail="vector database not configured")
    try:
        collections = await asyncio.to_thread(ctx.qdrant.get_collections)
    except (UnexpectedResponse, ResponseHandlingException) as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return {
        "status": "ok",
        "collections": [col.name for col in collections.collections],
        "collection_count": len(collections.collections),
    }


@router.get("/llm/health")
async def llm_health(ctx: AppContext = Depends(get_ctx)):
    try:
        return await ctx.llm.health_check()
    except EvaluationError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


@router.get("/queue/health")
def queue_health(ctx: AppContext = Depends(get_ctx)):
    queue = ctx.queue
    return {
        "status": "ok" if queue.accepting else "stopped",
        "concurrency": queue.concurrency,
        "in_flight": queue.in_flight,
        "pending": queue.pending,
    }
