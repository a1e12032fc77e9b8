from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from domain.errors import (
    EvaluationError,
    NotFoundError,
    QueueUnavailableError,
    ResourceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (QueueUnavailableError, 503),
    (ValidationError, 422),
    (ResourceError, 422),
)


def attach_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(EvaluationError)
    async def _evaluation_error(request: Request, exc: EvaluationError):
        for kind, status in STATUS_BY_ERROR:
            if isinstance(exc, kind):
                logger.warning("%s %s -> %d: %s", request.method, request.url.path, status, exc)
                return JSONResponse(status_code=status, content={"detail": str(exc)})
        logger.exception("Unhandled evaluation error: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
