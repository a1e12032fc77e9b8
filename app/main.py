import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from app.settings import Settings, settings as default_settings
from app.logging import configure_logging
from app.error_handlers import attach_error_handlers
from app.context import AppContext, build_context
from api.router import api_router

logger = logging.getLogger(__name__)


async def _ingest_reference_corpus(ctx: AppContext) -> None:
    from ingest.ingest_all import ingest_if_empty
    try:
        await ingest_if_empty(ctx.qdrant, ctx.settings)
    except Exception:
        logger.exception("Reference corpus ingestion failed; evaluations will fail at context retrieval")


def create_app(
    settings: Settings = default_settings,
    context_factory: Optional[Callable[[Settings], AppContext]] = None,
) -> FastAPI:
    factory = context_factory or build_context

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx = factory(settings)
        app.state.ctx = ctx
        if settings.INGEST_ON_STARTUP and ctx.qdrant is not None:
            await _ingest_reference_corpus(ctx)
        ctx.queue.start()
        ctx.service.resume_pending()
        try:
            yield
        finally:
            await ctx.queue.shutdown()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    attach_error_handlers(app)
    app.include_router(api_router)
    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)
