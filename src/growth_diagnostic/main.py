"""Growth diagnostic service entry point."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from growth_diagnostic import __version__
from growth_diagnostic.adapters.outbox_worker import OutboxWorker
from growth_diagnostic.api.router import register_exception_handlers, router
from growth_diagnostic.container import ServiceContainer
from growth_diagnostic.database import dispose_database, init_database
from growth_diagnostic.observability import configure_logging, get_logger
from growth_diagnostic.settings import Settings

logger = get_logger(__name__)


def create_app(settings: Settings | None = None, container: ServiceContainer | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Service settings; read from the environment when omitted.
        container: Pre-built service container, mainly for tests.

    Returns:
        The configured application.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup
        configure_logging(settings.log_level, settings.log_json)
        session_factory = init_database(settings)
        app.state.container = container or ServiceContainer(settings)

        worker: OutboxWorker | None = None
        worker_task: asyncio.Task[None] | None = None
        if settings.worker_enabled:
            worker = OutboxWorker(
                session_factory,
                app.state.container,
                batch_size=settings.worker_batch_size,
                poll_interval_seconds=settings.worker_poll_interval_seconds,
                stale_after_seconds=settings.worker_stale_after_seconds,
            )
            worker_task = asyncio.create_task(worker.run_forever())

        logger.info("Service started", service=settings.service_name, worker=settings.worker_enabled)
        yield

        # Shutdown
        if worker is not None and worker_task is not None:
            worker.stop()
            await worker_task
        await dispose_database()
        logger.info("Service stopped", service=settings.service_name)

    app = FastAPI(title=settings.service_name, version=__version__, lifespan=lifespan)
    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.service_name, "version": __version__}

    app.include_router(router, prefix="/api/v1")
    return app


app: FastAPI = create_app()
