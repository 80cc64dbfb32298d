"""Background worker that drains the analysis outbox.

Each claimed entry runs the analysis pipeline, which commits every stage in a
short transaction of its own. If the pipeline raises, the failing stage is
rolled back and a fresh transaction records the ``pipeline failed`` event and
marks the entry failed. Output of stages that already committed is kept.
Entries are never retried automatically once failed.
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from growth_diagnostic.container import ServiceContainer
from growth_diagnostic.core.lifecycle import LifecycleEvent
from growth_diagnostic.errors import DiagnosticError
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)


class OutboxWorker:
    """Polls the outbox and runs pending analyses."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        container: ServiceContainer,
        batch_size: int = 5,
        poll_interval_seconds: float = 2.0,
        stale_after_seconds: float = 3600.0,
    ) -> None:
        """Initialise the worker.

        Args:
            session_factory: Factory for independent sessions.
            container: Builds session-scoped services.
            batch_size: Maximum entries claimed per poll.
            poll_interval_seconds: Sleep between polls when idle.
            stale_after_seconds: Age after which a running entry is requeued.
        """
        self._session_factory = session_factory
        self._container = container
        self._batch_size = batch_size
        self._poll_interval_seconds = poll_interval_seconds
        self._stale_after = timedelta(seconds=stale_after_seconds)
        self._stopping = asyncio.Event()

    async def run_once(self) -> int:
        """Claim and process one batch.

        Returns:
            Number of entries processed.
        """
        async with self._session_factory() as session:
            async with session.begin():
                outbox = self._container.outbox_repository(session)
                requeued = await outbox.requeue_stale(datetime.now(tz=timezone.utc) - self._stale_after)
                claimed = await outbox.claim_pending(self._batch_size)

        if requeued:
            logger.warning("Requeued stale outbox entries", count=requeued)

        for assessment_id in claimed:
            await self._process(assessment_id)
        return len(claimed)

    async def _process(self, assessment_id: uuid.UUID) -> None:
        log = logger.bind(assessment_id=str(assessment_id))
        try:
            await self._container.analysis_pipeline(self._session_factory).run(assessment_id)
            async with self._session_factory() as session:
                async with session.begin():
                    await self._container.outbox_repository(session).mark_done(assessment_id)
        except Exception as exc:
            log.error("Analysis pipeline failed", error_type=type(exc).__name__, exc_info=True)
            await self._record_failure(assessment_id, exc)
            return

        log.info("Outbox entry processed")

    async def _record_failure(self, assessment_id: uuid.UUID, exc: Exception) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                try:
                    await self._container.lifecycle_service(session).apply(
                        assessment_id, LifecycleEvent.PIPELINE_FAILED
                    )
                except DiagnosticError as transition_error:
                    logger.error(
                        "Could not record pipeline failure on assessment",
                        assessment_id=str(assessment_id),
                        error=transition_error.message,
                    )
                await self._container.outbox_repository(session).mark_failed(
                    assessment_id, f"{type(exc).__name__}: {exc}"
                )

    async def run_forever(self) -> None:
        """Poll until ``stop`` is called."""
        logger.info("Outbox worker started", batch_size=self._batch_size)
        while not self._stopping.is_set():
            try:
                processed = await self.run_once()
            except Exception:
                logger.error("Outbox poll failed", exc_info=True)
                processed = 0

            if processed:
                continue
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._poll_interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("Outbox worker stopped")

    def stop(self) -> None:
        self._stopping.set()
