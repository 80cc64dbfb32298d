"""Tests for the outbox worker that runs queued analyses."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from growth_diagnostic.adapters.outbox_worker import OutboxWorker
from growth_diagnostic.core.catalog import QuestionCatalog
from growth_diagnostic.core.results import DomainAnalysisResult
from growth_diagnostic.core.services import AssessmentService, PaymentService
from growth_diagnostic.settings import Settings
from tests.fakes import (
    FakeContainer,
    FakeDomainAnalysisRepository,
    FakeInferenceClient,
    FakeSessionFactory,
    FakeStore,
    answers_for,
    start_analysis,
)


class _BrokenAnalysisRepository(FakeDomainAnalysisRepository):
    async def upsert_domain_analysis(self, assessment_id: uuid.UUID, result: DomainAnalysisResult) -> Any:
        raise RuntimeError("connection reset while writing domain analysis")


class _BrokenStorageContainer(FakeContainer):
    def analysis_repository(self, session: Any) -> _BrokenAnalysisRepository:
        return _BrokenAnalysisRepository(self.store)


def _worker(store: FakeStore, container: FakeContainer, **kwargs: Any) -> OutboxWorker:
    return OutboxWorker(FakeSessionFactory(store), container, **kwargs)  # type: ignore[arg-type]


class TestRunOnce:
    @pytest.mark.asyncio()
    async def test_empty_outbox(self, store: FakeStore, container: FakeContainer) -> None:
        assert await _worker(store, container).run_once() == 0

    @pytest.mark.asyncio()
    async def test_processes_entry_and_marks_done(
        self,
        assessment_service: AssessmentService,
        payment_service: PaymentService,
        catalog: QuestionCatalog,
        store: FakeStore,
        container: FakeContainer,
        owner_id: str,
    ) -> None:
        assessment_id = await start_analysis(assessment_service, payment_service, catalog, owner_id)

        processed = await _worker(store, container).run_once()

        entry = store.outbox[assessment_id]
        assert processed == 1
        assert entry.status == "done"
        assert entry.attempts == 1
        assert entry.finished_at is not None
        assert store.assessments[assessment_id].status == "completed"

    @pytest.mark.asyncio()
    async def test_done_entry_is_not_claimed_again(
        self,
        assessment_service: AssessmentService,
        payment_service: PaymentService,
        catalog: QuestionCatalog,
        store: FakeStore,
        container: FakeContainer,
        inference: FakeInferenceClient,
        owner_id: str,
    ) -> None:
        await start_analysis(assessment_service, payment_service, catalog, owner_id)
        worker = _worker(store, container)

        await worker.run_once()
        assert await worker.run_once() == 0
        assert len(inference.triage_calls) == 1

    @pytest.mark.asyncio()
    async def test_batch_size_limits_claims(
        self,
        assessment_service: AssessmentService,
        payment_service: PaymentService,
        catalog: QuestionCatalog,
        store: FakeStore,
        container: FakeContainer,
        owner_id: str,
    ) -> None:
        for _ in range(3):
            await start_analysis(assessment_service, payment_service, catalog, owner_id)
        worker = _worker(store, container, batch_size=2)

        assert await worker.run_once() == 2
        assert await worker.run_once() == 1
        assert {e.status for e in store.outbox.values()} == {"done"}


class TestFailures:
    @pytest.mark.asyncio()
    async def test_storage_failure_keeps_committed_stages_and_marks_failed(
        self,
        assessment_service: AssessmentService,
        payment_service: PaymentService,
        catalog: QuestionCatalog,
        store: FakeStore,
        settings: Settings,
        inference: FakeInferenceClient,
        owner_id: str,
    ) -> None:
        assessment_id = await start_analysis(assessment_service, payment_service, catalog, owner_id)
        broken = _BrokenStorageContainer(store, settings, catalog=catalog, inference_client=inference)

        processed = await _worker(store, broken).run_once()

        record = store.assessments[assessment_id]
        entry = store.outbox[assessment_id]
        assert processed == 1
        assert record.status == "failed"
        # Triage committed before the failing stage; that stage rolled back.
        assert record.priority_domains == list(catalog.domains[:3])
        assert not record.detailed_analysis_ready
        assert not record.executive_summary_ready
        assert record.completed_at is None
        assert store.open_transactions == 0
        assert store.analyses == {}
        assert entry.status == "failed"
        assert entry.last_error == "RuntimeError: connection reset while writing domain analysis"

    @pytest.mark.asyncio()
    async def test_entry_for_assessment_outside_analysis_is_marked_failed(
        self,
        assessment_service: AssessmentService,
        catalog: QuestionCatalog,
        store: FakeStore,
        container: FakeContainer,
        owner_id: str,
    ) -> None:
        assessment = await assessment_service.create_assessment(owner_id)
        await assessment_service.submit_responses(assessment.id, owner_id, answers_for(catalog))
        store.outbox.clear()
        await container.outbox_repository(None).enqueue(assessment.id)

        await _worker(store, container).run_once()

        assert store.assessments[assessment.id].status == "awaiting_payment"
        assert store.outbox[assessment.id].status == "failed"
        assert store.outbox[assessment.id].last_error.startswith("IllegalTransitionError")


class TestStaleEntries:
    @pytest.mark.asyncio()
    async def test_stale_running_entry_is_requeued_and_processed(
        self,
        assessment_service: AssessmentService,
        payment_service: PaymentService,
        catalog: QuestionCatalog,
        store: FakeStore,
        container: FakeContainer,
        owner_id: str,
    ) -> None:
        assessment_id = await start_analysis(assessment_service, payment_service, catalog, owner_id)
        entry = store.outbox[assessment_id]
        entry.status = "running"
        entry.attempts = 1
        entry.claimed_at = datetime.now(tz=timezone.utc) - timedelta(hours=2)

        processed = await _worker(store, container, stale_after_seconds=60).run_once()

        assert processed == 1
        assert store.outbox[assessment_id].status == "done"
        assert store.outbox[assessment_id].attempts == 2

    @pytest.mark.asyncio()
    async def test_recent_running_entry_is_left_alone(
        self,
        assessment_service: AssessmentService,
        payment_service: PaymentService,
        catalog: QuestionCatalog,
        store: FakeStore,
        container: FakeContainer,
        owner_id: str,
    ) -> None:
        assessment_id = await start_analysis(assessment_service, payment_service, catalog, owner_id)
        entry = store.outbox[assessment_id]
        entry.status = "running"
        entry.claimed_at = datetime.now(tz=timezone.utc)

        assert await _worker(store, container, stale_after_seconds=60).run_once() == 0
        assert store.outbox[assessment_id].status == "running"


class TestRunForever:
    @pytest.mark.asyncio()
    async def test_drains_outbox_until_stopped(
        self,
        assessment_service: AssessmentService,
        payment_service: PaymentService,
        catalog: QuestionCatalog,
        store: FakeStore,
        container: FakeContainer,
        owner_id: str,
    ) -> None:
        assessment_id = await start_analysis(assessment_service, payment_service, catalog, owner_id)
        worker = _worker(store, container, poll_interval_seconds=0.01)

        task = asyncio.create_task(worker.run_forever())
        for _ in range(200):
            if store.outbox[assessment_id].status == "done":
                break
            await asyncio.sleep(0.01)
        worker.stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert store.outbox[assessment_id].status == "done"
        assert task.done()
