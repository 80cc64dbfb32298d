"""Tests for the analysis pipeline and its stages.

The pipeline runs against the in-memory store with a scriptable inference
client, so every fallback path can be forced deterministically.
"""

import uuid
from typing import Any

import pytest

from growth_diagnostic.core.catalog import QuestionCatalog, SpecialistDirectory
from growth_diagnostic.core.services import AnalysisPipeline, AssessmentService, PaymentService
from growth_diagnostic.core.services.executive_summary import FALLBACK_SUMMARY
from growth_diagnostic.core.services.triage import rank_domains
from growth_diagnostic.errors import ConflictError, IllegalTransitionError, InferenceError, NotFoundError
from growth_diagnostic.settings import Settings
from tests.fakes import (
    FakeContainer,
    FakeInferenceClient,
    FakeSession,
    FakeSessionFactory,
    FakeStore,
    answers_for,
    start_analysis,
)

# Revenue Engine < Financial Management < Customer Success < everything else (6).
WEAK_SCORES = {"Revenue Engine": 2, "Financial Management": 3, "Customer Success": 4}


class _Scored:
    def __init__(self, question_id: str, domain_name: str, score: int) -> None:
        self.question_id = question_id
        self.domain_name = domain_name
        self.score = score
        self.response = None


class _Harness:
    """Services wired to one store and one scripted inference client."""

    def __init__(
        self,
        store: FakeStore,
        settings: Settings,
        catalog: QuestionCatalog,
        specialists: SpecialistDirectory,
        inference: FakeInferenceClient,
    ) -> None:
        container = FakeContainer(
            store, settings, catalog=catalog, specialists=specialists, inference_client=inference
        )
        session = FakeSession(store)
        self.store = store
        self.catalog = catalog
        self.inference = inference
        self.assessments: AssessmentService = container.assessment_service(session)
        self.payments: PaymentService = container.payment_service(session)
        self.pipeline: AnalysisPipeline = container.analysis_pipeline(FakeSessionFactory(store))

    async def started(self, owner_id: str, scores: dict[str, int] | None = None) -> uuid.UUID:
        return await start_analysis(self.assessments, self.payments, self.catalog, owner_id, scores)


@pytest.fixture()
def harness_for(store: FakeStore, settings: Settings, catalog: QuestionCatalog, specialists: SpecialistDirectory):
    def _build(inference: FakeInferenceClient | None = None, **overrides: Any) -> _Harness:
        effective = settings.model_copy(update=overrides) if overrides else settings
        return _Harness(store, effective, catalog, specialists, inference or FakeInferenceClient())

    return _build


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestPipelineRun:
    @pytest.mark.asyncio()
    async def test_completes_with_all_deliverables(self, harness_for, owner_id: str) -> None:
        harness = harness_for()
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        finished = await harness.pipeline.run(assessment_id)

        record = harness.store.assessments[assessment_id]
        assert finished.status == "completed"
        assert record.completed_at is not None
        assert record.priority_domains == ["Revenue Engine", "Financial Management", "Customer Success"]
        assert record.critical_issues == ["Unpredictable pipeline"]
        assert record.executive_summary == "Growth is limited by revenue predictability."
        assert record.executive_summary_ready
        assert record.detailed_analysis_ready
        assert record.implementation_kits_ready
        assert len(record.implementation_kits) == 3

    @pytest.mark.asyncio()
    async def test_health_is_derived_from_score(self, harness_for, owner_id: str) -> None:
        harness = harness_for()
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        await harness.pipeline.run(assessment_id)

        analyses = [a for (aid, _), a in harness.store.analyses.items() if aid == assessment_id]
        assert len(analyses) == 3
        # The inference payload claims "excellent" for a 3.2.
        assert {a.health for a in analyses} == {"critical"}
        assert all(a.score == 3.2 for a in analyses)

    @pytest.mark.asyncio()
    async def test_out_of_range_score_is_clamped(self, harness_for, owner_id: str) -> None:
        inference = FakeInferenceClient(
            domain_payloads={"Revenue Engine": {"score": 14, "health": "critical", "summary": "Strong"}}
        )
        harness = harness_for(inference)
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        await harness.pipeline.run(assessment_id)

        revenue = harness.store.analyses[(assessment_id, "Revenue Engine")]
        assert revenue.score == 10.0
        assert revenue.health == "excellent"

    @pytest.mark.asyncio()
    async def test_each_domain_gets_its_specialist_and_responses(self, harness_for, owner_id: str) -> None:
        harness = harness_for()
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        await harness.pipeline.run(assessment_id)

        calls = {domain: (specialist.name, count) for domain, specialist, count in harness.inference.domain_calls}
        assert calls["Revenue Engine"] == ("Sarah Mitchell", 10)
        assert calls["Financial Management"] == ("Marcus Rodriguez", 10)
        assert calls["Customer Success"] == ("Maria Santos", 10)

    @pytest.mark.asyncio()
    async def test_analysis_view_after_completion(self, harness_for, owner_id: str) -> None:
        harness = harness_for()
        assessment_id = await harness.started(owner_id, WEAK_SCORES)
        await harness.pipeline.run(assessment_id)

        view = await harness.assessments.get_analysis_status(assessment_id, owner_id)

        assert view.status == "completed"
        assert view.analysis_progress == 100
        assert [a.domain_name for a in view.domain_analyses] == view.priority_domains
        assert view.executive_summary == "Growth is limited by revenue predictability."
        assert [kit["domain_name"] for kit in view.implementation_kits] == [
            "Revenue Engine",
            "Financial Management",
            "Customer Success",
        ]

    @pytest.mark.asyncio()
    async def test_domain_calls_respect_concurrency_limit(self, harness_for, catalog: QuestionCatalog, owner_id: str) -> None:
        inference = FakeInferenceClient(
            triage_payload={"priorityDomains": list(catalog.domains[:5]), "criticalIssues": []},
            delay_seconds=0.01,
        )
        harness = harness_for(inference)
        assessment_id = await harness.started(owner_id)

        await harness.pipeline.run(assessment_id)

        assert len(inference.domain_calls) == 5
        assert 1 < inference.max_in_flight <= 3


# ---------------------------------------------------------------------------
# Triage
# ---------------------------------------------------------------------------


class TestTriage:
    def test_rank_domains_lowest_first_ties_in_catalog_order(self, catalog: QuestionCatalog) -> None:
        responses = [
            _Scored("1.1", "Strategic Alignment", 5),
            _Scored("3.1", "Revenue Engine", 5),
            _Scored("2.1", "Financial Management", 2),
        ]

        assert rank_domains(responses, catalog) == [
            "Financial Management",
            "Strategic Alignment",
            "Revenue Engine",
        ]

    @pytest.mark.asyncio()
    async def test_selection_is_filtered_deduplicated_and_ranked(self, harness_for, owner_id: str) -> None:
        inference = FakeInferenceClient(
            triage_payload={
                "priorityDomains": ["Customer Success", "Unknown Domain", "Revenue Engine", "Customer Success", 42],
                "criticalIssues": ["  Churn is rising  ", "", None],
            }
        )
        harness = harness_for(inference)
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        await harness.pipeline.run(assessment_id)

        record = harness.store.assessments[assessment_id]
        assert record.priority_domains == ["Revenue Engine", "Customer Success"]
        assert record.critical_issues == ["Churn is rising"]

    @pytest.mark.asyncio()
    async def test_selection_is_capped(self, harness_for, catalog: QuestionCatalog, owner_id: str) -> None:
        inference = FakeInferenceClient(
            triage_payload={"priorityDomains": list(catalog.domains), "criticalIssues": []}
        )
        harness = harness_for(inference)
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        await harness.pipeline.run(assessment_id)

        record = harness.store.assessments[assessment_id]
        assert len(record.priority_domains) == 5
        assert record.priority_domains[:3] == ["Revenue Engine", "Financial Management", "Customer Success"]

    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        "inference",
        [
            FakeInferenceClient(triage_error=InferenceError("upstream unavailable")),
            FakeInferenceClient(triage_payload="not json"),
            FakeInferenceClient(triage_payload={"priorityDomains": "Revenue Engine"}),
            FakeInferenceClient(triage_payload={"priorityDomains": ["Nothing We Know"]}),
        ],
        ids=["error", "not-an-object", "not-a-list", "no-known-domain"],
    )
    async def test_falls_back_to_default_priorities(
        self, harness_for, owner_id: str, inference: FakeInferenceClient
    ) -> None:
        harness = harness_for(inference)
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        await harness.pipeline.run(assessment_id)

        record = harness.store.assessments[assessment_id]
        assert record.priority_domains == [
            "Strategic Alignment",
            "Operations Excellence",
            "Financial Management",
        ]
        assert record.critical_issues == ["Analysis in progress"]
        assert record.status == "completed"


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------


class TestFallbacks:
    @pytest.mark.asyncio()
    async def test_failing_domain_does_not_affect_siblings(self, harness_for, owner_id: str) -> None:
        harness = harness_for(FakeInferenceClient(failing_domains={"Financial Management"}))
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        finished = await harness.pipeline.run(assessment_id)

        failed = harness.store.analyses[(assessment_id, "Financial Management")]
        sibling = harness.store.analyses[(assessment_id, "Revenue Engine")]
        assert finished.status == "completed"
        assert failed.is_fallback
        assert failed.score == 5.0
        assert failed.health == "warning"
        assert failed.specialist_name == "Marcus Rodriguez"
        assert not sibling.is_fallback
        assert sibling.score == 3.2

        kits = {kit["domain_name"]: kit for kit in harness.store.assessments[assessment_id].implementation_kits}
        assert kits["Financial Management"]["provisional"]
        assert not kits["Revenue Engine"]["provisional"]

    @pytest.mark.asyncio()
    async def test_payload_without_score_becomes_fallback(self, harness_for, owner_id: str) -> None:
        inference = FakeInferenceClient(domain_payloads={"Revenue Engine": {"summary": "No score here"}})
        harness = harness_for(inference)
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        await harness.pipeline.run(assessment_id)

        assert harness.store.analyses[(assessment_id, "Revenue Engine")].is_fallback

    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        "inference",
        [
            FakeInferenceClient(summary_error=InferenceError("timeout")),
            FakeInferenceClient(summary="   "),
            FakeInferenceClient(summary={"text": "wrong shape"}),
        ],
        ids=["error", "blank", "not-a-string"],
    )
    async def test_summary_placeholder(self, harness_for, owner_id: str, inference: FakeInferenceClient) -> None:
        harness = harness_for(inference)
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        finished = await harness.pipeline.run(assessment_id)

        record = harness.store.assessments[assessment_id]
        assert finished.status == "completed"
        assert record.executive_summary == FALLBACK_SUMMARY
        assert record.executive_summary_ready


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


class TestPreconditions:
    @pytest.mark.asyncio()
    async def test_unknown_assessment(self, pipeline: AnalysisPipeline, unknown_id: uuid.UUID) -> None:
        with pytest.raises(NotFoundError):
            await pipeline.run(unknown_id)

    @pytest.mark.asyncio()
    async def test_refuses_assessment_that_never_started(
        self,
        assessment_service: AssessmentService,
        pipeline: AnalysisPipeline,
        catalog: QuestionCatalog,
        inference: FakeInferenceClient,
        owner_id: str,
    ) -> None:
        assessment = await assessment_service.create_assessment(owner_id)
        await assessment_service.submit_responses(assessment.id, owner_id, answers_for(catalog))

        with pytest.raises(IllegalTransitionError, match="awaiting_payment"):
            await pipeline.run(assessment.id)

        assert inference.triage_calls == []

    @pytest.mark.asyncio()
    async def test_finished_assessment_is_skipped(self, harness_for, owner_id: str) -> None:
        harness = harness_for()
        assessment_id = await harness.started(owner_id, WEAK_SCORES)
        await harness.pipeline.run(assessment_id)
        summary_ready_at = harness.store.assessments[assessment_id].executive_summary_ready_at

        again = await harness.pipeline.run(assessment_id)

        assert again.status == "completed"
        assert len(harness.inference.triage_calls) == 1
        assert harness.store.assessments[assessment_id].executive_summary_ready_at == summary_ready_at

    @pytest.mark.asyncio()
    async def test_run_without_any_domain_is_a_conflict(self, harness_for, owner_id: str) -> None:
        harness = harness_for(
            FakeInferenceClient(triage_error=InferenceError("down")), triage_default_domains=[]
        )
        assessment_id = await harness.started(owner_id, WEAK_SCORES)

        with pytest.raises(ConflictError, match="without all deliverables"):
            await harness.pipeline.run(assessment_id)

        assert harness.store.assessments[assessment_id].status == "analysis"


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class _TransactionWatchingInference(FakeInferenceClient):
    """Records how many transactions were open at each inference call."""

    def __init__(self, store: FakeStore) -> None:
        super().__init__()
        self._store = store
        self.open_at_call: list[int] = []

    async def triage(self, responses: list[dict[str, Any]], context: Any, domains: list[str]) -> Any:
        self.open_at_call.append(self._store.open_transactions)
        return await super().triage(responses, context, domains)

    async def analyze_domain(self, domain_name: str, *args: Any) -> Any:
        self.open_at_call.append(self._store.open_transactions)
        return await super().analyze_domain(domain_name, *args)

    async def summarize(self, analyses: list[dict[str, Any]], context: Any) -> Any:
        self.open_at_call.append(self._store.open_transactions)
        return await super().summarize(analyses, context)


class TestTransactions:
    @pytest.mark.asyncio()
    async def test_inference_runs_outside_transactions(
        self, harness_for, store: FakeStore, owner_id: str
    ) -> None:
        inference = _TransactionWatchingInference(store)
        harness = harness_for(inference)
        assessment_id = await harness.started(owner_id, WEAK_SCORES)
        committed_before = store.committed_transactions

        await harness.pipeline.run(assessment_id)

        # triage + three domains + summary
        assert inference.open_at_call == [0, 0, 0, 0, 0]
        assert store.open_transactions == 0
        # inputs, triage, domain analyses, then summary with kits and completion
        assert store.committed_transactions - committed_before == 4
        assert store.assessments[assessment_id].status == "completed"
