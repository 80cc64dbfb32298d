"""Object graph for the service.

Long-lived collaborators (catalog, specialists, inference client, payment
gateway) are built once from settings. Session-scoped services are built per
request from an AsyncSession. The analysis pipeline is built from the session
factory instead, so each of its stages commits in a transaction of its own.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from growth_diagnostic.adapters.inference_client import OpenAIInferenceClient
from growth_diagnostic.adapters.payment_gateway import StripePaymentGateway
from growth_diagnostic.adapters.repositories import (
    AssessmentRepository,
    DocumentRepository,
    DomainAnalysisRepository,
    OutboxRepository,
    ResponseRepository,
)
from growth_diagnostic.core.catalog import (
    QuestionCatalog,
    SpecialistDirectory,
    build_default_catalog,
    build_default_specialists,
)
from growth_diagnostic.core.interfaces import (
    IAssessmentRepository,
    IDocumentRepository,
    IDomainAnalysisRepository,
    IInferenceClient,
    IOutboxRepository,
    IPaymentGateway,
    IResponseRepository,
)
from growth_diagnostic.core.services import (
    AnalysisPipeline,
    AssessmentService,
    DeliverableTracker,
    DomainAnalysisStage,
    ExecutiveSummaryStage,
    LifecycleService,
    PaymentService,
    ReadinessGate,
    TriageStage,
)
from growth_diagnostic.core.services.pipeline import PipelineRepositories
from growth_diagnostic.settings import Settings


class ServiceContainer:
    """Builds services with their dependencies injected."""

    def __init__(
        self,
        settings: Settings,
        catalog: QuestionCatalog | None = None,
        specialists: SpecialistDirectory | None = None,
        inference_client: IInferenceClient | None = None,
        payment_gateway: IPaymentGateway | None = None,
    ) -> None:
        self.settings = settings
        self.catalog = catalog or build_default_catalog()
        self.specialists = specialists or build_default_specialists()
        self.inference_client = inference_client or OpenAIInferenceClient(
            api_key=settings.openai_api_key,
            model=settings.inference_model,
        )
        self.payment_gateway = payment_gateway or StripePaymentGateway(
            webhook_secret=settings.payment_webhook_secret,
            api_key=settings.stripe_secret_key,
        )

    # Repositories. Every service built for one session shares that session.

    def assessment_repository(self, session: AsyncSession) -> IAssessmentRepository:
        return AssessmentRepository(session)

    def response_repository(self, session: AsyncSession) -> IResponseRepository:
        return ResponseRepository(session)

    def document_repository(self, session: AsyncSession) -> IDocumentRepository:
        return DocumentRepository(session)

    def analysis_repository(self, session: AsyncSession) -> IDomainAnalysisRepository:
        return DomainAnalysisRepository(session)

    def outbox_repository(self, session: AsyncSession) -> IOutboxRepository:
        return OutboxRepository(session)

    # Services

    def lifecycle_service(self, session: AsyncSession) -> LifecycleService:
        return LifecycleService(self.assessment_repository(session))

    def readiness_gate(self, session: AsyncSession) -> ReadinessGate:
        return ReadinessGate(self.assessment_repository(session), self.outbox_repository(session))

    def assessment_service(self, session: AsyncSession) -> AssessmentService:
        return AssessmentService(
            assessment_repository=self.assessment_repository(session),
            response_repository=self.response_repository(session),
            document_repository=self.document_repository(session),
            analysis_repository=self.analysis_repository(session),
            lifecycle=self.lifecycle_service(session),
            gate=self.readiness_gate(session),
            catalog=self.catalog,
            response_text_max_length=self.settings.response_text_max_length,
        )

    def payment_service(self, session: AsyncSession) -> PaymentService:
        return PaymentService(
            assessment_repository=self.assessment_repository(session),
            lifecycle=self.lifecycle_service(session),
            gate=self.readiness_gate(session),
            gateway=self.payment_gateway,
            fee_amount=self.settings.assessment_fee_amount,
            fee_currency=self.settings.assessment_fee_currency,
        )

    def pipeline_repositories(self, session: AsyncSession) -> PipelineRepositories:
        assessments = self.assessment_repository(session)
        return PipelineRepositories(
            assessments=assessments,
            responses=self.response_repository(session),
            documents=self.document_repository(session),
            analyses=self.analysis_repository(session),
            tracker=DeliverableTracker(assessments, LifecycleService(assessments)),
        )

    def analysis_pipeline(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AnalysisPipeline:
        """Build a pipeline that opens a short transaction per stage."""

        @asynccontextmanager
        async def unit_of_work() -> AsyncIterator[PipelineRepositories]:
            async with session_factory() as session:
                async with session.begin():
                    yield self.pipeline_repositories(session)

        timeout = self.settings.inference_timeout_seconds
        return AnalysisPipeline(
            unit_of_work=unit_of_work,
            triage=TriageStage(
                self.inference_client,
                self.catalog,
                max_domains=self.settings.triage_max_domains,
                default_domains=self.settings.triage_default_domains,
                timeout_seconds=timeout,
            ),
            domain_analysis=DomainAnalysisStage(
                self.inference_client,
                self.specialists,
                concurrency=self.settings.domain_analysis_concurrency,
                timeout_seconds=timeout,
            ),
            executive_summary=ExecutiveSummaryStage(self.inference_client, timeout_seconds=timeout),
        )
