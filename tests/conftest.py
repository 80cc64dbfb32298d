"""Test fixtures for growth-diagnostic.

Services are built by FakeContainer over an in-memory FakeStore, so every
test exercises the real service, lifecycle and pipeline code without a
database or network. API tests run the real FastAPI app through httpx's
ASGITransport with the container and session dependencies overridden.
"""

import uuid
from collections.abc import AsyncGenerator
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from growth_diagnostic.adapters.payment_gateway import StripePaymentGateway
from growth_diagnostic.api.dependencies import get_container
from growth_diagnostic.core.catalog import (
    QuestionCatalog,
    SpecialistDirectory,
    build_default_catalog,
    build_default_specialists,
)
from growth_diagnostic.core.services import AnalysisPipeline, AssessmentService, PaymentService
from growth_diagnostic.database import get_db_session
from growth_diagnostic.main import create_app
from growth_diagnostic.settings import Settings
from tests.fakes import (
    WEBHOOK_SECRET,
    FakeContainer,
    FakeInferenceClient,
    FakeSession,
    FakeSessionFactory,
    FakeStore,
)


@pytest.fixture()
def owner_id() -> str:
    return "user-1111"


@pytest.fixture()
def other_owner_id() -> str:
    return "user-2222"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        openai_api_key="test-key",
        payment_webhook_secret=WEBHOOK_SECRET,
        worker_enabled=False,
        inference_timeout_seconds=5.0,
    )


@pytest.fixture()
def catalog() -> QuestionCatalog:
    return build_default_catalog()


@pytest.fixture()
def specialists() -> SpecialistDirectory:
    return build_default_specialists()


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def inference() -> FakeInferenceClient:
    return FakeInferenceClient()


@pytest.fixture()
def stripe_client() -> MagicMock:
    """Stands in for stripe.StripeClient; only payment_intents.create is used."""
    client = MagicMock()
    client.payment_intents.create.return_value = SimpleNamespace(
        id="pi_test_123", client_secret="pi_test_123_secret_abc"
    )
    return client


@pytest.fixture()
def gateway(stripe_client: MagicMock) -> StripePaymentGateway:
    return StripePaymentGateway(webhook_secret=WEBHOOK_SECRET, client=stripe_client)


@pytest.fixture()
def container(
    store: FakeStore,
    settings: Settings,
    catalog: QuestionCatalog,
    specialists: SpecialistDirectory,
    inference: FakeInferenceClient,
    gateway: StripePaymentGateway,
) -> FakeContainer:
    return FakeContainer(
        store,
        settings,
        catalog=catalog,
        specialists=specialists,
        inference_client=inference,
        payment_gateway=gateway,
    )


@pytest.fixture()
def session(store: FakeStore) -> FakeSession:
    return FakeSession(store)


@pytest.fixture()
def assessment_service(container: FakeContainer, session: FakeSession) -> AssessmentService:
    return container.assessment_service(session)


@pytest.fixture()
def payment_service(container: FakeContainer, session: FakeSession) -> PaymentService:
    return container.payment_service(session)


@pytest.fixture()
def pipeline(container: FakeContainer, store: FakeStore) -> AnalysisPipeline:
    return container.analysis_pipeline(FakeSessionFactory(store))


@pytest.fixture()
def app(container: FakeContainer, settings: Settings, store: FakeStore) -> FastAPI:
    application = create_app(settings, container=container)

    async def _session() -> AsyncGenerator[FakeSession, None]:
        yield FakeSession(store)

    application.dependency_overrides[get_container] = lambda: container
    application.dependency_overrides[get_db_session] = _session
    return application


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


@pytest.fixture()
def auth_headers(owner_id: str) -> dict[str, str]:
    return {"X-User-Id": owner_id}


@pytest.fixture()
def unknown_id() -> uuid.UUID:
    return uuid.UUID("00000000-0000-0000-0000-000000000000")
