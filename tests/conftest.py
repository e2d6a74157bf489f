"""Pytest configuration and fixtures for Call Mate tests."""

from __future__ import annotations

import os
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Set test environment before anything reads settings
os.environ["CALLMATE_ENV"] = "development"
os.environ["CALLMATE_DEBUG"] = "true"
os.environ["CALLMATE_DATABASE__URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CALLMATE_AUTH__JWT_SECRET_KEY"] = "test-secret-key-for-callmate-tests"
os.environ["CALLMATE_BUSINESS__TIMEZONE"] = "UTC"


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Re-read settings for every test (tests may monkeypatch the env)."""
    from callmate.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def business():
    """Business rules with the default 8.25% tax."""
    from callmate.config import BusinessSettings

    return BusinessSettings(tax_rate=Decimal("0.0825"), timezone="UTC")


# ============================================================================
# Async Database Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine with in-memory SQLite.

    Creates a fresh database for each test function.
    """
    from callmate.db.session import create_test_engine

    engine = await create_test_engine()
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator:
    """Create test database session.

    Provides a session that rolls back after each test.
    """
    from callmate.db.session import build_session_factory

    async with build_session_factory(db_engine)() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def customer_repository(db_session):
    from callmate.db.repositories import CustomerRepository

    return CustomerRepository(db_session)


@pytest_asyncio.fixture
async def job_repository(db_session):
    from callmate.db.repositories import JobRepository

    return JobRepository(db_session)


@pytest_asyncio.fixture
async def sample_customer(db_session, customer_repository):
    """Create a sample customer for testing."""
    from callmate.db.models import CustomerModel

    customer = CustomerModel(
        first_name="Dana",
        last_name="Reyes",
        email="dana.reyes@example.com",
        phone="+15125550100",
        address="400 Congress Ave",
        city="Austin",
        state="TX",
        zip_code="78701",
    )
    await customer_repository.create(customer)
    await db_session.commit()
    return customer


@pytest.fixture
def quote_items():
    """Two rows: 2 x 50.00 + 1 x 19.99 = 119.99 before tax."""
    return [
        {"description": "Service call", "quantity": 2, "rate": "50.00"},
        {"description": "Capacitor", "quantity": 1, "rate": "19.99"},
    ]


# ============================================================================
# Collaborator Fakes
# ============================================================================

@pytest.fixture
def fake_llm():
    """LLM client whose ``complete_json`` returns whatever the test sets."""
    llm = AsyncMock()
    llm.complete_json = AsyncMock(return_value={})
    return llm


@pytest.fixture
def fake_payments():
    payments = AsyncMock()
    payments.create_payment_intent = AsyncMock(return_value="pi_123_secret_456")
    return payments


# ============================================================================
# API Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def app(db_engine, fake_llm, fake_payments):
    """Application wired to the test database and fake collaborators."""
    from callmate.api.dependencies import get_llm_client, get_payments_client
    from callmate.api.rate_limits import limiter
    from callmate.db.session import build_session_factory, get_db
    from callmate.main import create_app

    application = create_app()
    session_factory = build_session_factory(db_engine)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_llm_client] = lambda: fake_llm
    application.dependency_overrides[get_payments_client] = lambda: fake_payments

    limiter.reset()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer token for an admin user."""
    from callmate.api.auth import create_access_token

    token = create_access_token(
        "user-123",
        email="owner@example.com",
        first_name="Sam",
        last_name="Owner",
        role="admin",
    )
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(app, auth_headers):
    """Authenticated HTTP client."""
    from httpx import ASGITransport, AsyncClient

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=auth_headers,
    ) as http:
        yield http


@pytest_asyncio.fixture
async def anonymous_client(app):
    """HTTP client without credentials."""
    from httpx import ASGITransport, AsyncClient

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
