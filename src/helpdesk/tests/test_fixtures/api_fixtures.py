"""Fixtures for HTTP tests: the app wired to the test session."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import Settings
from helpdesk.core.dependencies import get_app_settings
from helpdesk.database.session import get_async_session
from helpdesk.main import create_app


@pytest.fixture
def app(db_session: AsyncSession) -> FastAPI:
    """
    Application using the test session for every request, so data created
    through repositories in a test is visible to the routes (and vice versa).
    """
    application = create_app(configure_logging=False)

    async def _override_session():
        yield db_session

    application.dependency_overrides[get_async_session] = _override_session
    application.dependency_overrides[get_app_settings] = lambda: Settings(APP_TIMEZONE="Europe/Paris")
    return application


@pytest.fixture
async def client(app: FastAPI):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
