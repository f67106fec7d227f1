"""Global test configuration and fixtures for the CourseMap API."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.modules.map.render import RecordingRenderAdapter
from src.modules.map.view import MapView
from tests.factories import CourseRecordFactory, GeoPointFactory
from tests.utils.scheduler import ManualScheduler


@pytest.fixture
def point_factory():
    return GeoPointFactory


@pytest.fixture
def record_factory():
    return CourseRecordFactory


@pytest.fixture(autouse=True)
def reset_factory_sequences():
    """Keep generated ids stable per test so ordering assertions hold."""
    GeoPointFactory.reset_sequence()
    CourseRecordFactory.reset_sequence(force=True)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def render_adapter() -> RecordingRenderAdapter:
    return RecordingRenderAdapter()


@pytest.fixture
def map_view(render_adapter, scheduler) -> MapView:
    return MapView(render_adapter, scheduler=scheduler)


@pytest_asyncio.fixture
async def app():
    """Create FastAPI application with lifespan manager for testing."""
    from src.main import app

    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client talking to the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
