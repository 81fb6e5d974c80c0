"""Integration test fixtures for API testing."""
from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from backend.src.adapters.inbound.fastapi_app import app
from backend.src.infrastructure.config import Settings, StorageSettings, WebSettings
from backend.src.infrastructure.container import ApplicationContainer


@pytest.fixture
def test_settings(tmp_path):
    """Create test settings writing frames under a temporary directory."""
    settings = Settings(
        storage=StorageSettings(backend="local", base_dir=str(tmp_path / "frames")),
        web=WebSettings(max_upload_size_mb=1),
    )
    settings.app_env = "test"
    return settings


@pytest.fixture
def fake_decoder(fake_decoder_cls):
    return fake_decoder_cls(frames=3)


@pytest.fixture
def test_container(test_settings, fake_decoder):
    """Create a test container whose decoder is replaced by a fake."""
    container = ApplicationContainer(test_settings)
    container._cache["decoder"] = fake_decoder
    return container


@pytest.fixture
async def async_client(test_container):
    """Create an async test client for the FastAPI app."""
    app.state.container = test_container

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
