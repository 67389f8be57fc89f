"""
Mootie Backend - Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Test environment variables are set BEFORE any mootie import so the
       settings singleton picks them up.

Fixtures:
    ├── test_settings: Settings instance with fast retry/poll budgets
    ├── mock_provider: AsyncMock of the LLMProvider interface
    ├── test_client: HTTPX AsyncClient bound to the app, provider overridden
    └── sample_pdf_bytes / sample_audio_bytes: fake upload payloads
"""

import os

os.environ["OPENAI_API_KEY"] = "test-key-not-real"
os.environ["VECTOR_STORE_ID"] = "vs_test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["RETRY_JITTER"] = "0"
os.environ["VERIFY_DELETE_TIMEOUT"] = "0.2"
os.environ["VERIFY_DELETE_POLL_INTERVAL"] = "0.01"

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from mootie.config import Settings  # noqa: E402
from mootie.services.llm_base import LLMProvider  # noqa: E402


@pytest.fixture
def test_settings():
    """
    Settings for service-level tests, independent of the environment.

    Zero retry waits and a short verification budget keep tests fast.
    """
    return Settings(
        _env_file=None,
        openai_api_key="test-key-not-real",
        vector_store_id="vs_test",
        retry_max_attempts=3,
        retry_min_wait=0,
        retry_max_wait=0,
        retry_jitter=0,
        verify_delete_timeout=0.2,
        verify_delete_poll_interval=0.01,
    )


@pytest.fixture
def mock_provider():
    """
    An AsyncMock implementing LLMProvider.

    Usage:
        mock_provider.create_file.return_value = {"id": "file_1"}
        mock_provider.attach_file.side_effect = UpstreamError(status_code=500)
    """
    return AsyncMock(spec=LLMProvider)


@pytest.fixture
def sample_pdf_bytes():
    return b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << >>\n%%EOF\n"


@pytest.fixture
def sample_audio_bytes():
    # EBML header of a WebM file followed by filler.
    return b"\x1a\x45\xdf\xa3" + b"\x00" * 64


@pytest_asyncio.fixture
async def test_client(mock_provider):
    """
    Async HTTP client talking to the app in-process.

    The provider dependency is replaced by `mock_provider`, so no request
    leaves the test process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/api/health")
            assert response.status_code == 200
    """
    from mootie.dependencies import get_provider
    from mootie.main import app

    app.dependency_overrides[get_provider] = lambda: mock_provider
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
