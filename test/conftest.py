"""
Pytest configuration and fixtures for the call-flow tests.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Generator

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from surveycall.config import Settings
from surveycall.main import create_app
from surveycall.recordings.client import RecordingClient
from surveycall.shared.database import DatabaseManager
from surveycall.survey.questions import QuestionBank

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

QUESTIONS = (
    "How satisfied are you with our service?",
    "What could we do better?",
    "Would you recommend us to a friend?",
)

AUDIO_BYTES = b"RIFF\x24\x00\x00\x00WAVEfmt " + bytes(range(64))


@pytest.fixture
def question_bank() -> QuestionBank:
    return QuestionBank(QUESTIONS)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        app_env="dev",
        debug=True,
        database_url=TEST_DATABASE_URL,
        messagebird_api_key="test-access-key",
        messagebird_voice_base_url="https://voice.example.com",
        public_base_url="https://survey.example.com",
    )


@pytest.fixture
def db_manager() -> DatabaseManager:
    # One shared connection so every session sees the same in-memory database.
    return DatabaseManager(TEST_DATABASE_URL, poolclass=StaticPool)


@pytest_asyncio.fixture
async def db_session(db_manager: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session on a fresh schema."""
    await db_manager.create_schema()
    async with db_manager.session() as session:
        yield session
    await db_manager.close()


@pytest.fixture
def upstream_handler() -> Callable[[httpx.Request], httpx.Response]:
    """Default fake recording API: serves AUDIO_BYTES for every recording."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=AUDIO_BYTES,
            headers={"content-type": "audio/wav"},
        )

    return handler


@pytest.fixture
def recording_client(
    upstream_handler: Callable[[httpx.Request], httpx.Response],
) -> RecordingClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream_handler))
    return RecordingClient(
        api_key="test-access-key",
        base_url="https://voice.example.com",
        http_client=http_client,
    )


@pytest.fixture
def client(
    test_settings: Settings,
    question_bank: QuestionBank,
    db_manager: DatabaseManager,
    recording_client: RecordingClient,
) -> Generator[TestClient, None, None]:
    """TestClient with lifespan run (schema created, resources closed)."""
    app = create_app(
        settings=test_settings,
        question_bank=question_bank,
        db_manager=db_manager,
        recording_client=recording_client,
    )
    with TestClient(app) as test_client:
        yield test_client
