from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from app.api.deps import get_conversation_service, get_user_directory
from app.main import app
from app.services.completion_gateway import CompletionGateway
from app.services.conversation_service import ConversationService
from app.services.conversation_store import ConversationStore
from app.services.database import Database
from app.services.user_directory import UserDirectory


def make_completion(content):
    """Build an object shaped like an OpenAI chat completion response."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(role="assistant", content=content))])


@pytest_asyncio.fixture
async def database(tmp_path):
    """Fresh on-disk SQLite database per test."""
    db = Database()
    connected = await db.connect(f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}")
    assert connected
    yield db
    await db.close()


@pytest.fixture
def conversation_store(database):
    return ConversationStore(database)


@pytest.fixture
def user_directory(database, conversation_store):
    return UserDirectory(database, conversation_store)


@pytest.fixture
def mock_client():
    client = AsyncMock()
    client.chat.completions.create.return_value = make_completion("Hello from the assistant")
    return client


@pytest.fixture
def gateway(mock_client):
    return CompletionGateway(mock_client, model="test-model", timeout=5.0)


@pytest.fixture
def conversation_service(conversation_store, gateway):
    return ConversationService(conversation_store, gateway)


@pytest_asyncio.fixture
async def api_client(user_directory, conversation_service):
    """HTTP client against the app with real services over SQLite."""
    app.dependency_overrides[get_user_directory] = lambda: user_directory
    app.dependency_overrides[get_conversation_service] = lambda: conversation_service
    try:
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
