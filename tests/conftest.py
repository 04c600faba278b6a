import asyncio
from typing import Dict, List, Optional

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from api.features.conversation.entities.message import MessageRole
from api.features.conversation.repository import ConversationStore
from api.main import create_fastapi_app
from api.shared.exceptions import StorageWriteError
from core.settings import AppSettings, OpenAISettings, Settings, SqliteSettings
from infra.resources import DatabaseResource

SYSTEM_PROMPT = "You are a test assistant."


class FakeChatModel:
    """Records every prompt and answers with a canned reply or error."""

    def __init__(self, reply: str = "Hi! How can I help?", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[List[Dict[str, str]]] = []

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        self.calls.append([dict(m) for m in messages])
        if self.error is not None:
            raise self.error
        return self.reply


class FailingUserWriteStore(ConversationStore):
    """Refuses to store user messages; assistant rows go through."""

    async def append(self, thread_id, role, content):
        if MessageRole(role) is MessageRole.USER:
            raise StorageWriteError("Failed to save message")
        return await super().append(thread_id, role, content)


def make_settings(db_path, environment: str = "local") -> Settings:
    return Settings(
        APP=AppSettings(ENVIRONMENT=environment, HOST="127.0.0.1", PORT=0),
        DATABASE=SqliteSettings(DATABASE_PATH=str(db_path)),
        OPENAI=OpenAISettings(OPENAI_API_KEY="test-key", SYSTEM_PROMPT=SYSTEM_PROMPT),
    )


def make_store(settings: Settings) -> ConversationStore:
    return ConversationStore(DatabaseResource(settings.DATABASE.DATABASE_URL))


def read_history(settings: Settings, thread_id: str):
    """Open a fresh store on the same file and return the thread."""

    async def _read():
        store = make_store(settings)
        await store.initialize()
        try:
            return await store.history(thread_id)
        finally:
            await store.close()

    return asyncio.run(_read())


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "messages.db"


@pytest.fixture
def settings(db_path):
    return make_settings(db_path)


@pytest.fixture
def fake_model():
    return FakeChatModel()


@pytest.fixture
def app(settings, fake_model):
    _app = create_fastapi_app(settings)
    _app.container.services.chat_model.override(providers.Object(fake_model))
    yield _app
    _app.container.services.chat_model.reset_override()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
