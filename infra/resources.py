"""Infrastructure resources: embedded database and OpenAI client.

This module is part of the infra layer and must not import from application features.
"""
from typing import Optional

from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


class DatabaseResource:
    """Database resource for dependency injection."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    async def init(self):
        """Create the engine and session factory; safe to call repeatedly."""
        if self.engine is None:
            self.engine = create_async_engine(self.database_url, echo=self.echo)
            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self

    def get_session(self) -> AsyncSession:
        """Get database session (synchronous accessor)."""
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.session_factory()

    async def shutdown(self):
        """Dispose of the engine; a no-op when never initialized."""
        if self.engine is not None:
            engine, self.engine = self.engine, None
            self.session_factory = None
            await engine.dispose()


class OpenAIResource:
    """Lazily constructed AsyncOpenAI client."""

    def __init__(self, api_key: str):
        self.api_key = api_key
        self.client: Optional[AsyncOpenAI] = None

    def get_client(self) -> AsyncOpenAI:
        if self.client is None:
            self.client = AsyncOpenAI(api_key=self.api_key)
        return self.client

    async def shutdown(self):
        if self.client is not None:
            client, self.client = self.client, None
            await client.close()
