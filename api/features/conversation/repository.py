"""Conversation store: durable, append-only, per-thread message log.

Backed by a single SQLite table through SQLAlchemy's async engine. One
engine (and its connection pool) is shared by every request for the
lifetime of the process.
"""
from __future__ import annotations

import sqlite3
from typing import List

import structlog
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from api.features.conversation.dtos import StoredMessage
from api.features.conversation.entities.message import Message, MessageRole
from api.shared.entities.registry import BaseEntity
from api.shared.exceptions import StorageReadError, StorageUnavailable, StorageWriteError
from infra.resources import DatabaseResource

logger = structlog.get_logger("chat.store")


def decode_message(row: Message) -> StoredMessage:
    """Map a row to a ``StoredMessage``, refusing roles outside user/assistant."""
    try:
        return StoredMessage.model_validate(row)
    except ValidationError as e:
        raise StorageReadError(
            "Stored message could not be decoded",
            details={"message_id": row.id, "role": row.role, "error": str(e)},
        ) from e


class ConversationStore:
    """Insert and ordered retrieval of messages keyed by thread."""

    def __init__(self, database: DatabaseResource):
        self.database = database

    async def initialize(self) -> None:
        """Open the backing file and create the schema if it is missing."""
        try:
            await self.database.init()
            async with self.database.engine.begin() as conn:
                await conn.run_sync(BaseEntity.metadata.create_all)
        except (SQLAlchemyError, sqlite3.Error, OSError) as e:
            logger.error(
                "store.initialize.failed",
                database_url=self.database.database_url,
                error=str(e),
            )
            await self.database.shutdown()
            raise StorageUnavailable(
                "Message store could not be opened",
                details={"database_url": self.database.database_url, "error": str(e)},
            ) from e
        logger.info("store.initialized", database_url=self.database.database_url)

    async def append(self, thread_id: str, role: MessageRole | str, content: str) -> int:
        """Insert one message and return its surrogate id."""
        try:
            role = MessageRole(role)
        except ValueError as e:
            raise StorageWriteError(
                "Failed to save message",
                details={"thread_id": thread_id, "error": f"invalid role {role!r}"},
            ) from e

        row = Message(thread_id=thread_id, role=role.value, content=content)
        try:
            async with self.database.get_session() as session:
                session.add(row)
                await session.commit()
                message_id = row.id
        except (SQLAlchemyError, RuntimeError, UnicodeError) as e:
            logger.error(
                "store.append.failed", thread_id=thread_id, role=role.value, error=str(e)
            )
            raise StorageWriteError(
                "Failed to save message",
                details={"thread_id": thread_id, "error": str(e)},
            ) from e

        logger.debug("store.append", thread_id=thread_id, role=role.value, message_id=message_id)
        return message_id

    async def history(self, thread_id: str) -> List[StoredMessage]:
        """Return every message of ``thread_id``, oldest first."""
        stmt = (
            select(Message)
            .where(Message.thread_id == thread_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        try:
            async with self.database.get_session() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except (SQLAlchemyError, RuntimeError, UnicodeError) as e:
            logger.error("store.history.failed", thread_id=thread_id, error=str(e))
            raise StorageReadError(
                "Failed to load conversation history",
                details={"thread_id": thread_id, "error": str(e)},
            ) from e

        return [decode_message(row) for row in rows]

    async def close(self) -> None:
        """Release the engine; repeated or pre-initialization calls do nothing."""
        if not self.database.is_initialized:
            return
        await self.database.shutdown()
        logger.info("store.closed")
