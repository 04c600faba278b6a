"""Chat orchestration: validate, persist, load history, call the model, persist.

Each step either returns its value or raises a ``ChatRelayException``; the
pipeline stops at the first failure and reports it as a tagged
``TurnResult``. Nothing is retried and no intermediate state is persisted
beyond the rows the completed steps wrote.
"""
from __future__ import annotations

from typing import Any, Dict, List

import structlog

from api.features.conversation.dtos import SendMessageRequest, StoredMessage, TurnResult
from api.features.conversation.entities.message import MessageRole
from api.features.conversation.model_client import ChatModel
from api.features.conversation.repository import ConversationStore
from api.features.conversation.validators import SendMessageValidator
from api.shared.exceptions import ChatRelayException

logger = structlog.get_logger("chat.orchestrator")


def build_prompt(system_prompt: str, history: List[StoredMessage]) -> List[Dict[str, str]]:
    """Leading system instruction followed by the thread in stored order."""
    return [{"role": "system", "content": system_prompt}] + [
        message.as_prompt_item() for message in history
    ]


class ChatOrchestrator:
    """Runs one conversation turn against the store and the chat model."""

    def __init__(self, store: ConversationStore, chat_model: ChatModel, system_prompt: str):
        self.store = store
        self.chat_model = chat_model
        self.system_prompt = system_prompt

    async def send_message(self, payload: Any) -> TurnResult:
        """Run a turn for a raw (already JSON-decoded) payload."""
        try:
            request = SendMessageValidator.validate(payload)
        except ChatRelayException as e:
            logger.info("turn.rejected", error_code=e.error_code, error=e.message)
            return TurnResult.failure(e, step="validate")
        return await self.run_turn(request)

    async def run_turn(self, request: SendMessageRequest) -> TurnResult:
        thread_id = request.thread_id
        log = logger.bind(thread_id=thread_id)
        log.info("turn.received", content_length=len(request.content))

        step = "append_user"
        prompt: List[Dict[str, str]] = []
        try:
            await self.store.append(thread_id, MessageRole.USER, request.content)

            step = "history"
            history = await self.store.history(thread_id)
            prompt = build_prompt(self.system_prompt, history)

            step = "model"
            reply = await self.chat_model.complete(prompt)

            # A failure here loses the reply even though the model answered.
            step = "append_assistant"
            await self.store.append(thread_id, MessageRole.ASSISTANT, reply)
        except ChatRelayException as e:
            log.error(
                "turn.failed",
                step=step,
                error_code=e.error_code,
                error=e.message,
                details=e.details,
            )
            return TurnResult.failure(e, step=step, thread_id=thread_id, prompt=prompt)

        log.info("turn.completed", history_len=len(history), reply_length=len(reply))
        return TurnResult.success(thread_id=thread_id, reply=reply, prompt=prompt)
