"""Validators for send-message payloads."""
import json
from typing import Any

from api.features.conversation.dtos import SendMessageRequest
from api.features.conversation.exceptions import (
    EmptyContentError,
    InvalidTypeError,
    MissingFieldError,
)


class SendMessageValidator:
    """Applies the payload rules in order; the first failing rule wins."""

    REQUIRED_FIELDS = ("threadId", "content")

    @classmethod
    def parse_body(cls, raw: bytes) -> Any:
        try:
            return json.loads(raw) if raw else None
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidTypeError("Request body must be valid JSON") from e

    @classmethod
    def validate(cls, payload: Any) -> SendMessageRequest:
        if payload is None:
            raise MissingFieldError(list(cls.REQUIRED_FIELDS))
        if not isinstance(payload, dict):
            raise InvalidTypeError("Request body must be a JSON object")

        missing = [name for name in cls.REQUIRED_FIELDS if cls._is_missing(payload.get(name))]
        if missing:
            raise MissingFieldError(missing)

        thread_id = payload["threadId"]
        content = payload["content"]
        if not isinstance(thread_id, str) or not isinstance(content, str):
            raise InvalidTypeError()

        # Only the emptiness check uses the trimmed form; content is stored as sent.
        if not content.strip():
            raise EmptyContentError()

        return SendMessageRequest(thread_id=thread_id, content=content)

    @staticmethod
    def _is_missing(value: Any) -> bool:
        return value is None or value == ""
