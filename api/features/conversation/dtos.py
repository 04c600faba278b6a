"""DTOs for the Conversation feature."""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from api.features.conversation.entities.message import MessageRole
from api.shared.dtos import BaseDTO


class SendMessageRequest(BaseDTO):
    """Validated ``POST /messages`` payload."""

    thread_id: str = Field(description="Opaque conversation thread identifier")
    content: str = Field(description="User message, stored verbatim")


class SendMessageResponse(BaseDTO):
    """Assistant reply returned to the caller."""

    content: str = Field(description="Assistant reply")


class StoredMessage(BaseDTO):
    """Decoded message row."""

    id: int = Field(description="Store-assigned surrogate key")
    thread_id: str = Field(description="Conversation thread identifier")
    role: MessageRole = Field(description="Message role: user or assistant")
    content: str = Field(description="Message content")
    created_at: Optional[datetime] = Field(default=None, description="Insert timestamp")

    class Config:
        frozen = True

    def as_prompt_item(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class TurnResult(BaseDTO):
    """Tagged outcome of one send-message turn."""

    thread_id: Optional[str] = Field(default=None)
    reply: Optional[str] = Field(default=None, description="Assistant reply on success")
    error: Optional[Exception] = Field(default=None, description="First failing step's error")
    failed_step: Optional[str] = Field(default=None, description="Name of the failing step")
    prompt: List[Dict[str, str]] = Field(default_factory=list)

    class Config:
        arbitrary_types_allowed = True

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, thread_id: str, reply: str, prompt: List[Dict[str, str]]) -> "TurnResult":
        return cls(thread_id=thread_id, reply=reply, prompt=prompt)

    @classmethod
    def failure(
        cls,
        error: Exception,
        step: str,
        thread_id: Optional[str] = None,
        prompt: Optional[List[Dict[str, str]]] = None,
    ) -> "TurnResult":
        return cls(thread_id=thread_id, error=error, failed_step=step, prompt=prompt or [])
