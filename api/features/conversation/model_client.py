"""Chat model collaborator backed by the OpenAI chat completions API."""
from typing import Dict, List, Optional, Protocol

import openai
import structlog

from api.features.conversation.exceptions import (
    ModelAuthError,
    ModelError,
    ModelQuotaError,
    ModelUnknownError,
)
from infra.resources import OpenAIResource

logger = structlog.get_logger("chat.model")

INVALID_API_KEY = "invalid_api_key"
INSUFFICIENT_QUOTA = "insufficient_quota"


class ChatModel(Protocol):
    async def complete(self, messages: List[Dict[str, str]]) -> str:
        ...


def classify_openai_error(error: Exception) -> ModelError:
    """Map an OpenAI SDK exception onto the model error taxonomy."""
    code: Optional[str] = getattr(error, "code", None)
    details = {"error": str(error), "code": code}

    if code == INSUFFICIENT_QUOTA:
        return ModelQuotaError(details)
    if code == INVALID_API_KEY or isinstance(error, openai.AuthenticationError):
        return ModelAuthError(details)
    return ModelUnknownError(str(error) or error.__class__.__name__, details)


class OpenAIChatModel:
    """Single-shot, non-streaming chat completion call."""

    def __init__(
        self,
        openai_resource: OpenAIResource,
        model: str,
        max_tokens: int,
        temperature: float,
    ):
        self.openai_resource = openai_resource
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        logger.info("model.call", model=self.model, messages=len(messages))
        try:
            completion = await self.openai_resource.get_client().chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            classified = classify_openai_error(e)
            logger.warning(
                "model.call.failed",
                model=self.model,
                error_code=classified.error_code,
                error=str(e),
            )
            raise classified from e

        reply = completion.choices[0].message.content if completion.choices else None
        if not reply:
            raise ModelUnknownError(
                "Model returned an empty completion", {"model": self.model}
            )
        return reply
