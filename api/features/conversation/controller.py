"""Controller for the Conversation feature: turn outcomes to HTTP responses."""
import structlog
from fastapi.responses import JSONResponse

from api.features.conversation.dtos import SendMessageResponse, TurnResult
from api.features.conversation.exceptions import (
    ModelAuthError,
    ModelQuotaError,
    RequestValidationError,
)
from api.features.conversation.service import ChatOrchestrator
from api.features.conversation.validators import SendMessageValidator
from api.shared.dtos import ErrorResponse
from api.shared.exceptions import ChatRelayException

logger = structlog.get_logger("chat.controller")

GENERIC_ERROR = "Internal server error"
GENERIC_DETAIL = "Something went wrong"


class ConversationController:
    """Controller handling the send-message operation."""

    def __init__(self, chat_orchestrator: ChatOrchestrator, production: bool = False):
        self.chat_orchestrator = chat_orchestrator
        self.production = production

    async def send_message(self, raw_body: bytes) -> JSONResponse:
        try:
            payload = SendMessageValidator.parse_body(raw_body)
        except RequestValidationError as e:
            logger.info("turn.rejected", error_code=e.error_code, error=e.message)
            return self.error_response(TurnResult.failure(e, step="parse"))

        result = await self.chat_orchestrator.send_message(payload)
        if result.ok:
            logger.info("turn.reply_sent", thread_id=result.thread_id)
            return JSONResponse(
                status_code=200,
                content=SendMessageResponse(content=result.reply).model_dump(),
            )
        return self.error_response(result)

    def error_response(self, result: TurnResult) -> JSONResponse:
        error = result.error
        if isinstance(error, RequestValidationError):
            return self._json(400, ErrorResponse(error=error.message))
        if isinstance(error, ModelAuthError):
            return self._json(401, ErrorResponse(error=error.message))
        if isinstance(error, ModelQuotaError):
            return self._json(402, ErrorResponse(error=error.message))

        # Storage driver detail lives in error.details and stays in the logs.
        detail = error.message if isinstance(error, ChatRelayException) else str(error)
        return self._json(
            500,
            ErrorResponse(
                error=GENERIC_ERROR,
                message=GENERIC_DETAIL if self.production else detail,
            ),
        )

    @staticmethod
    def _json(status_code: int, body: ErrorResponse) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))
