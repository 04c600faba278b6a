"""Router for the Conversation feature."""
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.di.container import ApplicationContainer as DependencyContainer
from api.features.conversation.controller import ConversationController

router = APIRouter()


@router.post("/messages")
@inject
async def send_message(
    request: Request,
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
) -> JSONResponse:
    """Store a user message, ask the model for a reply, store and return it."""
    return await controller.send_message(await request.body())
