import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from dependency_injector import providers
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from api.di.container import ApplicationContainer as DependencyContainer
from api.shared.dtos import ErrorResponse, HealthCheckResponse, ServiceInfoResponse
from api.shared.middleware import CORSHeadersMiddleware
from core.settings import SETTINGS, Settings

logger = structlog.get_logger("chat")

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]


class CustomFastAPI(FastAPI):
    container: DependencyContainer


@asynccontextmanager
async def lifespan(_app: CustomFastAPI):
    logger.info("app.startup")
    start_time = time.time()

    # Idempotent: the server entry point may already have opened the store.
    store = _app.container.services.conversation_store()
    await store.initialize()
    logger.info("app.startup.complete", elapsed=round(time.time() - start_time, 3))

    yield

    await store.close()
    await _app.container.infrastructure.openai_client().shutdown()
    logger.info("app.shutdown.complete")


def create_fastapi_app(
    settings: Optional[Settings] = None,
    container: Optional[DependencyContainer] = None,
) -> CustomFastAPI:
    settings = settings or SETTINGS

    _app = CustomFastAPI(
        title="ChatAPI",
        description="Chat relay: persists a thread's messages and forwards them to a language model",
        version=settings.APP.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Initialize dependency container
    _app.container = container or DependencyContainer(settings=providers.Object(settings))

    # Every response carries the CORS headers; OPTIONS never reaches a route.
    _app.add_middleware(
        CORSHeadersMiddleware,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )

    from api.features.conversation.router import router as conversation_router

    _app.include_router(conversation_router, tags=["Conversation"])

    @_app.get("/", response_model=ServiceInfoResponse)
    async def root():
        return ServiceInfoResponse(
            version=settings.APP.APP_VERSION,
            endpoints={"messages": "POST /messages - Send a message and get AI response"},
        )

    @_app.get("/health", response_model=HealthCheckResponse)
    async def health():
        return HealthCheckResponse(status="ok")

    _register_exception_handlers(_app)
    return _app


def _register_exception_handlers(_app: FastAPI) -> None:
    @_app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        error = "Not Found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=error).model_dump(exclude_none=True),
        )

    @_app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal server error").model_dump(exclude_none=True),
        )


app = create_fastapi_app()
