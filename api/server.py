"""Process entry point: open the store, bind the port, serve, close the store.

Run with:
    python -m api.server
or the ``chat-relay`` console script.
"""
import asyncio
import errno
import signal
import socket
import sys
from typing import Optional

import structlog
import uvicorn

from api.main import create_fastapi_app
from api.shared.exceptions import StorageUnavailable
from core.logging import configure_logging
from core.settings import Settings, get_settings

logger = structlog.get_logger("chat.server")


def bind_socket(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


def _log_signal(signum, frame) -> None:
    logger.info("server.signal_received", signal=signal.Signals(signum).name)


def install_signal_handlers() -> None:
    # uvicorn replays the stopping signal against these once serve() returns.
    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _log_signal)


async def serve(settings: Settings) -> int:
    app = create_fastapi_app(settings)
    store = app.container.services.conversation_store()

    try:
        await store.initialize()
    except StorageUnavailable as e:
        logger.error("server.start.failed", reason=e.message, **e.details)
        return 1

    host, port = settings.APP.HOST, settings.APP.PORT
    try:
        sock = bind_socket(host, port)
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error(
                "server.port_in_use",
                port=port,
                hint=f"Port {port} is already in use. Try setting the PORT environment variable, e.g. PORT={port + 1}",
            )
        else:
            logger.error("server.bind.failed", host=host, port=port, error=str(e))
        await store.close()
        return 1

    config = uvicorn.Config(app, log_config=None, log_level=settings.APP.LOG_LEVEL.lower())
    server = uvicorn.Server(config)
    logger.info(
        "server.listening",
        port=port,
        health_check=f"http://localhost:{port}/",
        messages_endpoint=f"POST http://localhost:{port}/messages",
    )
    install_signal_handlers()
    try:
        await server.serve(sockets=[sock])
    finally:
        logger.info("server.shutting_down")
        await store.close()
        sock.close()
    return 0 if server.started else 1


def main(settings: Optional[Settings] = None) -> int:
    settings = settings or get_settings()
    configure_logging(settings)
    return asyncio.run(serve(settings))


if __name__ == "__main__":
    sys.exit(main())
