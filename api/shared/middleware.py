"""ASGI middleware shared by all routes."""
from typing import Sequence

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class CORSHeadersMiddleware:
    """Put permissive CORS headers on every HTTP response.

    Any ``OPTIONS`` request ends here with an empty 200 before routing,
    whether or not it looks like a browser preflight.
    """

    def __init__(
        self,
        app: ASGIApp,
        allow_methods: Sequence[str] = ("GET", "POST", "PUT", "DELETE", "OPTIONS"),
        allow_headers: Sequence[str] = ("Content-Type", "Authorization"),
    ) -> None:
        self.app = app
        self.headers = {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": ", ".join(allow_methods),
            "Access-Control-Allow-Headers": ", ".join(allow_headers),
        }

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            response = Response(content=b"", status_code=200, headers=self.headers)
            await response(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for key, value in self.headers.items():
                    headers[key] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)
