"""
Per-request routing between gRPC-Web and plain HTTP.

Browser clients speak gRPC-Web over HTTP/1.1 to the same port that serves
the static UI; this middleware hands those requests to the gRPC-Web adapter
and everything else to the wrapped application. No state is kept between
requests.
"""

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

GRPC_WEB_CONTENT_TYPE = "application/grpc-web"


def is_grpc_web_request(scope: Scope) -> bool:
    """POST with an application/grpc-web* content type (+proto, -text...)."""
    if scope["type"] != "http" or scope["method"] != "POST":
        return False
    content_type = Headers(scope=scope).get("content-type", "")
    return content_type.lower().startswith(GRPC_WEB_CONTENT_TYPE)


def is_grpc_web_preflight(scope: Scope) -> bool:
    """CORS preflight issued by a browser before a cross-origin gRPC-Web call."""
    if scope["type"] != "http" or scope["method"] != "OPTIONS":
        return False
    requested = Headers(scope=scope).get("access-control-request-headers", "")
    return "x-grpc-web" in [h.strip().lower() for h in requested.split(",")]


class GrpcWebMultiplexer:
    """ASGI middleware: gRPC-Web traffic to `grpc_web_app`, the rest to `app`."""

    def __init__(self, app: ASGIApp, grpc_web_app: ASGIApp) -> None:
        self.app = app
        self.grpc_web_app = grpc_web_app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if is_grpc_web_request(scope) or is_grpc_web_preflight(scope):
            await self.grpc_web_app(scope, receive, send)
            return
        await self.app(scope, receive, send)
