"""
HTTPS-facing ASGI application: static web client, health check, and the
gRPC-Web multiplexer in front of both.
"""

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.types import ASGIApp

from grpcblog.config import Settings
from grpcblog.web.multiplexer import GrpcWebMultiplexer

logger = logging.getLogger(__name__)


def create_web_app(settings: Settings, grpc_web_app: ASGIApp) -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Static blog UI plus gRPC-Web access to blog.BlogService.",
        version="0.1.0",
    )

    # ── Multiplexer ───────────────────────────────────────────
    app.add_middleware(GrpcWebMultiplexer, grpc_web_app=grpc_web_app)

    # ── Health Check ──────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "ok", "service": settings.app_name}

    # ── Static UI ─────────────────────────────────────────────
    # Mounted last so /health wins over a file of the same name.
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="ui")
    else:
        logger.warning("Static directory %s not found, serving API only", static_dir)

    return app
