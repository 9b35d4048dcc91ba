"""
Process supervisor: starts the store connection, the native gRPC server and
the HTTPS server (static UI + gRPC-Web), then tears them down in a fixed
order when the process is interrupted.
"""

import asyncio
import contextlib
import logging
import signal
from pathlib import Path

import grpc
import uvicorn
from grpc_reflection.v1alpha import reflection
from pymongo import AsyncMongoClient

from grpcblog.config import Settings
from grpcblog.dependencies import (
    build_blog_servicer,
    build_grpc_web_app,
    create_mongo_client,
    get_blog_collection,
)
from grpcblog.rpc import protocol
from grpcblog.rpc.servicer import add_blog_service
from grpcblog.web.app import create_web_app

logger = logging.getLogger(__name__)


class _HTTPServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT to the supervisor."""

    @contextlib.contextmanager
    def capture_signals(self):
        yield

    async def serve_or_raise(self) -> None:
        """serve(), with uvicorn's startup sys.exit turned into an exception."""
        try:
            await self.serve()
        except SystemExit as exc:
            raise RuntimeError(
                f"HTTP server failed to start on {self.config.host}:{self.config.port}"
            ) from exc


def load_server_credentials(settings: Settings) -> grpc.ServerCredentials:
    """Read the TLS key pair; a missing or unreadable file aborts startup."""
    cert = Path(settings.tls_cert_file).read_bytes()
    key = Path(settings.tls_key_file).read_bytes()
    return grpc.ssl_server_credentials([(key, cert)])


class Supervisor:
    """Owns every long-lived resource of the process."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._interrupted = asyncio.Event()

        self.mongo_client: AsyncMongoClient | None = None
        self.grpc_server: grpc.aio.Server | None = None
        self.http_server: uvicorn.Server | None = None
        self.rpc_task: asyncio.Task | None = None
        self.http_task: asyncio.Task | None = None
        self.grpc_port: int | None = None
        self.http_port: int | None = None

    # ── Startup ───────────────────────────────────────────────

    async def start(self) -> None:
        """Bring everything up in order. Any failure propagates."""
        s = self._settings

        # 1. Database connection, bounded by the connect timeout
        logger.info("Connecting to MongoDB at %s...", s.mongodb_uri)
        self.mongo_client = create_mongo_client(s)
        await self.mongo_client.admin.command("ping")

        # 2. Collection handle for the blog service
        collection = get_blog_collection(self.mongo_client, s)
        servicer = build_blog_servicer(collection, s)
        logger.info("Blog service bound to %s.%s", s.mongodb_database, s.mongodb_collection)

        # 3. RPC server
        self.grpc_server = grpc.aio.server()
        add_blog_service(servicer, self.grpc_server)
        if s.grpc_reflection_enabled:
            reflection.enable_server_reflection(
                (protocol.SERVICE_NAME, reflection.SERVICE_NAME), self.grpc_server
            )

        # 4 + 5. TLS material, listener, serve in the background.
        # grpc binds the port when credentials are attached.
        if s.tls_enabled:
            port = self.grpc_server.add_secure_port(s.grpc_address, load_server_credentials(s))
        else:
            logger.warning("TLS disabled, gRPC listening in plaintext")
            port = self.grpc_server.add_insecure_port(s.grpc_address)
        if port == 0:
            raise RuntimeError(f"Failed to listen on {s.grpc_address}")
        self.grpc_port = port
        await self.grpc_server.start()
        self.rpc_task = asyncio.create_task(
            self.grpc_server.wait_for_termination(), name="grpc-server"
        )
        logger.info("gRPC server listening on %s (port %d)", s.grpc_address, port)

        # 6. gRPC-Web wrapper + static UI over HTTPS
        web_app = create_web_app(s, build_grpc_web_app(servicer))
        config = uvicorn.Config(
            web_app,
            host=s.https_host,
            port=s.https_port,
            ssl_certfile=s.tls_cert_file if s.tls_enabled else None,
            ssl_keyfile=s.tls_key_file if s.tls_enabled else None,
            timeout_keep_alive=s.https_timeout_seconds,
            log_config=None,
        )
        self.http_server = _HTTPServer(config)
        self.http_task = asyncio.create_task(self.http_server.serve_or_raise(), name="http-server")
        while not self.http_server.started:
            if self.http_task.done():
                self.http_task.result()
                raise RuntimeError("HTTP server stopped during startup")
            await asyncio.sleep(0.01)
        self.http_port = self.http_server.servers[0].sockets[0].getsockname()[1]
        logger.info(
            "HTTP server listening on %s://%s:%d",
            "https" if s.tls_enabled else "http",
            s.https_host,
            self.http_port,
        )

    # ── Waiting ───────────────────────────────────────────────

    def install_interrupt_handler(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, self._interrupted.set)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(
                signal.SIGINT,
                lambda *_: loop.call_soon_threadsafe(self._interrupted.set),
            )

    def interrupt(self) -> None:
        self._interrupted.set()

    async def wait_for_interrupt(self) -> None:
        """Block until interrupted, or until a server task exits on its own."""
        waiter = asyncio.create_task(self._interrupted.wait(), name="interrupt")
        watched = {waiter} | {t for t in (self.rpc_task, self.http_task) if t is not None}
        done, _ = await asyncio.wait(watched, return_when=asyncio.FIRST_COMPLETED)
        if waiter not in done:
            waiter.cancel()
            for task in done:
                logger.error("%s exited unexpectedly", task.get_name())

    # ── Shutdown ──────────────────────────────────────────────

    async def shutdown(self) -> None:
        """Run every shutdown step in order; a failing step never blocks the next."""
        steps = (
            ("Stopping the gRPC server...", self._stop_grpc_server),
            ("Stopping the listener...", self._join_rpc_task),
            ("Closing MongoDB connection...", self._close_mongo),
            ("Stopping the HTTP server...", self._stop_http_server),
        )
        for message, step in steps:
            logger.info(message)
            try:
                await step()
            except Exception:
                logger.exception("Shutdown step failed: %s", message)

    async def _stop_grpc_server(self) -> None:
        if self.grpc_server is not None:
            await self.grpc_server.stop(self._settings.grpc_shutdown_grace_seconds)

    async def _join_rpc_task(self) -> None:
        if self.rpc_task is not None:
            await self.rpc_task

    async def _close_mongo(self) -> None:
        if self.mongo_client is not None:
            await self.mongo_client.close()

    async def _stop_http_server(self) -> None:
        if self.http_server is not None:
            self.http_server.should_exit = True
        if self.http_task is not None:
            await self.http_task

    # ── Entry point ───────────────────────────────────────────

    async def run(self) -> None:
        self.install_interrupt_handler()
        try:
            await self.start()
        except BaseException:
            await self.shutdown()
            raise
        await self.wait_for_interrupt()
        await self.shutdown()
