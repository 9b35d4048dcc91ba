"""
Dependency wiring.

Builds the concrete adapter behind BlogPort and injects it into the
services. To swap the store, change the adapter instantiation here.
Nothing else in the codebase changes.
"""

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection

from grpcblog.adapters.mongo_adapter import MongoBlogAdapter
from grpcblog.config import Settings
from grpcblog.ports.blog_port import BlogPort
from grpcblog.rpc.servicer import BlogServicer, add_blog_service
from grpcblog.services.blog_service import BlogService
from grpcblog.web.grpc_web import GrpcWebApp


# ── Store ─────────────────────────────────────────────────────


def create_mongo_client(settings: Settings) -> AsyncMongoClient:
    """Client whose server selection gives up after the connect timeout."""
    timeout_ms = int(settings.mongodb_connect_timeout_seconds * 1000)
    return AsyncMongoClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
    )


def get_blog_collection(client: AsyncMongoClient, settings: Settings) -> AsyncCollection:
    return client[settings.mongodb_database][settings.mongodb_collection]


# ── Domain Services ───────────────────────────────────────────


def build_blog_service(store: BlogPort, settings: Settings) -> BlogService:
    """Injects the store adapter and the ListBlog throttle into the service."""
    return BlogService(store=store, list_delay=settings.list_blog_delay_seconds)


def build_blog_servicer(collection: AsyncCollection, settings: Settings) -> BlogServicer:
    return BlogServicer(build_blog_service(MongoBlogAdapter(collection), settings))


def build_grpc_web_app(servicer: BlogServicer) -> GrpcWebApp:
    """gRPC-Web adapter exposing the servicer to HTTP/1.1 clients."""
    grpc_web_app = GrpcWebApp()
    add_blog_service(servicer, grpc_web_app)
    return grpc_web_app
