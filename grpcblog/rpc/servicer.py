"""
gRPC adapter for BlogService.

Maps protobuf messages to domain models and domain errors to status codes.
The same generic handler is registered on the native grpc.aio server and on
the gRPC-Web ASGI adapter, so both transports share one code path.
"""

import functools
import logging

import grpc

from grpcblog.domain.errors import (
    BlogError,
    BlogNotFoundError,
    BlogStoreError,
    InvalidBlogIdError,
)
from grpcblog.domain.models import Blog
from grpcblog.rpc import protocol as pb
from grpcblog.services.blog_service import BlogService

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[BlogError], grpc.StatusCode] = {
    InvalidBlogIdError: grpc.StatusCode.INVALID_ARGUMENT,
    BlogNotFoundError: grpc.StatusCode.NOT_FOUND,
    BlogStoreError: grpc.StatusCode.INTERNAL,
}


def status_for(exc: BlogError) -> grpc.StatusCode:
    for error_type, code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return grpc.StatusCode.INTERNAL


def _status_of(method: str, exc: Exception) -> tuple[grpc.StatusCode, str]:
    if isinstance(exc, BlogError):
        code = status_for(exc)
        logger.info("%s failed with %s: %s", method, code.name, exc.message)
        return code, exc.message
    logger.exception("Unhandled exception in %s", method)
    return grpc.StatusCode.INTERNAL, f"Internal error: {type(exc).__name__}"


def _unary(method):
    """Abort the call with the status matching whatever the handler raised."""

    @functools.wraps(method)
    async def wrapper(self, request, context):
        logger.info("%s invoked", method.__name__)
        try:
            return await method(self, request, context)
        except Exception as exc:
            code, details = _status_of(method.__name__, exc)
        # abort raises, so it stays outside the try
        await context.abort(code, details)

    return wrapper


def _streaming(method):
    """Same as _unary for server-streaming handlers (async generators)."""

    @functools.wraps(method)
    async def wrapper(self, request, context):
        logger.info("%s invoked", method.__name__)
        try:
            async for response in method(self, request, context):
                yield response
            return
        except Exception as exc:
            code, details = _status_of(method.__name__, exc)
        await context.abort(code, details)

    return wrapper


# ── Message mapping ───────────────────────────────────────────


def blog_from_message(message) -> Blog:
    return Blog(
        id=message.id or None,
        author_id=message.author_id,
        title=message.title,
        content=message.content,
    )


def blog_to_message(blog: Blog):
    return pb.Blog(
        id=blog.id or "",
        author_id=blog.author_id,
        title=blog.title,
        content=blog.content,
    )


# ── Servicer ──────────────────────────────────────────────────


class BlogServicer:
    """Implements blog.BlogService on top of the domain BlogService."""

    def __init__(self, service: BlogService) -> None:
        self._service = service

    @_unary
    async def CreateBlog(self, request, context):
        blog = await self._service.create_blog(blog_from_message(request.blog))
        return pb.CreateBlogResponse(blog=blog_to_message(blog))

    @_unary
    async def ReadBlog(self, request, context):
        blog = await self._service.read_blog(request.blog_id)
        return pb.ReadBlogResponse(blog=blog_to_message(blog))

    @_unary
    async def UpdateBlog(self, request, context):
        blog = await self._service.update_blog(blog_from_message(request.blog))
        return pb.UpdateBlogResponse(blog=blog_to_message(blog))

    @_unary
    async def DeleteBlog(self, request, context):
        blog_id = await self._service.delete_blog(request.blog_id)
        return pb.DeleteBlogResponse(blog_id=blog_id)

    @_streaming
    async def ListBlog(self, request, context):
        async for blog in self._service.list_blogs():
            yield pb.ListBlogResponse(blog=blog_to_message(blog))


def blog_service_handler(servicer: BlogServicer) -> grpc.GenericRpcHandler:
    """Build the generic handler for blog.BlogService."""

    def unary(method, request_type, response_type):
        return grpc.unary_unary_rpc_method_handler(
            method,
            request_deserializer=request_type.FromString,
            response_serializer=response_type.SerializeToString,
        )

    handlers = {
        "CreateBlog": unary(servicer.CreateBlog, pb.CreateBlogRequest, pb.CreateBlogResponse),
        "ReadBlog": unary(servicer.ReadBlog, pb.ReadBlogRequest, pb.ReadBlogResponse),
        "UpdateBlog": unary(servicer.UpdateBlog, pb.UpdateBlogRequest, pb.UpdateBlogResponse),
        "DeleteBlog": unary(servicer.DeleteBlog, pb.DeleteBlogRequest, pb.DeleteBlogResponse),
        "ListBlog": grpc.unary_stream_rpc_method_handler(
            servicer.ListBlog,
            request_deserializer=pb.ListBlogRequest.FromString,
            response_serializer=pb.ListBlogResponse.SerializeToString,
        ),
    }
    return grpc.method_handlers_generic_handler(pb.SERVICE_NAME, handlers)


def add_blog_service(servicer: BlogServicer, server) -> None:
    """Register on anything exposing add_generic_rpc_handlers (grpc.aio, sonora)."""
    server.add_generic_rpc_handlers((blog_service_handler(servicer),))
