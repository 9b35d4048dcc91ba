"""
Protocol buffer definitions for the `blog` package.

The descriptors are declared here and registered in the default descriptor
pool at import time, so server reflection can serve them. `protos/blog.proto`
is the same contract in .proto form for generating client code (web UI).
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "blog"
SERVICE_NAME = f"{PACKAGE}.BlogService"

_F = descriptor_pb2.FieldDescriptorProto


def _string_field(message, name: str, number: int, json_name: str) -> None:
    message.field.add(
        name=name,
        number=number,
        type=_F.TYPE_STRING,
        label=_F.LABEL_OPTIONAL,
        json_name=json_name,
    )


def _blog_field(message) -> None:
    message.field.add(
        name="blog",
        number=1,
        type=_F.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.Blog",
        label=_F.LABEL_OPTIONAL,
        json_name="blog",
    )


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    proto = descriptor_pb2.FileDescriptorProto(
        name="blog.proto", package=PACKAGE, syntax="proto3"
    )

    blog = proto.message_type.add(name="Blog")
    _string_field(blog, "id", 1, "id")
    _string_field(blog, "author_id", 2, "authorId")
    _string_field(blog, "title", 3, "title")
    _string_field(blog, "content", 4, "content")

    for name in (
        "CreateBlogRequest",
        "CreateBlogResponse",
        "ReadBlogResponse",
        "UpdateBlogRequest",
        "UpdateBlogResponse",
        "ListBlogResponse",
    ):
        _blog_field(proto.message_type.add(name=name))

    for name in ("ReadBlogRequest", "DeleteBlogRequest", "DeleteBlogResponse"):
        _string_field(proto.message_type.add(name=name), "blog_id", 1, "blogId")

    proto.message_type.add(name="ListBlogRequest")

    service = proto.service.add(name="BlogService")
    for method in ("CreateBlog", "ReadBlog", "UpdateBlog", "DeleteBlog", "ListBlog"):
        service.method.add(
            name=method,
            input_type=f".{PACKAGE}.{method}Request",
            output_type=f".{PACKAGE}.{method}Response",
            server_streaming=method == "ListBlog",
        )
    return proto


_pool = descriptor_pool.Default()
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message(name: str):
    return message_factory.GetMessageClass(
        _pool.FindMessageTypeByName(f"{PACKAGE}.{name}")
    )


Blog = _message("Blog")
CreateBlogRequest = _message("CreateBlogRequest")
CreateBlogResponse = _message("CreateBlogResponse")
ReadBlogRequest = _message("ReadBlogRequest")
ReadBlogResponse = _message("ReadBlogResponse")
UpdateBlogRequest = _message("UpdateBlogRequest")
UpdateBlogResponse = _message("UpdateBlogResponse")
DeleteBlogRequest = _message("DeleteBlogRequest")
DeleteBlogResponse = _message("DeleteBlogResponse")
ListBlogRequest = _message("ListBlogRequest")
ListBlogResponse = _message("ListBlogResponse")


def method_path(method: str) -> str:
    """Full HTTP/2 path of a BlogService method, e.g. /blog.BlogService/ReadBlog."""
    return f"/{SERVICE_NAME}/{method}"
