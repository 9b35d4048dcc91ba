"""
Client-side stub for blog.BlogService over a grpc.aio channel.
"""

from pathlib import Path

import grpc

from grpcblog.rpc import protocol as pb


class BlogServiceStub:
    """One callable per RPC, same names as the service methods."""

    def __init__(self, channel: grpc.aio.Channel) -> None:
        self.CreateBlog = channel.unary_unary(
            pb.method_path("CreateBlog"),
            request_serializer=pb.CreateBlogRequest.SerializeToString,
            response_deserializer=pb.CreateBlogResponse.FromString,
        )
        self.ReadBlog = channel.unary_unary(
            pb.method_path("ReadBlog"),
            request_serializer=pb.ReadBlogRequest.SerializeToString,
            response_deserializer=pb.ReadBlogResponse.FromString,
        )
        self.UpdateBlog = channel.unary_unary(
            pb.method_path("UpdateBlog"),
            request_serializer=pb.UpdateBlogRequest.SerializeToString,
            response_deserializer=pb.UpdateBlogResponse.FromString,
        )
        self.DeleteBlog = channel.unary_unary(
            pb.method_path("DeleteBlog"),
            request_serializer=pb.DeleteBlogRequest.SerializeToString,
            response_deserializer=pb.DeleteBlogResponse.FromString,
        )
        self.ListBlog = channel.unary_stream(
            pb.method_path("ListBlog"),
            request_serializer=pb.ListBlogRequest.SerializeToString,
            response_deserializer=pb.ListBlogResponse.FromString,
        )


def open_channel(address: str, ca_file: str | None = None) -> grpc.aio.Channel:
    """Plaintext channel, or TLS trusting `ca_file` (e.g. a self-signed server.crt)."""
    if ca_file is None:
        return grpc.aio.insecure_channel(address)
    credentials = grpc.ssl_channel_credentials(root_certificates=Path(ca_file).read_bytes())
    return grpc.aio.secure_channel(address, credentials)
