"""
Walk through every BlogService RPC against a running server.
Run from the project folder: python blog_client.py
(set BLOG_TLS_ENABLED=false when the server runs without TLS)
"""
import asyncio

import grpc


async def main():
    from grpcblog.config import settings
    from grpcblog.rpc import protocol as pb
    from grpcblog.rpc.client import BlogServiceStub, open_channel

    address = settings.grpc_address.replace("0.0.0.0", "localhost")
    ca_file = settings.tls_cert_file if settings.tls_enabled else None

    async with open_channel(address, ca_file) as channel:
        stub = BlogServiceStub(channel)

        print("[1/6] Creating a blog post...")
        res = await stub.CreateBlog(pb.CreateBlogRequest(
            blog=pb.Blog(author_id="a", title="t", content="c"),
        ))
        blog_id = res.blog.id
        print(f"  Created: {res.blog}")

        print("[2/6] Reading it back...")
        res = await stub.ReadBlog(pb.ReadBlogRequest(blog_id=blog_id))
        print(f"  Read: {res.blog}")

        print("[3/6] Updating it...")
        res = await stub.UpdateBlog(pb.UpdateBlogRequest(
            blog=pb.Blog(id=blog_id, author_id="b", title="Changed", content="Changed"),
        ))
        print(f"  Updated: {res.blog}")

        print("[4/6] Listing all blogs...")
        async for item in stub.ListBlog(pb.ListBlogRequest()):
            print(f"  - {item.blog.id}: {item.blog.title} by {item.blog.author_id}")

        print("[5/6] Deleting it...")
        res = await stub.DeleteBlog(pb.DeleteBlogRequest(blog_id=blog_id))
        print(f"  Deleted: {res.blog_id}")

        print("[6/6] Reading the deleted blog...")
        try:
            await stub.ReadBlog(pb.ReadBlogRequest(blog_id=blog_id))
            print("  FAIL - blog still readable")
        except grpc.aio.AioRpcError as e:
            print(f"  OK - {e.code().name}: {e.details()}")


if __name__ == "__main__":
    asyncio.run(main())
