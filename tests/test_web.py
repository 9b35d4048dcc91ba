"""
Tests for the request multiplexer and the HTTP application.
"""

import asyncio
import struct
from urllib.parse import unquote

import grpc
import httpx
import pytest

from grpcblog.config import Settings
from grpcblog.dependencies import build_grpc_web_app
from grpcblog.domain.errors import BlogStoreError
from grpcblog.domain.models import Blog
from grpcblog.rpc import protocol as pb
from grpcblog.rpc.servicer import BlogServicer
from grpcblog.services.blog_service import BlogService
from grpcblog.web.app import create_web_app
from grpcblog.web.multiplexer import is_grpc_web_preflight, is_grpc_web_request


class RecordingGrpcWebApp:
    """Stands in for the gRPC-Web adapter and records what reached it."""

    def __init__(self):
        self.paths = []

    async def __call__(self, scope, receive, send):
        self.paths.append((scope["method"], scope["path"]))
        await send({
            "type": "http.response.start",
            "status": 200,
            "headers": [(b"content-type", b"application/grpc-web+proto")],
        })
        await send({"type": "http.response.body", "body": b"grpc"})


def _scope(method, headers):
    return {
        "type": "http",
        "method": method,
        "path": "/blog.BlogService/ReadBlog",
        "headers": [(k.encode(), v.encode()) for k, v in headers.items()],
    }


@pytest.mark.parametrize(
    "method, headers, expected",
    [
        ("POST", {"content-type": "application/grpc-web"}, True),
        ("POST", {"content-type": "application/grpc-web+proto"}, True),
        ("POST", {"content-type": "application/grpc-web-text"}, True),
        ("POST", {"content-type": "application/json"}, False),
        ("POST", {}, False),
        ("GET", {"content-type": "application/grpc-web"}, False),
    ],
)
def test_is_grpc_web_request(method, headers, expected):
    assert is_grpc_web_request(_scope(method, headers)) is expected


def test_is_grpc_web_preflight():
    preflight = {"access-control-request-headers": "content-type, x-grpc-web, x-user-agent"}

    assert is_grpc_web_preflight(_scope("OPTIONS", preflight))
    assert not is_grpc_web_preflight(_scope("OPTIONS", {"access-control-request-headers": "content-type"}))
    assert not is_grpc_web_preflight(_scope("POST", preflight))


def test_non_http_scopes_are_not_grpc_web():
    assert not is_grpc_web_request({"type": "lifespan"})
    assert not is_grpc_web_preflight({"type": "lifespan"})


@pytest.fixture
def static_dir(tmp_path):
    (tmp_path / "index.html").write_text("<html>blog ui</html>")
    (tmp_path / "app.js").write_text("console.log('hi')")
    return tmp_path


@pytest.fixture
def grpc_web_app():
    return RecordingGrpcWebApp()


@pytest.fixture
async def client(static_dir, grpc_web_app):
    app = create_web_app(Settings(static_dir=str(static_dir)), grpc_web_app)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


class TestMultiplexedApp:

    async def test_root_serves_index(self, client, grpc_web_app):
        response = await client.get("/")

        assert response.status_code == 200
        assert "blog ui" in response.text
        assert grpc_web_app.paths == []

    async def test_static_asset(self, client):
        response = await client.get("/app.js")

        assert response.status_code == 200
        assert "console.log" in response.text

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.json() == {"status": "ok", "service": "grpc-blog"}

    async def test_grpc_web_request_is_forwarded(self, client, grpc_web_app):
        response = await client.post(
            "/blog.BlogService/ListBlog",
            content=b"\x00\x00\x00\x00\x00",
            headers={"content-type": "application/grpc-web+proto", "x-grpc-web": "1"},
        )

        assert response.status_code == 200
        assert response.content == b"grpc"
        assert grpc_web_app.paths == [("POST", "/blog.BlogService/ListBlog")]

    async def test_preflight_is_forwarded(self, client, grpc_web_app):
        await client.options(
            "/blog.BlogService/ReadBlog",
            headers={
                "origin": "http://localhost:3000",
                "access-control-request-method": "POST",
                "access-control-request-headers": "content-type,x-grpc-web",
            },
        )

        assert grpc_web_app.paths == [("OPTIONS", "/blog.BlogService/ReadBlog")]

    async def test_plain_post_goes_to_fallback(self, client, grpc_web_app):
        response = await client.post("/index.html", json={"x": 1})

        assert response.status_code == 405
        assert grpc_web_app.paths == []


async def test_missing_static_dir_serves_health_only(tmp_path, grpc_web_app):
    app = create_web_app(Settings(static_dir=str(tmp_path / "missing")), grpc_web_app)
    transport = httpx.ASGITransport(app=app)

    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        assert (await c.get("/health")).status_code == 200
        assert (await c.get("/")).status_code == 404


# ── gRPC-Web end to end ───────────────────────────────────────

MISSING_ID = "5f1d7f3e9d3b2a1c0b0a0908"
GRPC_WEB_HEADERS = {
    "content-type": "application/grpc-web+proto",
    "accept": "application/grpc-web+proto",
    "x-grpc-web": "1",
}


def _status(code: grpc.StatusCode) -> str:
    return str(code.value[0])


def _frame(message) -> bytes:
    data = message.SerializeToString()
    return struct.pack(">BI", 0, len(data)) + data


def _parse(response, response_type):
    """Split a grpc-web response into decoded messages and its status trailers."""
    body = response.content
    messages, trailers = [], {}
    while body:
        flags, length = struct.unpack(">BI", body[:5])
        data, body = body[5:5 + length], body[5 + length:]
        if flags & 0x80:
            for line in data.decode("ascii").splitlines():
                key, value = line.split(":", 1)
                trailers[key.strip()] = unquote(value.strip())
        else:
            messages.append(response_type.FromString(data))
    if not trailers:
        # trailers-only response: status travels in the HTTP headers
        for key in ("grpc-status", "grpc-message"):
            if key in response.headers:
                trailers[key] = unquote(response.headers[key])
    return messages, trailers


@pytest.fixture
async def grpc_web(static_dir, servicer):
    app = create_web_app(Settings(static_dir=str(static_dir)), build_grpc_web_app(servicer))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:

        async def call(method, request, response_type):
            response = await c.post(
                pb.method_path(method), content=_frame(request), headers=GRPC_WEB_HEADERS
            )
            assert response.status_code == 200
            assert b"b'grpc-status'" not in response.content
            return _parse(response, response_type)

        yield call


class TestGrpcWeb:

    async def test_crud_round_trip(self, grpc_web):
        [created], trailers = await grpc_web(
            "CreateBlog",
            pb.CreateBlogRequest(blog=pb.Blog(author_id="a", title="t", content="c")),
            pb.CreateBlogResponse,
        )
        assert trailers == {"grpc-status": "0"}
        blog_id = created.blog.id
        assert blog_id

        [updated], trailers = await grpc_web(
            "UpdateBlog",
            pb.UpdateBlogRequest(blog=pb.Blog(id=blog_id, author_id="b", title="t", content="c")),
            pb.UpdateBlogResponse,
        )
        assert trailers["grpc-status"] == "0"
        assert updated.blog.author_id == "b"

        [read], trailers = await grpc_web(
            "ReadBlog", pb.ReadBlogRequest(blog_id=blog_id), pb.ReadBlogResponse
        )
        assert trailers["grpc-status"] == "0"
        assert (read.blog.id, read.blog.author_id) == (blog_id, "b")

        [deleted], trailers = await grpc_web(
            "DeleteBlog", pb.DeleteBlogRequest(blog_id=blog_id), pb.DeleteBlogResponse
        )
        assert trailers["grpc-status"] == "0"
        assert deleted.blog_id == blog_id

    async def test_not_found_is_trailers_only(self, grpc_web):
        messages, trailers = await grpc_web(
            "ReadBlog", pb.ReadBlogRequest(blog_id=MISSING_ID), pb.ReadBlogResponse
        )

        assert messages == []
        assert trailers["grpc-status"] == _status(grpc.StatusCode.NOT_FOUND)
        assert MISSING_ID in trailers["grpc-message"]

    async def test_malformed_id_is_invalid_argument(self, grpc_web):
        messages, trailers = await grpc_web(
            "DeleteBlog", pb.DeleteBlogRequest(blog_id="nope"), pb.DeleteBlogResponse
        )

        assert messages == []
        assert trailers["grpc-status"] == _status(grpc.StatusCode.INVALID_ARGUMENT)

    @pytest.mark.parametrize("count", [0, 1, 4])
    async def test_list_streams_every_blog(self, grpc_web, service, count):
        ids = {(await service.create_blog(Blog(title=f"post {i}"))).id for i in range(count)}

        messages, trailers = await grpc_web(
            "ListBlog", pb.ListBlogRequest(), pb.ListBlogResponse
        )

        assert trailers == {"grpc-status": "0"}
        assert len(messages) == count
        assert {m.blog.id for m in messages} == ids

    async def test_list_store_error_before_first_item(self, grpc_web, service, store):
        await service.create_blog(Blog(title="x"))
        store.fail_on.add("iter")

        messages, trailers = await grpc_web(
            "ListBlog", pb.ListBlogRequest(), pb.ListBlogResponse
        )

        assert messages == []
        assert trailers["grpc-status"] == _status(grpc.StatusCode.INTERNAL)

    async def test_list_store_error_mid_stream(self, grpc_web, store):
        async def one_then_fail():
            yield Blog(id=MISSING_ID, title="first")
            raise BlogStoreError("cursor died")

        store.iter_blogs = one_then_fail

        messages, trailers = await grpc_web(
            "ListBlog", pb.ListBlogRequest(), pb.ListBlogResponse
        )

        assert [m.blog.title for m in messages] == ["first"]
        assert trailers["grpc-status"] == _status(grpc.StatusCode.INTERNAL)
        assert "cursor died" in trailers["grpc-message"]


async def test_grpc_web_stream_stops_when_client_disconnects(store):
    service = BlogService(store=store, list_delay=60)
    for i in range(3):
        await service.create_blog(Blog(title=str(i)))
    app = build_grpc_web_app(BlogServicer(service))
    events = iter([{"type": "http.request", "body": _frame(pb.ListBlogRequest()), "more_body": False}])
    sent = []

    async def receive():
        return next(events, {"type": "http.disconnect"})

    async def send(message):
        sent.append(message)

    scope = {
        "type": "http",
        "method": "POST",
        "path": pb.method_path("ListBlog"),
        "headers": [(k.encode(), v.encode()) for k, v in GRPC_WEB_HEADERS.items()]
        + [(b"host", b"testserver")],
    }

    await asyncio.wait_for(app(scope, receive, send), timeout=5)

    bodies = [m for m in sent if m["type"] == "http.response.body"]
    assert len(bodies) == 1
    assert bodies[0]["more_body"] is True
