"""
Shared fixtures: an in-memory BlogPort and services wired on top of it.
"""

import pytest
from bson import ObjectId

from grpcblog.adapters.mongo_adapter import parse_object_id
from grpcblog.domain.errors import BlogStoreError
from grpcblog.domain.models import Blog
from grpcblog.ports.blog_port import BlogPort
from grpcblog.rpc.servicer import BlogServicer
from grpcblog.services.blog_service import BlogService


class InMemoryBlogStore(BlogPort):
    """Dict-backed store using the same ObjectId format as MongoDB."""

    def __init__(self) -> None:
        self.docs: dict[ObjectId, Blog] = {}
        self.mutations = 0
        self.fail_on: set[str] = set()

    def _check(self, op: str) -> None:
        if op in self.fail_on:
            raise BlogStoreError(f"{op} failed")

    async def insert_blog(self, blog: Blog) -> str:
        self._check("insert")
        oid = ObjectId()
        self.docs[oid] = blog.with_id(str(oid))
        self.mutations += 1
        return str(oid)

    async def get_blog(self, blog_id: str) -> Blog | None:
        oid = parse_object_id(blog_id)
        self._check("get")
        return self.docs.get(oid)

    async def replace_blog(self, blog: Blog) -> None:
        oid = parse_object_id(blog.id or "")
        self._check("replace")
        self.docs[oid] = blog
        self.mutations += 1

    async def delete_blog(self, blog_id: str) -> None:
        oid = parse_object_id(blog_id)
        self._check("delete")
        self.docs.pop(oid, None)
        self.mutations += 1

    async def iter_blogs(self):
        for blog in list(self.docs.values()):
            self._check("iter")
            yield blog


@pytest.fixture
def store():
    return InMemoryBlogStore()


@pytest.fixture
def service(store):
    return BlogService(store=store)


@pytest.fixture
def servicer(service):
    return BlogServicer(service)
