"""
Blog service: the five CRUD operations over a BlogPort.
Depends on the port only (Dependency Inversion).
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from grpcblog.domain.errors import BlogNotFoundError
from grpcblog.domain.models import Blog
from grpcblog.ports.blog_port import BlogPort

logger = logging.getLogger(__name__)


class BlogService:
    """Create, read, update, delete and stream blogs."""

    def __init__(self, store: BlogPort, list_delay: float = 0.0) -> None:
        self._store = store
        self._list_delay = list_delay

    async def create_blog(self, blog: Blog) -> Blog:
        """Insert a new blog; any caller-supplied id is ignored."""
        blog_id = await self._store.insert_blog(blog)
        logger.info("Created blog %s", blog_id)
        return blog.with_id(blog_id)

    async def read_blog(self, blog_id: str) -> Blog:
        return await self._require(blog_id)

    async def update_blog(self, blog: Blog) -> Blog:
        """
        Overwrite author, title and content of an existing blog.
        The stored identifier is kept as is.
        """
        existing = await self._require(blog.id or "")
        updated = blog.with_id(existing.id)
        await self._store.replace_blog(updated)
        return updated

    async def delete_blog(self, blog_id: str) -> str:
        """Remove a blog and return its id as confirmation."""
        existing = await self._require(blog_id)
        await self._store.delete_blog(existing.id)
        logger.info("Deleted blog %s", existing.id)
        return existing.id

    async def list_blogs(self) -> AsyncIterator[Blog]:
        """
        Stream every stored blog. When a list delay is configured the
        stream pauses that long after each element.
        """
        count = 0
        try:
            async for blog in self._store.iter_blogs():
                yield blog
                count += 1
                if self._list_delay > 0:
                    await asyncio.sleep(self._list_delay)
        except asyncio.CancelledError:
            logger.info("ListBlog cancelled by caller after %d blogs", count)
            raise
        logger.info("ListBlog streamed %d blogs", count)

    async def _require(self, blog_id: str) -> Blog:
        blog = await self._store.get_blog(blog_id)
        if blog is None:
            raise BlogNotFoundError(blog_id)
        return blog
