from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from grpcblog.domain.models import Blog


class BlogPort(ABC):
    """
    Record store for blogs. Owns the identifier format: every method taking
    a `blog_id` raises InvalidBlogIdError when it is malformed.
    """

    @abstractmethod
    async def insert_blog(self, blog: Blog) -> str:
        """Persist a new blog (its `id` is ignored) and return the assigned id."""
        ...

    @abstractmethod
    async def get_blog(self, blog_id: str) -> Blog | None:
        """Fetch a single blog by id, or None when absent."""
        ...

    @abstractmethod
    async def replace_blog(self, blog: Blog) -> None:
        """Overwrite every field of the stored blog keyed by `blog.id`."""
        ...

    @abstractmethod
    async def delete_blog(self, blog_id: str) -> None:
        """Remove the blog keyed by id."""
        ...

    @abstractmethod
    def iter_blogs(self) -> AsyncIterator[Blog]:
        """Stream every stored blog in store-native order."""
        ...
