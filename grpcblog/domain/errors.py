"""Domain exceptions raised by the store adapter and the blog service.

The RPC layer translates them into gRPC status codes; nothing below it
knows about transports.
"""


class BlogError(Exception):
    """Base class for all blog domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidBlogIdError(BlogError):
    """The supplied identifier is not a well-formed blog id."""

    def __init__(self, blog_id: str) -> None:
        self.blog_id = blog_id
        super().__init__(f"Cannot parse id: {blog_id!r}")


class BlogNotFoundError(BlogError):
    """No stored blog matches the identifier."""

    def __init__(self, blog_id: str) -> None:
        self.blog_id = blog_id
        super().__init__(f"Blog with id {blog_id} not found")


class BlogStoreError(BlogError):
    """The backing store failed or returned something undecodable."""
