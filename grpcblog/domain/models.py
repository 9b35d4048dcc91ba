"""
Pydantic models for the blog domain.
Pure data, no I/O.
"""

from pydantic import BaseModel, Field


class Blog(BaseModel):
    """A single blog post. `id` is assigned by the store on creation."""

    id: str | None = None
    author_id: str = Field(default="", description="Caller-supplied author reference")
    title: str = ""
    content: str = ""

    def with_id(self, blog_id: str) -> "Blog":
        """Copy of this blog carrying the given identifier."""
        return self.model_copy(update={"id": blog_id})
