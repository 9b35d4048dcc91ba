"""
Concrete implementation of BlogPort using the async PyMongo driver.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from grpcblog.domain.errors import BlogStoreError, InvalidBlogIdError
from grpcblog.domain.models import Blog
from grpcblog.ports.blog_port import BlogPort

logger = logging.getLogger(__name__)

_STRING_FIELDS = ("author_id", "content", "title")


# ── Document mapping ──────────────────────────────────────────


def parse_object_id(blog_id: str) -> ObjectId:
    """Parse the external 24-hex-character form of a blog id."""
    if not isinstance(blog_id, str) or len(blog_id) != 24:
        raise InvalidBlogIdError(blog_id)
    try:
        return ObjectId(blog_id)
    except (InvalidId, TypeError):
        raise InvalidBlogIdError(blog_id) from None


def decode_inserted_id(value: Any) -> str:
    """Turn the id generated by the driver into its external hex form."""
    if not isinstance(value, ObjectId):
        raise BlogStoreError(
            f"Cannot convert to OID: store returned {type(value).__name__}"
        )
    return str(value)


def blog_to_document(blog: Blog, oid: ObjectId | None = None) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "author_id": blog.author_id,
        "content": blog.content,
        "title": blog.title,
    }
    if oid is not None:
        doc["_id"] = oid
    return doc


def document_to_blog(doc: dict[str, Any]) -> Blog:
    """
    Decode a stored document. Missing string fields decode as empty
    strings; a wrongly typed field or id is a decode failure.
    """
    oid = doc.get("_id")
    if not isinstance(oid, ObjectId):
        raise BlogStoreError(f"Err while decoding data: bad _id {oid!r}")

    fields = {}
    for name in _STRING_FIELDS:
        value = doc.get(name, "")
        if not isinstance(value, str):
            raise BlogStoreError(
                f"Err while decoding data: field {name} is {type(value).__name__}"
            )
        fields[name] = value
    return Blog(id=str(oid), **fields)


# ── Adapter ───────────────────────────────────────────────────


class MongoBlogAdapter(BlogPort):
    """All blog I/O goes through a single MongoDB collection."""

    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection

    async def insert_blog(self, blog: Blog) -> str:
        try:
            result = await self._collection.insert_one(blog_to_document(blog))
        except PyMongoError as exc:
            logger.error("insert_one failed: %s", exc)
            raise BlogStoreError(f"Internal error: {exc}") from exc
        return decode_inserted_id(result.inserted_id)

    async def get_blog(self, blog_id: str) -> Blog | None:
        oid = parse_object_id(blog_id)
        try:
            doc = await self._collection.find_one({"_id": oid})
        except PyMongoError as exc:
            logger.error("find_one(%s) failed: %s", blog_id, exc)
            raise BlogStoreError(f"Cannot read object from MongoDB: {exc}") from exc
        return document_to_blog(doc) if doc is not None else None

    async def replace_blog(self, blog: Blog) -> None:
        oid = parse_object_id(blog.id or "")
        try:
            await self._collection.replace_one({"_id": oid}, blog_to_document(blog, oid))
        except PyMongoError as exc:
            logger.error("replace_one(%s) failed: %s", blog.id, exc)
            raise BlogStoreError(f"Cannot update object in MongoDB: {exc}") from exc

    async def delete_blog(self, blog_id: str) -> None:
        oid = parse_object_id(blog_id)
        try:
            await self._collection.delete_one({"_id": oid})
        except PyMongoError as exc:
            logger.error("delete_one(%s) failed: %s", blog_id, exc)
            raise BlogStoreError(f"Cannot delete from MongoDB: {exc}") from exc

    async def iter_blogs(self) -> AsyncIterator[Blog]:
        cursor = self._collection.find({})
        try:
            async for doc in cursor:
                yield document_to_blog(doc)
        except PyMongoError as exc:
            logger.error("Cursor failed: %s", exc)
            raise BlogStoreError(f"Error final step: {exc}") from exc
        finally:
            await cursor.close()
