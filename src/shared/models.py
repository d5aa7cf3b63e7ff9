"""Core data models for the Knowledge Base service.

This module defines the shared data structures used by the article store,
the query engine and the MCP gateway.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Article(BaseModel):
    """
    A stored knowledge base article.

    Articles are owned by the store; the gateway only ever reads them.
    An article with a deletion timestamp is invisible to every read path
    regardless of its published flag.
    """
    id: int
    title: str
    slug: str
    content: str
    author: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[str] = Field(default=None, description="Comma-separated tag list")
    is_published: bool = False
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def tag_list(self) -> list[str]:
        """Tags split on commas, trimmed, empty entries dropped."""
        if not self.tags:
            return []
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_visible(self) -> bool:
        """Published and not soft-deleted."""
        return self.is_published and not self.is_deleted

    def to_api(self) -> dict[str, Any]:
        """Serialize for the JSON API."""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "content": self.content,
            "author": self.author,
            "category": self.category,
            "tags": self.tag_list,
            "is_published": self.is_published,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class NewArticle(BaseModel):
    """Field set for inserting an article into the store."""
    title: str
    slug: str
    content: str
    author: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[str] = None
    is_published: bool = False
    published_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: Optional[datetime] = None


class ArticleFilters(BaseModel):
    """
    Visibility and text filters understood by the article store.

    Filters apply in a fixed order: published-only, not-deleted, category.
    ``terms`` are already sanitized; every term must occur in the title
    or the content.
    """
    published_only: bool = True
    include_deleted: bool = False
    category: Optional[str] = None
    terms: list[str] = Field(default_factory=list)


class PaginationMeta(BaseModel):
    """Pagination metadata computed from the filtered, pre-slice count."""
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    total_pages: int = Field(..., ge=0)


class SearchResult(BaseModel):
    """One page of articles plus its pagination metadata."""
    articles: list[Article] = Field(default_factory=list)
    meta: PaginationMeta


class ResourceDescriptor(BaseModel):
    """Protocol-facing descriptor exposing one article. Never persisted."""
    uri: str
    name: str
    description: str
    mime_type: str = "text/plain"

    def to_protocol(self) -> dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }


class ToolDefinition(BaseModel):
    """
    Declarative definition of a gateway tool.

    The input schema is a JSON Schema object and is returned verbatim
    by ``tools/list``.
    """
    name: str = Field(..., description="Tool name as called by clients")
    description: str = Field(..., description="Clear description for LLM usage")
    input_schema: dict[str, Any] = Field(
        default_factory=dict,
        description="JSON Schema for input validation"
    )

    def to_protocol(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class RequestEnvelope(BaseModel):
    """A structurally valid JSON-RPC request."""
    jsonrpc: str = "2.0"
    method: str
    id: Any = None
    params: dict[str, Any] = Field(default_factory=dict)
