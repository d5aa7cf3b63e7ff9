"""Resource catalog for the MCP gateway.

Exposes every visible article as a ``kb://article/{slug}`` resource.
"""

import re
from typing import Any

from shared.logging import get_logger
from shared.models import Article, ArticleFilters, ResourceDescriptor
from knowledge_base.base import ArticleStore
from knowledge_base.services import is_valid_slug
from mcp_server.errors import FailureKind, Outcome
from mcp_server.formatting import format_article, truncate

logger = get_logger(__name__)

URI_PREFIX = "kb://article/"
URI_PATTERN = re.compile(r"kb://article/(.+)", re.DOTALL)
MIME_TYPE = "text/plain"


def article_uri(article: Article) -> str:
    return f"{URI_PREFIX}{article.slug}"


class ResourceCatalog:
    """
    Maps articles to resource descriptors and back.

    ``list_resources`` is not paginated; large corpora are browsed through the
    search tool.
    """

    def __init__(self, store: ArticleStore, preview_length: int = 100) -> None:
        self.store = store
        self.preview_length = preview_length

    def describe(self, article: Article) -> ResourceDescriptor:
        return ResourceDescriptor(
            uri=article_uri(article),
            name=article.title,
            description=truncate(article.content, self.preview_length),
            mime_type=MIME_TYPE,
        )

    def list_resources(self) -> list[ResourceDescriptor]:
        """Every visible article, newest first."""
        articles = self.store.list_articles(ArticleFilters(published_only=True, include_deleted=False))
        return [self.describe(a) for a in articles]

    def parse_uri(self, uri: Any) -> Outcome:
        """Extract the slug from a resource URI."""
        if not isinstance(uri, str) or not uri:
            return Outcome.fail(
                FailureKind.INVALID_PARAMS,
                "URI parameter is required and must be a non-empty string"
            )

        match = URI_PATTERN.fullmatch(uri)
        if not match or not is_valid_slug(match.group(1)):
            return Outcome.fail(
                FailureKind.INVALID_PARAMS,
                f"Invalid URI format. Expected: {URI_PREFIX}{{slug}}",
                {"uri": uri}
            )
        return Outcome.success(match.group(1))

    def resolve(self, slug: str) -> Outcome:
        """Find the visible article carrying this slug."""
        article = self.store.get_by_slug(slug)
        if article is None or not article.is_visible:
            return Outcome.fail(
                FailureKind.ARTICLE_NOT_FOUND,
                f"Article not found: {slug}",
                {"error": "article_not_found", "slug": slug}
            )
        return Outcome.success(article)

    def read(self, uri: Any) -> Outcome:
        """
        Read one resource.

        Returns:
            Outcome whose value is the ``resources/read`` result payload
        """
        parsed = self.parse_uri(uri)
        if not parsed.ok:
            return parsed

        resolved = self.resolve(parsed.value)
        if not resolved.ok:
            logger.debug("Resource not found", uri=uri)
            return resolved

        return Outcome.success({
            "contents": [
                {
                    "uri": uri,
                    "mimeType": MIME_TYPE,
                    "text": format_article(resolved.value),
                }
            ]
        })
