"""Query engine over the article store.

Builds a filtered, ordered, paginated view for both free-text search and
plain listing, and computes pagination metadata.
"""

import math
from typing import Optional

from shared.logging import get_logger
from shared.models import ArticleFilters, PaginationMeta, SearchResult
from knowledge_base.base import ArticleStore

logger = get_logger(__name__)

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


def sanitize_query(query: str) -> str:
    """Drop every character that is neither alphanumeric nor whitespace."""
    return "".join(ch for ch in query if ch.isalnum() or ch.isspace())


def clamp_page(page: int) -> int:
    return max(int(page), 1)


def clamp_per_page(per_page: int) -> int:
    return min(max(int(per_page), 1), MAX_PER_PAGE)


def pagination_meta(total: int, page: int, per_page: int) -> PaginationMeta:
    """
    Compute pagination metadata.

    ``total_pages`` is ``ceil(total / per_page)``, which is 0 for an empty
    result set.
    """
    page = clamp_page(page)
    per_page = clamp_per_page(per_page)
    return PaginationMeta(
        total=total,
        page=page,
        per_page=per_page,
        total_pages=math.ceil(total / per_page),
    )


class QueryEngine:
    """
    Search and listing over an ArticleStore.

    A non-empty query is sanitized and split into terms that must all match
    title or content. A query that sanitizes to nothing matches nothing.
    An absent or empty query skips text matching and lists the filtered set.
    """

    def __init__(self, store: ArticleStore) -> None:
        self.store = store

    def find(
        self,
        query: Optional[str] = None,
        filters: Optional[ArticleFilters] = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE
    ) -> SearchResult:
        """
        Find one page of articles.

        Args:
            query: Free-text query, or None/"" to list
            filters: Visibility and category filters (text terms are ignored)
            page: Page number, clamped to at least 1
            per_page: Page size, clamped to [1, 100]

        Returns:
            The requested page and metadata for the whole match set
        """
        filters = (filters or ArticleFilters()).model_copy(update={"terms": []})
        page = clamp_page(page)
        per_page = clamp_per_page(per_page)

        if query:
            terms = sanitize_query(query).split()
            if not terms:
                logger.debug("Query sanitized to nothing", query=query)
                return SearchResult(articles=[], meta=pagination_meta(0, page, per_page))
            filters.terms = terms

        total = self.store.count(filters)
        offset = (page - 1) * per_page
        articles = self.store.list_articles(filters, limit=per_page, offset=offset) if offset < total else []

        logger.debug(
            "Query executed",
            terms=filters.terms,
            category=filters.category,
            total=total,
            page=page,
            per_page=per_page
        )

        return SearchResult(articles=articles, meta=pagination_meta(total, page, per_page))

    def search(
        self,
        query: str,
        category: Optional[str] = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
        published_only: bool = True,
        include_deleted: bool = False
    ) -> SearchResult:
        """Free-text search with the usual visibility defaults."""
        filters = ArticleFilters(
            published_only=published_only,
            include_deleted=include_deleted,
            category=category,
        )
        return self.find(query, filters, page, per_page)

    def list_all(
        self,
        category: Optional[str] = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
        published_only: bool = True,
        include_deleted: bool = False
    ) -> SearchResult:
        """List articles without text matching."""
        filters = ArticleFilters(
            published_only=published_only,
            include_deleted=include_deleted,
            category=category,
        )
        return self.find(None, filters, page, per_page)
