"""Base class for article stores.

A store:
- Holds articles and answers filtered, ordered, paginated reads
- Orders by publication recency, undated articles last
- Guarantees slug uniqueness among non-deleted articles
- Surfaces backend failures as StoreError, never as raw driver errors
"""

from abc import ABC, abstractmethod
from typing import Optional

from shared.models import Article, ArticleFilters


class ArticleStore(ABC):
    """
    Read contract consumed by the query engine and the MCP gateway.

    Implementations are passed explicitly to their consumers; there is no
    process-wide store instance.
    """

    @abstractmethod
    def list_articles(
        self,
        filters: ArticleFilters,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> list[Article]:
        """
        List articles matching the filters, newest publication first.

        Args:
            filters: Visibility, category and text filters
            limit: Maximum number of rows (None = unbounded)
            offset: Rows to skip before the first returned row

        Returns:
            Ordered list of articles
        """

    @abstractmethod
    def count(self, filters: ArticleFilters) -> int:
        """Count all articles matching the filters."""

    @abstractmethod
    def get_by_id(self, article_id: int) -> Optional[Article]:
        """Get an article by its store identifier, deleted or not."""

    @abstractmethod
    def get_by_slug(self, slug: str) -> Optional[Article]:
        """Get the non-deleted article carrying this slug."""
