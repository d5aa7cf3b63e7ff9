"""Knowledge base storage.

Contains:
- The article store contract and its SQLite implementation
- The query engine (full-text search, filters, pagination)
- Write-side services (create, publish, soft delete)
"""

from knowledge_base.base import ArticleStore
from knowledge_base.search import QueryEngine
from knowledge_base.services import ArticleService
from knowledge_base.sqlite import SQLiteArticleStore

__all__ = ["ArticleStore", "ArticleService", "QueryEngine", "SQLiteArticleStore"]
