"""Shared utilities and base classes for the Knowledge Base service."""

from shared.models import (
    Article,
    ArticleFilters,
    NewArticle,
    PaginationMeta,
    ResourceDescriptor,
    SearchResult,
    ToolDefinition,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "Article",
    "ArticleFilters",
    "NewArticle",
    "PaginationMeta",
    "ResourceDescriptor",
    "SearchResult",
    "ToolDefinition",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
