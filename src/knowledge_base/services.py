"""Write-side article services.

Creation, publishing and soft deletion. These run outside the MCP gateway;
every committed change is visible to the next read.
"""

import re
from typing import Optional

from shared.errors import ArticleNotFoundError, DuplicateEntryError, ValidationError
from shared.logging import get_logger
from shared.models import Article, NewArticle, utcnow
from knowledge_base.sqlite import SQLiteArticleStore

logger = get_logger(__name__)

SLUG_PATTERN = re.compile(r"[a-z0-9-]+")
TAG_PATTERN = re.compile(r"<[^>]*>")

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255
CONTENT_MIN_LENGTH = 10


def generate_slug(title: str) -> str:
    """Lowercase the title, drop punctuation and join words with hyphens."""
    slug = re.sub(r"[^\w\s-]", "", title.lower().strip(), flags=re.ASCII)
    return re.sub(r"\s+", "-", slug, flags=re.ASCII)


def sanitize_input(value: Optional[str]) -> Optional[str]:
    """Remove HTML tags and surrounding whitespace."""
    if value is None:
        return None
    return TAG_PATTERN.sub("", str(value)).strip()


def is_valid_slug(slug: str) -> bool:
    return SLUG_PATTERN.fullmatch(slug) is not None


class ArticleService:
    """
    Mutations on the article store.

    All methods raise ArticleNotFoundError for an unknown id and
    ValidationError for rejected input.
    """

    def __init__(self, store: SQLiteArticleStore) -> None:
        self.store = store

    def create(
        self,
        title: Optional[str],
        content: Optional[str],
        author: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[str] = None,
        is_published: bool = False
    ) -> Article:
        """
        Create an article from user input.

        Inputs are sanitized, the slug is derived from the title and
        ``published_at`` is set only when the article is published.
        """
        title = sanitize_input(title) or ""
        content = sanitize_input(content) or ""
        author = sanitize_input(author) or None
        category = sanitize_input(category) or None
        tags = sanitize_input(tags) or None

        errors: dict[str, list[str]] = {}
        if not title:
            errors.setdefault("title", []).append("cannot be empty")
        elif len(title) < TITLE_MIN_LENGTH:
            errors.setdefault("title", []).append(f"must be at least {TITLE_MIN_LENGTH} characters")
        elif len(title) > TITLE_MAX_LENGTH:
            errors.setdefault("title", []).append(f"must be less than {TITLE_MAX_LENGTH} characters")

        if not content:
            errors.setdefault("content", []).append("cannot be empty")
        elif len(content) < CONTENT_MIN_LENGTH:
            errors.setdefault("content", []).append(f"must be at least {CONTENT_MIN_LENGTH} characters")

        slug = generate_slug(title)
        if title and "title" not in errors:
            if not is_valid_slug(slug):
                errors.setdefault("slug", []).append("must contain only lowercase letters, numbers, and hyphens")
            elif self.store.slug_exists(slug):
                errors.setdefault("slug", []).append("must be unique (an article with this title already exists)")

        if errors:
            raise ValidationError("Validation failed", validation_errors=errors)

        now = utcnow()
        try:
            article = self.store.add(NewArticle(
                title=title,
                slug=slug,
                content=content,
                author=author,
                category=category,
                tags=tags,
                is_published=is_published,
                published_at=now if is_published else None,
                created_at=now,
                updated_at=now,
            ))
        except DuplicateEntryError as e:
            raise ValidationError(
                "Duplicate entry",
                validation_errors={"slug": ["must be unique"]}
            ) from e

        logger.info("Article created", article_id=article.id, slug=article.slug, published=is_published)
        return article

    def _get(self, article_id: int) -> Article:
        article = self.store.get_by_id(article_id)
        if article is None:
            raise ArticleNotFoundError(f"Article with ID {article_id} not found")
        return article

    def publish(self, article_id: int) -> Article:
        """Publish an article. Publishing a published article is a no-op."""
        article = self._get(article_id)
        if article.is_published:
            return article

        now = utcnow()
        updated = self.store.update(article_id, is_published=True, published_at=now, updated_at=now)
        logger.info("Article published", article_id=article_id)
        return updated or article

    def unpublish(self, article_id: int) -> Article:
        """Unpublish an article and clear its publication timestamp."""
        article = self._get(article_id)
        if not article.is_published:
            return article

        updated = self.store.update(article_id, is_published=False, published_at=None, updated_at=utcnow())
        logger.info("Article unpublished", article_id=article_id)
        return updated or article

    def toggle(self, article_id: int) -> Article:
        article = self._get(article_id)
        if article.is_published:
            return self.unpublish(article_id)
        return self.publish(article_id)

    def soft_delete(self, article_id: int) -> Article:
        """Hide an article from every read path without removing the row."""
        article = self._get(article_id)
        if article.is_deleted:
            return article

        updated = self.store.update(article_id, deleted_at=utcnow(), updated_at=utcnow())
        logger.info("Article soft-deleted", article_id=article_id)
        return updated or article

    def restore(self, article_id: int) -> Article:
        """
        Undo a soft delete.

        Raises:
            ValidationError: If a live article took over the slug meanwhile
        """
        article = self._get(article_id)
        if not article.is_deleted:
            return article

        slug_taken = ValidationError(
            "Validation failed",
            validation_errors={"slug": ["is already used by another article"]}
        )
        if self.store.slug_exists(article.slug):
            raise slug_taken

        try:
            updated = self.store.update(article_id, deleted_at=None, updated_at=utcnow())
        except DuplicateEntryError as e:
            raise slug_taken from e
        logger.info("Article restored", article_id=article_id)
        return updated or article
