"""SQLite-backed article store."""

import re
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from shared.errors import DuplicateEntryError, StoreError
from shared.logging import get_logger
from shared.models import Article, ArticleFilters, NewArticle
from knowledge_base.base import ArticleStore

logger = get_logger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS articles (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    title        TEXT NOT NULL,
    slug         TEXT NOT NULL,
    content      TEXT NOT NULL,
    author       TEXT,
    category     TEXT,
    tags         TEXT,
    published_at TEXT,
    created_at   TEXT,
    updated_at   TEXT,
    is_published INTEGER NOT NULL DEFAULT 1,
    deleted_at   TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_articles_slug_live ON articles(slug) WHERE deleted_at IS NULL;
CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at);
CREATE INDEX IF NOT EXISTS idx_articles_is_published ON articles(is_published);
CREATE INDEX IF NOT EXISTS idx_articles_category ON articles(category);
CREATE INDEX IF NOT EXISTS idx_articles_deleted_at ON articles(deleted_at);
CREATE INDEX IF NOT EXISTS idx_articles_published_recent ON articles(is_published, published_at);
"""

# Full-text index over title and content, kept in sync by triggers
FTS_SCHEMA_SQL = """
CREATE VIRTUAL TABLE IF NOT EXISTS articles_fts USING fts5(
    title, content, content='articles', content_rowid='id', tokenize='unicode61'
);

CREATE TRIGGER IF NOT EXISTS articles_fts_insert AFTER INSERT ON articles BEGIN
    INSERT INTO articles_fts(rowid, title, content) VALUES (new.id, new.title, new.content);
END;
CREATE TRIGGER IF NOT EXISTS articles_fts_update AFTER UPDATE OF title, content ON articles BEGIN
    INSERT INTO articles_fts(articles_fts, rowid, title, content)
        VALUES('delete', old.id, old.title, old.content);
    INSERT INTO articles_fts(rowid, title, content) VALUES (new.id, new.title, new.content);
END;
CREATE TRIGGER IF NOT EXISTS articles_fts_delete AFTER DELETE ON articles BEGIN
    INSERT INTO articles_fts(articles_fts, rowid, title, content)
        VALUES('delete', old.id, old.title, old.content);
END;
"""

ORDER_SQL = "ORDER BY published_at IS NULL, published_at DESC, id DESC"

UPDATABLE_COLUMNS = {
    "title", "slug", "content", "author", "category", "tags",
    "published_at", "updated_at", "is_published", "deleted_at",
}


def _to_db(value: Any) -> Any:
    """Convert a Python value to its column representation."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    if isinstance(value, bool):
        return int(value)
    return value


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _fts_query(terms: Sequence[str]) -> Optional[str]:
    """
    Build an FTS5 MATCH expression requiring every term.

    Each term is quoted and prefix-matched, so FTS5 operators in user input
    are inert. Returns None when a term has no word characters left, since
    such a term cannot match any indexed token.
    """
    tokens = [re.sub(r"[^\w]", "", term) for term in terms]
    if not all(tokens):
        return None
    return " AND ".join(f'"{token}"*' for token in tokens)


class SQLiteArticleStore(ArticleStore):
    """
    Article store on top of the standard library sqlite3 driver.

    One connection is shared by all callers and guarded by a lock, so the
    store can be used from the HTTP server's worker threads.

    Text terms are matched through an FTS5 index over title and content:
    every term must be a case-insensitive prefix of some word. When FTS5 is
    unavailable, or ``full_text`` is off, terms fall back to substring
    ``LIKE`` scans, which only fold ASCII case.
    """

    def __init__(self, db_path: str | Path = ":memory:", full_text: bool = True) -> None:
        self.db_path = str(db_path)
        self.full_text = full_text
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def __enter__(self) -> "SQLiteArticleStore":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA busy_timeout=5000")
        return self._conn

    def initialize(self) -> None:
        """Create tables, indexes and the full-text index if they do not exist yet."""
        with self._lock:
            try:
                self.conn.executescript(SCHEMA_SQL)
                self.conn.commit()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to initialize schema: {e}") from e
            if self.full_text:
                self._initialize_fts()
        logger.info("Article store initialized", db_path=self.db_path, full_text=self.full_text)

    def _initialize_fts(self) -> None:
        existed = self.conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'articles_fts'"
        ).fetchone() is not None
        try:
            self.conn.executescript(FTS_SCHEMA_SQL)
            if not existed:
                # Index rows written before the index existed
                self.conn.execute("INSERT INTO articles_fts(articles_fts) VALUES('rebuild')")
            self.conn.commit()
        except sqlite3.OperationalError as e:
            if "no such module" not in str(e):
                raise StoreError(f"Failed to initialize full-text index: {e}") from e
            logger.warning("FTS5 unavailable, falling back to LIKE matching", error=str(e))
            self.full_text = False

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # -- Reads ---------------------------------------------------------------

    def _term_conditions(self, terms: Sequence[str]) -> tuple[list[str], list[Any]]:
        if not terms:
            return [], []

        if self.full_text:
            match = _fts_query(terms)
            if match is None:
                return ["0"], []
            return ["id IN (SELECT rowid FROM articles_fts WHERE articles_fts MATCH ?)"], [match]

        conditions: list[str] = []
        params: list[Any] = []
        for term in terms:
            pattern = f"%{_escape_like(term)}%"
            conditions.append("(title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\')")
            params.extend([pattern, pattern])
        return conditions, params

    def _where(self, filters: ArticleFilters) -> tuple[str, list[Any]]:
        conditions, params = self._term_conditions(filters.terms)

        if filters.published_only:
            conditions.append("is_published = 1")
        if not filters.include_deleted:
            conditions.append("deleted_at IS NULL")
        if filters.category:
            conditions.append("category = ?")
            params.append(filters.category)

        where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params

    def _query(self, sql: str, params: list[Any] | tuple[Any, ...]) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error("Article query failed", error=str(e))
                raise StoreError(f"Database query failed: {e}") from e

    def list_articles(
        self,
        filters: ArticleFilters,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> list[Article]:
        where, params = self._where(filters)
        sql = f"SELECT * FROM articles{where} {ORDER_SQL}"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        return [self._build_article(row) for row in self._query(sql, params)]

    def count(self, filters: ArticleFilters) -> int:
        where, params = self._where(filters)
        rows = self._query(f"SELECT COUNT(*) AS total FROM articles{where}", params)
        return int(rows[0]["total"])

    def get_by_id(self, article_id: int) -> Optional[Article]:
        rows = self._query("SELECT * FROM articles WHERE id = ?", (article_id,))
        return self._build_article(rows[0]) if rows else None

    def get_by_slug(self, slug: str) -> Optional[Article]:
        rows = self._query(
            "SELECT * FROM articles WHERE slug = ? AND deleted_at IS NULL",
            (slug,),
        )
        return self._build_article(rows[0]) if rows else None

    def slug_exists(self, slug: str) -> bool:
        """Whether a non-deleted article already uses this slug."""
        return self.get_by_slug(slug) is not None

    # -- Writes --------------------------------------------------------------

    def add(self, article: NewArticle) -> Article:
        """Insert an article and return it with its assigned id."""
        fields = article.model_dump()
        columns = ", ".join(fields)
        placeholders = ", ".join("?" for _ in fields)
        with self._lock:
            try:
                cursor = self.conn.execute(
                    f"INSERT INTO articles ({columns}) VALUES ({placeholders})",
                    [_to_db(v) for v in fields.values()],
                )
                self.conn.commit()
            except sqlite3.IntegrityError as e:
                self.conn.rollback()
                raise DuplicateEntryError(f"Duplicate entry: {e}") from e
            except sqlite3.Error as e:
                self.conn.rollback()
                raise StoreError(f"Failed to insert article: {e}") from e
            article_id = cursor.lastrowid

        logger.debug("Article inserted", article_id=article_id, slug=article.slug)
        created = self.get_by_id(article_id)
        if created is None:
            raise StoreError(f"Inserted article {article_id} could not be read back")
        return created

    def update(self, article_id: int, **fields: Any) -> Optional[Article]:
        """
        Update columns of one article.

        Args:
            article_id: Store identifier
            **fields: Column values to set

        Returns:
            The updated article, or None if no article has this id

        Raises:
            ValueError: If an unknown column is named
            DuplicateEntryError: If the change reuses a live slug
        """
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if not fields:
            return self.get_by_id(article_id)

        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = [_to_db(v) for v in fields.values()] + [article_id]
        with self._lock:
            try:
                cursor = self.conn.execute(
                    f"UPDATE articles SET {assignments} WHERE id = ?", params
                )
                self.conn.commit()
            except sqlite3.IntegrityError as e:
                self.conn.rollback()
                raise DuplicateEntryError(f"Duplicate entry: {e}") from e
            except sqlite3.Error as e:
                self.conn.rollback()
                raise StoreError(f"Failed to update article: {e}") from e

        if cursor.rowcount == 0:
            return None
        return self.get_by_id(article_id)

    def _build_article(self, row: sqlite3.Row) -> Article:
        return Article(
            id=row["id"],
            title=row["title"],
            slug=row["slug"],
            content=row["content"],
            author=row["author"],
            category=row["category"],
            tags=row["tags"],
            is_published=bool(row["is_published"]),
            published_at=row["published_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row["deleted_at"],
        )
