"""Tests for the query engine."""

import math

import pytest

from shared.models import ArticleFilters


class TestPaginationArithmetic:
    """Tests for clamping and page metadata."""

    @pytest.mark.parametrize("total,per_page", [
        (0, 10), (1, 10), (10, 10), (11, 10), (99, 1), (250, 100), (250, 500), (7, 0), (7, -3),
    ])
    def test_total_pages_is_ceiling(self, total, per_page):
        """Test total_pages == ceil(total / clamped per_page)."""
        from knowledge_base.search import pagination_meta

        meta = pagination_meta(total, 1, per_page)
        effective = min(max(per_page, 1), 100)

        assert meta.per_page == effective
        assert meta.total_pages == math.ceil(total / effective)
        assert (meta.total_pages == 0) == (total == 0)

    def test_page_clamped_to_one(self):
        """Test that non-positive pages become page 1."""
        from knowledge_base.search import pagination_meta

        assert pagination_meta(5, 0, 10).page == 1
        assert pagination_meta(5, -4, 10).page == 1

    def test_sanitize_query(self):
        """Test that punctuation is removed but whitespace kept."""
        from knowledge_base.search import sanitize_query

        assert sanitize_query("C++ & Rust!") == "C  Rust"
        assert sanitize_query("'; DROP TABLE--") == " DROP TABLE"
        assert sanitize_query("!!!") == ""


class TestQueryEngine:
    """Tests for QueryEngine.find and friends."""

    def test_search_matches_title_case_insensitively(self, seeded_store):
        """Test a title match regardless of case."""
        from knowledge_base.search import QueryEngine

        result = QueryEngine(seeded_store).search("intro")

        assert [a.slug for a in result.articles] == ["intro-to-x"]
        assert result.meta.total == 1
        assert result.meta.total_pages == 1

    def test_search_matches_content(self, seeded_store):
        """Test a content-only match."""
        from knowledge_base.search import QueryEngine

        result = QueryEngine(seeded_store).search("practical")

        assert [a.slug for a in result.articles] == ["python-tips"]

    def test_search_is_case_insensitive_beyond_ascii(self, store, add_article):
        """Test case folding of accented terms."""
        from knowledge_base.search import QueryEngine

        add_article("Crème Brûlée", "creme-brulee", content="A custard with caramelised sugar.")

        engine = QueryEngine(store)

        assert [a.slug for a in engine.search("CRÈME BRÛLÉE").articles] == ["creme-brulee"]
        assert engine.search("crème custard").meta.total == 1

    def test_all_terms_must_match(self, seeded_store):
        """Test that every term is required."""
        from knowledge_base.search import QueryEngine

        engine = QueryEngine(seeded_store)

        assert engine.search("tips python").meta.total == 1
        assert engine.search("tips intro").meta.total == 0

    def test_sanitized_to_empty_matches_nothing(self, seeded_store):
        """Test that a punctuation-only query does not match everything."""
        from knowledge_base.search import QueryEngine

        result = QueryEngine(seeded_store).search("?!%")

        assert result.articles == []
        assert result.meta.total == 0
        assert result.meta.total_pages == 0

    def test_empty_query_lists_visible_articles(self, seeded_store):
        """Test the listing path, newest publication first."""
        from knowledge_base.search import QueryEngine

        engine = QueryEngine(seeded_store)

        for query in (None, ""):
            result = engine.find(query, ArticleFilters())
            assert [a.slug for a in result.articles] == ["python-tips", "intro-to-x"]
            assert result.meta.total == 2

    def test_unpublished_and_deleted_are_filtered(self, seeded_store):
        """Test the visibility filters."""
        from knowledge_base.search import QueryEngine

        engine = QueryEngine(seeded_store)

        assert engine.search("draft").meta.total == 0
        assert engine.search("news").meta.total == 0
        assert engine.search("draft", published_only=False).meta.total == 1
        assert engine.search("news", include_deleted=True).meta.total == 1

    def test_category_filter(self, seeded_store):
        """Test exact category filtering."""
        from knowledge_base.search import QueryEngine

        engine = QueryEngine(seeded_store)

        assert [a.slug for a in engine.list_all(category="guides").articles] == ["intro-to-x"]
        assert engine.list_all(category="Guides").meta.total == 0

    def test_undated_sort_last(self, seeded_store):
        """Test that unpublished articles follow dated ones."""
        from knowledge_base.search import QueryEngine

        result = QueryEngine(seeded_store).list_all(published_only=False)

        assert [a.slug for a in result.articles] == ["python-tips", "intro-to-x", "draft-y"]

    def test_pagination_counts_all_matches(self, store, add_article):
        """Test that total reflects the whole match set, not the page."""
        from knowledge_base.search import QueryEngine

        for i in range(25):
            add_article(f"Guide {i}", f"guide-{i}", days=i)

        engine = QueryEngine(store)
        first = engine.search("guide", per_page=10)
        last = engine.search("guide", page=3, per_page=10)
        beyond = engine.search("guide", page=4, per_page=10)

        assert len(first.articles) == 10
        assert first.articles[0].slug == "guide-24"
        assert first.meta.total == 25
        assert first.meta.total_pages == 3
        assert [a.slug for a in last.articles] == [f"guide-{i}" for i in range(4, -1, -1)]
        assert beyond.articles == []
        assert beyond.meta.total == 25

    def test_page_size_capped(self, store, add_article):
        """Test that oversized pages are capped at 100."""
        from knowledge_base.search import QueryEngine

        for i in range(105):
            add_article(f"Entry {i}", f"entry-{i}", days=i)

        result = QueryEngine(store).list_all(per_page=1000)

        assert len(result.articles) == 100
        assert result.meta.per_page == 100
        assert result.meta.total_pages == 2
