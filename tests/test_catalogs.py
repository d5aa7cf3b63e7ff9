"""Tests for text formatting and the resource and tool catalogs."""

from datetime import datetime, timezone

import pytest

from shared.models import Article, ToolDefinition


def article(**overrides):
    fields = {
        "id": 1,
        "title": "Intro to X",
        "slug": "intro-to-x",
        "content": "Body text.",
        "is_published": True,
        "published_at": datetime(2024, 1, 2, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return Article(**fields)


class TestFormatting:
    """Tests for the pure formatting functions."""

    def test_truncate(self):
        """Test cutting and the ellipsis marker."""
        from mcp_server.formatting import truncate

        assert truncate("short", 10) == "short"
        assert truncate("exactly10!", 10) == "exactly10!"
        assert truncate("a" * 150, 100) == "a" * 100 + "..."
        assert truncate("word " * 30, 100).endswith("word...")

    def test_preview_is_single_line(self):
        """Test that previews collapse newlines."""
        from mcp_server.formatting import preview

        assert preview("line one\n\nline  two", 100) == "line one line two"

    def test_format_article_layout(self):
        """Test heading, metadata lines and content order."""
        from mcp_server.formatting import format_article

        text = format_article(article(author="Ada", category="guides", tags="a, b"))

        assert text.split("\n") == [
            "# Intro to X",
            "",
            "Author: Ada",
            "Category: guides",
            "Tags: a, b",
            "Published: 2024-01-02T00:00:00+00:00",
            "",
            "Body text.",
        ]

    def test_format_article_placeholders(self):
        """Test placeholder text for missing metadata."""
        from mcp_server.formatting import format_article

        text = format_article(article(published_at=None, is_published=False))

        assert "Author: Unknown\n" in text
        assert "Category: Uncategorized\n" in text
        assert "Tags: None\n" in text
        assert "Published: Unpublished\n" in text

    def test_format_search_results(self):
        """Test the search digest."""
        from mcp_server.formatting import format_search_results

        text = format_search_results("x", [article(content="Line one\nline two")], 1, 100)

        assert text == (
            "Found 1 article(s):\n\n"
            "- Intro to X (intro-to-x)\n"
            "  Category: None\n"
            "  Line one line two"
        )

    def test_format_search_results_partial_page(self):
        """Test the header when more matches exist than are shown."""
        from mcp_server.formatting import format_search_results

        text = format_search_results("x", [article()], 12, 100)

        assert text.startswith("Found 12 article(s): (showing 1)")

    def test_format_search_results_empty(self):
        """Test the explicit no-results sentence."""
        from mcp_server.formatting import format_search_results

        assert format_search_results("nothing", [], 0, 100) == "No articles found for query: nothing"


class TestResourceCatalog:
    """Tests for ResourceCatalog."""

    def test_describe_truncates_description(self, store):
        """Test the description preview length."""
        from mcp_server.resources import ResourceCatalog

        catalog = ResourceCatalog(store, preview_length=20)
        descriptor = catalog.describe(article(content="x" * 50))

        assert descriptor.uri == "kb://article/intro-to-x"
        assert descriptor.name == "Intro to X"
        assert descriptor.description == "x" * 20 + "..."
        assert descriptor.to_protocol()["mimeType"] == "text/plain"

    @pytest.mark.parametrize("uri,slug", [
        ("kb://article/intro-to-x", "intro-to-x"),
        ("kb://article/a1", "a1"),
    ])
    def test_parse_uri(self, store, uri, slug):
        """Test slug extraction."""
        from mcp_server.resources import ResourceCatalog

        parsed = ResourceCatalog(store).parse_uri(uri)

        assert parsed.ok
        assert parsed.value == slug

    @pytest.mark.parametrize("uri", [None, "", "kb://article", "kb://articles/x", "kb://article/x/y", " kb://article/x"])
    def test_parse_uri_rejects(self, store, uri):
        """Test malformed URIs."""
        from mcp_server.errors import FailureKind
        from mcp_server.resources import ResourceCatalog

        parsed = ResourceCatalog(store).parse_uri(uri)

        assert parsed.failure.kind == FailureKind.INVALID_PARAMS

    def test_list_empty_store(self, store):
        """Test listing with no articles."""
        from mcp_server.resources import ResourceCatalog

        assert ResourceCatalog(store).list_resources() == []


class TestToolCatalog:
    """Tests for ToolCatalog registration and validation."""

    def setup_method(self):
        """Set up a catalog over an empty store."""
        from knowledge_base.search import QueryEngine
        from knowledge_base.sqlite import SQLiteArticleStore
        from mcp_server.registry import ToolCatalog
        from mcp_server.resources import ResourceCatalog

        self.store = SQLiteArticleStore(":memory:")
        self.store.initialize()
        self.catalog = ToolCatalog(QueryEngine(self.store), ResourceCatalog(self.store))

    def teardown_method(self):
        self.store.close()

    def test_register_duplicate_tool_raises(self):
        """Test that registering duplicate tool raises error."""
        from mcp_server.errors import Outcome

        tool = ToolDefinition(name="search_articles", description="Again")

        with pytest.raises(ValueError, match="already registered"):
            self.catalog.register(tool, lambda args: Outcome.success("x"))

    def test_register_new_tool(self):
        """Test that a new tool needs only a definition and a handler."""
        from mcp_server.errors import Outcome

        tool = ToolDefinition(
            name="echo",
            description="Echo text",
            input_schema={"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]}
        )
        self.catalog.register(tool, lambda args: Outcome.success(args["text"]))

        outcome = self.catalog.call("echo", {"text": "hi"})

        assert outcome.value == {"content": [{"type": "text", "text": "hi"}]}
        assert [t.name for t in self.catalog.list_tools()][-1] == "echo"

    def test_validate_input(self):
        """Test input validation against schema."""
        is_valid, errors = self.catalog.validate_input("get_article", {"slug": "ok-slug"})
        assert is_valid
        assert errors == []

        is_valid, errors = self.catalog.validate_input("get_article", {})
        assert not is_valid
        assert len(errors) > 0

    def test_missing_arguments_default_to_empty(self):
        """Test that absent arguments fail schema validation, not type checks."""
        from mcp_server.errors import FailureKind

        outcome = self.catalog.call("search_articles", None)

        assert outcome.failure.kind == FailureKind.INVALID_PARAMS
        assert outcome.failure.data["errors"]
