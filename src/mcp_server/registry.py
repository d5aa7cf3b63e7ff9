"""Tool catalog for the MCP gateway.

Declares the invocable tools and executes them. Tools are registered once
at construction; adding a tool means adding a definition and a handler.
"""

from typing import Any, Callable, Optional

from shared.logging import get_logger
from shared.models import ArticleFilters, ToolDefinition
from shared.schema import create_tool_schema, validate_schema
from knowledge_base.search import QueryEngine
from knowledge_base.services import is_valid_slug
from mcp_server.errors import FailureKind, Outcome
from mcp_server.formatting import format_article, format_search_results
from mcp_server.resources import ResourceCatalog

logger = get_logger(__name__)

# Handlers take validated arguments and return an Outcome holding text
ToolHandler = Callable[[dict[str, Any]], Outcome]

SLUG_REGEX = "^[a-z0-9-]+$"


SEARCH_ARTICLES = ToolDefinition(
    name="search_articles",
    description="Search for published articles in the knowledge base by title and content. Returns the number of matches and a short preview of each.",
    input_schema=create_tool_schema(
        [
            {
                "name": "query",
                "type": "string",
                "description": "Search query to find articles",
                "min_length": 1,
            },
            {
                "name": "category",
                "type": "string",
                "description": "Filter by category (optional)",
                "required": False,
            },
        ]
    ),
)

GET_ARTICLE = ToolDefinition(
    name="get_article",
    description="Get a specific published article by its slug. Returns the full content with author, category and tags.",
    input_schema=create_tool_schema(
        [
            {
                "name": "slug",
                "type": "string",
                "description": "The slug of the article (lowercase letters, numbers and hyphens)",
                "pattern": SLUG_REGEX,
            },
        ]
    ),
)


class ToolCatalog:
    """
    Registry and executor for gateway tools.

    Responsibilities:
    - Register tools with their handlers
    - List tool definitions
    - Validate arguments against input schemas
    - Execute a tool and wrap its text in a content block
    """

    def __init__(
        self,
        query_engine: QueryEngine,
        resources: ResourceCatalog,
        preview_length: int = 100,
        search_page_size: int = 10,
        max_query_length: int = 255
    ) -> None:
        self.query_engine = query_engine
        self.resources = resources
        self.preview_length = preview_length
        self.search_page_size = search_page_size
        self.max_query_length = max_query_length
        self._tools: dict[str, ToolDefinition] = {}
        self._handlers: dict[str, ToolHandler] = {}

        self.register(SEARCH_ARTICLES, self._search_articles)
        self.register(GET_ARTICLE, self._get_article)

    def register(self, tool: ToolDefinition, handler: ToolHandler) -> None:
        """
        Register a tool.

        Raises:
            ValueError: If the tool name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")

        self._tools[tool.name] = tool
        self._handlers[tool.name] = handler
        logger.debug("Tool registered", tool=tool.name)

    def get(self, tool_name: str) -> Optional[ToolDefinition]:
        return self._tools.get(tool_name)

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def validate_input(self, tool_name: str, arguments: dict[str, Any]) -> tuple[bool, list[str]]:
        """Validate arguments against the tool's input schema."""
        tool = self.get(tool_name)
        if not tool:
            return False, [f"Tool '{tool_name}' not found"]
        return validate_schema(arguments, tool.input_schema)

    def call(self, name: Any, arguments: Any) -> Outcome:
        """
        Execute a tool.

        Args:
            name: Tool name from the request
            arguments: Tool arguments from the request (None = empty)

        Returns:
            Outcome whose value is the ``tools/call`` result payload
        """
        if not isinstance(name, str) or not name:
            return Outcome.fail(
                FailureKind.INVALID_PARAMS,
                "Tool name is required and must be a non-empty string"
            )

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return Outcome.fail(FailureKind.INVALID_PARAMS, "Arguments must be an object")

        handler = self._handlers.get(name)
        if handler is None:
            return Outcome.fail(FailureKind.INVALID_PARAMS, f"Unknown tool: {name}", {"tool": name})

        is_valid, errors = self.validate_input(name, arguments)
        if not is_valid:
            return Outcome.fail(
                FailureKind.INVALID_PARAMS,
                f"Invalid arguments for {name}: {'; '.join(errors)}",
                {"errors": errors}
            )

        logger.debug("Calling tool", tool=name)
        outcome = handler(arguments)
        if not outcome.ok:
            return outcome

        return Outcome.success({"content": [{"type": "text", "text": outcome.value}]})

    def _search_articles(self, arguments: dict[str, Any]) -> Outcome:
        query = arguments["query"].strip()
        if not query:
            return Outcome.fail(
                FailureKind.INVALID_PARAMS,
                "Query parameter is required and must be a non-empty string"
            )
        if len(query) > self.max_query_length:
            return Outcome.fail(
                FailureKind.INVALID_PARAMS,
                f"Query parameter must be at most {self.max_query_length} characters"
            )

        filters = ArticleFilters(
            published_only=True,
            include_deleted=False,
            category=arguments.get("category") or None,
        )
        result = self.query_engine.find(query, filters, page=1, per_page=self.search_page_size)
        return Outcome.success(
            format_search_results(query, result.articles, result.meta.total, self.preview_length)
        )

    def _get_article(self, arguments: dict[str, Any]) -> Outcome:
        slug = arguments["slug"]
        if not is_valid_slug(slug):
            return Outcome.fail(
                FailureKind.INVALID_PARAMS,
                "Slug must contain only lowercase letters, numbers, and hyphens"
            )

        resolved = self.resources.resolve(slug)
        if not resolved.ok:
            return resolved
        return Outcome.success(format_article(resolved.value))
