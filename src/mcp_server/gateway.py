"""MCP gateway entry point.

Raw request bytes in, response envelope out. Every failure, expected or
not, ends up as a well-formed error envelope.
"""

import time
from typing import Any

from shared.config import GatewaySettings
from shared.logging import get_logger
from knowledge_base.base import ArticleStore
from knowledge_base.search import QueryEngine
from mcp_server.envelope import RequestEnvelopeValidator
from mcp_server.errors import Failure, FailureKind, error_response
from mcp_server.registry import ToolCatalog
from mcp_server.resources import ResourceCatalog
from mcp_server.router import MethodRouter

logger = get_logger(__name__)


class McpGateway:
    """
    JSON-RPC gateway over an article store.

    Stateless per call; concurrent calls only share the store.
    """

    def __init__(self, store: ArticleStore, settings: GatewaySettings | None = None) -> None:
        self.settings = settings or GatewaySettings()
        self.query_engine = QueryEngine(store)
        self.resources = ResourceCatalog(store, preview_length=self.settings.preview_length)
        self.tools = ToolCatalog(
            self.query_engine,
            self.resources,
            preview_length=self.settings.preview_length,
            search_page_size=self.settings.search_page_size,
            max_query_length=self.settings.max_query_length,
        )
        self.validator = RequestEnvelopeValidator()
        self.router = MethodRouter(self.resources, self.tools, self.settings)

    def handle(self, raw: bytes | str | None) -> dict[str, Any]:
        """
        Handle one request body.

        Returns:
            The response envelope as a JSON-serializable dict
        """
        start_time = time.time()
        request_id: Any = None
        method = None

        try:
            parsed = self.validator.validate(raw)
            if not parsed.ok:
                logger.info(
                    "Rejected request envelope",
                    kind=parsed.failure.kind.value,
                    message=parsed.failure.message
                )
                return error_response(parsed.request_id, parsed.failure)

            request = parsed.value
            request_id = request.id
            method = request.method
            response = self.router.route(request)
        except Exception as e:
            logger.error(
                "Unhandled gateway error",
                method=method,
                error=str(e),
                exc_info=True
            )
            failure = Failure(kind=FailureKind.INTERNAL_ERROR, message=f"Internal error: {e}")
            return error_response(request_id, failure)

        logger.debug(
            "Request handled",
            method=method,
            execution_time_ms=round((time.time() - start_time) * 1000, 2)
        )
        return response
