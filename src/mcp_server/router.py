"""Method router for the MCP gateway.

Dispatches a validated request to its handler and wraps the outcome in
the response envelope.
"""

from typing import Any, Callable

from shared.config import GatewaySettings
from shared.errors import StoreError
from shared.logging import get_logger
from shared.models import RequestEnvelope
from mcp_server.errors import FailureKind, Outcome, error_response, success_response
from mcp_server.registry import ToolCatalog
from mcp_server.resources import ResourceCatalog

logger = get_logger(__name__)

MethodHandler = Callable[[dict[str, Any]], Outcome]


class MethodRouter:
    """
    Routes JSON-RPC methods to resource and tool handlers.

    The method table is built once at construction. Unknown methods fall
    through to a single "method not found" failure. The router is
    stateless across calls, so ``initialize`` may be repeated freely.
    """

    def __init__(
        self,
        resources: ResourceCatalog,
        tools: ToolCatalog,
        settings: GatewaySettings | None = None
    ) -> None:
        self.resources = resources
        self.tools = tools
        self.settings = settings or GatewaySettings()
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "resources/list": self._resources_list,
            "resources/read": self._resources_read,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._methods)

    def dispatch(self, request: RequestEnvelope) -> Outcome:
        """Run the handler for the request's method."""
        handler = self._methods.get(request.method)
        if handler is None:
            return Outcome.fail(
                FailureKind.METHOD_NOT_FOUND,
                f"Method not found: {request.method}",
                {"method": request.method}
            )

        try:
            return handler(request.params)
        except StoreError as e:
            logger.error("Store failure", method=request.method, error=e.message)
            return Outcome.fail(FailureKind.INTERNAL_ERROR, f"Database error: {e.message}")

    def route(self, request: RequestEnvelope) -> dict[str, Any]:
        """Dispatch and build the response envelope."""
        outcome = self.dispatch(request)
        if outcome.ok:
            return success_response(request.id, outcome.value)

        logger.info(
            "Request failed",
            method=request.method,
            kind=outcome.failure.kind.value,
            message=outcome.failure.message
        )
        return error_response(request.id, outcome.failure)

    def _initialize(self, params: dict[str, Any]) -> Outcome:
        return Outcome.success({
            "protocolVersion": self.settings.protocol_version,
            "capabilities": {
                "resources": {},
                "tools": {},
            },
            "serverInfo": {
                "name": self.settings.server_name,
                "version": self.settings.server_version,
            },
        })

    def _resources_list(self, params: dict[str, Any]) -> Outcome:
        return Outcome.success({
            "resources": [r.to_protocol() for r in self.resources.list_resources()]
        })

    def _resources_read(self, params: dict[str, Any]) -> Outcome:
        return self.resources.read(params.get("uri"))

    def _tools_list(self, params: dict[str, Any]) -> Outcome:
        return Outcome.success({
            "tools": [t.to_protocol() for t in self.tools.list_tools()]
        })

    def _tools_call(self, params: dict[str, Any]) -> Outcome:
        return self.tools.call(params.get("name"), params.get("arguments"))
