"""MCP Server - knowledge base gateway.

Parses JSON-RPC envelopes, routes methods to the resource and tool
catalogs, and maps every failure onto a JSON-RPC error code.
"""

from mcp_server.envelope import RequestEnvelopeValidator
from mcp_server.errors import ErrorCode, ErrorMapper
from mcp_server.gateway import McpGateway
from mcp_server.registry import ToolCatalog
from mcp_server.resources import ResourceCatalog
from mcp_server.router import MethodRouter

__all__ = [
    "ErrorCode",
    "ErrorMapper",
    "McpGateway",
    "MethodRouter",
    "RequestEnvelopeValidator",
    "ResourceCatalog",
    "ToolCatalog",
]
