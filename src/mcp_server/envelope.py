"""Request envelope parsing and structural validation."""

import json
import math
from typing import Any

from mcp_server.errors import FailureKind, Outcome
from shared.models import RequestEnvelope

JSONRPC_VERSION = "2.0"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def _parse_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {text}")
    return value


class ParsedRequest(Outcome):
    """
    Validation outcome plus the request id.

    ``request_id`` is set as soon as the body decodes to a JSON object, so
    error envelopes for later structural failures can still echo it.
    """
    request_id: Any = None


class RequestEnvelopeValidator:
    """
    Parses raw request bytes into a RequestEnvelope.

    Checks run in order: empty body, JSON syntax, object shape, version
    tag, method, params. Pure; never raises.
    """

    def validate(self, raw: bytes | str | None) -> ParsedRequest:
        if raw is None:
            return self._fail(FailureKind.PARSE_ERROR, "Request body cannot be empty")

        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                return self._fail(FailureKind.PARSE_ERROR, f"Parse error: {e}")

        if not raw.strip():
            return self._fail(FailureKind.PARSE_ERROR, "Request body cannot be empty")

        try:
            request = json.loads(raw, parse_constant=_reject_constant, parse_float=_parse_float)
        except (ValueError, RecursionError) as e:
            return self._fail(FailureKind.PARSE_ERROR, f"Parse error: {e}")

        if not isinstance(request, dict):
            return self._fail(FailureKind.INVALID_REQUEST, "Request must be a JSON object")

        request_id = request.get("id")

        version = request.get("jsonrpc")
        if not isinstance(version, str) or version != JSONRPC_VERSION:
            return self._fail(
                FailureKind.INVALID_REQUEST,
                'Invalid JSON-RPC version. Must be "2.0"',
                request_id
            )

        method = request.get("method")
        if method is None:
            return self._fail(FailureKind.INVALID_REQUEST, "Missing method field", request_id)
        if not isinstance(method, str):
            return self._fail(FailureKind.INVALID_REQUEST, "Method must be a string", request_id)

        params = request.get("params")
        if params is None:
            params = {}
        elif not isinstance(params, dict):
            return self._fail(FailureKind.INVALID_PARAMS, "Params must be an object", request_id)

        envelope = RequestEnvelope(jsonrpc=version, method=method, id=request_id, params=params)
        return ParsedRequest(value=envelope, request_id=request_id)

    @staticmethod
    def _fail(kind: FailureKind, message: str, request_id: Any = None) -> ParsedRequest:
        failed = Outcome.fail(kind, message)
        return ParsedRequest(failure=failed.failure, request_id=request_id)
