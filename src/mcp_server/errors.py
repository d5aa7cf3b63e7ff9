"""Gateway failure taxonomy and its JSON-RPC error mapping.

Validating operations return an Outcome instead of raising. The numeric
codes are part of the wire contract.
"""

from enum import Enum, IntEnum
from typing import Any, Optional

from pydantic import BaseModel


class ErrorCode(IntEnum):
    """JSON-RPC 2.0 error codes used by the gateway."""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class FailureKind(str, Enum):
    """Internal failure classification."""
    PARSE_ERROR = "parse_error"
    INVALID_REQUEST = "invalid_request"
    METHOD_NOT_FOUND = "method_not_found"
    INVALID_PARAMS = "invalid_params"
    ARTICLE_NOT_FOUND = "article_not_found"
    INTERNAL_ERROR = "internal_error"


class Failure(BaseModel):
    """A classified failure produced by any gateway stage."""
    kind: FailureKind
    message: str
    data: Optional[Any] = None


class Outcome(BaseModel):
    """Either a success value or a Failure, never both."""
    value: Any = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: FailureKind, message: str, data: Any = None) -> "Outcome":
        return cls(failure=Failure(kind=kind, message=message, data=data))


class ErrorMapper:
    """Converts failures into JSON-RPC error objects."""

    CODES: dict[FailureKind, ErrorCode] = {
        FailureKind.PARSE_ERROR: ErrorCode.PARSE_ERROR,
        FailureKind.INVALID_REQUEST: ErrorCode.INVALID_REQUEST,
        FailureKind.METHOD_NOT_FOUND: ErrorCode.METHOD_NOT_FOUND,
        FailureKind.INVALID_PARAMS: ErrorCode.INVALID_PARAMS,
        # Lookup misses are surfaced in the invalid-params class
        FailureKind.ARTICLE_NOT_FOUND: ErrorCode.INVALID_PARAMS,
        FailureKind.INTERNAL_ERROR: ErrorCode.INTERNAL_ERROR,
    }

    @classmethod
    def code_for(cls, kind: FailureKind) -> int:
        return int(cls.CODES.get(kind, ErrorCode.INTERNAL_ERROR))

    @classmethod
    def to_error(cls, failure: Failure) -> dict[str, Any]:
        """Build the ``error`` member of a response envelope."""
        error: dict[str, Any] = {
            "code": cls.code_for(failure.kind),
            "message": failure.message,
        }
        if failure.data is not None:
            error["data"] = failure.data
        return error


def success_response(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def error_response(request_id: Any, failure: Failure) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": ErrorMapper.to_error(failure)}
