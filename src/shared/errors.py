"""Application exceptions.

Used by the store, the write-side services and the REST surface. The MCP
gateway does not raise these for validation; it converts them into error
envelopes at its boundary.
"""

from typing import Any, Optional


class KnowledgeBaseError(Exception):
    """Base error carrying an HTTP status and a stable error code."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class ArticleNotFoundError(KnowledgeBaseError):
    status_code = 404
    error_code = "article_not_found"

    def __init__(self, message: str = "Article not found") -> None:
        super().__init__(message)


class ValidationError(KnowledgeBaseError):
    status_code = 422
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        validation_errors: Optional[dict[str, list[str]]] = None
    ) -> None:
        super().__init__(message)
        self.validation_errors = validation_errors or {}

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["validation_errors"] = self.validation_errors
        return data


class InvalidRequestError(KnowledgeBaseError):
    status_code = 400
    error_code = "invalid_request"

    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(message)


class StoreError(KnowledgeBaseError):
    """Raised when the underlying database fails."""
    status_code = 500
    error_code = "database_error"

    def __init__(self, message: str = "Database operation failed") -> None:
        super().__init__(message)


class DuplicateEntryError(StoreError):
    """Raised when a write violates a uniqueness constraint."""
    error_code = "duplicate_entry"

    def __init__(self, message: str = "Duplicate entry") -> None:
        super().__init__(message)
