from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    INDEX_NOT_FOUND = "INDEX_NOT_FOUND"
    INVALID_INDEX = "INVALID_INDEX"
    PATH_NOT_MATCHED = "PATH_NOT_MATCHED"
    PACKAGE_NOT_CACHED = "PACKAGE_NOT_CACHED"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"


class EruditaError(Exception):
    """Raised for expected failures of single-target operations.

    Tool handlers let it propagate to server.py, which serialises it into
    the MCP error response. The CLI prints its message and suggestion.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }
