"""
Taxonomie des erreurs du serveur MCP Google Search

Every failure is classified where it happens (fetcher, search client,
extractor) into a FailureKind, then mapped once onto the MCP error codes.
"""

import logging
from enum import Enum

from mcp.shared.exceptions import McpError
from mcp.types import ErrorData, INTERNAL_ERROR, INVALID_REQUEST

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    """Kinds of failure surfaced to the caller"""
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    INVALID_QUERY = "invalid_query"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_ARGUMENT = "invalid_argument"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


# Kinds the caller can fix by changing the request
REQUEST_KINDS = frozenset({
    FailureKind.NOT_FOUND,
    FailureKind.ACCESS_DENIED,
    FailureKind.INVALID_QUERY,
    FailureKind.INVALID_CREDENTIALS,
    FailureKind.INVALID_ARGUMENT,
})


class ConfigurationError(Exception):
    """Configuration invalide ou incomplète au démarrage"""


class ToolError(Exception):
    """Base error carrying its classification"""

    def __init__(self, kind: FailureKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self):
        return {"kind": self.kind.value, "message": self.message}


class FetchError(ToolError):
    """Raised by the fetcher when a page cannot be retrieved"""


class SearchError(ToolError):
    """Raised by the search API client"""


class ExtractionError(ToolError):
    """Raised when a response body cannot be parsed as HTML"""

    def __init__(self, message: str):
        super().__init__(FailureKind.INTERNAL, message)


def to_mcp_error(error: Exception) -> McpError:
    """Convertit une exception en McpError selon sa classification"""
    if isinstance(error, McpError):
        return error

    if isinstance(error, ToolError):
        code = INVALID_REQUEST if error.kind in REQUEST_KINDS else INTERNAL_ERROR
        return McpError(ErrorData(code=code, message=error.message, data={"kind": error.kind.value}))

    logger.error(f"Erreur non classifiée: {error!r}")
    return McpError(ErrorData(
        code=INTERNAL_ERROR,
        message=f"Operation failed: {error}",
        data={"kind": FailureKind.INTERNAL.value},
    ))
