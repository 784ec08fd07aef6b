"""Error taxonomy for remote search failures.

Every remote failure collapses into one classified, human-readable message.
Short queries are not errors (the reactor simply clears state) and superseded
responses are never surfaced, so neither has an exception type here.
"""

from enum import Enum

import httpx

ERROR_MESSAGES: dict[str, str] = {
    "search_failed": "Failed to search candidates. Please try again.",
    "network_error": "Network error. Please check your connection.",
}


class ErrorKind(str, Enum):
    TRANSPORT_UNAVAILABLE = "transport_unavailable"
    SERVER_ERROR = "server_error"


class SearchError(Exception):
    """Base class for classified search failures."""

    kind: ErrorKind = ErrorKind.SERVER_ERROR
    user_message: str = ERROR_MESSAGES["search_failed"]


class TransportUnavailableError(SearchError):
    """The search endpoint could not be reached."""

    kind = ErrorKind.TRANSPORT_UNAVAILABLE
    user_message = ERROR_MESSAGES["network_error"]


class ServerError(SearchError):
    """The endpoint answered with a failure or an unreadable body."""

    kind = ErrorKind.SERVER_ERROR
    user_message = ERROR_MESSAGES["search_failed"]

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def classify(exc: Exception) -> SearchError:
    """Map a transport or decoding exception onto the search taxonomy."""
    if isinstance(exc, SearchError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return ServerError(f"Search endpoint returned HTTP {status}", status_code=status)
    if isinstance(exc, httpx.TransportError):
        return TransportUnavailableError(f"Search endpoint unreachable: {exc}")
    if isinstance(exc, ValueError):
        return ServerError(f"Malformed search response: {exc}")
    return ServerError(f"Unexpected search failure: {exc}")
