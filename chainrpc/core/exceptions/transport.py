"""
Transport Exceptions

Errors raised by a single call to a single endpoint. These are recorded
against the endpoint's error counters and retried by the retry executor.
"""

from chainrpc.core.exceptions.base import ChainRpcError


class TransportError(ChainRpcError):
    """
    Raised when one call to one endpoint fails.

    Common causes:
    - Network error or refused connection
    - Non-success HTTP status (429 rate limit, 5xx)
    - Malformed or non-JSON response body
    """
    pass


class TransportTimeoutError(TransportError):
    """Raised when an endpoint does not answer within the transport timeout."""
    pass


class JsonRpcResponseError(TransportError):
    """
    Raised when the endpoint answers with a JSON-RPC ``error`` object.

    Attributes:
        code: JSON-RPC error code (e.g. -32000, -32005 for rate limits)
    """

    def __init__(self, message: str, code: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.code = code
        if code is not None:
            self.details.setdefault("code", code)
