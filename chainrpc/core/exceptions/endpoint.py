"""
Endpoint Exceptions

Errors about the endpoint pool as a whole rather than a single call.
"""

from chainrpc.core.config.constants import NO_HEALTHY_ENDPOINTS_MESSAGE
from chainrpc.core.exceptions.base import ChainRpcError


class EndpointError(ChainRpcError):
    """Base exception for endpoint pool errors."""
    pass


class NoHealthyEndpointsError(EndpointError):
    """
    Raised when every configured endpoint is unhealthy.

    All currently queued requests fail with this error in the same drain
    cycle. It is never retried: only a health probe or force_health_check()
    can restore an endpoint.
    """

    def __init__(self, message: str = NO_HEALTHY_ENDPOINTS_MESSAGE, **kwargs):
        super().__init__(message, **kwargs)
