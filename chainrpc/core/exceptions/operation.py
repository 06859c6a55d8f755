"""
Operation Exceptions
"""

from chainrpc.core.exceptions.base import ChainRpcError


class UnsupportedOperationError(ChainRpcError):
    """
    Raised when the client is asked for an operation it does not implement.

    Fails immediately: no retry and no penalty against any endpoint.
    """
    pass
