"""
Request Scheduler Exceptions
"""

from chainrpc.core.exceptions.base import ChainRpcError


class SchedulerError(ChainRpcError):
    """Base exception for request scheduler errors."""
    pass


class SchedulerClosedError(SchedulerError):
    """
    Raised for requests submitted to, or still queued in, a closed scheduler.
    """
    pass
