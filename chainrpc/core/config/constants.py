"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the resilient RPC client.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for thresholds and default timings
- Type-safe enums for operation kinds and log stages
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Request processing stages used as the ``stage`` field of log entries.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}

    Examples:
        log_stage(logger, Stage.CACHE_LOOKUP, "Cache hit", cache_key=key)
    """

    # Main request lifecycle
    INITIALIZATION = "0.0_INITIALIZATION"
    CACHE_LOOKUP = "1.0_CACHE_LOOKUP"
    ENQUEUE = "2.0_ENQUEUE"
    DRAIN = "3.0_QUEUE_DRAIN"
    ENDPOINT_SELECTION = "4.0_ENDPOINT_SELECTION"
    TRANSPORT_CALL = "5.0_TRANSPORT_CALL"
    CACHE_STORE = "6.0_CACHE_STORE"
    SHUTDOWN = "7.0_SHUTDOWN"

    # Cross-cutting concerns
    RETRY = "R_RETRY_LOGIC"
    HEALTH = "H_HEALTH_PROBE"
    ADMIN = "A_ADMINISTRATIVE"


# ============================================================================
# Operation Kinds
# ============================================================================


class OperationKind(str, Enum):
    """
    Supported read operations.

    The value doubles as the operation name inside cache keys.
    """

    CHAIN_HEAD = "getBlockNumber"
    READ_STATE = "readContract"
    BATCH_READ = "multicall"
    BALANCE = "getBalance"
    TRANSACTION = "getTransaction"
    TRANSACTION_RECEIPT = "getTransactionReceipt"
    LOGS = "getLogs"
    BLOCK = "getBlock"


# ============================================================================
# Endpoint Health
# ============================================================================

# Consecutive request failures before an endpoint is marked unhealthy
ENDPOINT_FAILURE_THRESHOLD = 3

# force_health_check() resets endpoints whose error count exceeds this
ENDPOINT_FORCE_RESET_THRESHOLD = 5

# Health probe cadence and timeout (seconds)
HEALTH_CHECK_INTERVAL = 300
HEALTH_CHECK_TIMEOUT = 15.0

# ============================================================================
# Scheduler
# ============================================================================

SCHEDULER_DRAIN_INTERVAL = 0.1  # seconds between drain cycles
SCHEDULER_REQUESTS_PER_SECOND = 10  # conservative limit for public RPCs
SCHEDULER_BURST_LIMIT = 20  # max items drained per cycle

# ============================================================================
# Retry
# ============================================================================

MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0  # seconds
RETRY_MAX_DELAY = 10.0  # seconds
RETRY_BACKOFF_MULTIPLIER = 2.0

# ============================================================================
# Cache
# ============================================================================

CACHE_MAX_SIZE = 1000  # size that triggers an expired-entry sweep

# Default TTLs per operation kind (seconds). None means "do not cache".
CACHE_TTL_CHAIN_HEAD = 5.0
CACHE_TTL_READ_STATE = 60.0
CACHE_TTL_BATCH_READ = 30.0
CACHE_TTL_BALANCE = 15.0

# ============================================================================
# Transport
# ============================================================================

TRANSPORT_TIMEOUT = 10.0  # seconds, connect + read
TRANSPORT_MAX_CONNECTIONS = 10

JSONRPC_VERSION = "2.0"
BLOCK_TAGS = frozenset({"latest", "earliest", "pending", "safe", "finalized"})

# Public World Chain endpoints, in priority order
DEFAULT_RPC_ENDPOINTS = [
    "https://worldchain-mainnet.g.alchemy.com/public",
    "https://worldchain-mainnet.public.blastapi.io",
    "https://480.rpc.thirdweb.com/",
    "https://worldchain.drpc.org",
]

NO_HEALTHY_ENDPOINTS_MESSAGE = "No healthy RPC endpoints available"
