from chainrpc.infrastructure.monitoring.health_monitor import (
    HealthMonitor,
    HealthStatus,
    summarize,
)

__all__ = ["HealthMonitor", "HealthStatus", "summarize"]
