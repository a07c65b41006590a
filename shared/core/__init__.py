"""Shared core utilities for the asset platform services.

Health checks, structured logging and the domain event bus used by both
the asset service and the history worker.
"""

from .health import ServiceHealth, HealthStatus
from .logging_config import (
    setup_logging,
    get_logger,
    RequestLoggingMiddleware,
    set_request_context,
    generate_request_id,
    asset_context,
    LoggerAdapter,
)
from .event_bus import (
    EventBus,
    RedisEventBus,
    InMemoryEventBus,
    PublishOutcome,
    EventBusUnavailable,
    wait_for_broker,
)
from . import events

__all__ = [
    # Health checks
    "ServiceHealth",
    "HealthStatus",
    # Logging
    "setup_logging",
    "get_logger",
    "RequestLoggingMiddleware",
    "set_request_context",
    "generate_request_id",
    "asset_context",
    "LoggerAdapter",
    # Events
    "EventBus",
    "RedisEventBus",
    "InMemoryEventBus",
    "PublishOutcome",
    "EventBusUnavailable",
    "wait_for_broker",
    "events",
]
