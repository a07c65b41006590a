"""
Structured logging configuration shared by the asset and history services.

Every record is rendered as one JSON object. Records written while a
request, an event delivery or an asset operation is in progress carry the
matching ids under "trace", which is how a transfer in the asset service
is lined up with the ledger row the history worker writes later.
"""

import logging
import os
import sys
import json
import time
import traceback
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, Optional
from contextvars import ContextVar
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
event_topic_var: ContextVar[Optional[str]] = ContextVar('event_topic', default=None)
asset_id_var: ContextVar[Optional[str]] = ContextVar('asset_id', default=None)

_TRACE_VARS = (
    ("request_id", request_id_var),
    ("correlation_id", correlation_id_var),
    ("event_topic", event_topic_var),
    ("asset_id", asset_id_var),
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter: service identity, trace ids, source location, error details"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "@timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": os.getenv('SERVICE_NAME', 'unknown-service'),
            "environment": os.getenv('ENVIRONMENT', 'development'),
        }

        trace = {key: var.get() for key, var in _TRACE_VARS if var.get()}
        if trace:
            log_obj["trace"] = trace

        log_obj["location"] = f"{record.module}.{record.funcName}:{record.lineno}"

        if record.exc_info:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_fields'):
            log_obj["custom"] = record.extra_fields

        return json.dumps(log_obj, default=str)


class SecretRedactionFilter(logging.Filter):
    """Masks known secret values (the internal notification secret, DB passwords)"""

    MASK = "***REDACTED***"

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self.secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        redacted = message
        for secret in self.secrets:
            redacted = redacted.replace(secret, self.MASK)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    service_name: str,
    level: str = "INFO",
    secrets: Iterable[str] = (),
) -> None:
    """
    Configure the root logger for a service process.

    Args:
        service_name: Name reported in every record
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        secrets: Literal values that must never appear in log output
    """
    os.environ['SERVICE_NAME'] = service_name

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    handler.addFilter(SecretRedactionFilter(secrets))
    root_logger.addHandler(handler)

    for noisy in ('uvicorn.access', 'sqlalchemy.engine', 'httpx', 'httpcore'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized",
        extra={'extra_fields': {'service': service_name, 'level': level}}
    )


class LoggerAdapter(logging.LoggerAdapter):
    """Passes per-call extra through untouched instead of replacing it with the adapter's"""

    def process(self, msg, kwargs):
        return msg, kwargs


def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})


def set_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> None:
    if request_id:
        request_id_var.set(request_id)
    if correlation_id:
        correlation_id_var.set(correlation_id)


def generate_request_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def asset_context(custom_id: Optional[str]) -> Iterator[None]:
    """Tag every record logged inside the block with the asset's customId"""
    token = asset_id_var.set(custom_id)
    try:
        yield
    finally:
        asset_id_var.reset(token)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request with status and duration; echoes X-Request-ID"""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()
        set_request_context(
            request_id=request_id,
            correlation_id=request.headers.get('X-Correlation-ID')
        )
        logger = get_logger(__name__)
        fields = {'method': request.method, 'path': request.url.path}

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            fields['duration_ms'] = round((time.perf_counter() - started) * 1000, 2)
            logger.error(
                f"{request.method} {request.url.path} failed",
                exc_info=True,
                extra={'extra_fields': fields}
            )
            raise

        fields['status_code'] = response.status_code
        fields['duration_ms'] = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={'extra_fields': fields}
        )
        response.headers['X-Request-ID'] = request_id
        return response
