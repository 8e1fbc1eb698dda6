"""Krishi Drishti — Structured Logging.

structlog on top of the stdlib ``logging`` module: JSON lines in staging
and production, coloured console output in development. Every entry is
tagged with the app name and the current request/correlation ids, and is
scrubbed of secrets and farmer/operator personal data before rendering.

Usage:
    from logger import configure_logging, get_logger

    configure_logging(environment="production")
    logger = get_logger(__name__)
    logger.info("Session opened", machine_id="m-42")
"""

from __future__ import annotations

import logging
import re
import sys
import time
import uuid
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from structlog.types import EventDict, Processor, WrappedLogger

APP_NAME = "krishi-drishti"
REDACTED = "[REDACTED]"


# =============================================================================
# Redaction
# =============================================================================

# Keys whose values are never logged
BLOCKLIST_FIELDS: frozenset[str] = frozenset({
    "password",
    "secret",
    "token",
    "api_key",
    "cron_secret",
    "authorization",
    "cookie",
    "farmer_contact",
    "phone",
})

_SENSITIVE_KEY = re.compile(
    r"passw(or)?d|secret|token|api[_-]?key|authorization|credential|bearer|cookie|contact",
    re.IGNORECASE,
)

# Applied in order; Aadhaar before mobile so 12-digit ids are not split
PII_VALUE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), "[EMAIL_REDACTED]"),
    (re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}\b"), "[AADHAAR_REDACTED]"),
    (re.compile(r"(?:\+91[\s-]?)?\b[6-9]\d{9}\b"), "[PHONE_REDACTED]"),
    (re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b"), "[IP_REDACTED]"),
)


def _is_sensitive_field(field_name: str) -> bool:
    return field_name.lower() in BLOCKLIST_FIELDS or bool(_SENSITIVE_KEY.search(field_name))


def _sanitize_value(value: Any, field_name: str = "") -> Any:
    """Redact ``value`` if its key is sensitive, else scrub PII recursively."""
    if _is_sensitive_field(field_name):
        return REDACTED
    if isinstance(value, str):
        for pattern, replacement in PII_VALUE_PATTERNS:
            value = pattern.sub(replacement, value)
        return value
    if isinstance(value, dict):
        return {k: _sanitize_value(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_sanitize_value(item, field_name) for item in value)
    return value


# =============================================================================
# Processors
# =============================================================================

def sanitize_sensitive_data(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    return {k: _sanitize_value(v, k) for k, v in event_dict.items()}


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    event_dict.setdefault("app", APP_NAME)
    return event_dict


def drop_color_message_key(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """uvicorn duplicates the message with ANSI codes under color_message."""
    event_dict.pop("color_message", None)
    return event_dict


def configure_logging(
    environment: str = "development",
    log_level: str = "INFO",
    json_format: bool | None = None,
) -> None:
    """Install the structlog pipeline and route stdlib logging to stdout.

    Args:
        environment: development, staging or production.
        log_level: Root logging level.
        json_format: Force JSON (True) or console (False) output; by default
            JSON everywhere except development.
    """
    if json_format is None:
        json_format = environment != "development"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_app_context,
        sanitize_sensitive_data,
    ]
    if json_format:
        processors += [
            drop_color_message_key,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
        force=True,
    )
    for name in ("uvicorn.access", "httpx", "httpcore", "asyncio", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


# =============================================================================
# Request Context Middleware
# =============================================================================

class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request and correlation ids to every log entry of a request.

    Honours incoming ``X-Request-ID`` / ``X-Correlation-ID`` headers (device
    gateways and the cron caller may set them) and echoes both back.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        correlation_id = request.headers.get("X-Correlation-ID") or request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            correlation_id=correlation_id,
        )
        logger = get_logger("krishi.http")
        started = time.perf_counter()

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        except Exception:
            logger.exception(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "correlation_id")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Correlation-ID"] = correlation_id
        return response
