"""Structured logging and tracing for OIDC Debugger.

structlog produces the log records and the OpenTelemetry API produces
spans; without an OpenTelemetry SDK installed the tracer is a no-op.
Codes, verifiers and tokens must never reach a log line, so every record
passes through :func:`redact_secrets` first.
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Iterator, MutableMapping

    from .config import TelemetryConfig

SERVICE_NAME = "oidc-debugger"
TRACER_VERSION = "0.1.0"

SECRET_KEYS = frozenset(
    {
        "code",
        "code_verifier",
        "access_token",
        "id_token",
        "refresh_token",
        "client_secret",
    }
)

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}

_tracer: trace.Tracer | None = None
_logger: structlog.BoundLogger | None = None


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking values of secret-bearing keys."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def get_tracer() -> trace.Tracer:
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(SERVICE_NAME, TRACER_VERSION)
    return _tracer


def get_logger() -> structlog.BoundLogger:
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(SERVICE_NAME)
    return _logger


def configure_telemetry(config: TelemetryConfig) -> None:
    """Set up structlog and the tracer from ``config``.

    Records go to stderr: stdout is reserved for the CLI's JSON output.
    Disabling telemetry swaps in a no-op tracer and leaves structlog alone.

    Args:
        config: Telemetry configuration.
    """
    global _tracer, _logger

    if not config.enabled:
        _tracer = trace.NoOpTracer()
        return

    renderer: Any
    if config.json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_secrets,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _LEVELS.get(config.log_level.upper(), _LEVELS["INFO"])
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    _tracer = trace.get_tracer(config.service_name, TRACER_VERSION)
    _logger = structlog.get_logger(config.service_name)


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Iterator[trace.Span]:
    """Run a block inside a span, marking the span as failed on exceptions.

    Args:
        name: Span name, e.g. ``token_exchange``.
        attributes: Span attributes; must not contain secrets.

    Yields:
        The active span.
    """
    with get_tracer().start_as_current_span(
        name,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
