"""
Structured logging with structlog.

``configure_logging`` is called once from the application lifespan; modules
grab a logger with ``get_logger(__name__)`` at import time, which is safe
because structlog loggers are lazy proxies until first use.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.typing import FilteringBoundLogger

from foodrescue.core.config import get_settings


def configure_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    format_type = (log_format or settings.log_format).lower()

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=getattr(logging, level))

    service = settings.service_name
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        lambda _, __, event_dict: {**event_dict, "service": service},
    ]
    if format_type == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> FilteringBoundLogger:
    return structlog.get_logger(name)


class StructlogMiddleware:
    """
    Binds method and path of the current HTTP request to every log event.

        app.add_middleware(StructlogMiddleware)
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        request_id = headers.get(b"x-request-id", b"-").decode(errors="ignore")
        with structlog.contextvars.bound_contextvars(
            request_id=request_id,
            method=scope.get("method", "UNKNOWN"),
            path=scope.get("path", "/"),
        ):
            await self.app(scope, receive, send)
