"""
Structured logging for the callback service (structlog over stdlib logging).

Events are JSON lines outside development. Credentials that reach an event
(bearer tokens, signatures, payer e-mail) are masked before rendering.
"""
import logging
import sys
from typing import Any, Dict

import structlog

from .config import settings

MASKED_KEYS = frozenset({"token", "authorization", "signature", "email"})

logging.basicConfig(
    format="%(message)s",
    stream=sys.stdout,
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
)


def add_service_context(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    event_dict['service'] = settings.APP_NAME
    event_dict['environment'] = settings.ENVIRONMENT
    return event_dict


def mask_credentials(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    for key in MASKED_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def configure_logging(json_output: bool = not settings.DEBUG):
    """Install the processor chain. Console rendering when ``json_output`` is off."""
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            add_service_context,
            mask_credentials,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
