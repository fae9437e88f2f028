"""Logging and tracing setup using Pydantic Logfire.

Modules log through the standard library (`logging.getLogger(__name__)`) with
event-style messages and an `extra` dict; Logfire collects those records once
configured and adds spans around service calls, HTTP requests, model calls and
outbound email requests.
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import settings


logger = logging.getLogger(__name__)


def configure_logfire() -> None:
    """Configure Logfire and route stdlib logging through it.

    Nothing is shipped unless LOGFIRE_TOKEN is set; spans and logs stay local otherwise.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="ai-todo-manager",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)
    logger.info("logfire_configured", extra={"environment": settings.environment})


def instrument_fastapi(app: FastAPI) -> None:
    """Trace incoming requests."""
    logfire.instrument_fastapi(app)


def instrument_outbound() -> None:
    """Trace model calls made through pydantic-ai and email requests made through httpx."""
    logfire.instrument_pydantic_ai()
    logfire.instrument_httpx()


def span(name: str) -> logfire.LogfireSpan:
    """Open a span around a service-layer call.

    Usage:
        with span("todo_service.create_todo"):
            ...
    """
    return logfire.span(name)
