"""Structured logging configuration using structlog.

Ledger code logs amounts as integer minor units; ``AmountRenderer`` turns
those fields into currency strings on the way out.
"""

import logging
import sys
from typing import Any, Optional

import structlog

from .config import Settings, settings as default_settings
from .money import format_amount

AMOUNT_FIELDS = frozenset({"amount", "available", "requested", "remaining", "merchant_balance"})


class AmountRenderer:
    def __init__(self, currency: str, fields: frozenset[str] = AMOUNT_FIELDS):
        self.currency = currency
        self.fields = fields

    def __call__(self, logger: Any, method_name: str, event_dict: dict) -> dict:
        for key in self.fields & event_dict.keys():
            value = event_dict[key]
            if isinstance(value, int) and not isinstance(value, bool):
                event_dict[key] = format_amount(value, self.currency)
        return event_dict


def build_processors(settings: Settings) -> list:
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.environment == "production"
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        AmountRenderer(settings.currency),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        renderer,
    ]


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or default_settings
    level = logging.getLevelName(settings.log_level.upper())

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        service=settings.service_name,
        environment=settings.environment,
        currency=settings.currency,
    )
