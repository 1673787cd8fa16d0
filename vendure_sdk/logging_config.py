"""
Logging configuration - Category loggers for the Vendure client.

Every module logs through one of the category loggers below instead of
printing. Nothing is emitted until the embedding application calls
configure_logging() (or one of the presets), matching the library default
of a silent client.

Categories:
  GraphQL       Query execution and envelope errors
  HTTP          Requests, status codes, transport failures
  Decode        Typed decoding of response sub-objects
  Auth          Token fetch, refresh and invalidation
  CustomFields  Field spec registration and extended-field lookups
  CustomOps     Generic query/mutate dispatch
  General       Session lifecycle

Typical usage:
    from vendure_sdk.logging_config import configure_logging
    configure_logging("DEBUG", categories=["GraphQL", "HTTP"])
"""

import logging
from typing import Iterable, Optional, Union

ROOT_LOGGER_NAME = "vendure_sdk"

GRAPHQL = "GraphQL"
HTTP = "HTTP"
DECODE = "Decode"
AUTH = "Auth"
CUSTOM_FIELDS = "CustomFields"
CUSTOM_OPS = "CustomOps"
GENERAL = "General"

CATEGORIES = (GRAPHQL, HTTP, DECODE, AUTH, CUSTOM_FIELDS, CUSTOM_OPS, GENERAL)

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

_handler: Optional[logging.Handler] = None

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def logger_name(category: str) -> str:
    return f"{ROOT_LOGGER_NAME}.{category.lower()}"


def get_logger(category: str) -> logging.Logger:
    """Return the logger for one of the CATEGORIES."""
    return logging.getLogger(logger_name(category))


def configure_logging(
    level: Union[int, str] = logging.INFO,
    categories: Optional[Iterable[str]] = None,
) -> None:
    """Enable client logging at the given level.

    Args:
        level: Minimum level, as a logging constant or its name ("DEBUG").
        categories: Category names to enable. All categories when omitted;
                    the others are raised above CRITICAL.
    """
    global _handler

    if isinstance(level, str):
        name = level
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(_handler)
    root.setLevel(level)

    enabled = set(CATEGORIES if categories is None else categories)
    for category in CATEGORIES:
        get_logger(category).setLevel(logging.NOTSET if category in enabled else logging.CRITICAL + 1)


def enable_debug_logging() -> None:
    configure_logging(logging.DEBUG)


def enable_info_logging() -> None:
    configure_logging(logging.INFO, [GRAPHQL, HTTP, CUSTOM_OPS, GENERAL])


def enable_production_logging() -> None:
    configure_logging(logging.WARNING, [GRAPHQL, HTTP, GENERAL])


def disable_logging() -> None:
    configure_logging(logging.CRITICAL + 1)
