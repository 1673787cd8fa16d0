"""Tests for vendure_sdk.logging_config."""

import logging

import pytest

from vendure_sdk import logging_config
from vendure_sdk.logging_config import (
    AUTH,
    CATEGORIES,
    GRAPHQL,
    HTTP,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def reset_loggers():
    yield
    logging.getLogger(logging_config.ROOT_LOGGER_NAME).setLevel(logging.NOTSET)
    for category in CATEGORIES:
        get_logger(category).setLevel(logging.NOTSET)


def test_category_logger_names():
    assert get_logger(GRAPHQL).name == "vendure_sdk.graphql"
    assert get_logger(AUTH).name == "vendure_sdk.auth"


def test_configure_logging_level_by_name():
    configure_logging("debug")
    assert logging.getLogger("vendure_sdk").level == logging.DEBUG
    assert get_logger(AUTH).isEnabledFor(logging.DEBUG)


def test_configure_logging_limits_categories():
    configure_logging(logging.INFO, categories=[GRAPHQL, HTTP])

    assert get_logger(GRAPHQL).isEnabledFor(logging.INFO)
    assert get_logger(HTTP).isEnabledFor(logging.INFO)
    assert not get_logger(AUTH).isEnabledFor(logging.CRITICAL)


def test_configure_logging_adds_one_handler():
    root = logging.getLogger("vendure_sdk")
    configure_logging("INFO")
    count = len(root.handlers)
    configure_logging("DEBUG")
    assert len(root.handlers) == count


def test_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level: LOUD$"):
        configure_logging("LOUD")


def test_presets():
    logging_config.enable_production_logging()
    assert not get_logger(AUTH).isEnabledFor(logging.ERROR)
    assert get_logger(HTTP).isEnabledFor(logging.WARNING)

    logging_config.disable_logging()
    assert not get_logger(HTTP).isEnabledFor(logging.CRITICAL)
