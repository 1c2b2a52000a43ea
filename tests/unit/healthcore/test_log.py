"""
Tests for structured logging setup.
"""

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from healthcore.config import LoggingConfig
from healthcore.log import configure_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    structlog.reset_defaults()


def test_root_level_follows_config() -> None:
    configure_logging(LoggingConfig(level="WARNING", format="json"))

    assert logging.getLogger().level == logging.WARNING


def test_json_renderer_emits_event_fields() -> None:
    configure_logging(LoggingConfig(level="INFO", format="json"))
    logger = structlog.get_logger("healthcore.test")

    rendered = structlog.get_config()["processors"][-1](
        logger, "info", {"event": "session_built", "reading_count": 3}
    )

    assert json.loads(rendered) == {"event": "session_built", "reading_count": 3}


def test_console_renderer_in_development() -> None:
    configure_logging(LoggingConfig(level="DEBUG", format="console"))

    assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)
