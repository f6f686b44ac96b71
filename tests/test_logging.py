import logging

import pytest
import structlog

from with_simple_caching.events import log_cache_event
from with_simple_caching.logger import setup_logging


@pytest.fixture
def configured_logging():
    yield setup_logging
    structlog.reset_defaults()


def test_cache_events_render_as_one_line(
    configured_logging, capsys: pytest.CaptureFixture[str]
) -> None:
    configured_logging(logging.DEBUG)

    log_cache_event(namespace="get_weather", cache_event="hit", duration_ms=0.01234)

    out = capsys.readouterr().out.strip()
    assert out == "DEBUG: cache namespace=get_weather cache_event=hit duration_ms=0.012"


def test_cache_events_are_hidden_at_info_level(
    configured_logging, capsys: pytest.CaptureFixture[str]
) -> None:
    configured_logging(logging.INFO)

    log_cache_event(namespace="get_weather", cache_event="miss")
    structlog.get_logger().warning("cache_get_after_set_missing", key='"a"')

    assert capsys.readouterr().out.strip() == 'WARNING: cache_get_after_set_missing key="a"'
