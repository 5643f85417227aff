import io
import logging

import pytest

import fin_analyzer.logging_setup as logging_setup
from fin_analyzer import normalize


@pytest.fixture
def fresh_package_logger(monkeypatch):
    pkg = logging.getLogger(logging_setup.PACKAGE_LOGGER)
    saved = (list(pkg.handlers), pkg.level, pkg.propagate)
    monkeypatch.setitem(logging_setup._state, "configured", False)
    pkg.handlers.clear()
    yield pkg
    pkg.handlers[:] = saved[0]
    pkg.setLevel(saved[1])
    pkg.propagate = saved[2]


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("15", 15),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
    ],
)
def test_parse_level(level, expected):
    assert logging_setup._parse_level(level) == expected


def test_level_falls_back_to_environment(monkeypatch):
    monkeypatch.setenv("FIN_ANALYZER_LOG_LEVEL", "error")
    assert logging_setup._parse_level(None) == logging.ERROR


def test_library_is_silent_until_configured(fresh_package_logger):
    logging_setup.get_logger("fin_analyzer.test")
    assert [type(h) for h in fresh_package_logger.handlers] == [logging.NullHandler]


def test_configure_logging_emits_event_lines(fresh_package_logger):
    logging_setup.get_logger("fin_analyzer.test")
    stream = io.StringIO()

    logging_setup.configure_logging("INFO", fmt="%(name)s %(message)s", stream=stream)
    logging_setup.configure_logging("DEBUG", stream=io.StringIO())
    normalize([{"foo": 1}], source="unit")

    assert [type(h) for h in fresh_package_logger.handlers] == [logging.StreamHandler]
    assert fresh_package_logger.level == logging.INFO
    assert "fin_analyzer.normalizer normalize:done source=unit" in stream.getvalue()
