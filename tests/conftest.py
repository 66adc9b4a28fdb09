"""Pytest configuration and Hypothesis profiles."""

import logging

import pytest
from hypothesis import settings

from tests.fakes import LogCapture, RecordingSleep, ScriptedTransport

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)

# Load dev profile by default, CI can override via --hypothesis-profile=ci
settings.load_profile("dev")


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def capture_logs():
    """Attach a LogCapture to a named logger; restored on teardown.

    The klime loggers do not propagate, so caplog never sees their records.
    """
    attached = []

    def attach(name: str) -> LogCapture:
        logger = logging.getLogger(name)
        handler = LogCapture()
        handler.setLevel(logging.DEBUG)
        attached.append((logger, handler, logger.level))
        logger.addHandler(handler)
        return handler

    yield attach

    for logger, handler, level in attached:
        logger.removeHandler(handler)
        logger.setLevel(level)
