"""Shared fakes for error handler tests."""

import logging
from datetime import datetime, timezone

import pytest
import structlog


class FakeLifecycle:
    def __init__(self):
        self.reasons: list[str] = []

    def request_shutdown(self, reason: str) -> None:
        self.reasons.append(reason)


class RecordingSink:
    """Log sink that appends its channel name to a shared event list."""

    def __init__(self, channel: str, events: list, fail_with: Exception | None = None):
        self.channel = channel
        self.events = events
        self.entries = []
        self.fail_with = fail_with

    async def write_log(self, entry):
        if self.fail_with is not None:
            raise self.fail_with
        self.entries.append(entry)
        self.events.append(self.channel)
        return None


class RecordingResponseSink:
    def __init__(self, events: list):
        self.events = events
        self.calls: list[tuple[int, dict]] = []

    async def send_response(self, status, payload):
        self.calls.append((status, payload))
        self.events.append("response")


FIXED_NOW = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)


@pytest.fixture
def lifecycle():
    return FakeLifecycle()


@pytest.fixture
def events():
    return []


@pytest.fixture
def make_handler(lifecycle, events):
    from errshape.config import LogOptions, RuntimeEnvironment
    from errshape.errors import ErrorHandler

    def factory(
        environment=RuntimeEnvironment.PRODUCTION,
        log_to_file=True,
        log_to_console=True,
        file_sink=None,
        console_sink=None,
        **kwargs,
    ):
        return ErrorHandler(
            LogOptions(log_to_file=log_to_file, log_to_console=log_to_console),
            lambda: environment,
            lifecycle,
            file_sink=file_sink or RecordingSink("file", events),
            console_sink=console_sink or RecordingSink("console", events),
            clock=lambda: FIXED_NOW,
            **kwargs,
        )

    return factory


@pytest.fixture
def response_sink(events):
    return RecordingResponseSink(events)


@pytest.fixture
def recording_sink(events):
    def factory(channel, fail_with=None):
        return RecordingSink(channel, events, fail_with=fail_with)

    return factory


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
