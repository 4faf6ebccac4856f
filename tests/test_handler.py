"""Tests for the ErrorHandler policy engine."""

import asyncio

import pytest
from structlog.testing import capture_logs


def _records():
    from errshape.errors import ErrorKind, api_error, database_error

    return [
        database_error("Invalid _id: x", kind=ErrorKind.CAST_OR_TYPE, stack="s1"),
        database_error("dup", kind=ErrorKind.DUPLICATE, stack="s2"),
        database_error("Invalid data input: bad", kind=ErrorKind.VALIDATION, stack="s3"),
        api_error("bad request body", stack="s4"),
    ]


class TestRender:
    @pytest.mark.parametrize("record", _records(), ids=lambda r: r.kind.value)
    def test_production_payload_has_only_status_and_message(self, make_handler, record):
        handler = make_handler()
        status, payload = handler.render(record)
        assert status == record.http_status
        assert set(payload) == {"status", "message"}
        assert payload["message"] == record.message

    def test_production_hides_programmer_error_details(self, make_handler):
        from errshape.errors import unclassified_error

        handler = make_handler()
        _, payload = handler.render(unclassified_error("x is not a function", stack="secret"))
        assert payload == {"status": "error", "message": "x is not a function"}

    def test_development_payload_is_verbose(self, make_handler):
        from errshape.config import RuntimeEnvironment
        from errshape.errors import api_error

        handler = make_handler(environment=RuntimeEnvironment.DEVELOPMENT)
        record = api_error("bad request body", stack="trace", cause=ValueError("raw"))
        status, payload = handler.render(record)
        assert status == 500
        assert payload == {
            "status": "error",
            "error": record.to_dict(),
            "message": "bad request body",
            "stack": "trace",
        }

    def test_status_label(self, make_handler):
        from errshape.errors import api_error, response_status

        assert response_status(400) == "fail"
        assert response_status(404) == "fail"
        assert response_status(500) == "error"
        _, payload = make_handler().render(api_error("m", http_status=422))
        assert payload["status"] == "fail"

    def test_environment_read_on_every_call(self, lifecycle):
        from errshape.config import LogOptions, RuntimeEnvironment
        from errshape.errors import ErrorHandler, api_error

        mode = {"value": RuntimeEnvironment.PRODUCTION}
        handler = ErrorHandler(LogOptions(), lambda: mode["value"], lifecycle)
        record = api_error("m", stack="s")
        assert "stack" not in handler.render(record)[1]
        mode["value"] = RuntimeEnvironment.DEVELOPMENT
        assert handler.render(record)[1]["stack"] == "s"


class TestOperationalErrors:
    @pytest.mark.asyncio
    async def test_both_channels_written_once_after_response(
        self, make_handler, response_sink, events, lifecycle
    ):
        from errshape.errors import ErrorKind, database_error

        handler = make_handler(log_to_file=True, log_to_console=True)
        record = database_error("Invalid _id: x", kind=ErrorKind.CAST_OR_TYPE)

        await handler.handle(record, response_sink)
        assert events == ["response"]

        await handler.drain()
        assert events == ["response", "file", "console"]
        assert len(response_sink.calls) == 1
        assert lifecycle.reasons == []

    @pytest.mark.asyncio
    async def test_response_not_blocked_by_slow_log_write(
        self, make_handler, response_sink, events
    ):
        from errshape.errors import api_error

        release = asyncio.Event()

        class SlowSink:
            async def write_log(self, entry):
                await release.wait()
                events.append("slow")

        handler = make_handler(log_to_console=False, file_sink=SlowSink())
        await handler.handle(api_error("m"), response_sink)
        await asyncio.sleep(0)

        assert events == ["response"]
        assert handler.pending_writes == 1

        release.set()
        await handler.drain()
        assert events == ["response", "slow"]
        assert handler.pending_writes == 0

    @pytest.mark.asyncio
    async def test_log_entry_contents(
        self, make_handler, response_sink, recording_sink, fixed_now
    ):
        from errshape.errors import api_error

        file_sink = recording_sink("file")
        handler = make_handler(log_to_console=False, file_sink=file_sink)
        await handler.handle(api_error("bad request body", stack="trace"), response_sink)
        await handler.drain()

        (entry,) = file_sink.entries
        assert entry.timestamp == fixed_now
        assert entry.description == "INTERNAL_SERVER_ERROR"
        assert entry.message == "bad request body"
        assert entry.http_status == 500
        assert entry.stack == "trace"

    @pytest.mark.asyncio
    async def test_only_enabled_channels(self, make_handler, response_sink, events):
        from errshape.errors import api_error

        handler = make_handler(log_to_file=False, log_to_console=True)
        await handler.handle(api_error("m"), response_sink)
        await handler.drain()
        assert events == ["response", "console"]

    @pytest.mark.asyncio
    async def test_no_channels(self, make_handler, response_sink, events):
        from errshape.errors import api_error

        handler = make_handler(log_to_file=False, log_to_console=False)
        await handler.handle(api_error("m"), response_sink)
        await handler.drain()
        assert events == ["response"]

    @pytest.mark.asyncio
    async def test_sink_failure_is_contained(
        self, make_handler, response_sink, recording_sink, events
    ):
        from errshape.errors import api_error

        handler = make_handler(file_sink=recording_sink("file", fail_with=OSError("disk full")))
        with capture_logs() as logs:
            await handler.handle(api_error("m"), response_sink)
            await handler.drain()

        assert events == ["response", "console"]
        failures = [log for log in logs if log["event"] == "error_log_failed"]
        assert len(failures) == 1
        assert failures[0]["channel"] == "file"
        assert failures[0]["error"] == "disk full"

    @pytest.mark.asyncio
    async def test_sink_returned_error_is_reported(self, make_handler, response_sink):
        from errshape.errors import api_error

        class RefusingSink:
            async def write_log(self, entry):
                return PermissionError("read-only")

        handler = make_handler(log_to_console=False, file_sink=RefusingSink())
        with capture_logs() as logs:
            await handler.handle(api_error("m"), response_sink)
            await handler.drain()

        failures = [log for log in logs if log["event"] == "error_log_failed"]
        assert failures[0]["log_level"] == "warning"
        assert failures[0]["error"] == "read-only"

    @pytest.mark.asyncio
    async def test_response_failure_does_not_stop_side_effects(self, make_handler, events):
        from errshape.errors import api_error

        class ClosedConnection:
            async def send_response(self, status, payload):
                raise ConnectionResetError("client went away")

        handler = make_handler(log_to_file=False)
        with capture_logs() as logs:
            await handler.handle(api_error("m"), ClosedConnection())
            await handler.drain()

        assert "response_emission_failed" in [log["event"] for log in logs]
        assert events == ["console"]

    def test_file_logging_requires_file_sink(self, lifecycle):
        from errshape.config import LogOptions, RuntimeEnvironment
        from errshape.errors import ErrorHandler

        with pytest.raises(ValueError):
            ErrorHandler(
                LogOptions(log_to_file=True),
                lambda: RuntimeEnvironment.PRODUCTION,
                lifecycle,
            )


class TestProgrammerErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("log_to_file", [True, False])
    @pytest.mark.parametrize("log_to_console", [True, False])
    async def test_requests_shutdown_exactly_once(
        self, make_handler, response_sink, events, lifecycle, log_to_file, log_to_console
    ):
        from errshape.errors import classify

        handler = make_handler(log_to_file=log_to_file, log_to_console=log_to_console)
        record = classify({"name": "TypeError", "message": "x is not a function"})

        await handler.handle(record, response_sink)
        await handler.drain()

        assert len(lifecycle.reasons) == 1
        assert events == ["response"]
        assert response_sink.calls == [(500, {"status": "error", "message": "x is not a function"})]

    @pytest.mark.asyncio
    async def test_reported_on_diagnostics(self, make_handler, response_sink):
        from errshape.errors import classify

        handler = make_handler()
        with capture_logs() as logs:
            await handler.handle(classify(TypeError("boom")), response_sink)

        (log,) = [log for log in logs if log["event"] == "programmer_error"]
        assert log["log_level"] == "critical"
        assert log["error_type"] == "TypeError"
        assert log["message"] == "boom"


class TestFromSettings:
    def test_builds_handler_from_settings(self, lifecycle, tmp_path):
        from errshape.config import RuntimeEnvironment, ServiceSettings
        from errshape.errors import ErrorHandler, api_error

        settings = ServiceSettings(
            environment=RuntimeEnvironment.DEVELOPMENT,
            log_to_file=True,
            log_to_console=False,
            error_log_dir=tmp_path,
        )
        handler = ErrorHandler.from_settings(settings, lifecycle)
        assert handler.options.log_to_file is True
        assert handler.options.log_to_console is False
        assert "stack" in handler.render(api_error("m"))[1]
