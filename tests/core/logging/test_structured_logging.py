"""Tests for the JSON-lines feed logger."""

import io
import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from pydantic import ValidationError

from vfeed.core.logging import LogConfig, bind, configure_logging, current_run_id, logger, run_context


@pytest.fixture
def stream() -> Iterator[io.StringIO]:
    buffer = io.StringIO()
    configure_logging(level="DEBUG", console_stream=buffer)
    yield buffer
    configure_logging()


def lines(buffer: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in buffer.getvalue().splitlines()]


class TestLogConfig:
    def test_level_is_normalized(self):
        assert LogConfig(level=" debug ").level == "DEBUG"

    def test_unknown_level_is_rejected(self):
        with pytest.raises(ValidationError):
            LogConfig(level="LOUD")


class TestPayload:
    def test_component_and_symbol_are_top_level(self, stream: io.StringIO):
        bind(component="RecordCursor", symbol="SPY").warning("Skipping out of order document")

        (payload,) = lines(stream)
        assert payload["level"] == "WARNING"
        assert payload["message"] == "Skipping out of order document"
        assert payload["component"] == "RecordCursor"
        assert payload["symbol"] == "SPY"
        assert payload["run_id"] is None
        assert "context" not in payload

    def test_other_bound_values_go_to_context(self, stream: io.StringIO):
        bind(component="ResultHandler", stack_trace="Traceback ...").error("boom")

        (payload,) = lines(stream)
        assert payload["context"] == {"stack_trace": "Traceback ..."}

    def test_level_threshold(self):
        buffer = io.StringIO()
        configure_logging(level="ERROR", console_stream=buffer)
        try:
            logger.warning("quiet")
            logger.error("loud")
        finally:
            configure_logging()

        assert [payload["message"] for payload in lines(buffer)] == ["loud"]

    def test_exception_is_included(self, stream: io.StringIO):
        try:
            raise ValueError("bad document")
        except ValueError:
            logger.exception("read failed")

        (payload,) = lines(stream)
        assert "bad document" in payload["exception"]


class TestRunContext:
    def test_run_id_and_extra_tag_lines(self, stream: io.StringIO):
        with run_context(run_id="run-1", symbol="ABX", command="stream") as run_id:
            assert current_run_id() == "run-1"
            bind(component="SubscriptionCoordinator").info("Started")

        assert run_id == "run-1"
        assert current_run_id() is None
        (payload,) = lines(stream)
        assert payload["run_id"] == "run-1"
        assert payload["symbol"] == "ABX"
        assert payload["context"] == {"command": "stream"}

    def test_bound_symbol_wins_over_context(self, stream: io.StringIO):
        with run_context(symbol="ABX"):
            bind(symbol="SPY").info("cursor line")

        (payload,) = lines(stream)
        assert payload["symbol"] == "SPY"
        assert payload["run_id"]

    def test_generated_run_ids_differ(self):
        with run_context() as first:
            pass
        with run_context() as second:
            pass

        assert first != second


def test_file_sink(tmp_path: Path):
    path = tmp_path / "logs" / "feed.jsonl"
    configure_logging(level="INFO", console_stream=io.StringIO(), file_path=str(path))
    try:
        bind(component="FilterStage").info("filtered")
    finally:
        configure_logging()

    payload = json.loads(path.read_text().splitlines()[0])
    assert payload["component"] == "FilterStage"
