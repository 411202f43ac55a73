"""Tests for workflow command formatting and stream routing."""

import logging
import sys

import pytest

from ec2runner.logging import log_group, setup_logging
from ec2runner.logging.filters import StreamRoutingFilter
from ec2runner.logging.formatters import WorkflowCommandFormatter, escape_workflow_data


def make_record(level: int, msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("ec2runner.test", level, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestWorkflowCommandFormatter:
    @pytest.mark.parametrize(
        "level,expected",
        [
            (logging.DEBUG, "::debug::message"),
            (logging.INFO, "message"),
            (logging.WARNING, "::warning::message"),
            (logging.ERROR, "::error::message"),
            (logging.CRITICAL, "::error::message"),
        ],
    )
    def test_workflow_commands(self, level, expected) -> None:
        formatter = WorkflowCommandFormatter("%(message)s", workflow_commands=True)

        assert formatter.format(make_record(level, "message")) == expected

    def test_workflow_data_is_escaped(self) -> None:
        formatter = WorkflowCommandFormatter("%(message)s", workflow_commands=True)

        formatted = formatter.format(make_record(logging.ERROR, "50% done\nnext"))

        assert formatted == "::error::50%25 done%0Anext"

    def test_raw_records_pass_through(self) -> None:
        formatter = WorkflowCommandFormatter("%(message)s", workflow_commands=True)

        formatted = formatter.format(make_record(logging.WARNING, "::group::x", raw=True))

        assert formatted == "::group::x"

    def test_plain_mode_prefixes_warnings_and_errors(self) -> None:
        formatter = WorkflowCommandFormatter("%(message)s")

        assert formatter.format(make_record(logging.WARNING, "careful")) == "Warning: careful"
        assert formatter.format(make_record(logging.ERROR, "broken")) == "Error: broken"
        assert formatter.format(make_record(logging.DEBUG, "detail")) == "detail"
        assert formatter.format(make_record(logging.INFO, "hello")) == "hello"


def test_escape_workflow_data() -> None:
    assert escape_workflow_data("a%b\r\nc") == "a%25b%0D%0Ac"


class TestStreamRoutingFilter:
    def test_routes_by_level(self) -> None:
        stdout_filter = StreamRoutingFilter("stdout")
        stderr_filter = StreamRoutingFilter("stderr")
        info = make_record(logging.INFO, "x")
        warning = make_record(logging.WARNING, "x")

        assert stdout_filter.filter(info)
        assert not stderr_filter.filter(info)
        assert stderr_filter.filter(warning)
        assert not stdout_filter.filter(warning)

    def test_explicit_stream_wins(self) -> None:
        record = make_record(logging.ERROR, "x", stream="stdout")

        assert StreamRoutingFilter("stdout").filter(record)
        assert not StreamRoutingFilter("stderr").filter(record)


def test_log_group_wraps_messages(caplog) -> None:
    logger = logging.getLogger("ec2runner.test")

    with caplog.at_level(logging.INFO):
        with log_group("Details"):
            logger.info("inside")

    messages = [r.getMessage() for r in caplog.records]
    assert messages == ["::group::Details", "inside", "::endgroup::"]
    assert getattr(caplog.records[0], "raw", False) is True


def test_log_group_closes_on_error(caplog) -> None:
    with caplog.at_level(logging.INFO):
        with pytest.raises(RuntimeError):
            with log_group("Details"):
                raise RuntimeError("boom")

    assert caplog.records[-1].getMessage() == "::endgroup::"


class TestSetupLogging:
    def test_installs_stdout_and_stderr_handlers(self, restore_root_logger) -> None:
        setup_logging()

        root = restore_root_logger
        streams = [h.stream for h in root.handlers if isinstance(h, logging.StreamHandler)]
        assert sys.stdout in streams
        assert sys.stderr in streams
        assert root.level == logging.INFO
        assert logging.getLogger("botocore").level == logging.WARNING

    def test_verbose_enables_debug(self, restore_root_logger) -> None:
        setup_logging(verbose=True)

        assert restore_root_logger.level == logging.DEBUG

    def test_workflow_commands_reach_formatters(self, restore_root_logger) -> None:
        setup_logging(workflow_commands=True)

        formatters = [h.formatter for h in restore_root_logger.handlers]
        assert all(
            isinstance(f, WorkflowCommandFormatter) and f.workflow_commands for f in formatters
        )
