"""Tests for ec2runner.utils helpers."""

import pytest

from ec2runner.utils import (
    is_displayable,
    is_truthy,
    log_and_print_error,
    running_in_github_actions,
)


class TestIsDisplayable:
    def test_short_output(self) -> None:
        assert is_displayable("x" * 999)

    def test_limit_is_exclusive(self) -> None:
        assert not is_displayable("x" * 1000)

    def test_custom_limit(self) -> None:
        assert not is_displayable("abc", limit=3)


@pytest.mark.parametrize(
    "value,expected",
    [("1", True), ("true", True), ("TRUE ", True), ("yes", True), ("0", False), ("", False), (None, False)],
)
def test_is_truthy(value, expected) -> None:
    assert is_truthy(value) is expected


def test_running_in_github_actions(monkeypatch: pytest.MonkeyPatch) -> None:
    assert not running_in_github_actions()

    monkeypatch.setenv("GITHUB_ACTIONS", "true")

    assert running_in_github_actions()


def test_log_and_print_error_without_handlers(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setattr("logging.root.handlers", [])

    log_and_print_error("bad %s", "input")

    assert capsys.readouterr().err == "Error: bad input\n"
