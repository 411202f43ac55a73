"""Pytest configuration and fixtures for ec2runner tests."""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import yaml
from botocore.exceptions import ClientError

from tests.unit.fakes.fake_collaborators import (
    FakeCommandRunner,
    FakeInstanceManager,
    FakeProfileManager,
)

ISOLATED_ENV_PREFIXES = ("INPUT_",)
ISOLATED_ENV_VARS = (
    "GITHUB_OUTPUT",
    "GITHUB_ACTIONS",
    "EC2RUNNER_CONFIG",
    "EC2RUNNER_DEBUG",
    "RUNNER_DEBUG",
)


@pytest.fixture(autouse=True)
def isolate_action_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove action inputs and runner variables leaking in from the environment.

    The config file location is pointed at an empty temp directory so a stray
    ec2runner.yaml in the working directory is never read.
    """
    for name in list(os.environ):
        if name.startswith(ISOLATED_ENV_PREFIXES) or name in ISOLATED_ENV_VARS:
            monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("EC2RUNNER_CONFIG", str(tmp_path / "absent.yaml"))


@pytest.fixture
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set fake AWS credentials so moto never sees real ones."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


class FakeClock:
    """Monotonic clock that only advances when something sleeps.

    Attributes
    ----------
    now : float
        Current fake time in seconds
    sleeps : list[float]
        Every duration passed to sleep, in order
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> Generator[FakeClock, None, None]:
    """Replace the clock and sleep used by the poll loops.

    Yields
    ------
    FakeClock
        The clock the poll loops now read
    """
    clock = FakeClock()

    with (
        patch("ec2runner.core.polling.monotonic", side_effect=clock.monotonic),
        patch("ec2runner.core.polling.sleep", side_effect=clock.sleep),
    ):
        yield clock


@pytest.fixture
def write_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Return a function that writes an ec2runner.yaml and points EC2RUNNER_CONFIG at it."""
    config_path = tmp_path / "ec2runner.yaml"

    def _write(data: dict[str, Any]) -> Path:
        with open(config_path, "w") as f:
            yaml.dump(data, f)
        monkeypatch.setenv("EC2RUNNER_CONFIG", str(config_path))
        return config_path

    return _write


@pytest.fixture
def fake_instance_manager() -> FakeInstanceManager:
    return FakeInstanceManager()


@pytest.fixture
def fake_profile_manager() -> FakeProfileManager:
    return FakeProfileManager()


@pytest.fixture
def fake_command_runner() -> FakeCommandRunner:
    return FakeCommandRunner()


def client_error(code: str, operation: str, message: str = "error") -> Exception:
    """Build a botocore ClientError with the given code."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


@pytest.fixture
def make_client_error():
    """Return the ClientError builder."""
    return client_error


@pytest.fixture
def ssm_client() -> MagicMock:
    """SSM client double with an agent that is online immediately."""
    client = MagicMock()
    client.describe_instance_information.return_value = {
        "InstanceInformationList": [{"InstanceId": "i-1", "PingStatus": "Online"}]
    }
    client.send_command.return_value = {"Command": {"CommandId": "cmd-123"}}
    client.get_command_invocation.return_value = {
        "CommandId": "cmd-123",
        "InstanceId": "i-1",
        "Status": "Success",
        "ResponseCode": 0,
        "StandardOutputContent": "hi\n",
        "StandardErrorContent": "",
    }
    return client
