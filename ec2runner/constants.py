"""Global constants for ec2runner.

This module contains the default intervals, timeouts and limits used by the
poll loops and the input layer. Values mirror the documented behaviour of the
GitHub Action this tool implements.
"""

from enum import Enum

INSTANCE_POLL_INTERVAL_SECONDS = 5
"""Delay between describe_instances calls while waiting for 'running'."""

INSTANCE_RUNNING_TIMEOUT_SECONDS = 600
"""Upper bound for the wait on an instance reaching the 'running' state.

Ten minutes covers slow AMIs and capacity-constrained subnets. Override
with the ``instance-running-timeout-secs`` input.
"""

AGENT_REGISTRATION_TIMEOUT_SECONDS = 60
"""How long to wait for the SSM agent to report Online.

Independent of ``command-max-wait-secs``. A freshly launched instance
usually registers well within a minute.
"""

AGENT_POLL_INTERVAL_SECONDS = 5
"""Delay between describe_instance_information calls."""

COMMAND_POLL_INTERVAL_SECONDS = 5
"""Delay between get_command_invocation calls."""

DEFAULT_COMMAND_MAX_WAIT_SECONDS = 300
"""Default bound on the wait for a dispatched command to finish."""

MIN_COMMAND_MAX_WAIT_SECONDS = 6
"""Floor applied to ``command-max-wait-secs``.

Values of 5 or less are raised to this value with a warning so the poll
window always spans at least one full polling interval.
"""

OUTPUT_DISPLAY_LIMIT = 1000
"""Command output at or above this many characters is not logged at INFO."""

DEFAULT_INSTANCE_TYPE = "t3.micro"
"""Instance type used when none is configured."""

RUN_SHELL_SCRIPT_DOCUMENT = "AWS-RunShellScript"
"""SSM document used to run the command text."""

DEFAULT_CONFIG_FILE = "ec2runner.yaml"
"""Config file read when EC2RUNNER_CONFIG is not set."""


class Mode(Enum):
    """Supported invocation modes."""

    START = "start"
    COMMAND = "command"
    STOP = "stop"


class InstanceState(Enum):
    """EC2 instance states observed while polling."""

    PENDING = "pending"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    STOPPING = "stopping"
    STOPPED = "stopped"
    TERMINATED = "terminated"


UNREACHABLE_INSTANCE_STATES = frozenset(
    (InstanceState.SHUTTING_DOWN.value, InstanceState.TERMINATED.value)
)
"""States from which an instance can never become running."""

TERMINAL_COMMAND_STATUSES = frozenset(("Success", "Failed", "Cancelled", "TimedOut"))
"""Command invocation statuses that end the completion wait."""

AGENT_ONLINE_STATUS = "Online"
"""PingStatus reported by SSM for a registered, reachable agent."""
