"""Error taxonomy for ec2runner operations.

Configuration problems derive from ``ValueError`` and cloud rejections from
``ProviderAPIError`` so the CLI can map each family to an exit status.
"""

from __future__ import annotations

from ec2runner.providers.exceptions import ProviderAPIError


class ConfigurationError(ValueError):
    """Invalid or incomplete input."""


class MissingParameterError(ConfigurationError):
    """A parameter required by the selected mode is empty.

    Parameters
    ----------
    mode : str
        Mode that was requested
    missing : list[str]
        Input names that were empty
    """

    def __init__(self, mode: str, missing: list[str]) -> None:
        self.mode = mode
        self.missing = missing
        names = ", ".join(missing)
        if mode:
            super().__init__(f"Required parameters for mode '{mode}' are missing: {names}")
        else:
            super().__init__(f"Required input is missing: {names}")


class UnsupportedModeError(ConfigurationError):
    """The mode is not one of start, command, stop."""

    def __init__(self, mode: str) -> None:
        self.mode = mode
        super().__init__(
            f"Unsupported mode: {mode}. "
            "Supported modes are 'start', 'command', and 'stop'."
        )


class MalformedTagSpecError(ConfigurationError):
    """The tag-specifications input is not a valid JSON tag specification list."""


class RunnerError(RuntimeError):
    """Base class for non-API runtime failures."""


class PollTimeoutError(RunnerError):
    """A poll loop ran out of time before its condition was met.

    Parameters
    ----------
    description : str
        What was being waited for
    attempts : int
        Number of times the condition was checked
    elapsed : float
        Seconds spent waiting
    """

    def __init__(self, description: str, attempts: int, elapsed: float) -> None:
        self.description = description
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Timed out after {elapsed:.0f}s ({attempts} attempts) waiting for {description}"
        )


class AgentNotRegisteredError(RunnerError):
    """The SSM agent never reported Online for the instance."""

    def __init__(self, instance_id: str) -> None:
        self.instance_id = instance_id
        super().__init__(f"SSM agent is not registered or online for instance {instance_id}")


class ProvisioningError(ProviderAPIError):
    """run_instances was rejected or the instance died while starting."""


class DescribeError(ProviderAPIError):
    """A describe call failed while polling."""


class TerminationError(ProviderAPIError):
    """terminate_instances was rejected."""


class ListError(ProviderAPIError):
    """Listing instance profiles failed."""


class CreateError(ProviderAPIError):
    """Creating an instance profile failed."""


class AttachError(ProviderAPIError):
    """Attaching a role to an instance profile failed."""


class DispatchError(ProviderAPIError):
    """send_command was rejected."""
