"""Mode dispatch: validate per-mode inputs and run the matching flow."""

from __future__ import annotations

import logging

from ec2runner.cli.parsing import parse_security_group_ids, parse_tag_specifications
from ec2runner.constants import Mode
from ec2runner.core.config import RunnerConfig
from ec2runner.core.interfaces import InstanceLifecycle, InstanceProfiles, RemoteCommands
from ec2runner.core.outputs import OutputWriter
from ec2runner.exceptions import MissingParameterError, UnsupportedModeError
from ec2runner.providers.aws.compute import LaunchSpec

logger = logging.getLogger(__name__)

REQUIRED_INPUTS = {
    Mode.START: (
        ("ec2-image-id", "ec2_image_id"),
        ("subnet-id", "subnet_id"),
        ("security-group-id", "security_group_id"),
    ),
    Mode.COMMAND: (
        ("ec2-instance-id", "ec2_instance_id"),
        ("command", "command"),
    ),
    Mode.STOP: (("ec2-instance-id", "ec2_instance_id"),),
}


def resolve_mode(value: str) -> Mode:
    """Map a mode string to :class:`Mode`.

    Raises
    ------
    MissingParameterError
        If the mode is empty
    UnsupportedModeError
        If the mode is not start, command or stop
    """
    if not value:
        raise MissingParameterError("", ["mode"])
    try:
        return Mode(value)
    except ValueError:
        raise UnsupportedModeError(value) from None


def require_inputs(mode: Mode, config: RunnerConfig) -> None:
    """Raise MissingParameterError if any input required by ``mode`` is empty."""
    missing = [
        name for name, attr in REQUIRED_INPUTS[mode] if not getattr(config, attr).strip()
    ]
    if missing:
        raise MissingParameterError(mode.value, missing)


def validate_config(config: RunnerConfig) -> Mode:
    """Check everything that can be checked without calling AWS.

    Returns
    -------
    Mode
        The resolved mode

    Raises
    ------
    MissingParameterError, UnsupportedModeError, MalformedTagSpecError
        On invalid input
    """
    mode = resolve_mode(config.mode)
    require_inputs(mode, config)
    if mode is Mode.START:
        parse_tag_specifications(config.tag_specifications)
    return mode


class ModeDispatcher:
    """Route one invocation to the start, command or stop flow.

    Collaborator errors are not caught here; every failure is fatal to the
    invocation and is rendered by the CLI.

    Parameters
    ----------
    instance_manager : InstanceLifecycle
        EC2 lifecycle collaborator
    profile_manager : InstanceProfiles
        IAM instance profile collaborator
    command_runner : RemoteCommands
        SSM command collaborator
    outputs : OutputWriter
        Destination for step outputs
    """

    def __init__(
        self,
        instance_manager: InstanceLifecycle,
        profile_manager: InstanceProfiles,
        command_runner: RemoteCommands,
        outputs: OutputWriter,
    ) -> None:
        self.instance_manager = instance_manager
        self.profile_manager = profile_manager
        self.command_runner = command_runner
        self.outputs = outputs

    def dispatch(self, config: RunnerConfig) -> str | None:
        """Validate inputs for ``config.mode`` and run it.

        Returns
        -------
        str | None
            Instance ID for start, command ID for command, None for stop
        """
        mode = validate_config(config)

        if mode is Mode.START:
            return self.start(config)
        if mode is Mode.COMMAND:
            return self.command(config)
        return self.stop(config)

    def start(self, config: RunnerConfig) -> str:
        tag_specifications = parse_tag_specifications(config.tag_specifications)

        profile_name = None
        if config.iam_role_name:
            profile_name = self.profile_manager.get_or_create(config.iam_role_name)

        spec = LaunchSpec(
            image_id=config.ec2_image_id,
            subnet_id=config.subnet_id,
            security_group_ids=parse_security_group_ids(config.security_group_id),
            instance_type=config.ec2_instance_type,
            user_data=config.user_data,
            tag_specifications=tag_specifications,
            instance_profile_name=profile_name,
        )
        instance_id = self.instance_manager.provision(spec)
        # set even when the wait below fails
        self.outputs.set_output("ec2-instance-id", instance_id)
        self.instance_manager.wait_running(
            instance_id, timeout=config.instance_running_timeout_secs
        )

        logger.info("Started EC2 instance with ID: %s", instance_id)
        return instance_id

    def command(self, config: RunnerConfig) -> str:
        invocation = self.command_runner.execute(
            config.ec2_instance_id, config.command, config.command_max_wait_secs
        )

        logger.info(
            "Command '%s' sent to instance %s. Command ID: %s. Command wait time: %d secs",
            config.command,
            config.ec2_instance_id,
            invocation.command_id,
            config.command_max_wait_secs,
        )
        self.outputs.set_output("command-id", invocation.command_id)
        return invocation.command_id

    def stop(self, config: RunnerConfig) -> None:
        self.instance_manager.terminate(config.ec2_instance_id)
        return None
