#!/usr/bin/env python3
"""ec2runner - start, command and stop a single EC2 instance from a pipeline."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import Any

from ec2runner.cli.main import main
from ec2runner.core.config import ConfigLoader, RunnerConfig
from ec2runner.core.dispatcher import ModeDispatcher, validate_config
from ec2runner.core.outputs import OutputWriter
from ec2runner.providers.aws.clients import AwsClients
from ec2runner.providers.aws.compute import InstanceManager
from ec2runner.providers.aws.iam import InstanceProfileManager
from ec2runner.providers.aws.ssm import CommandRunner

logger = logging.getLogger(__name__)


class Ec2Runner:
    """CLI surface: one method per mode plus ``run`` for positional action args.

    Parameters
    ----------
    clients_factory : Callable[[str | None], Any] | None
        Builds the AWS client context for a region. Defaults to
        :meth:`AwsClients.create`.
    environ : dict[str, str] | None
        Environment used for ``INPUT_*`` values and ``GITHUB_OUTPUT``
    """

    def __init__(
        self,
        clients_factory: Callable[[str | None], Any] | None = None,
        environ: dict[str, str] | None = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._clients_factory = clients_factory or AwsClients.create
        self._config_loader = ConfigLoader(environ=self._environ)
        self.outputs = OutputWriter(environ=self._environ)

    def _build_dispatcher(self, config: RunnerConfig) -> ModeDispatcher:
        clients = self._clients_factory(config.region or None)
        return ModeDispatcher(
            instance_manager=InstanceManager(clients.ec2),
            profile_manager=InstanceProfileManager(clients.iam),
            command_runner=CommandRunner(clients.ssm),
            outputs=self.outputs,
        )

    def _execute(
        self, values: dict[str, Any], config_file: str | None, verbose: bool
    ) -> str | None:
        if verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        config = self._config_loader.build(values, config_path=config_file)
        validate_config(config)

        return self._build_dispatcher(config).dispatch(config)

    def run(
        self,
        mode: str | None = None,
        ec2_image_id: str | None = None,
        subnet_id: str | None = None,
        security_group_id: str | None = None,
        iam_role_name: str | None = None,
        ec2_instance_type: str | None = None,
        user_data: str | None = None,
        tag_specifications: str | None = None,
        ec2_instance_id: str | None = None,
        command: str | None = None,
        command_max_wait_secs: int | str | None = None,
        instance_running_timeout_secs: int | str | None = None,
        region: str | None = None,
        config_file: str | None = None,
        verbose: bool = False,
    ) -> str | None:
        """Run any mode. Positional order matches the action's args.

        Parameters
        ----------
        mode : str | None
            start, command or stop
        ec2_image_id : str | None
            AMI ID (start)
        subnet_id : str | None
            Subnet ID (start)
        security_group_id : str | None
            Security group ID, comma-separated for several (start)
        iam_role_name : str | None
            IAM role bound through an instance profile (start, optional)
        ec2_instance_type : str | None
            Instance type (start, default t3.micro)
        user_data : str | None
            Boot script (start, optional)
        tag_specifications : str | None
            JSON TagSpecifications (start, optional)
        ec2_instance_id : str | None
            Target instance (command, stop)
        command : str | None
            Shell command (command)
        command_max_wait_secs : int | str | None
            Seconds to wait for the command (default 300, minimum 6)
        instance_running_timeout_secs : int | str | None
            Seconds to wait for 'running' (default 600)
        region : str | None
            AWS region; defaults to the credential chain
        config_file : str | None
            YAML file with a ``defaults`` section
        verbose : bool
            Enable debug logging

        Returns
        -------
        str | None
            Instance ID (start), command ID (command) or None (stop)
        """
        values = {
            "mode": mode,
            "ec2-image-id": ec2_image_id,
            "subnet-id": subnet_id,
            "security-group-id": security_group_id,
            "iam-role-name": iam_role_name,
            "ec2-instance-type": ec2_instance_type,
            "user-data": user_data,
            "tag-specifications": tag_specifications,
            "ec2-instance-id": ec2_instance_id,
            "command": command,
            "command-max-wait-secs": command_max_wait_secs,
            "instance-running-timeout-secs": instance_running_timeout_secs,
            "region": region,
        }
        return self._execute(values, config_file, verbose)

    def start(
        self,
        ec2_image_id: str | None = None,
        subnet_id: str | None = None,
        security_group_id: str | None = None,
        iam_role_name: str | None = None,
        ec2_instance_type: str | None = None,
        user_data: str | None = None,
        tag_specifications: str | None = None,
        instance_running_timeout_secs: int | str | None = None,
        region: str | None = None,
        config_file: str | None = None,
        verbose: bool = False,
    ) -> str | None:
        """Launch an instance and wait until it is running."""
        return self.run(
            mode="start",
            ec2_image_id=ec2_image_id,
            subnet_id=subnet_id,
            security_group_id=security_group_id,
            iam_role_name=iam_role_name,
            ec2_instance_type=ec2_instance_type,
            user_data=user_data,
            tag_specifications=tag_specifications,
            instance_running_timeout_secs=instance_running_timeout_secs,
            region=region,
            config_file=config_file,
            verbose=verbose,
        )

    def command(
        self,
        ec2_instance_id: str | None = None,
        command: str | None = None,
        command_max_wait_secs: int | str | None = None,
        region: str | None = None,
        config_file: str | None = None,
        verbose: bool = False,
    ) -> str | None:
        """Run a shell command on an instance through SSM."""
        return self.run(
            mode="command",
            ec2_instance_id=ec2_instance_id,
            command=command,
            command_max_wait_secs=command_max_wait_secs,
            region=region,
            config_file=config_file,
            verbose=verbose,
        )

    def stop(
        self,
        ec2_instance_id: str | None = None,
        region: str | None = None,
        config_file: str | None = None,
        verbose: bool = False,
    ) -> None:
        """Request termination of an instance."""
        self.run(
            mode="stop",
            ec2_instance_id=ec2_instance_id,
            region=region,
            config_file=config_file,
            verbose=verbose,
        )


if __name__ == "__main__":
    main()
