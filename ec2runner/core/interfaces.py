"""Protocols for the collaborators the dispatcher drives.

Test doubles and alternative implementations only need to satisfy these.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ec2runner.providers.aws.compute import LaunchSpec
    from ec2runner.providers.aws.ssm import CommandInvocation


class InstanceLifecycle(Protocol):
    """Provision, wait for and terminate one instance."""

    def provision(self, spec: LaunchSpec) -> str: ...

    def wait_running(self, instance_id: str, *, timeout: float) -> None: ...

    def terminate(self, instance_id: str) -> None: ...


class InstanceProfiles(Protocol):
    """Resolve an instance profile for a role."""

    def get_or_create(self, role_name: str) -> str: ...


class RemoteCommands(Protocol):
    """Run a command on an instance and return its invocation."""

    def execute(
        self, instance_id: str, command_text: str, max_wait: float
    ) -> CommandInvocation: ...
