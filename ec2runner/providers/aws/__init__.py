"""AWS provider: EC2 lifecycle, IAM instance profiles and SSM commands."""

from __future__ import annotations

from ec2runner.providers.aws.clients import AwsClients
from ec2runner.providers.aws.compute import InstanceManager, LaunchSpec
from ec2runner.providers.aws.iam import InstanceProfileManager
from ec2runner.providers.aws.ssm import CommandInvocation, CommandRunner

__all__ = [
    "AwsClients",
    "CommandInvocation",
    "CommandRunner",
    "InstanceManager",
    "InstanceProfileManager",
    "LaunchSpec",
]
