"""Explicit boto3 client context shared by the collaborators."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import boto3

from ec2runner.providers.aws.errors import handle_aws_errors


@dataclass(frozen=True)
class AwsClients:
    """The three service clients one invocation needs.

    Built once per process and passed to each collaborator at construction
    time. Credentials and region come from the default boto3 chain unless a
    region is given explicitly.

    Attributes
    ----------
    ec2 : Any
        boto3 EC2 client
    iam : Any
        boto3 IAM client
    ssm : Any
        boto3 SSM client
    """

    ec2: Any
    iam: Any
    ssm: Any

    @classmethod
    def create(
        cls,
        region: str | None = None,
        boto3_client_factory: Callable[..., Any] | None = None,
    ) -> AwsClients:
        """Create clients from the default credential chain.

        Parameters
        ----------
        region : str | None
            AWS region; None defers to AWS_REGION / profile configuration
        boto3_client_factory : Callable[..., Any] | None
            Optional factory for creating boto3 clients. If None, uses boto3.client

        Returns
        -------
        AwsClients
            Client context for ec2, iam and ssm
        """
        factory = boto3_client_factory or boto3.client
        kwargs = {"region_name": region} if region else {}

        with handle_aws_errors():
            return cls(
                ec2=factory("ec2", **kwargs),
                iam=factory("iam", **kwargs),
                ssm=factory("ssm", **kwargs),
            )
