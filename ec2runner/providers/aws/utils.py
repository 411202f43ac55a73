"""AWS-specific utility functions for ec2runner."""

from __future__ import annotations

from typing import Any


def extract_instance_from_response(response: dict[str, Any]) -> dict[str, Any]:
    """Extract first instance from AWS describe_instances response.

    Parameters
    ----------
    response : dict[str, Any]
        Response from boto3 describe_instances call

    Returns
    -------
    dict[str, Any]
        The first instance dictionary

    Raises
    ------
    ValueError
        If response has no reservations or instances
    """
    if not response.get("Reservations"):
        raise ValueError("No reservations in response")
    if not response["Reservations"][0].get("Instances"):
        raise ValueError("No instances in reservation")
    return response["Reservations"][0]["Instances"][0]


def get_aws_credentials_error_message() -> str:
    """Get standard AWS credentials error message.

    Returns
    -------
    str
        Formatted AWS credentials error message
    """
    return (
        "AWS credentials not found\n\n"
        "Configure credentials for the workflow, for example with\n"
        "aws-actions/configure-aws-credentials, or set environment variables:\n"
        "  export AWS_ACCESS_KEY_ID=...\n"
        "  export AWS_SECRET_ACCESS_KEY=...\n"
        "  export AWS_REGION=..."
    )
