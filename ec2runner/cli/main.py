"""CLI entry point for ec2runner."""

from __future__ import annotations

import logging
import os
import sys

import fire

from ec2runner.exceptions import ConfigurationError, PollTimeoutError
from ec2runner.logging import setup_logging
from ec2runner.providers.aws.utils import get_aws_credentials_error_message
from ec2runner.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)
from ec2runner.utils import is_truthy, log_and_print_error, running_in_github_actions

logger = logging.getLogger(__name__)

API_ERROR_HINTS = {
    "UnauthorizedOperation": "The credentials lack the EC2 permissions this mode needs.",
    "AccessDenied": "The credentials lack the IAM or SSM permissions this mode needs.",
    "AccessDeniedException": "The credentials lack the SSM permissions this mode needs.",
    "InvalidAMIID.NotFound": "Check ec2-image-id and the region it was registered in.",
    "InvalidAMIID.Malformed": "ec2-image-id should look like ami-0123456789abcdef0.",
    "InvalidSubnetID.NotFound": "Check subnet-id and the region.",
    "InvalidGroup.NotFound": "Check security-group-id and that it belongs to the subnet's VPC.",
    "InvalidInstanceID.NotFound": "Check ec2-instance-id and the region.",
    "InvalidInstanceID.Malformed": "ec2-instance-id should look like i-0123456789abcdef0.",
    "InvalidInstanceId": "The instance is not managed by SSM or is not running.",
    "InstanceLimitExceeded": "The account's instance quota is exhausted in this region.",
    "InsufficientInstanceCapacity": "No capacity for this instance type; try another type or subnet.",
    "NoSuchEntity": "The IAM role named by iam-role-name does not exist.",
    "ExpiredToken": "The session token has expired; refresh the workflow credentials.",
    "ExpiredTokenException": "The session token has expired; refresh the workflow credentials.",
    "RequestExpired": "The request signature has expired; check the runner clock.",
}


def get_runner_class() -> type:
    """Get Ec2Runner class on-demand to avoid circular imports.

    Returns
    -------
    type
        Ec2Runner class
    """
    from ec2runner.__main__ import Ec2Runner

    return Ec2Runner


def handle_credentials_error(debug_mode: bool) -> None:
    """Handle provider credentials error.

    Raises
    ------
    ProviderCredentialsError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    log_and_print_error("%s", get_aws_credentials_error_message())
    sys.exit(1)


def handle_value_error(error: ValueError, debug_mode: bool) -> None:
    """Handle invalid input.

    Parameters
    ----------
    error : ValueError
        The value error that was raised
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ValueError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    if isinstance(error, ConfigurationError):
        log_and_print_error("%s", error)
    else:
        log_and_print_error("Configuration error: %s", error)
    sys.exit(2)


def handle_api_error(error: ProviderAPIError, debug_mode: bool) -> None:
    """Handle provider API error with a hint for well-known error codes.

    Parameters
    ----------
    error : ProviderAPIError
        The API error that was raised
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ProviderAPIError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    log_and_print_error("%s", error)

    hint = API_ERROR_HINTS.get(error.error_code or "")
    if hint:
        logger.info(hint)

    sys.exit(1)


def handle_connection_error(error: ProviderConnectionError, debug_mode: bool) -> None:
    if debug_mode:
        raise

    log_and_print_error("Could not reach AWS: %s", error)
    sys.exit(1)


def handle_runtime_error(error: RuntimeError, debug_mode: bool) -> None:
    """Handle timeouts, unregistered agents and other runtime failures.

    Raises
    ------
    RuntimeError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    if isinstance(error, PollTimeoutError):
        log_and_print_error("%s", error)
    else:
        log_and_print_error("Error occurred: %s", error)
    sys.exit(1)


def main() -> None:
    """Entry point for Fire CLI with graceful error handling.

    Fire maps Ec2Runner methods (``run``, ``start``, ``command``, ``stop``)
    to sub-commands. Errors are rendered by the handlers above and turned
    into exit status 2 for invalid input and 1 for everything else.
    EC2RUNNER_DEBUG=1 re-raises instead.
    """
    setup_logging(
        verbose=is_truthy(os.environ.get("RUNNER_DEBUG")),
        workflow_commands=running_in_github_actions(),
    )

    debug_mode = is_truthy(os.environ.get("EC2RUNNER_DEBUG"))

    try:
        fire.Fire(get_runner_class())
    except ProviderCredentialsError:
        handle_credentials_error(debug_mode)
    except ValueError as e:
        handle_value_error(e, debug_mode)
    except ProviderAPIError as e:
        handle_api_error(e, debug_mode)
    except ProviderConnectionError as e:
        handle_connection_error(e, debug_mode)
    except RuntimeError as e:
        handle_runtime_error(e, debug_mode)
