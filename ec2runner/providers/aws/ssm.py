"""Remote command execution through AWS Systems Manager."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ec2runner.constants import (
    AGENT_ONLINE_STATUS,
    AGENT_POLL_INTERVAL_SECONDS,
    AGENT_REGISTRATION_TIMEOUT_SECONDS,
    COMMAND_POLL_INTERVAL_SECONDS,
    RUN_SHELL_SCRIPT_DOCUMENT,
    TERMINAL_COMMAND_STATUSES,
)
from ec2runner.core.polling import Deadline, PollPolicy, poll_until
from ec2runner.exceptions import (
    AgentNotRegisteredError,
    DescribeError,
    DispatchError,
    PollTimeoutError,
)
from ec2runner.logging import log_group
from ec2runner.providers.aws.errors import handle_aws_errors
from ec2runner.providers.exceptions import ProviderAPIError
from ec2runner.utils import is_displayable

logger = logging.getLogger(__name__)

INVOCATION_NOT_VISIBLE_CODE = "InvocationDoesNotExist"


@dataclass
class CommandInvocation:
    """Result of one command run on one instance.

    Attributes
    ----------
    command_id : str
        SSM command ID
    instance_id : str
        Target instance
    status : str
        Terminal SSM status (Success, Failed, Cancelled, TimedOut)
    response_code : int
        Exit code reported by the agent, -1 when not available
    stdout : str
        Standard output as returned by SSM
    stderr : str
        Standard error as returned by SSM
    """

    command_id: str
    instance_id: str
    status: str
    response_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == "Success"

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> CommandInvocation:
        return cls(
            command_id=response["CommandId"],
            instance_id=response["InstanceId"],
            status=response["Status"],
            response_code=response.get("ResponseCode", -1),
            stdout=response.get("StandardOutputContent", ""),
            stderr=response.get("StandardErrorContent", ""),
        )


class CommandRunner:
    """Dispatch a shell command to an instance's SSM agent and collect the result.

    Delivery and retrieval only: a command that exits non-zero is reported
    through :class:`CommandInvocation`, not raised.

    Parameters
    ----------
    ssm_client : Any
        boto3 SSM client
    """

    def __init__(self, ssm_client: Any) -> None:
        self.ssm_client = ssm_client

    def is_agent_registered(
        self,
        instance_id: str,
        timeout: float = AGENT_REGISTRATION_TIMEOUT_SECONDS,
        interval: float = AGENT_POLL_INTERVAL_SECONDS,
        deadline: Deadline | None = None,
    ) -> bool:
        """Wait for the SSM agent on ``instance_id`` to report Online.

        Parameters
        ----------
        instance_id : str
            Instance to look for
        timeout : float
            Seconds to keep looking
        interval : float
            Seconds between describe calls
        deadline : Deadline | None
            Optional overall deadline

        Returns
        -------
        bool
            True once the agent is Online, False if it never was within the
            timeout

        Raises
        ------
        DescribeError
            If describe_instance_information fails
        """

        def check() -> tuple[bool, bool]:
            try:
                with handle_aws_errors():
                    response = self.ssm_client.describe_instance_information(
                        Filters=[{"Key": "InstanceIds", "Values": [instance_id]}]
                    )
            except ProviderAPIError as e:
                raise DescribeError(
                    f"error describing SSM instance information for {instance_id}: {e}",
                    error_code=e.error_code,
                ) from e

            for info in response.get("InstanceInformationList", []):
                if (
                    info.get("InstanceId") == instance_id
                    and info.get("PingStatus") == AGENT_ONLINE_STATUS
                ):
                    return True, True

            logger.info(
                "SSM agent is not registered or not online for instance %s. Waiting...",
                instance_id,
            )
            return False, False

        try:
            poll_until(
                check,
                PollPolicy(interval=interval, timeout=timeout),
                f"SSM agent on {instance_id} to come online",
                deadline=deadline,
            )
        except PollTimeoutError:
            logger.info(
                "Timeout reached. SSM agent is not registered for instance %s", instance_id
            )
            return False

        logger.info("SSM agent is registered and online for instance %s", instance_id)
        return True

    def send(self, instance_id: str, command_text: str) -> str:
        """Dispatch ``command_text`` and return the command ID.

        Raises
        ------
        DispatchError
            If send_command is rejected
        """
        try:
            with handle_aws_errors():
                response = self.ssm_client.send_command(
                    InstanceIds=[instance_id],
                    DocumentName=RUN_SHELL_SCRIPT_DOCUMENT,
                    Parameters={"commands": [command_text]},
                )
        except ProviderAPIError as e:
            raise DispatchError(
                f"error sending command '{command_text}' to EC2 instance {instance_id}: {e}",
                error_code=e.error_code,
            ) from e

        return response["Command"]["CommandId"]

    def wait_for_invocation(
        self,
        instance_id: str,
        command_id: str,
        max_wait: float,
        interval: float = COMMAND_POLL_INTERVAL_SECONDS,
        deadline: Deadline | None = None,
    ) -> CommandInvocation:
        """Poll get_command_invocation until the invocation is finished.

        Raises
        ------
        DescribeError
            If get_command_invocation fails for a reason other than the
            invocation not being visible yet
        PollTimeoutError
            If no terminal status is seen within ``max_wait``
        """

        def check() -> tuple[bool, CommandInvocation | None]:
            try:
                with handle_aws_errors():
                    response = self.ssm_client.get_command_invocation(
                        CommandId=command_id, InstanceId=instance_id
                    )
            except ProviderAPIError as e:
                if e.error_code == INVOCATION_NOT_VISIBLE_CODE:
                    logger.debug("Invocation %s not visible yet", command_id)
                    return False, None
                raise DescribeError(
                    f"error getting command invocation details: {e}",
                    error_code=e.error_code,
                ) from e

            status = response["Status"]
            logger.debug("Command %s status: %s", command_id, status)
            if status in TERMINAL_COMMAND_STATUSES:
                return True, CommandInvocation.from_response(response)
            return False, None

        return poll_until(
            check,
            PollPolicy(interval=interval, timeout=max_wait),
            f"command {command_id} on {instance_id} to finish",
            deadline=deadline,
        )

    def execute(
        self,
        instance_id: str,
        command_text: str,
        max_wait: float,
        registration_timeout: float = AGENT_REGISTRATION_TIMEOUT_SECONDS,
        deadline: Deadline | None = None,
    ) -> CommandInvocation:
        """Run ``command_text`` on the instance and wait for it to finish.

        Parameters
        ----------
        instance_id : str
            Target instance
        command_text : str
            Shell command passed to AWS-RunShellScript
        max_wait : float
            Seconds to wait for the command to reach a terminal status
        registration_timeout : float
            Seconds to wait for the agent before giving up
        deadline : Deadline | None
            Optional overall deadline shared by the agent wait and the
            completion wait

        Returns
        -------
        CommandInvocation
            Final invocation details

        Raises
        ------
        AgentNotRegisteredError
            If the agent never comes online; nothing is dispatched
        DispatchError
            If send_command is rejected
        PollTimeoutError
            If the command does not finish within ``max_wait`` or before
            ``deadline``
        """
        if not self.is_agent_registered(
            instance_id, timeout=registration_timeout, deadline=deadline
        ):
            raise AgentNotRegisteredError(instance_id)

        command_id = self.send(instance_id, command_text)
        logger.info("Command %s sent to instance %s", command_id, instance_id)

        invocation = self.wait_for_invocation(
            instance_id, command_id, max_wait, deadline=deadline
        )
        report_invocation(invocation)
        return invocation


def report_invocation(invocation: CommandInvocation) -> None:
    """Log invocation details inside a collapsible group."""
    with log_group("Command invocation details"):
        logger.info("ResponseCode: %d", invocation.response_code)
        logger.info("Status: %s", invocation.status)
        logger.info("StdError: %s", invocation.stderr)
        if is_displayable(invocation.stdout):
            logger.info("StdOutput: %s", invocation.stdout)
        else:
            logger.info("(enable debug to see full output)")
            logger.debug("StdOutput: %s", invocation.stdout)

    if not invocation.succeeded:
        logger.warning(
            "Command %s finished with status %s (response code %d)",
            invocation.command_id,
            invocation.status,
            invocation.response_code,
        )
