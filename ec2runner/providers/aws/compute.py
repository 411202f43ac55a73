"""EC2 instance lifecycle: provision, wait for running, terminate."""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any

from ec2runner.constants import (
    DEFAULT_INSTANCE_TYPE,
    INSTANCE_POLL_INTERVAL_SECONDS,
    INSTANCE_RUNNING_TIMEOUT_SECONDS,
    UNREACHABLE_INSTANCE_STATES,
    InstanceState,
)
from ec2runner.core.polling import Deadline, PollPolicy, poll_until
from ec2runner.exceptions import DescribeError, ProvisioningError, TerminationError
from ec2runner.providers.aws.errors import handle_aws_errors
from ec2runner.providers.aws.utils import extract_instance_from_response
from ec2runner.providers.exceptions import ProviderAPIError

logger = logging.getLogger(__name__)

INSTANCE_NOT_VISIBLE_CODE = "InvalidInstanceID.NotFound"


@dataclass
class LaunchSpec:
    """Parameters for a single run_instances call.

    Attributes
    ----------
    image_id : str
        AMI ID
    subnet_id : str
        Subnet to launch into
    security_group_ids : list[str]
        Security groups attached to the primary interface
    instance_type : str
        Instance type; empty means DEFAULT_INSTANCE_TYPE
    user_data : str
        Raw boot script, base64-encoded before transmission
    tag_specifications : list[dict[str, Any]]
        Parsed TagSpecifications entries
    instance_profile_name : str | None
        IAM instance profile to attach, if any
    """

    image_id: str
    subnet_id: str
    security_group_ids: list[str]
    instance_type: str = DEFAULT_INSTANCE_TYPE
    user_data: str = ""
    tag_specifications: list[dict[str, Any]] = field(default_factory=list)
    instance_profile_name: str | None = None

    def to_request(self) -> dict[str, Any]:
        """Build run_instances keyword arguments.

        Returns
        -------
        dict[str, Any]
            Request parameters for ec2_client.run_instances
        """
        params: dict[str, Any] = {
            "ImageId": self.image_id,
            "InstanceType": self.instance_type or DEFAULT_INSTANCE_TYPE,
            "MinCount": 1,
            "MaxCount": 1,
            "Monitoring": {"Enabled": False},
            "SubnetId": self.subnet_id,
            "SecurityGroupIds": list(self.security_group_ids),
            "UserData": base64.b64encode(self.user_data.encode("utf-8")).decode("ascii"),
        }

        if self.tag_specifications:
            params["TagSpecifications"] = self.tag_specifications

        if self.instance_profile_name:
            params["IamInstanceProfile"] = {"Name": self.instance_profile_name}

        return params


class InstanceManager:
    """Manage the lifecycle of the single instance an invocation owns.

    Parameters
    ----------
    ec2_client : Any
        boto3 EC2 client
    """

    def __init__(self, ec2_client: Any) -> None:
        self.ec2_client = ec2_client

    def provision(self, spec: LaunchSpec) -> str:
        """Launch one instance and return its ID without waiting.

        Parameters
        ----------
        spec : LaunchSpec
            Launch parameters

        Returns
        -------
        str
            ID of the new instance

        Raises
        ------
        ProvisioningError
            If the API rejects the request
        """
        params = spec.to_request()
        logger.info(
            "Launching %s instance from %s in %s",
            params["InstanceType"],
            spec.image_id,
            spec.subnet_id,
        )

        try:
            with handle_aws_errors():
                response = self.ec2_client.run_instances(**params)
        except ProviderAPIError as e:
            raise ProvisioningError(
                f"error starting EC2 instance: {e}", error_code=e.error_code
            ) from e

        instances = response.get("Instances") or []
        if not instances:
            raise ProvisioningError("run_instances returned no instances")

        instance_id = instances[0]["InstanceId"]
        logger.info("Launched instance %s", instance_id)
        return instance_id

    def describe_state(self, instance_id: str) -> str:
        """Return the current state name of an instance.

        Raises
        ------
        DescribeError
            If describe_instances fails or returns no matching instance
        """
        try:
            with handle_aws_errors():
                response = self.ec2_client.describe_instances(InstanceIds=[instance_id])
        except ProviderAPIError as e:
            raise DescribeError(
                f"error describing instance {instance_id}: {e}", error_code=e.error_code
            ) from e

        try:
            instance = extract_instance_from_response(response)
        except ValueError as e:
            raise DescribeError(f"error describing instance {instance_id}: {e}") from e

        return instance["State"]["Name"]

    def wait_running(
        self,
        instance_id: str,
        interval: float = INSTANCE_POLL_INTERVAL_SECONDS,
        timeout: float = INSTANCE_RUNNING_TIMEOUT_SECONDS,
        deadline: Deadline | None = None,
    ) -> None:
        """Block until the instance reports 'running'.

        Parameters
        ----------
        instance_id : str
            Instance to watch
        interval : float
            Seconds between describe calls
        timeout : float
            Seconds before giving up
        deadline : Deadline | None
            Optional overall deadline

        Raises
        ------
        DescribeError
            If a describe call fails for a reason other than the instance
            not being visible yet
        ProvisioningError
            If the instance enters shutting-down or terminated
        PollTimeoutError
            If the instance is not running in time
        """

        def check() -> tuple[bool, str | None]:
            try:
                state = self.describe_state(instance_id)
            except DescribeError as e:
                if e.error_code == INSTANCE_NOT_VISIBLE_CODE:
                    logger.debug("Instance %s not visible yet", instance_id)
                    return False, None
                raise
            logger.info("Instance state: %s", state)

            if state in UNREACHABLE_INSTANCE_STATES:
                raise ProvisioningError(
                    f"Instance {instance_id} entered state '{state}' before running"
                )

            return state == InstanceState.RUNNING.value, state

        poll_until(
            check,
            PollPolicy(interval=interval, timeout=timeout),
            f"instance {instance_id} to reach running state",
            deadline=deadline,
        )
        logger.info("Instance %s is now running.", instance_id)

    def terminate(self, instance_id: str) -> None:
        """Request termination and return once the API acknowledges it.

        Raises
        ------
        TerminationError
            If the API rejects the request
        """
        try:
            with handle_aws_errors():
                self.ec2_client.terminate_instances(InstanceIds=[instance_id])
        except ProviderAPIError as e:
            raise TerminationError(
                f"error stopping EC2 instance {instance_id}: {e}", error_code=e.error_code
            ) from e

        logger.info("Instance %s is stopping...", instance_id)
