"""IAM instance profile lookup and creation."""

import logging
from typing import Any

from ec2runner.exceptions import AttachError, CreateError, ListError
from ec2runner.providers.aws.errors import handle_aws_errors
from ec2runner.providers.exceptions import ProviderAPIError

logger = logging.getLogger(__name__)


class InstanceProfileManager:
    """Resolve the instance profile that binds an IAM role to an instance.

    Profiles created here are always named after their role, so a role name
    doubles as the profile name.

    Parameters
    ----------
    iam_client : Any
        boto3 IAM client
    """

    def __init__(self, iam_client: Any) -> None:
        self.iam_client = iam_client

    def find_profile_for_role(self, role_name: str) -> str | None:
        """Return the name of an existing profile carrying ``role_name``.

        Raises
        ------
        ListError
            If listing instance profiles fails
        """
        try:
            with handle_aws_errors():
                paginator = self.iam_client.get_paginator("list_instance_profiles")
                for page in paginator.paginate():
                    for profile in page["InstanceProfiles"]:
                        for role in profile.get("Roles", []):
                            if role["RoleName"] == role_name:
                                return profile["InstanceProfileName"]
        except ProviderAPIError as e:
            raise ListError(
                f"error listing instance profiles: {e}", error_code=e.error_code
            ) from e

        return None

    def get_or_create(self, role_name: str) -> str:
        """Return a profile name for ``role_name``, creating one if needed.

        Parameters
        ----------
        role_name : str
            IAM role to bind

        Returns
        -------
        str
            Instance profile name

        Raises
        ------
        ListError
            If listing instance profiles fails
        CreateError
            If the profile cannot be created
        AttachError
            If the role cannot be added to the new profile
        """
        existing = self.find_profile_for_role(role_name)
        if existing is not None:
            logger.info("Instance profile for IAM role %s already exists.", role_name)
            return existing

        # Not atomic: a concurrent run for the same role can create it between
        # the list above and this call, surfacing as EntityAlreadyExists.
        try:
            with handle_aws_errors():
                self.iam_client.create_instance_profile(InstanceProfileName=role_name)
        except ProviderAPIError as e:
            raise CreateError(
                f"error creating instance profile: {e}", error_code=e.error_code
            ) from e
        logger.info("Created instance profile %s", role_name)

        try:
            with handle_aws_errors():
                self.iam_client.add_role_to_instance_profile(
                    InstanceProfileName=role_name, RoleName=role_name
                )
        except ProviderAPIError as e:
            raise AttachError(
                f"error attaching role to instance profile: {e}", error_code=e.error_code
            ) from e
        logger.info("Attached role %s to instance profile %s", role_name, role_name)

        return role_name
