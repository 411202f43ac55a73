"""Input parsing and parameter conversion utilities."""

from __future__ import annotations

import json
import logging
from typing import Any

from ec2runner.constants import MIN_COMMAND_MAX_WAIT_SECONDS
from ec2runner.exceptions import MalformedTagSpecError

logger = logging.getLogger(__name__)


def parse_int_input(name: str, value: str | int) -> int:
    """Parse an integer input.

    Parameters
    ----------
    name : str
        Input name, used in the error message
    value : str | int
        Raw value

    Returns
    -------
    int
        Parsed value

    Raises
    ------
    ValueError
        If the value is not an integer
    """
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got: {value}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: '{value}'") from None


def effective_max_wait(value: int) -> int:
    """Apply the command wait floor.

    Parameters
    ----------
    value : int
        Configured ``command-max-wait-secs``

    Returns
    -------
    int
        ``value``, or MIN_COMMAND_MAX_WAIT_SECONDS when ``value`` is 5 or less
    """
    if value < MIN_COMMAND_MAX_WAIT_SECONDS:
        logger.warning(
            "command-max-wait-secs raised to minimum %d seconds",
            MIN_COMMAND_MAX_WAIT_SECONDS,
        )
        return MIN_COMMAND_MAX_WAIT_SECONDS
    return value


def parse_security_group_ids(value: str) -> list[str]:
    """Split a comma-separated security group input into IDs."""
    return [group.strip() for group in value.split(",") if group.strip()]


def parse_tag_specifications(raw: str | None) -> list[dict[str, Any]]:
    """Parse the tag-specifications input.

    Expected shape::

        [{"ResourceType": "instance", "Tags": [{"Key": "k", "Value": "v"}]}]

    Parameters
    ----------
    raw : str | None
        JSON text; empty or None means no tags

    Returns
    -------
    list[dict[str, Any]]
        TagSpecifications ready for run_instances

    Raises
    ------
    MalformedTagSpecError
        If the text is not valid JSON or does not have the expected shape
    """
    if raw is None or not str(raw).strip():
        return []

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedTagSpecError(f"Error parsing tag specifications: {e}") from e

    if not isinstance(data, list):
        raise MalformedTagSpecError("Tag specifications must be a JSON array")

    specs = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise MalformedTagSpecError(f"Tag specification {index} must be an object")

        resource_type = entry.get("ResourceType")
        if not isinstance(resource_type, str) or not resource_type:
            raise MalformedTagSpecError(
                f"Tag specification {index} is missing ResourceType"
            )

        tags = entry.get("Tags", [])
        if not isinstance(tags, list):
            raise MalformedTagSpecError(f"Tags of tag specification {index} must be an array")

        for tag in tags:
            if (
                not isinstance(tag, dict)
                or not isinstance(tag.get("Key"), str)
                or not isinstance(tag.get("Value", ""), str)
            ):
                raise MalformedTagSpecError(
                    f"Tag specification {index} has an invalid tag: {tag!r}"
                )

        specs.append(
            {
                "ResourceType": resource_type,
                "Tags": [{"Key": t["Key"], "Value": t.get("Value", "")} for t in tags],
            }
        )

    return specs
