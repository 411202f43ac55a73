"""Input resolution: CLI values, GitHub Actions environment, YAML defaults."""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import InterpolationResolutionError

from ec2runner.cli.parsing import effective_max_wait, parse_int_input
from ec2runner.constants import (
    DEFAULT_COMMAND_MAX_WAIT_SECONDS,
    DEFAULT_CONFIG_FILE,
    DEFAULT_INSTANCE_TYPE,
    INSTANCE_RUNNING_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

INPUT_NAMES = (
    "mode",
    "ec2-image-id",
    "subnet-id",
    "security-group-id",
    "iam-role-name",
    "ec2-instance-type",
    "user-data",
    "tag-specifications",
    "ec2-instance-id",
    "command",
    "command-max-wait-secs",
    "instance-running-timeout-secs",
    "region",
)


def input_env_var(name: str) -> str:
    """Return the environment variable GitHub Actions uses for an input.

    Parameters
    ----------
    name : str
        Input name, e.g. ``ec2-image-id``

    Returns
    -------
    str
        e.g. ``INPUT_EC2-IMAGE-ID``
    """
    return "INPUT_" + name.replace(" ", "_").upper()


def normalize_input_name(name: str) -> str:
    """Map ``ec2_image_id`` style keys to ``ec2-image-id``."""
    return name.strip().replace("_", "-").lower()


@dataclass
class RunnerConfig:
    """Resolved inputs for one invocation.

    String inputs are empty when unset. Integer inputs are already parsed and
    ``command_max_wait_secs`` already has its floor applied.
    """

    mode: str = ""
    ec2_image_id: str = ""
    subnet_id: str = ""
    security_group_id: str = ""
    iam_role_name: str = ""
    ec2_instance_type: str = DEFAULT_INSTANCE_TYPE
    user_data: str = ""
    tag_specifications: str = ""
    ec2_instance_id: str = ""
    command: str = ""
    command_max_wait_secs: int = DEFAULT_COMMAND_MAX_WAIT_SECONDS
    instance_running_timeout_secs: int = INSTANCE_RUNNING_TIMEOUT_SECONDS
    region: str = ""


class ConfigLoader:
    """Resolve inputs from their sources in precedence order.

    Highest first: explicit CLI values, ``INPUT_*`` environment variables,
    the ``defaults`` section of the YAML config file, built-in defaults.
    Empty values never override.
    """

    def __init__(self, environ: dict[str, str] | None = None) -> None:
        self.environ = os.environ if environ is None else environ
        self.BUILT_IN_DEFAULTS: dict[str, Any] = {
            "ec2-instance-type": DEFAULT_INSTANCE_TYPE,
            "command-max-wait-secs": DEFAULT_COMMAND_MAX_WAIT_SECONDS,
            "instance-running-timeout-secs": INSTANCE_RUNNING_TIMEOUT_SECONDS,
        }

    def load_config_file(self, config_path: str | None = None) -> dict[str, Any]:
        """Load the YAML config file.

        Parameters
        ----------
        config_path : str | None
            Path to YAML config file. If None, checks EC2RUNNER_CONFIG env var,
            then falls back to ec2runner.yaml

        Returns
        -------
        dict[str, Any]
            Parsed configuration with interpolations resolved, or
            ``{"defaults": {}}`` when the file does not exist

        Raises
        ------
        ValueError
            If the file is not valid YAML or interpolation fails
        RuntimeError
            If the file cannot be read
        """
        if config_path is None:
            config_path = self.environ.get("EC2RUNNER_CONFIG", DEFAULT_CONFIG_FILE)

        config_file = Path(config_path)

        if not config_file.exists():
            return {"defaults": {}}

        try:
            cfg = OmegaConf.load(config_file)
        except yaml.YAMLError as e:
            logger.error("Failed to parse YAML config file %s: %s", config_file, e)
            raise ValueError(f"Invalid YAML in {config_file}: {e}") from e
        except OSError as e:
            logger.error("Failed to read config file %s: %s", config_file, e)
            raise RuntimeError(f"Failed to read config file {config_file}: {e}") from e

        if cfg is None:
            return {"defaults": {}}

        try:
            config = OmegaConf.to_container(cfg, resolve=True, throw_on_missing=True)
        except InterpolationResolutionError as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise ValueError(f"Configuration variable resolution error: {e}") from e

        if not isinstance(config, dict):
            raise ValueError(f"Config file {config_file} must contain a mapping")

        defaults = config.get("defaults") or {}
        if not isinstance(defaults, dict):
            raise ValueError(f"'defaults' in {config_file} must be a mapping")

        unknown = sorted(
            key for key in map(normalize_input_name, defaults) if key not in INPUT_NAMES
        )
        if unknown:
            logger.warning("Ignoring unknown keys in %s: %s", config_file, ", ".join(unknown))

        return {"defaults": defaults}

    def environment_inputs(self) -> dict[str, str]:
        """Collect non-empty ``INPUT_*`` values keyed by input name."""
        values = {}
        for name in INPUT_NAMES:
            value = self.environ.get(input_env_var(name), "")
            if str(value).strip():
                values[name] = value
        return values

    def resolve(
        self,
        cli_values: dict[str, Any] | None = None,
        config_path: str | None = None,
    ) -> dict[str, Any]:
        """Merge all sources into a dict keyed by input name.

        Parameters
        ----------
        cli_values : dict[str, Any] | None
            Values given on the command line; None and "" are ignored
        config_path : str | None
            Optional explicit config file path

        Returns
        -------
        dict[str, Any]
            Merged raw values
        """
        merged = copy.deepcopy(self.BUILT_IN_DEFAULTS)

        file_defaults = self.load_config_file(config_path)["defaults"]
        layers = [
            {normalize_input_name(k): v for k, v in file_defaults.items()},
            self.environment_inputs(),
            {normalize_input_name(k): v for k, v in (cli_values or {}).items()},
        ]

        for layer in layers:
            for key, value in layer.items():
                if key not in INPUT_NAMES or value is None:
                    continue
                if isinstance(value, str) and not value.strip():
                    continue
                merged[key] = value

        return merged

    def build(
        self,
        cli_values: dict[str, Any] | None = None,
        config_path: str | None = None,
    ) -> RunnerConfig:
        """Resolve and convert inputs into a RunnerConfig.

        Raises
        ------
        ValueError
            If an integer input does not parse
        """
        merged = self.resolve(cli_values, config_path)

        max_wait = parse_int_input(
            "command-max-wait-secs", merged["command-max-wait-secs"]
        )
        running_timeout = parse_int_input(
            "instance-running-timeout-secs", merged["instance-running-timeout-secs"]
        )
        if running_timeout < 0:
            raise ValueError(
                f"instance-running-timeout-secs must not be negative, got: {running_timeout}"
            )

        # fire hands over already-parsed literals for list-like flags
        def text(name: str) -> str:
            value = merged.get(name, "")
            if value is None:
                return ""
            if name == "tag-specifications" and isinstance(value, (list, dict)):
                return json.dumps(value)
            if isinstance(value, (list, tuple)):
                return ",".join(str(v) for v in value)
            return str(value)

        return RunnerConfig(
            mode=text("mode").strip(),
            ec2_image_id=text("ec2-image-id").strip(),
            subnet_id=text("subnet-id").strip(),
            security_group_id=text("security-group-id").strip(),
            iam_role_name=text("iam-role-name").strip(),
            ec2_instance_type=text("ec2-instance-type").strip(),
            user_data=text("user-data"),
            tag_specifications=text("tag-specifications"),
            ec2_instance_id=text("ec2-instance-id").strip(),
            command=text("command"),
            command_max_wait_secs=effective_max_wait(max_wait),
            instance_running_timeout_secs=running_timeout,
            region=text("region").strip(),
        )
