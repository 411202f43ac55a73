"""Action outputs written for later workflow steps."""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


class OutputWriter:
    """Write step outputs to the file named by ``GITHUB_OUTPUT``.

    Outside GitHub Actions there is no output file and values are only
    logged. Every value written is also kept in :attr:`values`.

    Parameters
    ----------
    environ : dict[str, str] | None
        Environment to read GITHUB_OUTPUT from; defaults to os.environ
    """

    def __init__(self, environ: dict[str, str] | None = None) -> None:
        self.environ = os.environ if environ is None else environ
        self.values: dict[str, str] = {}

    @property
    def output_file(self) -> Path | None:
        path = self.environ.get("GITHUB_OUTPUT")
        return Path(path) if path else None

    def set_output(self, name: str, value: str) -> None:
        """Record an output.

        Parameters
        ----------
        name : str
            Output name, e.g. ``ec2-instance-id``
        value : str
            Output value
        """
        self.values[name] = value
        output_file = self.output_file

        if output_file is None:
            logger.info("Output %s=%s", name, value)
            return

        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            line = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
        else:
            line = f"{name}={value}\n"

        with open(output_file, "a", encoding="utf-8") as f:
            f.write(line)
        logger.debug("Wrote output %s to %s", name, output_file)
