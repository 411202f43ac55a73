"""Logging setup, formatters and filters for ec2runner."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

from ec2runner.logging.filters import StreamRoutingFilter
from ec2runner.logging.formatters import WorkflowCommandFormatter

logger = logging.getLogger(__name__)

QUIET_LOGGERS = ("botocore", "boto3", "urllib3")


def setup_logging(verbose: bool = False, workflow_commands: bool = False) -> None:
    """Install stdout/stderr handlers on the root logger.

    Parameters
    ----------
    verbose : bool
        Enable DEBUG level
    workflow_commands : bool
        Render warnings, errors and debug lines as GitHub workflow commands
    """
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(WorkflowCommandFormatter("%(message)s", workflow_commands))
    stdout_handler.addFilter(StreamRoutingFilter("stdout"))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(WorkflowCommandFormatter("%(message)s", workflow_commands))
    stderr_handler.addFilter(StreamRoutingFilter("stderr"))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def log_group(title: str) -> Iterator[None]:
    """Wrap the enclosed log lines in a collapsible workflow log group."""
    logger.info("::group::%s", title, extra={"raw": True, "stream": "stdout"})
    try:
        yield
    finally:
        logger.info("::endgroup::", extra={"raw": True, "stream": "stdout"})


__all__ = [
    "StreamRoutingFilter",
    "WorkflowCommandFormatter",
    "log_group",
    "setup_logging",
]
