"""Utility functions for ec2runner."""

import logging
import os
import sys
from typing import Any

from ec2runner.constants import OUTPUT_DISPLAY_LIMIT


def is_displayable(text: str, limit: int = OUTPUT_DISPLAY_LIMIT) -> bool:
    """Return True when ``text`` is short enough to log at INFO level.

    Parameters
    ----------
    text : str
        Command output
    limit : int
        Length at which output is elided (default: OUTPUT_DISPLAY_LIMIT)

    Returns
    -------
    bool
        True if ``len(text) < limit``
    """
    return len(text) < limit


def is_truthy(value: str | None) -> bool:
    """Interpret an environment flag such as ``RUNNER_DEBUG=1``."""
    if value is None:
        return False
    return value.strip().lower() in ("1", "true", "yes", "on")


def running_in_github_actions() -> bool:
    """Return True when executing inside a GitHub Actions runner."""
    return os.environ.get("GITHUB_ACTIONS") == "true"


def log_and_print_error(message: str, *args: Any) -> None:
    """Log error message, or print it to stderr when logging is not set up.

    Parameters
    ----------
    message : str
        Error message with optional format placeholders
    *args : Any
        Format arguments for message
    """
    if logging.getLogger().handlers:
        logging.error(message, *args)
        return

    formatted_msg = message % args if args else message
    print(f"Error: {formatted_msg}", file=sys.stderr)
