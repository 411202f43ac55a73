"""Logging formatters for GitHub Actions workflow commands."""

import logging

WORKFLOW_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def escape_workflow_data(message: str) -> str:
    """Escape a message for use as workflow command data.

    Parameters
    ----------
    message : str
        Raw message

    Returns
    -------
    str
        Message with %, CR and LF percent-encoded
    """
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandFormatter(logging.Formatter):
    """Formatter that renders records as workflow commands when enabled.

    With ``workflow_commands`` on, DEBUG records become ``::debug::``,
    WARNING ``::warning::`` and ERROR/CRITICAL ``::error::``. INFO records
    are plain lines. With it off the formatter behaves like
    ``logging.Formatter`` plus an optional level prefix for warnings and
    errors.

    Parameters
    ----------
    fmt : str | None
        Base format string
    workflow_commands : bool
        Whether to emit workflow command syntax
    """

    def __init__(self, fmt: str | None = None, workflow_commands: bool = False) -> None:
        super().__init__(fmt)
        self.workflow_commands = workflow_commands

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, wrapping it in a workflow command if applicable.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format

        Returns
        -------
        str
            Formatted log line
        """
        msg = super().format(record)
        command = WORKFLOW_COMMANDS.get(record.levelno)

        if getattr(record, "raw", False) or command is None:
            return msg

        if self.workflow_commands:
            return f"::{command}::{escape_workflow_data(msg)}"

        if record.levelno >= logging.WARNING:
            return f"{record.levelname.capitalize()}: {msg}"

        return msg
