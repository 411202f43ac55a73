"""Logging filters for stream routing."""

import logging


class StreamRoutingFilter(logging.Filter):
    """Filter that routes log records based on stream extra parameter.

    Records carrying ``extra={"stream": ...}`` go to that stream. Records
    without it go to stdout below WARNING and to stderr at WARNING and above.

    Parameters
    ----------
    stream_type : str
        Stream type to allow: "stdout" or "stderr"
    """

    def __init__(self, stream_type: str) -> None:
        super().__init__()
        self.stream_type = stream_type

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter log records by stream type.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to filter

        Returns
        -------
        bool
            True if record should be emitted by this handler
        """
        record_stream = getattr(record, "stream", None)

        if record_stream is None:
            record_stream = "stderr" if record.levelno >= logging.WARNING else "stdout"

        return record_stream == self.stream_type
