"""
Error types raised by the chat pipeline.

Only errors that can be reported before a response is committed, or that
must abort an in-progress stream, are raised. Provider-reported failures
and notes-service failures are carried inside the stream instead.
"""


class NotestreamError(Exception):
    """Base error with an HTTP status for the API layer"""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(NotestreamError):
    """A required setting (e.g. the provider API key) is missing"""

    status_code = 400
    code = "configuration_error"


class UpstreamUnavailableError(NotestreamError):
    """The completion provider could not be reached"""

    status_code = 502
    code = "upstream_unavailable"


class WireFormatError(NotestreamError):
    """The provider sent a stream that cannot be decoded; the stream is aborted"""

    code = "wire_format_error"
