"""Provider-agnostic exception hierarchy.

Cloud SDK errors are translated into these types at the provider boundary so
the CLI layer can render them without importing SDK exception classes.
"""

from __future__ import annotations


class ProviderError(Exception):
    """Base class for errors raised by a cloud provider integration."""


class ProviderCredentialsError(ProviderError):
    """Credentials are missing, incomplete or rejected."""


class ProviderConnectionError(ProviderError):
    """The provider endpoint could not be reached."""


class ProviderAPIError(ProviderError):
    """The provider API rejected a request.

    Parameters
    ----------
    message : str
        Human readable description
    error_code : str | None
        Provider error code (e.g. ``UnauthorizedOperation``), if known
    """

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code
