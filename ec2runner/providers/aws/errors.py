"""Translation of botocore exceptions into provider exceptions."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    EndpointConnectionError,
    HTTPClientError,
    NoCredentialsError,
    NoRegionError,
    PartialCredentialsError,
)

from ec2runner.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)

CREDENTIAL_ERROR_CODES = frozenset(
    (
        "AuthFailure",
        "InvalidClientTokenId",
        "UnrecognizedClientException",
        "SignatureDoesNotMatch",
    )
)


def client_error_code(error: ClientError) -> str | None:
    """Return the AWS error code carried by a ClientError."""
    return error.response.get("Error", {}).get("Code")


@contextmanager
def handle_aws_errors() -> Iterator[None]:
    """Re-raise botocore errors as provider exceptions.

    Raises
    ------
    ProviderCredentialsError
        When credentials are missing or rejected
    ProviderConnectionError
        When the endpoint cannot be reached or the connection drops
    ProviderAPIError
        For any other API error response or client-side botocore error
    """
    try:
        yield
    except (NoCredentialsError, PartialCredentialsError) as e:
        raise ProviderCredentialsError(str(e)) from e
    except NoRegionError as e:
        raise ProviderCredentialsError(
            "No AWS region configured. Set AWS_REGION or pass --region."
        ) from e
    except (EndpointConnectionError, BotoConnectionError, HTTPClientError) as e:
        raise ProviderConnectionError(str(e)) from e
    except ClientError as e:
        code = client_error_code(e)
        if code in CREDENTIAL_ERROR_CODES:
            raise ProviderCredentialsError(str(e)) from e
        raise ProviderAPIError(str(e), error_code=code) from e
    except BotoCoreError as e:
        raise ProviderAPIError(str(e)) from e
