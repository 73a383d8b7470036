"""Interpretation of API responses into decoded results or classified errors."""

from typing import TypeVar

from pydantic import TypeAdapter, ValidationError

from paygate_sdk._internal.dispatch.models import ErrorEnvelope
from paygate_sdk.exceptions import (
    ClassifiedError,
    PaygateAPIError,
    PaygateAuthenticationError,
    PaygateCardError,
    PaygateInvalidRequestError,
)

T = TypeVar("T")


def classify(
    status_code: int,
    body: str,
    request_id: str | None,
    result_type: type[T],
) -> T | ClassifiedError:
    """Decode a successful response, or classify a failed one.

    Args:
        status_code: HTTP status of the response.
        body: Response body text.
        request_id: Value of the response's Request-Id header, if any.
        result_type: Type to decode a 2xx body into.

    Returns:
        The decoded value for 2xx statuses, otherwise the error to raise.

    Raises:
        pydantic.ValidationError: If a 2xx body does not decode as result_type.
    """
    if 200 <= status_code < 300:
        return TypeAdapter(result_type).validate_json(body)
    return classify_error(status_code, body, request_id)


def classify_error(status_code: int, body: str, request_id: str | None) -> ClassifiedError:
    """Map a non-2xx status and its error envelope to an error.

    400/404 are invalid requests, 401 is an authentication failure, 402 is a
    card error and every other status is a generic API error.
    """
    try:
        error = ErrorEnvelope.model_validate_json(body).error
    except ValidationError as e:
        invalid = PaygateAPIError(
            f"Invalid response object from API: {body!r} (HTTP response code was {status_code})",
            status_code=status_code,
            request_id=request_id,
        )
        invalid.__cause__ = e
        return invalid

    message = error.message or f"Request failed with status {status_code}"
    match status_code:
        case 400 | 404:
            return PaygateInvalidRequestError(
                message, param=error.param, status_code=status_code, request_id=request_id
            )
        case 401:
            return PaygateAuthenticationError(
                message, status_code=status_code, request_id=request_id
            )
        case 402:
            return PaygateCardError(
                message,
                code=error.code,
                param=error.param,
                decline_code=error.decline_code,
                charge=error.charge,
                status_code=status_code,
                request_id=request_id,
            )
        case _:
            return PaygateAPIError(message, status_code=status_code, request_id=request_id)
