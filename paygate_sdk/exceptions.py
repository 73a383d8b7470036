"""Public exceptions for the Paygate SDK.

Every error raised by the SDK derives from `PaygateError`. The four errors
produced from an API response (authentication, invalid request, card,
generic API) are siblings and are grouped by the `ClassifiedError` union so
call sites can match on them exhaustively.
"""

from typing import TypeAlias


class PaygateError(Exception):
    """Base exception for all Paygate SDK errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.request_id = request_id


class PaygateAPIError(PaygateError):
    """Error from the Paygate API that has no more specific classification."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, request_id=request_id)


class PaygateAuthenticationError(PaygateError):
    """Missing or blank API key, or an HTTP 401 from the API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, request_id=request_id)


class PaygateInvalidRequestError(PaygateError):
    """HTTP 400 or 404 from the API.

    `param` names the offending request parameter when the API reports it.
    """

    def __init__(
        self,
        message: str,
        param: str | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, request_id=request_id)
        self.param = param


class PaygateCardError(PaygateError):
    """HTTP 402 from the API, carrying the payment-specific sub-codes."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        param: str | None = None,
        decline_code: str | None = None,
        charge: str | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, request_id=request_id)
        self.code = code
        self.param = param
        self.decline_code = decline_code
        self.charge = charge


class PaygateConnectionError(PaygateError):
    """I/O failure while reaching or reading from the API.

    The underlying error is available as `__cause__`.
    """

    def __init__(self, message: str, api_base: str | None = None) -> None:
        super().__init__(message)
        self.api_base = api_base


class PaygateConfigError(PaygateError):
    """Configuration error (malformed env vars, invalid config)."""


class PaygateValidationError(PaygateError):
    """Bad caller input detected before any network I/O."""

    def __init__(self, message: str, param: str | None = None) -> None:
        super().__init__(message)
        self.param = param


ClassifiedError: TypeAlias = (
    PaygateAuthenticationError
    | PaygateInvalidRequestError
    | PaygateCardError
    | PaygateAPIError
)
