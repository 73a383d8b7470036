"""User-facing client for the Paygate API.

Example usage:
    from paygate_sdk import PaygateClient

    client = PaygateClient(api_key="sk_test_...")
    charges = client.get("/v1/charges", {"limit": 3}, dict)
"""

from collections.abc import Mapping
from typing import Any, TypeVar

from paygate_sdk._internal.dispatch.client import RequestDispatcher
from paygate_sdk._internal.dispatch.models import (
    PaygateConfig,
    RequestKind,
    RequestMethod,
    RequestOptions,
)
from paygate_sdk._internal.dispatch.transport import Transport

T = TypeVar("T")


class PaygateClient:
    """Binds credentials and a base URL to API calls.

    Errors are raised as the exceptions in `paygate_sdk.exceptions`.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        api_version: str | None = None,
        account: str | None = None,
        config: PaygateConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Secret API key. Falls back to PAYGATE_API_KEY.
            api_version: Optional API version pin.
            account: Optional sub-account to act on behalf of.
            config: SDK configuration. Defaults to PaygateConfig.from_env().
            transport: Fixed transport, mainly for tests.
        """
        defaults = RequestOptions.from_env()
        self._options = RequestOptions(
            api_key=api_key if api_key is not None else defaults.api_key,
            api_version=api_version if api_version is not None else defaults.api_version,
            account=account if account is not None else defaults.account,
        )
        self._dispatcher = RequestDispatcher(
            config=config or PaygateConfig.from_env(),
            transport=transport,
        )

    def get(self, path: str, params: Mapping[str, Any] | None, result_type: type[T]) -> T:
        return self._request(RequestMethod.GET, path, params, result_type)

    def delete(self, path: str, params: Mapping[str, Any] | None, result_type: type[T]) -> T:
        return self._request(RequestMethod.DELETE, path, params, result_type)

    def post(
        self,
        path: str,
        params: Mapping[str, Any] | None,
        result_type: type[T],
        *,
        idempotency_key: str | None = None,
    ) -> T:
        return self._request(
            RequestMethod.POST, path, params, result_type, idempotency_key=idempotency_key
        )

    def upload(
        self,
        path: str,
        params: Mapping[str, Any],
        result_type: type[T],
        *,
        idempotency_key: str | None = None,
    ) -> T:
        """POST a multipart body. os.PathLike values and binary streams are uploaded as files."""
        return self._request(
            RequestMethod.POST,
            path,
            params,
            result_type,
            request_kind=RequestKind.MULTIPART,
            idempotency_key=idempotency_key,
        )

    def _request(
        self,
        method: RequestMethod,
        path: str,
        params: Mapping[str, Any] | None,
        result_type: type[T],
        *,
        request_kind: RequestKind = RequestKind.NORMAL,
        idempotency_key: str | None = None,
    ) -> T:
        options = self._options
        if idempotency_key is not None:
            options = options.model_copy(update={"idempotency_key": idempotency_key})
        url = f"{self._dispatcher.config.api_base.rstrip('/')}/{path.lstrip('/')}"
        return self._dispatcher.dispatch(
            method, url, params, result_type, request_kind=request_kind, options=options
        )
