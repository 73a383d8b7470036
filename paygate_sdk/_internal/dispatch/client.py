"""Request dispatcher for the Paygate API."""

import os
import tempfile
from collections.abc import Mapping
from typing import Any, TypeVar

from paygate_sdk._internal.dispatch.classifier import classify
from paygate_sdk._internal.dispatch.dns import (
    DnsCacheSetting,
    dns_cache_disabled,
    dns_cache_ttl,
)
from paygate_sdk._internal.dispatch.models import (
    PaygateConfig,
    RequestKind,
    RequestMethod,
    RequestOptions,
    TransportRequest,
    TransportResponse,
)
from paygate_sdk._internal.dispatch.multipart import (
    MultipartEncoder,
    is_file_value,
    new_boundary,
)
from paygate_sdk._internal.dispatch.params import encode_query
from paygate_sdk._internal.dispatch.transport import Transport, select_transport
from paygate_sdk._internal.http import (
    CHARSET,
    CLIENT_USER_AGENT_HEADER,
    USER_AGENT,
    client_user_agent,
)
from paygate_sdk.exceptions import (
    PaygateAPIError,
    PaygateAuthenticationError,
    PaygateCardError,
    PaygateConnectionError,
    PaygateInvalidRequestError,
    PaygateValidationError,
)

T = TypeVar("T")

# Multipart bodies larger than this spill from memory to a temporary file.
MULTIPART_SPOOL_MAX_BYTES = 1024 * 1024


class RequestDispatcher:
    """Turns a call description into one HTTP exchange and a typed result.

    Each call runs synchronously on the caller's thread: validate, encode,
    send through a transport, then decode the body or raise the classified
    error. DNS caching is disabled for the duration of every call and the
    previous setting restored afterwards, whichever way the call ends.

    There are no retries; a failed attempt is reported to the caller as is.
    """

    def __init__(
        self,
        *,
        config: PaygateConfig | None = None,
        transport: Transport | None = None,
        dns_setting: DnsCacheSetting = dns_cache_ttl,
        spool_max_bytes: int = MULTIPART_SPOOL_MAX_BYTES,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            config: SDK configuration. Defaults to PaygateConfig().
            transport: Fixed transport. When None, one is selected per call.
            dns_setting: The DNS cache TTL overridden during each call.
            spool_max_bytes: In-memory limit for multipart bodies.
        """
        self._config = config or PaygateConfig()
        self._transport = transport
        self._dns_setting = dns_setting
        self._spool_max_bytes = spool_max_bytes

    @classmethod
    def from_env(cls) -> "RequestDispatcher":
        """Create a dispatcher configured from environment variables."""
        return cls(config=PaygateConfig.from_env())

    @property
    def config(self) -> PaygateConfig:
        return self._config

    def _log_debug(self, message: str) -> None:
        """Log a debug message to stderr if debug mode is enabled."""
        if self._config.debug:
            import sys

            print(f"[paygate-sdk] {message}", file=sys.stderr)

    def dispatch(
        self,
        method: RequestMethod | str,
        url: str,
        params: Mapping[str, Any] | None,
        result_type: type[T],
        request_kind: RequestKind = RequestKind.NORMAL,
        options: RequestOptions | None = None,
    ) -> T:
        """Send a request and return its decoded result.

        Args:
            method: GET, POST or DELETE.
            url: Absolute endpoint URL. May already carry a query string.
            params: Request parameters. Nested mappings and lists are
                flattened for NORMAL requests; MULTIPART requests take a
                single level of fields, with os.PathLike values and open
                binary streams uploaded as files.
            result_type: Type the success body is decoded into.
            request_kind: NORMAL (form encoded) or MULTIPART.
            options: Per-call options. Defaults to RequestOptions.from_env().

        Returns:
            The decoded response body.

        Raises:
            PaygateAuthenticationError: Missing/blank API key, or HTTP 401.
            PaygateValidationError: Bad parameters, detected before any I/O.
            PaygateInvalidRequestError: HTTP 400 or 404.
            PaygateCardError: HTTP 402.
            PaygateAPIError: Any other failed status.
            PaygateConnectionError: The API could not be reached or read.
            pydantic.ValidationError: A 2xx body did not match result_type.
        """
        if options is None:
            options = RequestOptions.from_env()

        with dns_cache_disabled(self._dns_setting):
            _check_api_key(options)
            request_method = self._coerce_method(method)

            if RequestKind(request_kind) is RequestKind.MULTIPART:
                response = self._send_multipart(request_method, url, params, options)
            else:
                response = self._send_normal(request_method, url, params, options)

            request_id = response.request_id
            self._log_debug(f"Received {response.status_code} (request id: {request_id})")
            outcome = classify(response.status_code, response.body, request_id, result_type)

        match outcome:
            case (
                PaygateAuthenticationError()
                | PaygateInvalidRequestError()
                | PaygateCardError()
                | PaygateAPIError()
            ):
                raise outcome
            case _:
                return outcome

    def _coerce_method(self, method: RequestMethod | str) -> RequestMethod:
        try:
            return RequestMethod(str(method).upper())
        except ValueError as e:
            raise PaygateConnectionError(
                f"Unrecognized HTTP method {method!r}. This indicates a bug in the "
                "Paygate bindings. Please contact support@paygate.com for assistance.",
                api_base=self._config.api_base,
            ) from e

    def _send_normal(
        self,
        method: RequestMethod,
        url: str,
        params: Mapping[str, Any] | None,
        options: RequestOptions,
    ) -> TransportResponse:
        """Form-encode params into the query (GET/DELETE) or body (POST) and send."""
        query = encode_query(params, CHARSET)
        headers = build_headers(options)

        if method is RequestMethod.POST:
            headers["Content-Type"] = f"application/x-www-form-urlencoded;charset={CHARSET}"
            request = self._build_request(
                method, url, headers, options, body=query.encode(CHARSET)
            )
        else:
            request = self._build_request(method, format_url(url, query), headers, options)
        return self._execute(request)

    def _send_multipart(
        self,
        method: RequestMethod,
        url: str,
        params: Mapping[str, Any] | None,
        options: RequestOptions,
    ) -> TransportResponse:
        """Stream params into a multipart body and send it.

        The body is spooled first so file problems surface before the
        connection is opened and the exact Content-Length is known.
        """
        if method is not RequestMethod.POST:
            raise PaygateValidationError(
                "Multipart requests for HTTP methods other than POST "
                "are currently not supported."
            )
        fields = params or {}
        _check_files(fields)
        headers = build_headers(options)

        with tempfile.SpooledTemporaryFile(max_size=self._spool_max_bytes) as body:
            encoder = MultipartEncoder(body, new_boundary(), CHARSET)
            try:
                for key, value in fields.items():
                    if is_file_value(value):
                        encoder.add_file_field(key, value)
                    else:
                        encoder.add_form_field(key, value)
            finally:
                encoder.finish()

            headers["Content-Type"] = encoder.content_type
            headers["Content-Length"] = str(body.tell())
            body.seek(0)
            request = self._build_request(method, url, headers, options, body=body)
            return self._execute(request)

    def _build_request(
        self,
        method: RequestMethod,
        url: str,
        headers: dict[str, str],
        options: RequestOptions,
        body: Any = None,
    ) -> TransportRequest:
        return TransportRequest(
            method=method,
            url=url,
            headers=headers,
            body=body,
            connect_timeout=options.connect_timeout or self._config.connect_timeout,
            read_timeout=options.read_timeout or self._config.read_timeout,
        )

    def _execute(self, request: TransportRequest) -> TransportResponse:
        transport = self._transport or select_transport(
            self._config, dns_setting=self._dns_setting
        )
        # Query strings are never logged.
        path = request.url.partition("?")[0]
        self._log_debug(f"Sending {request.method.value} {path} via {type(transport).__name__}")
        return transport.execute(request)


def build_headers(options: RequestOptions) -> dict[str, str]:
    """Build the headers sent with every API request.

    Version, idempotency and account headers are only present when set in
    options.
    """
    headers = {
        "Accept-Charset": CHARSET,
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
        "Authorization": f"Bearer {options.api_key}",
        CLIENT_USER_AGENT_HEADER: client_user_agent(),
    }
    if options.api_version is not None:
        headers["Paygate-Version"] = options.api_version
    if options.idempotency_key is not None:
        headers["Idempotency-Key"] = options.idempotency_key
    if options.account is not None:
        headers["Paygate-Account"] = options.account
    return headers


def format_url(url: str, query: str) -> str:
    """Append a query string, using '&' when the URL already has one."""
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def _check_api_key(options: RequestOptions) -> None:
    if options.api_key is None or not options.api_key.strip():
        raise PaygateAuthenticationError(
            "No API key provided. (HINT: set your API key with PAYGATE_API_KEY or "
            "RequestOptions(api_key=...). You can generate API keys from the "
            "Paygate dashboard.)"
        )


def _check_files(fields: Mapping[str, Any]) -> None:
    """Reject file fields that are missing, not regular files, or unreadable."""
    for key, value in fields.items():
        if not isinstance(value, os.PathLike):
            continue
        path = os.fspath(value)
        if not os.path.exists(path):
            raise PaygateValidationError(f"File for key {key} must exist.", param=key)
        if not os.path.isfile(path):
            raise PaygateValidationError(
                f"File for key {key} must be a file and not a directory.", param=key
            )
        if not os.access(path, os.R_OK):
            raise PaygateValidationError(
                f"Must have read permissions on file for key {key}.", param=key
            )


def get_request_dispatcher() -> RequestDispatcher:
    """Get a request dispatcher configured from environment variables.

    Returns:
        A configured RequestDispatcher instance.
    """
    return RequestDispatcher.from_env()
