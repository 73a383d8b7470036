"""Models for Paygate request dispatch.

Configuration and per-call options are pydantic models; the transport
request/response envelopes are plain frozen dataclasses because they carry
open file handles and raw header lists.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import BinaryIO

from pydantic import BaseModel, Field

from paygate_sdk.exceptions import PaygateConfigError

# =============================================================================
# Constants
# =============================================================================

DEFAULT_API_BASE = "https://api.paygate.com"
DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_READ_TIMEOUT = 80.0
# Kept below the sandbox platform's own 60s hard limit.
DEFAULT_SANDBOX_DEADLINE = 55.0

SANDBOX_RUNTIME_ENV = "APPENGINE_RUNTIME"
REQUEST_ID_HEADER = "Request-Id"

# =============================================================================
# Enums
# =============================================================================


class RequestMethod(StrEnum):
    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"


class RequestKind(StrEnum):
    NORMAL = "normal"
    MULTIPART = "multipart"


# =============================================================================
# Configuration
# =============================================================================


class PaygateConfig(BaseModel):
    """Process-level SDK configuration.

    Fields:
        api_base: Base URL of the API, reported in connection errors.
        url_handler: Optional dotted path ("pkg.mod:Class") of an
            httpx.BaseTransport used to resolve request URLs.
        sandbox_runtime: True when running inside the sandboxed platform.
        connect_timeout: Default connect timeout in seconds.
        read_timeout: Default read timeout in seconds.
        sandbox_deadline: Deadline passed to the sandbox fetch service.
        debug: Enable debug logging to stderr.
    """

    api_base: str = DEFAULT_API_BASE
    url_handler: str | None = None
    sandbox_runtime: bool = False
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    read_timeout: float = Field(default=DEFAULT_READ_TIMEOUT, gt=0)
    sandbox_deadline: float = Field(default=DEFAULT_SANDBOX_DEADLINE, gt=0)
    debug: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls) -> "PaygateConfig":
        """Create a configuration from environment variables.

        Optional environment variables:
            PAYGATE_API_BASE: Base URL of the API.
            PAYGATE_URL_HANDLER: Dotted path of a custom URL handler class.
            APPENGINE_RUNTIME: Presence marks the sandboxed platform.
            PAYGATE_CONNECT_TIMEOUT: Connect timeout in seconds.
            PAYGATE_READ_TIMEOUT: Read timeout in seconds.
            PAYGATE_DEBUG: Set to "1" to enable debug logging.

        Raises:
            PaygateConfigError: If a timeout is not a number.
        """
        return cls(
            api_base=os.environ.get("PAYGATE_API_BASE") or DEFAULT_API_BASE,
            url_handler=os.environ.get("PAYGATE_URL_HANDLER") or None,
            sandbox_runtime=SANDBOX_RUNTIME_ENV in os.environ,
            connect_timeout=_float_env("PAYGATE_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT),
            read_timeout=_float_env("PAYGATE_READ_TIMEOUT", DEFAULT_READ_TIMEOUT),
            debug=os.environ.get("PAYGATE_DEBUG", "") == "1",
        )


class RequestOptions(BaseModel):
    """Per-call options. Read-only for the duration of a call."""

    api_key: str | None = None
    api_version: str | None = None
    idempotency_key: str | None = None
    account: str | None = None
    connect_timeout: float | None = Field(default=None, gt=0)
    read_timeout: float | None = Field(default=None, gt=0)

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls) -> "RequestOptions":
        """Create default options from environment variables.

        Environment variables:
            PAYGATE_API_KEY: The secret API key.
            PAYGATE_API_VERSION: Optional API version pin.
            PAYGATE_ACCOUNT: Optional sub-account identifier.
        """
        return cls(
            api_key=os.environ.get("PAYGATE_API_KEY"),
            api_version=os.environ.get("PAYGATE_API_VERSION") or None,
            account=os.environ.get("PAYGATE_ACCOUNT") or None,
        )


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise PaygateConfigError(f"{name} must be a number, got {raw!r}") from e


# =============================================================================
# Transport Envelopes
# =============================================================================


@dataclass(frozen=True)
class TransportRequest:
    """A fully built outbound request. Query strings are already in `url`."""

    method: RequestMethod
    url: str
    headers: Mapping[str, str]
    body: bytes | BinaryIO | None = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT


@dataclass(frozen=True)
class TransportResponse:
    """Status, decoded body and headers (each name maps to all its values)."""

    status_code: int
    body: str
    headers: Mapping[str, list[str]] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Return the first value of a header, matching names case-insensitively."""
        wanted = name.lower()
        for key, values in self.headers.items():
            if key.lower() == wanted and values:
                return values[0]
        return None

    @property
    def request_id(self) -> str | None:
        return self.header(REQUEST_ID_HEADER)


# =============================================================================
# Error Envelope
# =============================================================================


class ErrorBody(BaseModel):
    """The `error` object of an API error response."""

    type: str | None = None
    message: str | None = None
    code: str | None = None
    param: str | None = None
    decline_code: str | None = None
    charge: str | None = None

    model_config = {"extra": "allow"}


class ErrorEnvelope(BaseModel):
    error: ErrorBody
