"""Flattening and form encoding of nested request parameters."""

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import parse_qsl, quote_plus

from paygate_sdk._internal.http import CHARSET
from paygate_sdk.exceptions import PaygateValidationError

FlatParam = tuple[str, str]


def flatten_params(params: Mapping[str, Any] | None) -> list[FlatParam]:
    """Flatten nested parameters into bracket-notation key/value pairs.

    Nested mappings become ``key[child]`` and lists become ``key[0]``,
    ``key[1]``, ... Each nested group is expanded in place, so the output
    follows the iteration order of the input at every level.

    Args:
        params: The parameters to flatten. None is treated as empty.
            Bytes values are decoded with the default charset.

    Returns:
        Ordered list of (key, value) string pairs.

    Raises:
        PaygateValidationError: If any value is the empty string.
    """
    if params is None:
        return []
    return _flatten_recursive(params)


def _flatten_recursive(params: Mapping[str, Any]) -> list[FlatParam]:
    """Recursively flatten one level of parameters."""
    flat: list[FlatParam] = []
    for key, value in params.items():
        if isinstance(value, (bytes, bytearray)):
            value = value.decode(CHARSET)
        if isinstance(value, Mapping):
            nested = {f"{key}[{child_key}]": child for child_key, child in value.items()}
            flat.extend(_flatten_recursive(nested))
        elif _is_list(value):
            nested = {f"{key}[{index}]": item for index, item in enumerate(value)}
            flat.extend(_flatten_recursive(nested))
        elif value == "":
            raise PaygateValidationError(
                f"You cannot set '{key}' to an empty string. "
                "We interpret empty strings as null in requests. "
                f"You may set '{key}' to None to delete the property.",
                param=key,
            )
        elif value is None:
            flat.append((key, ""))
        else:
            flat.append((key, _string_form(value)))
    return flat


def _is_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _string_form(value: Any) -> str:
    # The API expects lowercase booleans.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(params: Mapping[str, Any] | None, charset: str = CHARSET) -> str:
    """Flatten and form-encode parameters into a query/body string.

    Args:
        params: The parameters to encode.
        charset: Character set used for percent-encoding.

    Returns:
        ``key=value`` pairs joined with ``&``; empty string for no params.
    """
    return "&".join(
        f"{quote_plus(key, encoding=charset)}={quote_plus(value, encoding=charset)}"
        for key, value in flatten_params(params)
    )


def decode_query(query: str, charset: str = CHARSET) -> list[FlatParam]:
    """Decode a form-encoded string back into ordered key/value pairs."""
    return parse_qsl(query, keep_blank_values=True, encoding=charset)
